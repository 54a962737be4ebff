"""Schema creation, index creation and row-by-row loading of base vectors."""

import sys
from dataclasses import dataclass, field

from tqdm import tqdm

from config import LOG_EVERY, TABLE_NAME
from embeddings import render
from errors import BackendError, IndexCreationError, InsertError, SchemaError
from params import IndexConfig
from timer import elapsed_since, log, now


@dataclass
class IngestResult:
    attempted: int = 0
    inserted: int = 0
    failures: list = field(default_factory=list)
    elapsed_s: float = 0.0


def prepare_schema(backend, dimension: int, table: str = TABLE_NAME, recreate=False):
    """Create the benchmark table with a vector column and an integer id column.

    Args:
        backend: Object exposing ``execute(statement)``
        dimension: Vector dimension of the ``embedding`` column
        table: Table name
        recreate: Drop an existing table first instead of failing on it

    Raises:
        SchemaError: if the backend rejects the statement
    """
    try:
        if recreate:
            backend.execute(f"DROP TABLE IF EXISTS {table}")
        backend.execute(f"CREATE TABLE {table} (embedding vector({dimension}), id integer)")
    except BackendError as e:
        raise SchemaError(f"Failed to create table {table}: {e}") from e


def build_index(backend, config: IndexConfig, table: str = TABLE_NAME):
    """Create the similarity index on the embedding column.

    The build options go in the CREATE INDEX statement. ``ef_search`` is a
    query-time option that pgvector takes as a session setting, so it is set
    on the same session right after.

    Returns:
        Tuple of (index name, build time in seconds)

    Raises:
        IndexCreationError: if the algorithm is unsupported or the backend rejects a statement
    """
    if config.algorithm_family != "hnsw":
        raise IndexCreationError(
            f"Unsupported index algorithm: {config.algorithm_family} (expected hnsw)"
        )

    idx_name = f"idx_{table}_hnsw"
    start = now()
    try:
        backend.execute(
            f"CREATE INDEX {idx_name} ON {table} USING hnsw (embedding {config.operator_class}) "
            f"{config.with_options()}"
        )
        backend.execute(f"SET hnsw.ef_search = {config.ef_search}")
    except BackendError as e:
        raise IndexCreationError(f"Failed to create vector index {idx_name}: {e}") from e
    return idx_name, elapsed_since(start)


def ingest(
    backend,
    vectors,
    t0: float,
    table: str = TABLE_NAME,
    log_every: int = LOG_EVERY,
    progress=True,
) -> IngestResult:
    """Insert every base vector, using its row number as the id.

    A failed insert is reported and skipped; loading continues with the next row.

    Args:
        backend: Object exposing ``execute(statement)``
        vectors: VectorMatrix of base vectors
        t0: Benchmark start timestamp used for log lines
        table: Table name
        log_every: Print a progress line every this many rows
        progress: Show a tqdm progress bar

    Returns:
        IngestResult with counts and the per-row failures
    """
    if log_every < 1:
        raise ValueError(f"log_every must be at least 1, got {log_every}")
    result = IngestResult()
    nb = len(vectors)
    start = now()

    for i in tqdm(range(nb), desc=f"Insert {table}", unit="row", disable=not progress):
        if i % log_every == 0:
            log(t0, f"Loading database, #{i}  #{nb}")
        literal = render(vectors[i], vectors.dimension)
        result.attempted += 1
        try:
            backend.execute(f"INSERT INTO {table} (embedding, id) VALUES ('{literal}', {i})")
        except BackendError as e:
            err = InsertError(i, e)
            result.failures.append(err)
            tqdm.write(f"[Insert] Insert data failed: {err}", file=sys.stderr)
            continue
        result.inserted += 1

    result.elapsed_s = elapsed_since(start)
    return result
