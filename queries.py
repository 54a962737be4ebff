"""Nearest-neighbor query execution for the recall benchmark."""

import sys
from dataclasses import dataclass, field

from tqdm import tqdm

from config import K, LOG_EVERY, TABLE_NAME
from embeddings import render
from errors import BackendError, QueryExecutionError, ResultParseError
from params import IndexConfig
from timer import log


@dataclass
class QueryRunResult:
    results: list = field(default_factory=list)
    failures: list = field(default_factory=list)


def parse_identifiers(rows) -> list:
    """Extract the integer ids (first field) from result rows, keeping rank order.

    Raises:
        ResultParseError: if a row has no fields or its id is not an integer
    """
    ids = []
    for rank, row in enumerate(rows):
        if not row:
            raise ResultParseError(f"result row {rank} is empty")
        value = row[0]
        if isinstance(value, float) and not value.is_integer():
            raise ResultParseError(f"result row {rank}: id {value!r} is not an integer")
        try:
            ids.append(int(value))
        except (TypeError, ValueError) as e:
            raise ResultParseError(f"result row {rank}: id {value!r} is not an integer") from e
    return ids


def iter_query_results(
    backend,
    queries,
    t0: float,
    k: int = K,
    config: IndexConfig = None,
    table: str = TABLE_NAME,
    log_every: int = LOG_EVERY,
    progress=True,
    failures=None,
):
    """Run one k-NN query per query vector and yield the ranked ids.

    A query the backend rejects is reported and yields an empty id list, so it
    still counts as a miss. When ``failures`` is a list, the corresponding
    QueryExecutionError objects are appended to it.

    Args:
        backend: Object exposing ``execute(statement)``
        queries: VectorMatrix of query vectors
        t0: Benchmark start timestamp used for log lines
        k: Number of neighbors to request per query
        config: Index configuration (selects the distance operator)
        table: Table name
        log_every: Print a progress line every this many queries
        progress: Show a tqdm progress bar

    Yields:
        Tuples of (query index, list of ids nearest first)
    """
    if log_every < 1:
        raise ValueError(f"log_every must be at least 1, got {log_every}")
    config = config or IndexConfig()
    nq = len(queries)
    select_sql = f"SELECT id, embedding FROM {table} ORDER BY embedding {config.distance_operator} "

    for i in tqdm(range(nq), desc=f"Query {table}", unit="query", disable=not progress):
        if i % log_every == 0:
            log(t0, f"Doing query, #{i}  #{nq}")
        sql = select_sql + f"'{render(queries[i], queries.dimension)}' LIMIT {k}"
        try:
            rows = backend.execute(sql)
        except BackendError as e:
            err = QueryExecutionError(i, e)
            if failures is not None:
                failures.append(err)
            tqdm.write(f"[Query] Query failed: {err}", file=sys.stderr)
            yield i, []
            continue
        try:
            ids = parse_identifiers(rows)
        except ResultParseError as e:
            raise ResultParseError(f"query {i}: {e}") from e
        yield i, ids


def run(backend, queries, t0: float, k: int = K, **kwargs) -> QueryRunResult:
    """Run every query and collect all ranked id lists.

    Accepts the same keyword arguments as :func:`iter_query_results`.
    """
    result = QueryRunResult()
    for _, ids in iter_query_results(
        backend, queries, t0, k=k, failures=result.failures, **kwargs
    ):
        result.results.append(ids)
    return result
