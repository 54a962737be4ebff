#!/usr/bin/env python3
"""
ANN Recall Benchmark

Loads an fvecs/ivecs dataset (SIFT1M layout by default), loads the base vectors
into a pgvector table one INSERT at a time, builds an HNSW index, runs one
k-NN query per query vector and reports top-1-relevance recall:

    R@1   - the true nearest neighbor is the first result
    R@10  - the true nearest neighbor is among the first 10 results
    R@100 - the true nearest neighbor is among the first 100 results

Download the dataset from http://corpus-texmex.irisa.fr/ and unpack it into
./sift1M, or create a small synthetic one with generate_data.py.
"""

import argparse
import sys

import config
from database import ensure_connection, ensure_extension, print_extension_versions
from dataset import dataset_paths, load_base, load_ground_truth, load_queries
from errors import BackendError, BenchmarkError, SchemaError
from insert import build_index, ingest, prepare_schema
from metrics import RecallMetric
from params import IndexConfig
from queries import iter_query_results
from timer import elapsed_since, log, now


def check_run_options(log_every, max_base=None, max_queries=None):
    """Reject a non-positive log cadence and negative row limits.

    Raises:
        ValueError: if an option is out of range
    """
    if log_every < 1:
        raise ValueError(f"log_every must be at least 1, got {log_every}")
    for name, value in (("max_base", max_base), ("max_queries", max_queries)):
        if value is not None and value < 0:
            raise ValueError(f"{name} must not be negative, got {value}")

def run_benchmark(
    backend,
    paths,
    index_config: IndexConfig = None,
    dimension: int = config.DIMENSION,
    k: int = config.K,
    table: str = config.TABLE_NAME,
    recreate=False,
    index_after_load=False,
    max_base=None,
    max_queries=None,
    log_every: int = config.LOG_EVERY,
    progress=True,
    t0: float = None,
):
    """Run the full load -> index -> query -> recall pipeline.

    Args:
        backend: Object exposing ``execute(statement)``
        paths: DatasetPaths of the base, query and ground-truth files
        index_config: HNSW options and distance metric
        dimension: Expected vector dimension of base and query files
        k: Number of neighbors requested per query
        table: Benchmark table name
        recreate: Drop an existing benchmark table first
        index_after_load: Build the index after loading rows instead of before
        max_base: Only load the first max_base base vectors
        max_queries: Only run the first max_queries queries
        log_every: Progress line cadence for loading and querying
        progress: Show tqdm progress bars
        t0: Start timestamp for log lines (default: now)

    Returns:
        RecallMetric holding the accumulated counts
    """
    check_run_options(log_every, max_base, max_queries)
    t0 = now() if t0 is None else t0
    index_config = index_config or IndexConfig()

    if index_config.ef_search < k:
        print(
            f"[Setup] Warning: ef_search={index_config.ef_search} is below k={k}, "
            f"queries may return fewer than {k} rows"
        )

    log(t0, "Loading database")
    xb = load_base(paths.base, expected_dimension=dimension)
    if max_base is not None and max_base < xb.count:
        print(
            f"[Setup] Limiting to {max_base:,} base vectors; ground truth still "
            f"refers to the full base set, so recall is a lower bound"
        )
        xb = xb.head(max_base)
    log(t0, f"Loading database, size {xb.count}*{xb.dimension}")

    log(t0, f"Creating table {table}")
    prepare_schema(backend, dimension, table=table, recreate=recreate)

    if not index_after_load:
        log(t0, "Creating vector index...")
        idx_name, build_time = build_index(backend, index_config, table=table)
        print(f"[Index] Created {idx_name} in {build_time:.2f}s")

    loaded = ingest(backend, xb, t0, table=table, log_every=log_every, progress=progress)
    print(
        f"[Insert] Complete! {loaded.inserted:,} of {loaded.attempted:,} vectors in "
        f"{loaded.elapsed_s:.2f}s ({len(loaded.failures):,} failed)"
    )
    del xb

    if index_after_load:
        log(t0, "Creating vector index...")
        idx_name, build_time = build_index(backend, index_config, table=table)
        print(f"[Index] Created {idx_name} in {build_time:.2f}s")

    log(t0, "Loading queries")
    xq = load_queries(paths.query, expected_dimension=dimension)

    log(t0, f"Loading ground truth for {xq.count} queries")
    gt = load_ground_truth(paths.ground_truth, expected_count=xq.count)

    if max_queries is not None and max_queries < xq.count:
        print(f"[Setup] Limiting to {max_queries:,} queries")
        xq = xq.head(max_queries)
        gt = gt.head(max_queries)

    metric = RecallMetric()
    failures = []
    for i, ids in iter_query_results(
        backend,
        xq,
        t0,
        k=k,
        config=index_config,
        table=table,
        log_every=log_every,
        progress=progress,
        failures=failures,
    ):
        metric.record(ids, gt[i])

    log(t0, "Compute recalls")
    metric.show()
    if failures:
        print(f"[Query] {len(failures):,} of {xq.count:,} queries failed and were scored as misses")
    return metric


def build_parser():
    parser = argparse.ArgumentParser(description="ANN recall benchmark for pgvector")
    parser.add_argument(
        "--dataset-dir",
        type=str,
        default=config.DATASET_DIR,
        help=f"Directory with the fvecs/ivecs files (default: {config.DATASET_DIR})",
    )
    parser.add_argument(
        "--name",
        type=str,
        default=config.DATASET_NAME,
        help=f"Dataset file prefix (default: {config.DATASET_NAME})",
    )
    parser.add_argument(
        "--dimension",
        type=int,
        default=config.DIMENSION,
        help=f"Expected vector dimension (default: {config.DIMENSION})",
    )
    parser.add_argument(
        "-k", type=int, default=config.K, help=f"Neighbors per query (default: {config.K})"
    )
    parser.add_argument(
        "--table", type=str, default=config.TABLE_NAME, help="Benchmark table name"
    )
    parser.add_argument(
        "--m", type=int, default=config.HNSW_M, help=f"HNSW m (default: {config.HNSW_M})"
    )
    parser.add_argument(
        "--ef-construction",
        type=int,
        default=config.HNSW_EF_CONSTRUCTION,
        help=f"HNSW ef_construction (default: {config.HNSW_EF_CONSTRUCTION})",
    )
    parser.add_argument(
        "--ef-search",
        type=int,
        default=config.HNSW_EF_SEARCH,
        help=f"HNSW ef_search (default: {config.HNSW_EF_SEARCH})",
    )
    parser.add_argument(
        "--metric",
        type=str,
        default=config.METRIC,
        help=f"Distance metric: l2, cosine or ip (default: {config.METRIC})",
    )
    parser.add_argument(
        "--log-every",
        type=int,
        default=config.LOG_EVERY,
        help=f"Progress line every N rows/queries (default: {config.LOG_EVERY})",
    )
    parser.add_argument(
        "--recreate",
        action="store_true",
        help="Drop the benchmark table if it already exists",
    )
    parser.add_argument(
        "--index-after-load",
        action="store_true",
        help="Build the index after loading the rows instead of before",
    )
    parser.add_argument("--max-base", type=int, default=None, help="Load only the first N base vectors")
    parser.add_argument("--max-queries", type=int, default=None, help="Run only the first N queries")
    parser.add_argument("--host", type=str, default=config.DB_CONFIG["host"])
    parser.add_argument("--port", type=int, default=config.DB_CONFIG["port"])
    parser.add_argument("--dbname", type=str, default=config.DB_CONFIG["dbname"])
    parser.add_argument("--user", type=str, default=config.DB_CONFIG["user"])
    parser.add_argument("--password", type=str, default=config.DB_CONFIG["password"])
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    t0 = now()

    try:
        index_config = IndexConfig(
            m=args.m,
            ef_construction=args.ef_construction,
            ef_search=args.ef_search,
            metric=args.metric,
        )
        check_run_options(args.log_every, args.max_base, args.max_queries)
    except ValueError as e:
        print(f"[Error] {e}", file=sys.stderr)
        return 2

    db_config = {
        "host": args.host,
        "port": args.port,
        "dbname": args.dbname,
        "user": args.user,
        "password": args.password,
    }
    paths = dataset_paths(args.dataset_dir, args.name)

    try:
        backend = ensure_connection(db_config)
    except BackendError as e:
        print(f"[Error] {e}", file=sys.stderr)
        return 1

    try:
        try:
            ensure_extension(backend)
            print_extension_versions(backend)
        except BackendError as e:
            raise SchemaError(f"Failed to load the vector extension: {e}") from e

        run_benchmark(
            backend,
            paths,
            index_config=index_config,
            dimension=args.dimension,
            k=args.k,
            table=args.table,
            recreate=args.recreate,
            index_after_load=args.index_after_load,
            max_base=args.max_base,
            max_queries=args.max_queries,
            log_every=args.log_every,
            progress=not args.no_progress,
            t0=t0,
        )
    except BenchmarkError as e:
        print(f"[Error] {e}", file=sys.stderr)
        return 1
    finally:
        backend.close()

    print(f"\n[Complete] Benchmark finished in {elapsed_since(t0):.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
