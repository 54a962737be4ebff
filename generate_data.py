#!/usr/bin/env python3
"""Generate a small synthetic fvecs/ivecs dataset for the ANN benchmark."""

import argparse

import numpy as np

from config import DATASET_NAME
from dataset import dataset_paths, write_ground_truth, write_vectors


def exact_neighbors(base: np.ndarray, queries: np.ndarray, k: int, batch_size: int = 256):
    """Brute-force squared-L2 k nearest neighbors, nearest first.

    Returns:
        int32 array of shape (len(queries), min(k, len(base)))
    """
    k = min(k, base.shape[0])
    base_sq = np.sum(base * base, axis=1)
    output = np.empty((queries.shape[0], k), dtype=np.int32)
    for start in range(0, queries.shape[0], batch_size):
        q = queries[start:start + batch_size]
        q_sq = np.sum(q * q, axis=1, keepdims=True)
        distances = q_sq + base_sq[None, :] - 2.0 * (q @ base.T)
        # Stable sort keeps the lower id first among equal distances
        output[start:start + q.shape[0]] = np.argsort(distances, axis=1, kind="stable")[:, :k]
    return output


def generate_dataset(out_dir, name=DATASET_NAME, num_base=10_000, num_queries=100, dimensions=128, k=100, seed=42):
    """Write ``<name>_base.fvecs``, ``<name>_query.fvecs`` and ``<name>_groundtruth.ivecs``.

    Args:
        out_dir: Output directory (created if missing)
        name: Dataset file prefix
        num_base: Number of base vectors
        num_queries: Number of query vectors
        dimensions: Vector dimension
        k: Ground-truth neighbors per query
        seed: Random seed

    Returns:
        DatasetPaths of the written files
    """
    rng = np.random.default_rng(seed)
    base = rng.standard_normal((num_base, dimensions)).astype(np.float32)
    queries = rng.standard_normal((num_queries, dimensions)).astype(np.float32)
    ground_truth = exact_neighbors(base, queries, k)

    paths = dataset_paths(out_dir, name)
    write_vectors(paths.base, base)
    write_vectors(paths.query, queries)
    write_ground_truth(paths.ground_truth, ground_truth)
    return paths


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate a synthetic fvecs/ivecs dataset")
    parser.add_argument("--out-dir", type=str, default="synthetic", help="Output directory (default: synthetic)")
    parser.add_argument("--name", type=str, default=DATASET_NAME, help=f"File prefix (default: {DATASET_NAME})")
    parser.add_argument("--num-base", type=int, default=10_000, help="Number of base vectors (default: 10000)")
    parser.add_argument("--num-queries", type=int, default=100, help="Number of queries (default: 100)")
    parser.add_argument("--dimensions", type=int, default=128, help="Vector dimensions (default: 128)")
    parser.add_argument("-k", type=int, default=100, help="Ground-truth neighbors per query (default: 100)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args(argv)

    print(f"Generating {args.num_base:,} base and {args.num_queries:,} query vectors of dimension {args.dimensions}...")
    paths = generate_dataset(
        args.out_dir,
        name=args.name,
        num_base=args.num_base,
        num_queries=args.num_queries,
        dimensions=args.dimensions,
        k=args.k,
        seed=args.seed,
    )

    print("\nDataset generation complete!")
    print(f"  - {paths.base}")
    print(f"  - {paths.query}")
    print(f"  - {paths.ground_truth}")


if __name__ == "__main__":
    main()
