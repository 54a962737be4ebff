"""Configuration constants for the ANN recall benchmark."""

# Database configuration
DB_CONFIG = {
    "host": "localhost",
    "port": 5432,
    "dbname": "postgres",
    "user": "postgres",
    "password": "postgres",
}

# Dataset layout: <DATASET_DIR>/<DATASET_NAME>_{base,query}.fvecs, _groundtruth.ivecs
DATASET_DIR = "sift1M"
DATASET_NAME = "sift"
VECTOR_EXT = "fvecs"
GROUND_TRUTH_EXT = "ivecs"
DIMENSION = 128  # Base and query vectors must have this dimension

# Retrieval parameters
K = 100  # Retrieve 100 nearest neighbors per query

# Benchmark table
TABLE_NAME = "ann_vectors"

# HNSW parameters (pgvector defaults)
INDEX_ALGORITHM = "hnsw"
HNSW_M = 16  # Max neighbors per graph node
HNSW_EF_CONSTRUCTION = 64  # Build-time candidate list size
HNSW_EF_SEARCH = 100  # Query-time candidate list size (should be >= K)

# Distance metric: l2, cosine or ip
METRIC = "l2"

# Progress lines are printed every LOG_EVERY rows/queries
LOG_EVERY = 1000

# Files larger than this per-row dimension are rejected as corrupt
MAX_DIMENSION = 1_000_000
