"""Index parameter configuration for the similarity index."""

from dataclasses import dataclass

from config import HNSW_EF_CONSTRUCTION, HNSW_EF_SEARCH, HNSW_M, INDEX_ALGORITHM, METRIC

# metric -> (pgvector operator class, distance operator)
DISTANCE_OPS = {
    "l2": ("vector_l2_ops", "<->"),
    "cosine": ("vector_cosine_ops", "<=>"),
    "ip": ("vector_ip_ops", "<#>"),
}

_METRIC_ALIASES = {
    "euclidean": "l2",
    "angular": "cosine",
    "dot": "ip",
    "inner_product": "ip",
}


def canonical_metric(metric: str) -> str:
    """Normalize a metric name to one of ``l2``, ``cosine`` or ``ip``.

    Raises:
        ValueError: if the metric is not supported.
    """
    normalized = metric.lower().strip()
    normalized = _METRIC_ALIASES.get(normalized, normalized)
    if normalized not in DISTANCE_OPS:
        raise ValueError(
            f"Unsupported metric: {metric} (expected one of {', '.join(DISTANCE_OPS)})"
        )
    return normalized


@dataclass(frozen=True)
class IndexConfig:
    """Options for the similarity index.

    Attributes:
        algorithm_family: Index structure; only the graph-based ``hnsw`` is supported
        m: Max neighbors per graph node
        ef_construction: Build-time search breadth
        ef_search: Query-time search breadth
        metric: Distance metric the index and queries use
    """

    algorithm_family: str = INDEX_ALGORITHM
    m: int = HNSW_M
    ef_construction: int = HNSW_EF_CONSTRUCTION
    ef_search: int = HNSW_EF_SEARCH
    metric: str = METRIC

    def __post_init__(self):
        object.__setattr__(self, "metric", canonical_metric(self.metric))

    @property
    def operator_class(self) -> str:
        return DISTANCE_OPS[self.metric][0]

    @property
    def distance_operator(self) -> str:
        return DISTANCE_OPS[self.metric][1]

    def with_options(self) -> str:
        """Render the build-time options as a ``WITH (...)`` clause."""
        return f"WITH (m = {self.m}, ef_construction = {self.ef_construction})"
