"""Reading and writing fvecs/ivecs dataset files."""

import os
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from config import GROUND_TRUTH_EXT, MAX_DIMENSION, VECTOR_EXT
from errors import DatasetIOError, MalformedDatasetError

FLOAT_DTYPE = np.dtype("<f4")
INT_DTYPE = np.dtype("<i4")


@dataclass
class VectorMatrix:
    """Row-major ``count x dimension`` matrix loaded from a vecs file."""

    dimension: int
    count: int
    data: np.ndarray

    def __post_init__(self):
        if self.data.shape != (self.count, self.dimension):
            raise ValueError(
                f"data shape {self.data.shape} does not match "
                f"count={self.count}, dimension={self.dimension}"
            )

    def __len__(self):
        return self.count

    def __getitem__(self, i):
        return self.data[i]

    def __iter__(self):
        return iter(self.data)

    def head(self, n: int):
        """Return a matrix holding only the first ``n`` rows."""
        if n is None or n >= self.count:
            return self
        return type(self)(dimension=self.dimension, count=n, data=self.data[:n])


class GroundTruthMatrix(VectorMatrix):
    """Per-query nearest-neighbor ids, nearest first."""


@dataclass(frozen=True)
class DatasetPaths:
    base: Path
    query: Path
    ground_truth: Path


def dataset_paths(
    dataset_dir, name: str, vector_ext: str = VECTOR_EXT, gt_ext: str = GROUND_TRUTH_EXT
) -> DatasetPaths:
    """Locate the base, query and ground-truth files of a dataset.

    Args:
        dataset_dir: Directory holding the files (e.g. "sift1M")
        name: Dataset prefix (e.g. "sift")

    Returns:
        DatasetPaths for ``<name>_base``, ``<name>_query`` and ``<name>_groundtruth``
    """
    root = Path(dataset_dir)
    return DatasetPaths(
        base=root / f"{name}_base.{vector_ext}",
        query=root / f"{name}_query.{vector_ext}",
        ground_truth=root / f"{name}_groundtruth.{gt_ext}",
    )


def _read_records(path, dtype: np.dtype) -> np.ndarray:
    """Read a vecs file and return its payload as an ``(n, d)`` array.

    Every record is a little-endian int32 element count ``d`` followed by ``d``
    4-byte elements. The first record's ``d`` is used for the whole file.
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            header = f.read(4)
            if len(header) < 4:
                raise MalformedDatasetError(f"{path}: file too short for a record header")
            dim = int(np.frombuffer(header, dtype=INT_DTYPE)[0])
            if not 0 < dim < MAX_DIMENSION:
                raise MalformedDatasetError(f"{path}: unreasonable dimension {dim}")

            size = os.fstat(f.fileno()).st_size
            record_bytes = (dim + 1) * 4
            if size % record_bytes != 0:
                raise MalformedDatasetError(
                    f"{path}: file size {size} is not a multiple of the record size {record_bytes}"
                )
            n = size // record_bytes

            f.seek(0)
            raw = f.read(n * record_bytes)
    except OSError as e:
        raise DatasetIOError(f"could not open {path}: {e}") from e

    if len(raw) != n * record_bytes:
        raise MalformedDatasetError(
            f"{path}: could not read whole file ({len(raw)} of {n * record_bytes} bytes)"
        )

    # Drop the per-row count prefix
    staging = np.frombuffer(raw, dtype=dtype).reshape(n, dim + 1)
    return np.ascontiguousarray(staging[:, 1:])


def read_vectors(path) -> VectorMatrix:
    """Load an fvecs file into a float32 VectorMatrix."""
    data = _read_records(path, FLOAT_DTYPE)
    return VectorMatrix(dimension=data.shape[1], count=data.shape[0], data=data)


def read_ground_truth(path) -> GroundTruthMatrix:
    """Load an ivecs file into an int32 GroundTruthMatrix."""
    data = _read_records(path, INT_DTYPE)
    return GroundTruthMatrix(dimension=data.shape[1], count=data.shape[0], data=data)


def _check_dimension(matrix: VectorMatrix, path, expected_dimension: int):
    if expected_dimension is not None and matrix.dimension != expected_dimension:
        raise DatasetIOError(
            f"{path}: vector dimension should be {expected_dimension}, got {matrix.dimension}"
        )
    return matrix


def load_base(path, expected_dimension: int = None) -> VectorMatrix:
    """Load base vectors and check their dimension."""
    return _check_dimension(read_vectors(path), path, expected_dimension)


def load_queries(path, expected_dimension: int = None) -> VectorMatrix:
    """Load query vectors and check their dimension."""
    return _check_dimension(read_vectors(path), path, expected_dimension)


def load_ground_truth(path, expected_count: int) -> GroundTruthMatrix:
    """Load ground truth and check there is exactly one row per query."""
    gt = read_ground_truth(path)
    if gt.count != expected_count:
        raise MalformedDatasetError(
            f"{path}: incorrect nb of ground truth entries ({gt.count} for {expected_count} queries)"
        )
    return gt


def _write_records(path, array, dtype: np.dtype):
    array = np.asarray(array)
    if array.ndim != 2 or array.shape[1] == 0:
        raise ValueError(f"Expected non-empty 2D array, got shape {array.shape}")
    n, dim = array.shape
    records = np.empty((n, dim + 1), dtype=dtype)
    records[:, 1:] = array.astype(dtype)
    # Prefix is the int32 bit pattern of dim, whatever the payload dtype
    records.view(INT_DTYPE)[:, 0] = dim
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.write(records.tobytes())


def write_vectors(path, array):
    """Write a 2D float array as an fvecs file."""
    _write_records(path, array, FLOAT_DTYPE)


def write_ground_truth(path, array):
    """Write a 2D integer array as an ivecs file."""
    _write_records(path, array, INT_DTYPE)
