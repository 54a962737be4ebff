"""Textual encoding of vectors for use inside SQL statements."""

import numpy as np


def render(vector, dimension: int = None) -> str:
    """Render a vector as a bracketed fixed-point array literal.

    Each element is written with exactly 6 digits after the decimal point,
    e.g. ``[1.000000, 2.500000]``. The same literal form is used for inserted
    rows and for query vectors.

    Args:
        vector: Sequence of floats (list, tuple or 1-D numpy array)
        dimension: Expected number of elements (default: len(vector))

    Returns:
        The literal as a string
    """
    if dimension is None:
        dimension = len(vector)
    elif len(vector) != dimension:
        raise ValueError(
            f"vector has {len(vector)} elements, expected dimension {dimension}"
        )
    return "[" + ", ".join(f"{float(vector[i]):.6f}" for i in range(dimension)) + "]"


def parse(literal: str) -> np.ndarray:
    """Parse an array literal such as ``[1.0,2.5]`` back into a float32 vector."""
    body = literal.strip().strip("[]").strip()
    if not body:
        return np.zeros(0, dtype=np.float32)
    return np.array([float(x) for x in body.split(",")], dtype=np.float32)
