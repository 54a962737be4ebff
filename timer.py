"""Wall-clock timing helpers for progress logging."""

import time

from tqdm import tqdm


def now() -> float:
    """Return a monotonic timestamp in seconds."""
    return time.perf_counter()


def elapsed_since(start: float) -> float:
    """Seconds elapsed since ``start`` (a value returned by :func:`now`)."""
    return time.perf_counter() - start


def log(t0: float, message: str):
    """Print ``message`` prefixed with the time elapsed since ``t0``.

    Goes through ``tqdm.write`` so the line does not break an active progress bar.
    """
    tqdm.write(f"[{elapsed_since(t0):.3f} s] {message}")
