import re

import numpy as np
import pytest

from dataset import write_ground_truth, write_vectors
from embeddings import parse
from errors import BackendError

_INSERT_RE = re.compile(r"^INSERT INTO (\w+) \(embedding, id\) VALUES \('(\[[^\]]*\])', (-?\d+)\)$")
_SELECT_RE = re.compile(r"^SELECT id, embedding FROM (\w+) ORDER BY embedding <-> '(\[[^\]]*\])' LIMIT (\d+)$")


class FakeBackend:
    """In-process stand-in for the SQL backend.

    Records every statement, keeps inserted rows in memory and answers L2
    k-NN selects by brute force. ``fail_when`` is a predicate on the statement
    text; matching statements raise BackendError.
    """

    def __init__(self, fail_when=None):
        self.statements = []
        self.rows = []
        self.fail_when = fail_when

    def execute(self, statement):
        self.statements.append(statement)
        if self.fail_when is not None and self.fail_when(statement):
            raise BackendError(f"rejected: {statement[:40]}")

        match = _INSERT_RE.match(statement)
        if match:
            self.rows.append((int(match.group(3)), match.group(2)))
            return []

        match = _SELECT_RE.match(statement)
        if match:
            query = parse(match.group(2))
            limit = int(match.group(3))
            scored = sorted(
                self.rows,
                key=lambda row: (float(np.sum((parse(row[1]) - query) ** 2)), row[0]),
            )
            return [(row_id, literal) for row_id, literal in scored[:limit]]
        return []

    def inserts(self):
        return [s for s in self.statements if s.startswith("INSERT")]

    def selects(self):
        return [s for s in self.statements if s.startswith("SELECT")]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def toy_dataset(tmp_path):
    """A 2-D dataset where each query sits next to exactly one base vector."""
    base = np.array(
        [[0.0, 0.0], [10.0, 0.0], [0.0, 10.0], [10.0, 10.0], [5.0, 5.0]], dtype=np.float32
    )
    queries = np.array([[0.1, 0.2], [9.8, 10.1], [5.2, 4.9]], dtype=np.float32)
    ground_truth = np.array([[0, 4, 2], [3, 4, 2], [4, 1, 3]], dtype=np.int32)

    root = tmp_path / "toy"
    write_vectors(root / "toy_base.fvecs", base)
    write_vectors(root / "toy_query.fvecs", queries)
    write_ground_truth(root / "toy_groundtruth.ivecs", ground_truth)
    return root
