"""Recall metrics for the ANN benchmark."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RecallReport:
    recall_at_1: float
    recall_at_10: float
    recall_at_100: float


class RecallMetric:
    """Accumulates top-1-relevance recall at 1, 10 and 100.

    Only the nearest ground-truth id (``ground_truth_row[0]``) counts as the
    relevant answer for a query. A query is a hit at cutoff c when that id
    appears among its first c results.
    """

    def __init__(self):
        self.total_queries = 0
        self.hits_at_1 = 0
        self.hits_at_10 = 0
        self.hits_at_100 = 0

    def record(self, results, ground_truth_row):
        """Score one query.

        Args:
            results: Returned ids, nearest first (empty for a failed query)
            ground_truth_row: True nearest ids for the query, nearest first
        """
        self.total_queries += 1
        target = int(ground_truth_row[0])
        for i, result_id in enumerate(results):
            if result_id == target:
                if i < 1:
                    self.hits_at_1 += 1
                if i < 10:
                    self.hits_at_10 += 1
                if i < 100:
                    self.hits_at_100 += 1
                break

    def report(self) -> RecallReport:
        """Return recall ratios; all zero when nothing has been recorded."""
        if self.total_queries == 0:
            return RecallReport(0.0, 0.0, 0.0)
        n = float(self.total_queries)
        return RecallReport(
            recall_at_1=self.hits_at_1 / n,
            recall_at_10=self.hits_at_10 / n,
            recall_at_100=self.hits_at_100 / n,
        )

    def show(self):
        report = self.report()
        print(f"R@1 = {report.recall_at_1:.4f}")
        print(f"R@10 = {report.recall_at_10:.4f}")
        print(f"R@100 = {report.recall_at_100:.4f}")
