"""Exception types raised by the benchmark harness."""


class BenchmarkError(Exception):
    """Base class for all harness errors."""


class DatasetIOError(BenchmarkError):
    """A dataset file is missing, unreadable or has the wrong dimension."""


class MalformedDatasetError(BenchmarkError):
    """A dataset file violates the fvecs/ivecs size or header layout."""


class BackendError(BenchmarkError):
    """The backend rejected a statement."""


class SchemaError(BenchmarkError):
    """The benchmark table could not be created."""


class IndexCreationError(BenchmarkError):
    """The similarity index could not be created or configured."""


class ResultParseError(BenchmarkError):
    """A result row carried an identifier that is not an integer."""


class _RowError(BenchmarkError):
    def __init__(self, index: int, cause: Exception):
        self.index = index
        self.cause = cause
        super().__init__(f"index = {index}: {cause}")


class InsertError(_RowError):
    """Inserting a single base vector failed."""


class QueryExecutionError(_RowError):
    """Executing a single nearest-neighbor query failed."""
