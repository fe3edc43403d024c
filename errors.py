class BenchmarkError(Exception):
    """Base class for errors raised by the benchmark harness"""


class SchemaSetupFailure(BenchmarkError):
    """Dropping or creating the benchmark tables failed; the run is aborted"""


class PersistenceFailure(BenchmarkError):
    """A write issued by an ingestion strategy failed"""

    def __init__(self, mode: str, message: str, points_committed: int = 0):
        super().__init__(f"{mode}: {message}")
        self.mode = mode
        self.points_committed = points_committed


class MalformedPayload(BenchmarkError):
    """A packed payload is not a whole number of points"""


class InsufficientData(BenchmarkError):
    """The read benchmark table holds fewer rows than requested"""
