import time


class BenchmarkTimer:
    """Context manager timing one operation"""

    def __init__(self):
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.end_time = time.perf_counter()

    @property
    def elapsed(self) -> float:
        """Seconds between enter and exit, 0 before the block has finished"""
        if self.start_time is None or self.end_time is None:
            return 0.0
        return self.end_time - self.start_time


def rate(count: int, seconds: float) -> float:
    """Items per second, 0 when nothing was measured"""
    if count <= 0 or seconds <= 0:
        return 0.0
    return count / seconds
