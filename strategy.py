from dataclasses import dataclass
from typing import Iterator, Tuple

import psycopg

from errors import PersistenceFailure
from timer import BenchmarkTimer, rate

POINTS_TABLE = "benchmark_points"
BLOB_TABLE = "benchmark_points_blob"


@dataclass(frozen=True)
class IngestionTiming:
    """Outcome of one strategy run"""

    seconds: float
    points: int
    partitions: int
    payload_bytes: int = 0

    @property
    def points_per_sec(self) -> float:
        return rate(self.points, self.seconds)

    @property
    def avg_bytes_per_point(self) -> float:
        if self.points == 0:
            return 0.0
        return self.payload_bytes / self.points


def partition_ranges(total: int, size: int) -> Iterator[Tuple[int, int]]:
    """
    Split [0, total) into contiguous (start, count) ranges of at most size.

    Every range holds exactly size items except the last, which holds the
    remainder. total == 0 yields nothing.
    """
    if size < 1:
        raise ValueError(f"partition size must be >= 1, got {size}")
    if total < 0:
        raise ValueError(f"total must be >= 0, got {total}")
    return _ranges(total, size)


def _ranges(total: int, size: int) -> Iterator[Tuple[int, int]]:
    start = 0
    while start < total:
        count = min(size, total - start)
        yield start, count
        start += count


class IngestionStrategy:
    """
    Base class for the point ingestion strategies.

    Subclasses write one partition at a time through the shared connection.
    The connection is expected to be in autocommit mode so that every
    explicit conn.transaction() block maps to one BEGIN/COMMIT.
    """

    mode: str = ""
    table_name: str = POINTS_TABLE
    reports_payload: bool = False

    def __init__(self, conn):
        self.conn = conn

    def check_size(self, total_points: int, size: int) -> None:
        """Raise ValueError when size cannot drive a run of total_points"""
        if size < 1:
            raise ValueError(f"{self.mode} size must be >= 1, got {size}")

    def count_query(self) -> str:
        return f"SELECT COUNT(*) FROM {self.table_name}"

    def partitions(self, total_points: int, size: int) -> Iterator[Tuple[int, int]]:
        return partition_ranges(total_points, size)

    def write_partition(self, start: int, count: int, attribute_count: int) -> int:
        """Persist points start .. start + count - 1, return payload bytes written"""
        raise NotImplementedError("Subclasses must implement this method")

    def run(self, total_points: int, attribute_count: int, size: int) -> IngestionTiming:
        """Insert total_points fixtures and time the whole sweep"""
        ranges = self.partitions(total_points, size)
        committed = 0
        partitions = 0
        payload_bytes = 0

        try:
            with BenchmarkTimer() as timer:
                for start, count in ranges:
                    payload_bytes += self.write_partition(start, count, attribute_count)
                    committed += count
                    partitions += 1
        except psycopg.Error as e:
            raise PersistenceFailure(self.mode, str(e), points_committed=committed) from e

        return IngestionTiming(
            seconds=timer.elapsed,
            points=committed,
            partitions=partitions,
            payload_bytes=payload_bytes,
        )

    def count_points(self) -> int:
        """Number of points currently stored in this strategy's table"""
        try:
            with self.conn.cursor() as cur:
                cur.execute(self.count_query())
                return int(cur.fetchone()[0])
        except psycopg.Error as e:
            raise PersistenceFailure(self.mode, str(e)) from e
