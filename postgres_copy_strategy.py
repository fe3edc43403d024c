from typing import Iterator, Tuple

from data_generation import generate_points
from strategy import POINTS_TABLE, IngestionStrategy, partition_ranges


class BinaryCopyStrategy(IngestionStrategy):
    """
    COPY ... FROM STDIN (FORMAT BINARY), optionally split into chunks.

    size is the chunk size. A size of 0 (or below) and a size at least as
    large as the total both mean a single unchunked COPY. Each COPY runs as
    its own statement, so every chunk is atomic.
    """

    mode = "BinaryCopy"
    copy_statement = f"COPY {POINTS_TABLE} (x, y, z, attrs) FROM STDIN (FORMAT BINARY)"
    column_types = ["float8", "float8", "float8", "float8[]"]

    def check_size(self, total_points: int, size: int) -> None:
        """Any chunk size is accepted"""

    def partitions(self, total_points: int, size: int) -> Iterator[Tuple[int, int]]:
        if total_points == 0:
            return iter(())
        chunk = size if 0 < size < total_points else total_points
        return partition_ranges(total_points, chunk)

    def write_partition(self, start: int, count: int, attribute_count: int) -> int:
        with self.conn.cursor() as cur:
            with cur.copy(self.copy_statement) as copy:
                copy.set_types(self.column_types)
                for point in generate_points(start, count, attribute_count):
                    copy.write_row((point.x, point.y, point.z, list(point.attrs)))
        return 0
