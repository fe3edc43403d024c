from typing import List, Sequence, Tuple

from data_generation import generate_points
from strategy import IngestionStrategy

# Hard limit of the PostgreSQL extended protocol
MAX_PARAMETERS = 65535


class MultiRowInsertBuilder:
    """
    Accumulates rows for one multi-valued INSERT.

    The statement text only ever contains placeholders; values travel
    separately in params.
    """

    def __init__(self, table_name: str, columns: Sequence[str]):
        self.table_name = table_name
        self.columns = tuple(columns)
        self.params: List = []
        self.row_count = 0

    def add_row(self, values: Sequence) -> None:
        if len(values) != len(self.columns):
            raise ValueError(
                f"expected {len(self.columns)} values, got {len(values)}"
            )
        if len(self.params) + len(values) > MAX_PARAMETERS:
            raise ValueError(
                f"statement would exceed {MAX_PARAMETERS} parameters; "
                f"use a smaller batch size"
            )
        self.params.extend(values)
        self.row_count += 1

    def __len__(self) -> int:
        return self.row_count

    def build(self) -> Tuple[str, List]:
        """Return (statement, params) for the accumulated rows"""
        if self.row_count == 0:
            raise ValueError("cannot build an INSERT without rows")

        row = "(" + ", ".join(["%s"] * len(self.columns)) + ")"
        query = (
            f"INSERT INTO {self.table_name} ({', '.join(self.columns)}) "
            f"VALUES {', '.join([row] * self.row_count)}"
        )
        return query, list(self.params)


class BatchedRowsStrategy(IngestionStrategy):
    """One multi-row INSERT of size points per transaction"""

    mode = "BatchedRows"
    columns = ("x", "y", "z", "attrs")
    max_batch_size = MAX_PARAMETERS // len(columns)

    def check_size(self, total_points: int, size: int) -> None:
        super().check_size(total_points, size)
        largest = min(size, total_points)
        if largest > self.max_batch_size:
            raise ValueError(
                f"{self.mode} batch of {largest:,} points needs {largest * len(self.columns):,} "
                f"parameters, limit is {MAX_PARAMETERS}; use at most {self.max_batch_size:,}"
            )

    def write_partition(self, start: int, count: int, attribute_count: int) -> int:
        builder = MultiRowInsertBuilder(self.table_name, self.columns)
        for point in generate_points(start, count, attribute_count):
            builder.add_row((point.x, point.y, point.z, list(point.attrs)))
        query, params = builder.build()

        with self.conn.transaction():
            with self.conn.cursor() as cur:
                cur.execute(query, params)
        return 0
