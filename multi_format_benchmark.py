"""
Compares insertion speed of the same ten doubles stored as:
1. Ten separate DOUBLE PRECISION columns
2. A single BYTEA blob with the doubles packed back to back
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import psycopg

from data_generation import ten_doubles
from errors import PersistenceFailure, SchemaSetupFailure
from point_codec import pack_doubles
from reporting import best_by, print_banner, print_table, write_csv
from strategy import partition_ranges
from timer import BenchmarkTimer, rate

FLOATS_TABLE = "benchmarkfloats"
FLOATS_BLOB_TABLE = "benchmarkfloats_blob"
FORMAT_BATCH_SIZES = (1, 10, 50, 100, 500, 1000, 2000, 5000, 10000)

FLOAT_COLUMNS = [f"f{i}" for i in range(1, 11)]


@dataclass(frozen=True)
class FormatResult:
    mode: str
    batch_size: int
    seconds: float
    rows_per_sec: float


class MultiFormatInsertBenchmark:
    """Ten float columns against one packed bytea per row"""

    columns_query = (
        f"INSERT INTO {FLOATS_TABLE} ({', '.join(FLOAT_COLUMNS)}) "
        f"VALUES ({', '.join(['%s'] * len(FLOAT_COLUMNS))})"
    )
    blob_query = f"INSERT INTO {FLOATS_BLOB_TABLE} (payload) VALUES (%s)"

    def __init__(self, conn_string: Optional[str] = None, conn=None):
        self.conn_string = conn_string
        self.conn = conn
        self.results: List[FormatResult] = []

    def connect(self):
        if self.conn is None:
            self.conn = psycopg.connect(self.conn_string, autocommit=True)

    def close(self):
        if self.conn:
            self.conn.close()

    def recreate_tables(self):
        columns = ",\n".join(f"{name} DOUBLE PRECISION" for name in FLOAT_COLUMNS)
        try:
            with self.conn.cursor() as cur:
                cur.execute(f"""
                    DROP TABLE IF EXISTS {FLOATS_TABLE} CASCADE;
                    DROP TABLE IF EXISTS {FLOATS_BLOB_TABLE} CASCADE;

                    CREATE TABLE {FLOATS_TABLE} (
                        id SERIAL PRIMARY KEY,
                        {columns}
                    );

                    CREATE TABLE {FLOATS_BLOB_TABLE} (
                        id SERIAL PRIMARY KEY,
                        payload BYTEA
                    );
                """)
        except psycopg.Error as e:
            raise SchemaSetupFailure(f"Failed to recreate float tables: {e}") from e
        print(f"✓ Tables {FLOATS_TABLE} and {FLOATS_BLOB_TABLE} recreated")

    def _insert(self, mode: str, query: str, make_params, total_rows: int, batch_size: int) -> FormatResult:
        inserted = 0
        try:
            with BenchmarkTimer() as timer:
                for start, count in partition_ranges(total_rows, batch_size):
                    with self.conn.transaction():
                        with self.conn.cursor() as cur:
                            for index in range(start, start + count):
                                cur.execute(query, make_params(index))
                    inserted += count
        except psycopg.Error as e:
            raise PersistenceFailure(mode, str(e), points_committed=inserted) from e

        return FormatResult(mode, batch_size, timer.elapsed, rate(inserted, timer.elapsed))

    def insert_floats(self, total_rows: int, batch_size: int) -> FormatResult:
        return self._insert("10cols", self.columns_query, ten_doubles, total_rows, batch_size)

    def insert_blobs(self, total_rows: int, batch_size: int) -> FormatResult:
        return self._insert(
            "blob",
            self.blob_query,
            lambda index: (pack_doubles(ten_doubles(index)),),
            total_rows,
            batch_size,
        )

    def run(self, total_rows: int, batch_sizes: Sequence[int] = FORMAT_BATCH_SIZES) -> List[FormatResult]:
        self.connect()
        self.recreate_tables()

        print_banner(
            "MULTI-FORMAT INSERTION BENCHMARK",
            [
                f"Total rows per test: {total_rows:,}",
                f"Batch sizes: {', '.join(map(str, batch_sizes))}",
            ],
        )

        self.results = []
        for batch_size in batch_sizes:
            for label, insert in (("10 float columns", self.insert_floats), ("binary blob", self.insert_blobs)):
                print(f"=== Batch {batch_size} ({label}) ===")
                result = insert(total_rows, batch_size)
                self.results.append(result)
                print(f"  ✓ {total_rows:,} rows in {result.seconds:.2f}s ({result.rows_per_sec:,.0f} rows/s)\n")

        return self.results

    def print_results(self):
        if not self.results:
            print("\nNo results to display")
            return

        print_banner("SUMMARY")
        print_table(
            ["Mode", "Batch", "Seconds", "Rows/Sec"],
            [[r.mode, r.batch_size, f"{r.seconds:.2f}", f"{r.rows_per_sec:,.0f}"] for r in self.results],
        )
        best = best_by(self.results, key=lambda r: r.rows_per_sec)
        print(f"\n🏆 Fastest overall: {best.mode} batch {best.batch_size} ({best.rows_per_sec:,.0f} rows/s)")

    def save_results(self, output_file: str):
        write_csv(
            output_file,
            ["Mode", "BatchSize", "Seconds", "RowsPerSec"],
            [
                [r.mode, str(r.batch_size), f"{r.seconds:.3f}", f"{r.rows_per_sec:.0f}"]
                for r in self.results
            ],
        )
