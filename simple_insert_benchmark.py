from dataclasses import dataclass
from typing import List, Optional, Sequence

import psycopg

from data_generation import simple_row
from errors import PersistenceFailure, SchemaSetupFailure
from reporting import best_by, print_banner, print_table, write_csv
from strategy import partition_ranges
from timer import BenchmarkTimer, rate

SIMPLE_TABLE = "benchmarkdata"
SIMPLE_BATCH_SIZES = (1, 10, 50, 100, 500, 1000, 2000, 5000, 10000)


@dataclass(frozen=True)
class InsertResult:
    batch_size: int
    seconds: float
    rows_per_sec: float


class SimpleInsertBenchmark:
    """Row-by-row inserts into benchmarkdata, batch size rows per transaction"""

    insert_query = f"INSERT INTO {SIMPLE_TABLE} (value1, value2, textvalue) VALUES (%s, %s, %s)"

    def __init__(self, conn_string: Optional[str] = None, conn=None):
        self.conn_string = conn_string
        self.conn = conn
        self.results: List[InsertResult] = []

    def connect(self):
        if self.conn is None:
            self.conn = psycopg.connect(self.conn_string, autocommit=True)

    def close(self):
        if self.conn:
            self.conn.close()

    def recreate_table(self):
        try:
            with self.conn.cursor() as cur:
                cur.execute(f"""
                    DROP TABLE IF EXISTS {SIMPLE_TABLE} CASCADE;

                    CREATE TABLE {SIMPLE_TABLE} (
                        id SERIAL PRIMARY KEY,
                        value1 BIGINT,
                        value2 DOUBLE PRECISION,
                        textvalue TEXT
                    );
                """)
        except psycopg.Error as e:
            raise SchemaSetupFailure(f"Failed to recreate table {SIMPLE_TABLE}: {e}") from e
        print(f"✓ Table '{SIMPLE_TABLE}' recreated")

    def clean_table(self):
        with self.conn.cursor() as cur:
            cur.execute(f"TRUNCATE {SIMPLE_TABLE} RESTART IDENTITY")

    def insert_rows(self, total_rows: int, batch_size: int) -> InsertResult:
        inserted = 0
        try:
            with BenchmarkTimer() as timer:
                for start, count in partition_ranges(total_rows, batch_size):
                    with self.conn.transaction():
                        with self.conn.cursor() as cur:
                            for index in range(start, start + count):
                                cur.execute(self.insert_query, simple_row(index))
                    inserted += count
        except psycopg.Error as e:
            raise PersistenceFailure("SimpleInsert", str(e), points_committed=inserted) from e

        return InsertResult(batch_size, timer.elapsed, rate(inserted, timer.elapsed))

    def run(self, total_rows: int, batch_sizes: Sequence[int] = SIMPLE_BATCH_SIZES) -> List[InsertResult]:
        self.connect()
        self.recreate_table()

        print_banner(
            "SIMPLE INSERT BENCHMARK",
            [
                f"Total rows to insert per test: {total_rows:,}",
                f"Testing batch sizes: {', '.join(map(str, batch_sizes))}",
            ],
        )

        self.results = []
        self.clean_table()
        for batch_size in batch_sizes:
            print(f"=== Batch size: {batch_size} ===")
            result = self.insert_rows(total_rows, batch_size)
            self.results.append(result)
            print(f"  ✓ {total_rows:,} rows in {result.seconds:.2f}s ({result.rows_per_sec:,.0f} rows/s)\n")

        return self.results

    def print_results(self):
        if not self.results:
            print("\nNo results to display")
            return

        print_banner("SUMMARY")
        print_table(
            ["Batch", "Seconds", "Rows/Sec"],
            [[r.batch_size, f"{r.seconds:.2f}", f"{r.rows_per_sec:,.0f}"] for r in self.results],
        )
        best = best_by(self.results, key=lambda r: r.rows_per_sec)
        print(
            f"\n🏆 Optimal batch size: {best.batch_size} rows per transaction "
            f"({best.rows_per_sec:,.0f} rows/s)"
        )

    def save_results(self, output_file: str):
        write_csv(
            output_file,
            ["BatchSize", "Seconds", "RowsPerSec"],
            [[str(r.batch_size), f"{r.seconds:.3f}", f"{r.rows_per_sec:.0f}"] for r in self.results],
        )
