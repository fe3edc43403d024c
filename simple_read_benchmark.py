from dataclasses import dataclass
from typing import List, Optional, Sequence

import psycopg

from errors import InsufficientData, PersistenceFailure
from reporting import best_by, print_banner, print_table, write_csv
from simple_insert_benchmark import SIMPLE_TABLE, SimpleInsertBenchmark
from timer import BenchmarkTimer, rate

FETCH_SIZES = (1, 10, 50, 100, 500, 1000, 2000, 5000, 10000)
CURSOR_NAME = "benchmark_cursor"


@dataclass(frozen=True)
class ReadResult:
    fetch_size: int
    seconds: float
    rows_per_sec: float
    rows_read: int = 0


class SimpleReadBenchmark:
    """Reads benchmarkdata through a server-side cursor, fetch size rows at a time"""

    def __init__(self, conn_string: Optional[str] = None, conn=None):
        self.conn_string = conn_string
        self.conn = conn
        self.results: List[ReadResult] = []

    def connect(self):
        if self.conn is None:
            self.conn = psycopg.connect(self.conn_string, autocommit=True)

    def close(self):
        if self.conn:
            self.conn.close()

    def _check_table_exists(self, table_name: str) -> bool:
        with self.conn.cursor() as cur:
            cur.execute(
                """
                SELECT EXISTS (
                    SELECT FROM information_schema.tables
                    WHERE table_name = %s
                )
            """,
                (table_name,),
            )
            return cur.fetchone()[0]

    def count_rows(self) -> int:
        if not self._check_table_exists(SIMPLE_TABLE):
            return 0
        with self.conn.cursor() as cur:
            cur.execute(f"SELECT COUNT(*) FROM {SIMPLE_TABLE}")
            return int(cur.fetchone()[0])

    def ensure_data(self, total_rows: int, populate_first: bool, populate_batch_size: int = 1000):
        """Make sure the table holds at least total_rows rows"""
        existing = self.count_rows()
        if existing >= total_rows:
            print(f"✓ Table {SIMPLE_TABLE} already holds {existing:,} rows")
            return

        if not populate_first:
            raise InsufficientData(
                f"Table has {existing:,} rows but {total_rows:,} required. "
                f"Populate first or enable populating."
            )

        print(f"Populating {SIMPLE_TABLE} with {total_rows:,} rows...")
        inserter = SimpleInsertBenchmark(conn=self.conn)
        inserter.recreate_table()
        inserter.insert_rows(total_rows, populate_batch_size)
        print(f"✓ Populated {total_rows:,} rows")

    def read_rows(self, total_rows: int, fetch_size: int) -> ReadResult:
        if fetch_size < 1:
            raise ValueError(f"fetch size must be >= 1, got {fetch_size}")

        rows_read = 0
        try:
            with BenchmarkTimer() as timer:
                with self.conn.transaction():
                    with self.conn.cursor() as cur:
                        cur.execute(
                            f"DECLARE {CURSOR_NAME} NO SCROLL CURSOR FOR "
                            f"SELECT id, value1, value2, textvalue FROM {SIMPLE_TABLE} ORDER BY id"
                        )
                        while rows_read < total_rows:
                            this_fetch = min(fetch_size, total_rows - rows_read)
                            cur.execute(f"FETCH FORWARD {this_fetch} FROM {CURSOR_NAME}")
                            rows = cur.fetchall()
                            if not rows:
                                break
                            # Unpack every column to pay the materialization cost
                            for _id, _value1, _value2, _text in rows:
                                rows_read += 1
                        cur.execute(f"CLOSE {CURSOR_NAME}")
        except psycopg.Error as e:
            raise PersistenceFailure("SimpleRead", str(e)) from e

        return ReadResult(fetch_size, timer.elapsed, rate(rows_read, timer.elapsed), rows_read)

    def run(
        self,
        total_rows: int,
        fetch_sizes: Sequence[int] = FETCH_SIZES,
        populate_first: bool = False,
    ) -> List[ReadResult]:
        self.connect()
        self.ensure_data(total_rows, populate_first)

        print_banner(
            "SIMPLE READ BENCHMARK",
            [
                f"Total rows to read per test: {total_rows:,}",
                f"Testing fetch sizes (cursor FETCH): {', '.join(map(str, fetch_sizes))}",
            ],
        )

        self.results = []
        for fetch_size in fetch_sizes:
            print(f"=== Fetch size: {fetch_size} ===")
            result = self.read_rows(total_rows, fetch_size)
            self.results.append(result)
            print(f"  ✓ {result.rows_read:,} rows in {result.seconds:.2f}s ({result.rows_per_sec:,.0f} rows/s)\n")

        return self.results

    def print_results(self):
        if not self.results:
            print("\nNo results to display")
            return

        print_banner("SUMMARY")
        print_table(
            ["Fetch", "Seconds", "Rows/Sec"],
            [[r.fetch_size, f"{r.seconds:.2f}", f"{r.rows_per_sec:,.0f}"] for r in self.results],
        )
        best = best_by(self.results, key=lambda r: r.rows_per_sec)
        print(f"\n🏆 Optimal fetch size: {best.fetch_size} rows per FETCH ({best.rows_per_sec:,.0f} rows/s)")

    def save_results(self, output_file: str):
        write_csv(
            output_file,
            ["FetchSize", "Seconds", "RowsPerSec"],
            [[str(r.fetch_size), f"{r.seconds:.3f}", f"{r.rows_per_sec:.0f}"] for r in self.results],
        )
