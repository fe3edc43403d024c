"""
Point Insertion Benchmark - x, y, z plus N attributes per point

Sweeps four ingestion strategies over a list of sizes:
1. PointByPoint: one INSERT per point, batch size points per transaction
2. BatchedRows: one multi-row INSERT per batch
3. BinaryCopy: COPY ... FORMAT BINARY, batch size used as chunk size
4. BinaryBlob: group size points packed into one bytea row

Every run is checked against the table row count, the fastest configuration
is reported and all results are written to CSV.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import psycopg

from errors import PersistenceFailure, SchemaSetupFailure
from postgres_blob_strategy import PackedBlobStrategy
from postgres_copy_strategy import BinaryCopyStrategy
from postgres_multirow_strategy import BatchedRowsStrategy
from postgres_row_strategy import PointByPointStrategy
from reporting import best_by, print_banner, print_table, write_csv
from resource_monitor import ResourceMonitor
from strategy import BLOB_TABLE, POINTS_TABLE, IngestionStrategy, IngestionTiming

DEFAULT_SIZES = (1, 10, 50, 100, 500, 1000, 2000, 5000, 10000, 20000, 50000)

REPORT_HEADERS = ("Mode", "Size", "Seconds", "PointsPerSec", "AvgBytesPerPoint")

RECREATE_TABLES_SQL = f"""
    DROP TABLE IF EXISTS {POINTS_TABLE} CASCADE;
    DROP TABLE IF EXISTS {BLOB_TABLE} CASCADE;

    CREATE TABLE {POINTS_TABLE} (
        id SERIAL PRIMARY KEY,
        x DOUBLE PRECISION,
        y DOUBLE PRECISION,
        z DOUBLE PRECISION,
        attrs DOUBLE PRECISION[]
    );

    CREATE TABLE {BLOB_TABLE} (
        id SERIAL PRIMARY KEY,
        group_size INT,
        attr_count INT,
        payload BYTEA
    );
"""


@dataclass(frozen=True)
class PointRunConfig:
    total_points: int = 10_000
    attribute_count: int = 16
    batch_sizes: Tuple[int, ...] = DEFAULT_SIZES
    group_sizes: Tuple[int, ...] = DEFAULT_SIZES


@dataclass(frozen=True)
class BenchmarkResult:
    mode: str
    size: int
    seconds: float
    points_per_sec: float

    def report_row(self) -> List[str]:
        return [self.mode, str(self.size), f"{self.seconds:.3f}", f"{self.points_per_sec:.0f}", ""]


@dataclass(frozen=True)
class BlobBenchmarkResult(BenchmarkResult):
    avg_bytes_per_point: float = 0.0

    def report_row(self) -> List[str]:
        row = super().report_row()
        row[-1] = f"{self.avg_bytes_per_point:.1f}"
        return row


def fastest(results: Sequence[BenchmarkResult]) -> Optional[BenchmarkResult]:
    return best_by(results, key=lambda r: r.points_per_sec)


def make_result(
    strategy: IngestionStrategy, size: int, timing: IngestionTiming
) -> BenchmarkResult:
    if strategy.reports_payload:
        return BlobBenchmarkResult(
            mode=strategy.mode,
            size=size,
            seconds=timing.seconds,
            points_per_sec=timing.points_per_sec,
            avg_bytes_per_point=timing.avg_bytes_per_point,
        )
    return BenchmarkResult(
        mode=strategy.mode,
        size=size,
        seconds=timing.seconds,
        points_per_sec=timing.points_per_sec,
    )


class PointInsertBenchmark:
    """Runs every ingestion strategy over every configured size"""

    def __init__(self, conn_string: Optional[str] = None, conn=None):
        self.conn_string = conn_string
        self.conn = conn
        self.results: List[BenchmarkResult] = []
        self.config: Optional[PointRunConfig] = None

    def connect(self):
        if self.conn is None:
            self.conn = psycopg.connect(self.conn_string, autocommit=True)

    def close(self):
        if self.conn:
            self.conn.close()

    def recreate_tables(self):
        """Drop and recreate the point tables"""
        try:
            with self.conn.cursor() as cur:
                cur.execute(RECREATE_TABLES_SQL)
        except psycopg.Error as e:
            raise SchemaSetupFailure(f"Failed to recreate point tables: {e}") from e
        print(f"✓ Tables {POINTS_TABLE} and {BLOB_TABLE} recreated")

    def plan(self, config: PointRunConfig) -> List[Tuple[IngestionStrategy, Sequence[int]]]:
        """Strategies in execution order, each with the sizes it sweeps"""
        return [
            (PointByPointStrategy(self.conn), config.batch_sizes),
            (BatchedRowsStrategy(self.conn), config.batch_sizes),
            (BinaryCopyStrategy(self.conn), config.batch_sizes),
            (PackedBlobStrategy(self.conn), config.group_sizes),
        ]

    def validate(self, config: PointRunConfig):
        """Reject a configuration before any table is touched"""
        if config.total_points < 0:
            raise ValueError(f"total points must be >= 0, got {config.total_points}")
        if config.attribute_count < 0:
            raise ValueError(f"attribute count must be >= 0, got {config.attribute_count}")
        for strategy, sizes in self.plan(config):
            for size in sizes:
                strategy.check_size(config.total_points, size)

    def run(self, config: PointRunConfig) -> List[BenchmarkResult]:
        self.validate(config)
        self.connect()
        self.config = config
        self.results = []

        self.recreate_tables()

        print_banner(
            "POINT INSERTION BENCHMARK (x, y, z + attributes)",
            [
                f"Total points: {config.total_points:,}",
                f"Attribute count per point: {config.attribute_count}",
                f"Row batch sizes: {', '.join(map(str, config.batch_sizes))}",
                f"Blob group sizes: {', '.join(map(str, config.group_sizes))}",
            ],
        )

        for strategy, sizes in self.plan(config):
            for size in sizes:
                self.results.append(self.run_strategy(strategy, config, size))

        return self.results

    def run_strategy(
        self, strategy: IngestionStrategy, config: PointRunConfig, size: int
    ) -> BenchmarkResult:
        """Run one strategy/size combination and verify the stored point count"""
        print(f"=== {strategy.mode} size={size} ===")

        initial_count = strategy.count_points()
        monitor = ResourceMonitor(interval=0.1)
        monitor.start()
        try:
            timing = strategy.run(config.total_points, config.attribute_count, size)
        finally:
            resources = monitor.stop()
        final_count = strategy.count_points()

        stored = final_count - initial_count
        if stored != timing.points:
            raise PersistenceFailure(
                strategy.mode,
                f"expected {timing.points:,} new points, table gained {stored:,}",
                points_committed=stored,
            )

        result = make_result(strategy, size, timing)
        line = (
            f"  ✓ {timing.points:,} pts in {timing.seconds:.2f}s "
            f"({timing.points_per_sec:,.0f} pts/s, {timing.partitions:,} partitions)"
        )
        if isinstance(result, BlobBenchmarkResult):
            line += f" avg {result.avg_bytes_per_point:.1f} B/pt"
        print(line)
        print(f"    {resources.describe()}\n")
        return result

    def report_rows(self) -> List[List[str]]:
        return [r.report_row() for r in self.results]

    def print_results(self):
        """Print the summary table and the fastest configuration"""
        if not self.results:
            print("\nNo results to display")
            return

        print_banner("SUMMARY")
        rows = [
            [
                r.mode,
                r.size,
                f"{r.seconds:.2f}s",
                f"{r.points_per_sec:,.0f}",
                f"{r.avg_bytes_per_point:.1f} B/pt" if isinstance(r, BlobBenchmarkResult) else "",
            ]
            for r in self.results
        ]
        print_table(["Mode", "Size", "Seconds", "Points/Sec", "Avg Bytes"], rows)

        best = fastest(self.results)
        print(f"\n🏆 Fastest: {best.mode} size={best.size} ({best.points_per_sec:,.0f} pts/s)")

    def save_results(self, output_file: str):
        write_csv(output_file, REPORT_HEADERS, self.report_rows())

    def plot_results(self, output_file: str):
        """Throughput against size, one line per mode"""
        if not self.results:
            return

        fig, ax = plt.subplots(figsize=(12, 7))
        modes = list(dict.fromkeys(r.mode for r in self.results))
        for mode in modes:
            series = [r for r in self.results if r.mode == mode]
            ax.plot(
                [r.size for r in series],
                [r.points_per_sec for r in series],
                marker="o",
                label=mode,
            )

        total = self.config.total_points if self.config else 0
        ax.set_xscale("log")
        ax.set_xlabel("Batch / group size", fontsize=10, fontweight="bold")
        ax.set_ylabel("Points/Second", fontsize=10, fontweight="bold")
        ax.set_title(
            f"Point Insertion Throughput ({total:,} points)",
            fontsize=12,
            fontweight="bold",
        )
        ax.legend()
        ax.grid(alpha=0.3)

        plt.tight_layout()
        fig.savefig(output_file, dpi=150, bbox_inches="tight")
        plt.close(fig)
        print(f"📊 Visualization saved to: {output_file}")
