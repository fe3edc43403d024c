import pytest

from data_generation import generate_point
from errors import PersistenceFailure
from point_codec import decode_points, payload_length
from postgres_blob_strategy import PackedBlobStrategy
from postgres_copy_strategy import BinaryCopyStrategy
from postgres_multirow_strategy import MAX_PARAMETERS, BatchedRowsStrategy, MultiRowInsertBuilder
from postgres_row_strategy import PointByPointStrategy
from strategy import BLOB_TABLE, POINTS_TABLE, IngestionTiming, partition_ranges

ALL_STRATEGIES = [PointByPointStrategy, BatchedRowsStrategy, BinaryCopyStrategy, PackedBlobStrategy]


# ============================================================================
# PARTITIONING
# ============================================================================
@pytest.mark.parametrize(
    "total,size,expected",
    [
        (7, 3, [3, 3, 1]),
        (9, 3, [3, 3, 3]),
        (2, 10, [2]),
        (0, 5, []),
        (5, 1, [1, 1, 1, 1, 1]),
    ],
)
def test_partition_sizes(total, size, expected):
    ranges = list(partition_ranges(total, size))
    assert [count for _, count in ranges] == expected
    assert [start for start, _ in ranges] == [sum(expected[:i]) for i in range(len(expected))]


def test_partition_size_must_be_positive():
    with pytest.raises(ValueError):
        partition_ranges(10, 0)


def test_throughput_is_zero_without_points():
    assert IngestionTiming(seconds=0.0, points=0, partitions=0).points_per_sec == 0.0
    assert IngestionTiming(seconds=1.5, points=0, partitions=0).points_per_sec == 0.0
    assert IngestionTiming(seconds=0.5, points=10, partitions=1).points_per_sec == 20.0


# ============================================================================
# SHARED BEHAVIOUR
# ============================================================================
@pytest.mark.parametrize("strategy_cls", ALL_STRATEGIES)
@pytest.mark.parametrize("total,size", [(1, 1), (10, 3), (25, 25), (13, 50)])
def test_every_point_is_stored_once(point_conn, strategy_cls, total, size):
    strategy = strategy_cls(point_conn)

    timing = strategy.run(total, 2, size)

    assert timing.points == total
    assert strategy.count_points() == total


@pytest.mark.parametrize("strategy_cls", ALL_STRATEGIES)
def test_zero_points(point_conn, strategy_cls):
    strategy = strategy_cls(point_conn)

    timing = strategy.run(0, 4, 10)

    assert timing.points == 0
    assert timing.partitions == 0
    assert timing.points_per_sec == 0.0
    assert strategy.count_points() == 0


@pytest.mark.parametrize("strategy_cls", [PointByPointStrategy, BatchedRowsStrategy, PackedBlobStrategy])
def test_size_must_be_positive(point_conn, strategy_cls):
    with pytest.raises(ValueError):
        strategy_cls(point_conn).run(10, 1, 0)


# ============================================================================
# PER-ROW
# ============================================================================
def test_point_by_point_partitions(point_conn):
    timing = PointByPointStrategy(point_conn).run(7, 0, 3)

    assert timing.partitions == 3
    assert point_conn.commits == 3
    assert len(point_conn.inserts_into(POINTS_TABLE)) == 7
    assert len(point_conn.tables[POINTS_TABLE]) == 7
    assert all(row["attrs"] == [] for row in point_conn.tables[POINTS_TABLE])


def test_point_by_point_failure_keeps_committed_partitions(point_conn):
    point_conn.fail_when(lambda q: q.startswith("INSERT"), on_call=5)

    with pytest.raises(PersistenceFailure) as excinfo:
        PointByPointStrategy(point_conn).run(9, 1, 3)

    assert excinfo.value.points_committed == 3
    assert excinfo.value.mode == "PointByPoint"
    assert len(point_conn.tables[POINTS_TABLE]) == 3
    assert point_conn.rollbacks == 1


# ============================================================================
# MULTI-ROW
# ============================================================================
def test_batched_rows_scenario(point_conn):
    timing = BatchedRowsStrategy(point_conn).run(100, 2, 10)

    inserts = point_conn.inserts_into(POINTS_TABLE)
    assert len(inserts) == 10
    assert all(len(params) == 10 * 4 for _, params in inserts)
    assert timing.partitions == 10
    assert point_conn.commits == 10

    rows = point_conn.tables[POINTS_TABLE]
    assert len(rows) == 100
    for i in range(1, 101):
        assert rows[i - 1]["x"] == (i - 1) * 0.001
        assert rows[i - 1]["attrs"] == list(generate_point(i - 1, 2).attrs)


def test_batched_rows_last_statement_is_partial(point_conn):
    BatchedRowsStrategy(point_conn).run(23, 1, 10)

    sizes = [len(params) // 4 for _, params in point_conn.inserts_into(POINTS_TABLE)]
    assert sizes == [10, 10, 3]


def test_builder_keeps_values_out_of_the_statement():
    builder = MultiRowInsertBuilder("points", ("a", "b"))
    builder.add_row((1, "x'); DROP TABLE points; --"))
    builder.add_row((2, "y"))

    query, params = builder.build()

    assert query == "INSERT INTO points (a, b) VALUES (%s, %s), (%s, %s)"
    assert params == [1, "x'); DROP TABLE points; --", 2, "y"]
    assert len(builder) == 2


def test_builder_rejects_wrong_arity_and_empty_build():
    builder = MultiRowInsertBuilder("points", ("a", "b"))
    with pytest.raises(ValueError):
        builder.add_row((1,))
    with pytest.raises(ValueError):
        builder.build()


def test_builder_parameter_limit():
    builder = MultiRowInsertBuilder("points", ("a",))
    for i in range(MAX_PARAMETERS):
        builder.add_row((i,))
    with pytest.raises(ValueError):
        builder.add_row((0,))


def test_batch_size_checked_against_parameter_limit():
    strategy = BatchedRowsStrategy(None)

    assert strategy.max_batch_size == MAX_PARAMETERS // 4
    strategy.check_size(strategy.max_batch_size, strategy.max_batch_size)
    # Only the points actually in a statement count toward the limit
    strategy.check_size(100, 50000)
    with pytest.raises(ValueError, match="65535"):
        strategy.check_size(strategy.max_batch_size + 1, 50000)


# ============================================================================
# BINARY COPY
# ============================================================================
@pytest.mark.parametrize("size", [0, -1, 10, 500])
def test_copy_without_chunking(point_conn, size):
    timing = BinaryCopyStrategy(point_conn).run(10, 3, size)

    assert timing.partitions == 1
    assert [len(c.rows) for c in point_conn.copies] == [10]
    assert point_conn.copies[0].types == ["float8", "float8", "float8", "float8[]"]


def test_copy_chunks(point_conn):
    timing = BinaryCopyStrategy(point_conn).run(10, 3, 4)

    assert timing.partitions == 3
    assert [len(c.rows) for c in point_conn.copies] == [4, 4, 2]
    first = point_conn.copies[0].rows[0]
    point = generate_point(0, 3)
    assert first == (point.x, point.y, point.z, list(point.attrs))


def test_copy_failure_discards_open_chunk(point_conn):
    point_conn.fail_when(lambda q: q == "COPY", on_call=6)

    with pytest.raises(PersistenceFailure) as excinfo:
        BinaryCopyStrategy(point_conn).run(10, 1, 4)

    assert excinfo.value.points_committed == 4
    assert len(point_conn.tables[POINTS_TABLE]) == 4


# ============================================================================
# PACKED BLOB
# ============================================================================
def test_blob_rows_hold_encoded_groups(point_conn):
    timing = PackedBlobStrategy(point_conn).run(25, 3, 10)

    rows = point_conn.tables[BLOB_TABLE]
    assert [row["group_size"] for row in rows] == [10, 10, 5]
    assert all(row["attr_count"] == 3 for row in rows)
    for row in rows:
        assert len(row["payload"]) == payload_length(row["group_size"], 3)

    decoded = [p for row in rows for p in decode_points(row["payload"], 3)]
    assert decoded == [generate_point(i, 3) for i in range(25)]

    assert timing.payload_bytes == 25 * (3 + 3) * 8
    assert timing.avg_bytes_per_point == (3 + 3) * 8
    assert point_conn.commits == 3


def test_blob_counts_points_not_rows(point_conn):
    strategy = PackedBlobStrategy(point_conn)
    strategy.run(30, 0, 7)
    assert strategy.count_points() == 30
    assert len(point_conn.tables[BLOB_TABLE]) == 5


def test_count_query_targets_strategy_table():
    assert PackedBlobStrategy(None).count_query() == (
        f"SELECT COALESCE(SUM(group_size), 0) FROM {BLOB_TABLE}"
    )
    for strategy_cls in (PointByPointStrategy, BatchedRowsStrategy, BinaryCopyStrategy):
        assert strategy_cls(None).count_query() == f"SELECT COUNT(*) FROM {POINTS_TABLE}"


def test_copy_accepts_any_chunk_size():
    for size in (-5, 0, 1, 50000):
        BinaryCopyStrategy(None).check_size(10, size)
