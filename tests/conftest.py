import os

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from fake_pg import FakeConnection  # noqa: E402
from point_benchmark import RECREATE_TABLES_SQL  # noqa: E402


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def point_conn(fake_conn):
    """Fake connection with the point tables already created"""
    with fake_conn.cursor() as cur:
        cur.execute(RECREATE_TABLES_SQL)
    fake_conn.statements.clear()
    return fake_conn


@pytest.fixture
def pg_conn():
    """Real PostgreSQL connection, only when PG_TEST_CONN is set"""
    conn_string = os.environ.get("PG_TEST_CONN")
    if not conn_string:
        pytest.skip("PG_TEST_CONN not set")
    psycopg = pytest.importorskip("psycopg")
    conn = psycopg.connect(conn_string, autocommit=True)
    yield conn
    conn.close()
