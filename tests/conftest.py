import pytest
from fastapi.testclient import TestClient

from toystore_auth.core.dependencies import get_session_client, get_sql_pool, get_supabase, has_service_role
from toystore_auth.database.sql_pool import SqlPool
from toystore_auth.main import app

from tests.fakes import FakeSupabase

TABLE_DDL = """
CREATE TABLE {table} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    auth_id TEXT,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL UNIQUE,
    role TEXT NOT NULL DEFAULT 'customer',
    password TEXT
)
"""


def create_profile_table(pool: SqlPool, table: str = "profiles") -> None:
    pool.execute(TABLE_DDL.format(table=table))


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def sqlite_url(tmp_path):
    # File-backed so a pool reset reconnects to the same data
    return f"sqlite:///{tmp_path / 'toystore.db'}"


@pytest.fixture
def empty_sql_pool(sqlite_url):
    pool = SqlPool(sqlite_url, connect_args={"check_same_thread": False})
    yield pool
    pool.dispose()


@pytest.fixture
def sql_pool(empty_sql_pool):
    create_profile_table(empty_sql_pool, "profiles")
    create_profile_table(empty_sql_pool, "users")
    return empty_sql_pool


@pytest.fixture
def make_client(supabase):
    def _make(sql_pool=None, service_role=False):
        app.dependency_overrides[get_supabase] = lambda: supabase
        app.dependency_overrides[get_session_client] = lambda: supabase
        app.dependency_overrides[get_sql_pool] = lambda: sql_pool
        app.dependency_overrides[has_service_role] = lambda: service_role
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()
