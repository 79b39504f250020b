import io
import json
import threading
import time

import psycopg2
import pytest
from psycopg2.pool import PoolError

from src.config.app import AppConfiguration
from src.database.postgres import PostgresClient, PostgresConfig
from src.logger.logger import init_logger
from src.logger.stream_writer import StreamWriter

VAULT_ENV = {
    "EXTERNAL_API_KEY": "dev-api-key-12345",
    "JWT_SECRET": "dev-jwt-secret-abcdef",
    "DB_USER": "devuser",
    "DATABASE_URL": "postgresql://postgres.default.svc.cluster.local:5432/myapp",
}

BINDINGS = [
    "EXTERNAL_API_KEY",
    "JWT_SECRET",
    "DB_USER",
    "DB_PASSWORD",
    "DATABASE_URL",
    "VAULT_INTEGRATION_ENABLED",
    "DATABASE_ENABLED",
]


class LogCapture:
    def __init__(self) -> None:
        self.stream = io.StringIO()

    def records(self) -> list[dict]:
        return [json.loads(line) for line in self.stream.getvalue().splitlines() if line]


@pytest.fixture(autouse=True)
def logs() -> LogCapture:
    capture = LogCapture()
    init_logger("myapp", "test", writer=StreamWriter(capture.stream), level="trace")
    return capture


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No bindings set and an empty secrets directory."""
    for name in BINDINGS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SECRETS_DIR", str(tmp_path / "secrets"))
    return monkeypatch


@pytest.fixture
def vault_env(clean_env):
    for name, value in VAULT_ENV.items():
        clean_env.setenv(name, value)
    return clean_env


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query):
        self.conn.queries.append(query)
        if self.conn.delay:
            time.sleep(self.conn.delay)
        if self.conn.query_error:
            raise self.conn.query_error

    def fetchone(self):
        return (1,)


class FakeInfo:
    def __init__(self, params):
        self.dsn_parameters = params


class FakeConnection:
    def __init__(self, params=None, query_error=None, delay=0.0):
        self.delay = delay
        self.info = FakeInfo(
            params
            or {"user": "devuser", "host": "db.local", "port": "5432", "dbname": "myapp"}
        )
        self.query_error = query_error
        self.queries: list[str] = []
        self.closed = 0
        self.rollbacks = 0

    def cursor(self):
        return FakeCursor(self)

    def rollback(self):
        self.rollbacks += 1


class FakePool:
    """Stands in for ThreadedConnectionPool and records borrow/return."""

    def __init__(self, conn=None, getconn_error=None, maxconn=None):
        self.conn = conn or FakeConnection()
        self.getconn_error = getconn_error
        self.maxconn = maxconn
        self.in_use = 0
        self._lock = threading.Lock()
        self.borrowed = 0
        self.returned: list[tuple[object, bool]] = []
        self.closed_all = False

    def getconn(self):
        if self.getconn_error:
            raise self.getconn_error
        with self._lock:
            # ThreadedConnectionPool не ждёт, а сразу падает
            if self.maxconn is not None and self.in_use >= self.maxconn:
                raise PoolError("connection pool exhausted")
            self.in_use += 1
            self.borrowed += 1
        return self.conn

    def putconn(self, conn, close=False):
        with self._lock:
            self.in_use -= 1
            self.returned.append((conn, close))

    def closeall(self):
        self.closed_all = True


class FakePostgresClient(PostgresClient):
    """PostgresClient whose connect() installs a FakePool instead of a real one."""

    def __init__(self, pool: FakePool, max_conn: int = 5) -> None:
        super().__init__(
            PostgresConfig(url="postgresql://db.local/myapp", user="devuser", max_conn=max_conn)
        )
        self.fake_pool = pool

    async def connect(self) -> None:
        self.pool = self.fake_pool


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def down_pool() -> FakePool:
    return FakePool(
        getconn_error=psycopg2.OperationalError(
            'connection to server at "db.local" (10.0.0.5), port 5432 failed: Connection refused\n'
        )
    )


@pytest.fixture
def vault_config() -> AppConfiguration:
    return AppConfiguration(
        external_api_key="dev-api-key-12345",
        jwt_secret="dev-jwt-secret-abcdef",
        datasource_url="postgresql://postgres.default.svc.cluster.local:5432/myapp",
        datasource_username="devuser",
    )


@pytest.fixture
def broken_query_pool() -> FakePool:
    """Connection succeeds but the probe query fails mid-flight."""
    return FakePool(
        conn=FakeConnection(
            query_error=psycopg2.OperationalError("server closed the connection unexpectedly")
        )
    )


@pytest.fixture
def make_client():
    def _make(pool: FakePool, max_conn: int = 5) -> FakePostgresClient:
        return FakePostgresClient(pool, max_conn=max_conn)

    return _make


@pytest.fixture
def single_slot_pool() -> FakePool:
    """One connection at most; each query holds it for a short while."""
    return FakePool(conn=FakeConnection(delay=0.05), maxconn=1)
