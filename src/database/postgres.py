"""PostgreSQL client for the vault-demo service."""

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2
from psycopg2.extensions import connection as Connection
from psycopg2.pool import ThreadedConnectionPool

from src.config.app import DEFAULT_DATASOURCE_URL, DEFAULT_DATASOURCE_USERNAME
from src.config.env import read_secret


class PostgresConfig:
    """PostgreSQL connection configuration."""

    def __init__(
        self,
        url: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_conn: int | None = None,
        max_conn: int | None = None,
    ) -> None:
        self.url = url or os.getenv("DATABASE_URL", DEFAULT_DATASOURCE_URL)
        self.user = user or read_secret("db_username", "DB_USER", DEFAULT_DATASOURCE_USERNAME)
        self.password = password or read_secret("db_password", "DB_PASSWORD")
        # min_conn=0: пул не подключается при старте, сервис поднимается без БД
        self.min_conn = min_conn if min_conn is not None else int(os.getenv("DB_POOL_MIN", "0"))
        self.max_conn = max_conn if max_conn is not None else int(os.getenv("DB_POOL_MAX", "5"))

    @property
    def connect_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for psycopg2.connect (DSN plus credentials)."""
        kwargs: dict[str, Any] = {"dsn": self.url, "user": self.user}
        if self.password:
            kwargs["password"] = self.password
        return kwargs


class PostgresClient:
    """PostgreSQL client with connection pooling."""

    def __init__(self, config: PostgresConfig | dict[str, Any] | None = None) -> None:
        """
        Initialize PostgreSQL client.

        Args:
            config: PostgresConfig or config dict
        """
        if isinstance(config, dict):
            self.config = PostgresConfig(**config)
        elif config is None:
            self.config = PostgresConfig()
        else:
            self.config = config

        self.pool: ThreadedConnectionPool | None = None
        # ThreadedConnectionPool падает с PoolError при исчерпании, ждём свободный слот
        self._slots = threading.BoundedSemaphore(self.config.max_conn)

    async def connect(self) -> None:
        """Create connection pool (connections are opened lazily)."""
        try:
            self.pool = ThreadedConnectionPool(
                minconn=self.config.min_conn,
                maxconn=self.config.max_conn,
                **self.config.connect_kwargs,
            )
        except Exception as e:
            raise ConnectionError(f"Failed to create connection pool: {e}") from e

    async def close(self) -> None:
        """Close database connection pool."""
        if self.pool:
            self.pool.closeall()
            self.pool = None

    def get_connection(self) -> Connection:
        """Get connection from pool, blocking while all max_conn are borrowed."""
        if not self.pool:
            raise ConnectionError("Connection pool not initialized. Call connect() first.")
        self._slots.acquire()
        try:
            return self.pool.getconn()  # type: ignore[no-any-return]
        except BaseException:
            self._slots.release()
            raise

    def put_connection(self, conn: Connection, close: bool = False) -> None:
        """Return connection to pool and free its slot."""
        try:
            if self.pool:
                self.pool.putconn(conn, close=close)
        finally:
            self._slots.release()

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """
        Borrow a pooled connection for the duration of a with-block.

        The connection always goes back to the pool; one that raised a
        database error is closed instead of being reused.
        """
        conn = self.get_connection()
        broken = False
        try:
            yield conn
        except psycopg2.Error:
            broken = True
            raise
        finally:
            self.put_connection(conn, close=broken or bool(conn.closed))

    def ping(self) -> str:
        """
        Run one round trip on a pooled connection.

        Returns:
            URL the connection actually resolved to (without password)
        """
        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()
            conn.rollback()
            return self.resolved_url(conn)

    @staticmethod
    def resolved_url(conn: Connection) -> str:
        """Build postgresql://user@host:port/dbname from live connection info."""
        params = conn.info.dsn_parameters
        user = params.get("user", "")
        host = params.get("host", "localhost")
        port = params.get("port", "5432")
        dbname = params.get("dbname", "")
        auth = f"{user}@" if user else ""
        return f"postgresql://{auth}{host}:{port}/{dbname}"
