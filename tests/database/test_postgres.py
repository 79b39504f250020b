import asyncio
import threading

import psycopg2
import pytest
from psycopg2.pool import PoolError

from src.database.postgres import PostgresClient, PostgresConfig


def test_config_from_environment(vault_env):
    vault_env.setenv("DB_POOL_MAX", "3")
    config = PostgresConfig()
    assert config.url == "postgresql://postgres.default.svc.cluster.local:5432/myapp"
    assert config.user == "devuser"
    assert config.password is None
    assert config.min_conn == 0
    assert config.max_conn == 3
    assert "password" not in config.connect_kwargs


def test_password_read_from_secret_file(clean_env, tmp_path):
    secrets = tmp_path / "secrets"
    secrets.mkdir()
    (secrets / "db_password").write_text("devpass\n")
    assert PostgresConfig().password == "devpass"


def test_client_accepts_dict_config(clean_env):
    client = PostgresClient({"url": "postgresql://h/db", "user": "u", "max_conn": 2})
    assert client.config.url == "postgresql://h/db"
    assert client.config.max_conn == 2


def test_get_connection_without_pool_raises_connection_error(clean_env):
    client = PostgresClient()
    with pytest.raises(ConnectionError):
        client.get_connection()


def test_connect_creates_lazy_pool(clean_env, monkeypatch):
    created = {}

    class RecordingPool:
        def __init__(self, minconn, maxconn, **kwargs):
            created.update(minconn=minconn, maxconn=maxconn, **kwargs)

        def closeall(self):
            created["closed"] = True

    monkeypatch.setattr("src.database.postgres.ThreadedConnectionPool", RecordingPool)
    client = PostgresClient(PostgresConfig(url="postgresql://h/db", user="u", password="p"))

    asyncio.run(client.connect())
    assert created == {"minconn": 0, "maxconn": 5, "dsn": "postgresql://h/db", "user": "u", "password": "p"}

    asyncio.run(client.close())
    assert created["closed"] is True
    assert client.pool is None


def test_connect_wraps_pool_errors(clean_env, monkeypatch):
    def failing_pool(*args, **kwargs):
        raise PoolError("bad pool bounds")

    monkeypatch.setattr("src.database.postgres.ThreadedConnectionPool", failing_pool)
    client = PostgresClient(PostgresConfig(url="postgresql://h/db", user="u"))

    with pytest.raises(ConnectionError, match="Failed to create connection pool"):
        asyncio.run(client.connect())


def test_ping_returns_resolved_url_and_releases(make_client, fake_pool):
    client = make_client(fake_pool)
    asyncio.run(client.connect())

    assert client.ping() == "postgresql://devuser@db.local:5432/myapp"
    assert fake_pool.conn.queries == ["SELECT 1"]
    assert fake_pool.returned == [(fake_pool.conn, False)]


def test_connection_closed_on_query_failure(make_client, broken_query_pool):
    client = make_client(broken_query_pool)
    asyncio.run(client.connect())

    with pytest.raises(psycopg2.OperationalError):
        client.ping()
    assert broken_query_pool.returned == [(broken_query_pool.conn, True)]


def test_connection_released_on_non_database_error(make_client, fake_pool):
    client = make_client(fake_pool)
    asyncio.run(client.connect())

    with pytest.raises(KeyError):
        with client.connection():
            raise KeyError("boom")
    assert fake_pool.returned == [(fake_pool.conn, False)]


def test_resolved_url_without_user(fake_pool):
    fake_pool.conn.info.dsn_parameters = {"host": "db.local", "port": "6432", "dbname": "myapp"}
    assert PostgresClient.resolved_url(fake_pool.conn) == "postgresql://db.local:6432/myapp"


def test_get_connection_blocks_until_slot_is_free(make_client, single_slot_pool):
    client = make_client(single_slot_pool, max_conn=1)
    asyncio.run(client.connect())
    first = client.get_connection()
    acquired = threading.Event()

    def borrow():
        conn = client.get_connection()
        acquired.set()
        client.put_connection(conn)

    worker = threading.Thread(target=borrow)
    worker.start()
    assert not acquired.wait(0.1)

    client.put_connection(first)
    worker.join(timeout=2)
    assert acquired.is_set()
    assert single_slot_pool.in_use == 0


def test_slot_released_when_getconn_fails(make_client, down_pool):
    client = make_client(down_pool, max_conn=1)
    asyncio.run(client.connect())

    with pytest.raises(psycopg2.OperationalError):
        client.get_connection()
    assert client._slots.acquire(blocking=False)
