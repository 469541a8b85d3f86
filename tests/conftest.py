import sqlite3
from collections.abc import Callable, Generator, Iterable
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from sqlroutes.core.config import DBConfig
from sqlroutes.core.gateway import RouterContext
from sqlroutes.core.pool import ConnectionPool
from sqlroutes.main import create_app
from sqlroutes.models import Rule


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """SQLite file with table ``test(id, body)`` holding one row (3, 'x')."""
    path = tmp_path / "test.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE test (id INTEGER NOT NULL UNIQUE, body TEXT NOT NULL);
        CREATE TABLE audit (note TEXT NOT NULL);
        INSERT INTO test (id, body) VALUES (3, 'x');
        """
    )
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def db_config(db_path: Path) -> DBConfig:
    return DBConfig(driver="sqlite3", filepath=str(db_path))


@pytest.fixture
def pool(db_config: DBConfig) -> Generator[ConnectionPool, None, None]:
    p = ConnectionPool(db_config)
    yield p
    p.dispose()


@pytest.fixture
def fetch_all(db_path: Path) -> Callable[[str], list[tuple]]:
    """Read the database through a separate connection."""

    def _fetch(sql: str) -> list[tuple]:
        conn = sqlite3.connect(db_path)
        try:
            return conn.execute(sql).fetchall()
        finally:
            conn.close()

    return _fetch


@pytest.fixture
def make_client(
    pool: ConnectionPool,
) -> Generator[Callable[[Iterable[Rule]], TestClient], None, None]:
    clients: list[TestClient] = []

    def _make(rules: Iterable[Rule]) -> TestClient:
        context = RouterContext.build(pool, rules)
        client = TestClient(create_app(context))
        clients.append(client)
        return client

    yield _make
    for c in clients:
        c.close()
