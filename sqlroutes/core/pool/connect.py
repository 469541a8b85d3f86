"""
DB connection helpers and per-driver dialects.

Uses sqlite3 (stdlib), psycopg (PostgreSQL) or pymysql (MySQL) based on
DBConfig.driver. Connections are opened in autocommit mode; a Dialect knows the
driver's positional marker, how to check a statement at startup and how to
open an explicit transaction.
"""

import re
import sqlite3
from typing import Any

import psycopg
import pymysql

from sqlroutes.core.config import DBConfig, settings
from sqlroutes.models import DriverEnum

_EXPLAINABLE = ("SELECT", "WITH", "INSERT", "UPDATE", "DELETE", "REPLACE")

# "%%" (escaped literal) or "%s" (marker) in a format-style statement
_FORMAT_TOKEN_RE = re.compile(r"%([%s])")
_CHECK_STMT = "_sqlroutes_chk"


def _first_keyword(sql: str) -> str:
    s = re.sub(r"^[\s;(]+", "", sql)
    words = s.split(None, 1)
    return words[0].upper() if words else ""


class Dialect:
    """Driver-specific behaviour the compiler and executor need."""

    driver: DriverEnum
    marker: str = "?"
    escape_percent: bool = False

    def connect(self, config: DBConfig) -> Any:
        raise NotImplementedError

    def is_explainable(self, sql: str) -> bool:
        return _first_keyword(sql) in _EXPLAINABLE

    def prepare(self, conn: Any, sql: str, arity: int) -> None:
        """
        Let the server compile ``sql`` without running it (EXPLAIN with NULL
        arguments). Raises the driver's exception on syntax errors or unknown
        tables/columns. Statements EXPLAIN cannot wrap are accepted as-is.
        """
        if not self.is_explainable(sql):
            return
        cur = conn.cursor()
        try:
            cur.execute("EXPLAIN " + sql, (None,) * arity)
            cur.fetchall()
        finally:
            cur.close()

    def begin(self, conn: Any) -> None:
        cur = conn.cursor()
        try:
            cur.execute("BEGIN")
        finally:
            cur.close()


class SQLiteDialect(Dialect):
    driver = DriverEnum.SQLITE
    marker = "?"

    def connect(self, config: DBConfig) -> Any:
        if not config.filepath:
            raise ValueError("db.filepath is required for sqlite3")
        # isolation_level=None: no implicit transactions, BEGIN is issued explicitly.
        return sqlite3.connect(
            config.filepath,
            timeout=settings.DB_CONNECT_TIMEOUT,
            isolation_level=None,
            check_same_thread=False,
        )

    def is_explainable(self, sql: str) -> bool:
        # SQLite can EXPLAIN any single statement, DDL included.
        return bool(sql.strip())


class PostgresDialect(Dialect):
    driver = DriverEnum.POSTGRES
    marker = "%s"
    escape_percent = True

    def connect(self, config: DBConfig) -> Any:
        for name in ("host", "name", "username"):
            if not getattr(config, name):
                raise ValueError(f"db.{name} is required for postgres")
        return psycopg.connect(
            host=config.host,
            port=int(config.effective_port or 5432),
            dbname=config.name,
            user=config.username,
            password=config.password,
            connect_timeout=settings.DB_CONNECT_TIMEOUT,
            autocommit=True,
        )


class MySQLDialect(Dialect):
    driver = DriverEnum.MYSQL
    marker = "%s"
    escape_percent = True

    def connect(self, config: DBConfig) -> Any:
        for name in ("host", "name", "username"):
            if not getattr(config, name):
                raise ValueError(f"db.{name} is required for mysql")
        return pymysql.connect(
            host=config.host,
            port=int(config.effective_port or 3306),
            database=config.name,
            user=config.username,
            password=config.password,
            connect_timeout=settings.DB_CONNECT_TIMEOUT,
            autocommit=True,
        )

    def prepare(self, conn: Any, sql: str, arity: int) -> None:
        """
        Server-side PREPARE of the statement with ``?`` markers. pymysql
        interpolates arguments on the client, so EXPLAIN with NULLs would
        reject valid templates such as ``LIMIT {{n}}``.
        """
        if not sql.strip():
            return
        server_sql = _FORMAT_TOKEN_RE.sub(lambda m: "%" if m.group(1) == "%" else "?", sql)
        cur = conn.cursor()
        try:
            cur.execute(f"PREPARE {_CHECK_STMT} FROM %s", (server_sql,))
            cur.execute(f"DEALLOCATE PREPARE {_CHECK_STMT}")
        finally:
            cur.close()

    def begin(self, conn: Any) -> None:
        conn.begin()


_DIALECTS: dict[DriverEnum, Dialect] = {
    DriverEnum.SQLITE: SQLiteDialect(),
    DriverEnum.POSTGRES: PostgresDialect(),
    DriverEnum.MYSQL: MySQLDialect(),
}


def get_dialect(driver: DriverEnum | str) -> Dialect:
    try:
        return _DIALECTS[DriverEnum(driver)]
    except (KeyError, ValueError) as e:
        raise ValueError(f"Unsupported driver: {driver}") from e


def connect(config: DBConfig) -> Any:
    """Open a new autocommit connection for ``config``."""
    return get_dialect(config.driver).connect(config)


def execute(conn: Any, sql: str, params: tuple | list | None = None) -> Any:
    """
    Execute SQL and return the cursor. Caller uses cursor_to_dicts(cursor) or cursor.rowcount.

    Always passes a parameter sequence so ``%%`` escaping is handled the same
    way whether or not the statement has placeholders.
    """
    cur = conn.cursor()
    try:
        cur.execute(sql, tuple(params or ()))
    except Exception:
        cur.close()
        raise
    return cur


def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor result to list of dicts. Works for sqlite3, psycopg and pymysql."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]
