"""
Execute a QuerySet against the pool.

Flow per request: checkout connection -> pick runner (plain or transaction)
-> befores -> queries (rows collected) -> afters -> commit, or rollback on the
first failure. Only the rows of the main queries are returned.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from sqlroutes.core.errors import ErrorKind, GatewayError, query_execution_error
from sqlroutes.core.pool import ConnectionPool, Dialect, execute
from sqlroutes.models import Query, QuerySet

from .rows import RowMap, materialize_rows

_log = logging.getLogger(__name__)


class Runner(Protocol):
    """Something that can execute a compiled statement and return its rows."""

    def run(self, query: Query, params: Mapping[str, Any]) -> list[RowMap]: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class ConnectionRunner:
    """Runs each statement directly on an autocommit connection."""

    def __init__(self, conn: Any) -> None:
        self.conn = conn

    def run(self, query: Query, params: Mapping[str, Any]) -> list[RowMap]:
        args = query.bind(params)
        try:
            cur = execute(self.conn, query.sql, args)
        except Exception as e:
            _log.warning("SQL execution failed: %s. SQL: %s", e, query.sql)
            raise query_execution_error(f"failed to execute query: {e}") from e
        try:
            return materialize_rows(cur)
        except Exception as e:
            _log.error("Reading result rows failed: %s. SQL: %s", e, query.sql, exc_info=True)
            raise GatewayError(ErrorKind.UNKNOWN, f"failed to read result rows: {e}") from e
        finally:
            cur.close()

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass


class TransactionRunner(ConnectionRunner):
    """Runs every statement inside one explicit transaction."""

    def __init__(self, conn: Any, dialect: Dialect) -> None:
        super().__init__(conn)
        dialect.begin(conn)

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        try:
            self.conn.rollback()
        except Exception:
            _log.warning("Rollback failed", exc_info=True)


def open_runner(conn: Any, dialect: Dialect, transaction: bool) -> Runner:
    if transaction:
        return TransactionRunner(conn, dialect)
    return ConnectionRunner(conn)


def run_queries(
    runner: Runner, queries: Iterable[Query], params: Mapping[str, Any]
) -> list[RowMap]:
    """Run ``queries`` in order and concatenate their rows."""
    rows: list[RowMap] = []
    for q in queries:
        rows.extend(runner.run(q, params))
    return rows


def execute_query_set(
    pool: ConnectionPool,
    query_set: QuerySet,
    params: Mapping[str, Any],
) -> list[RowMap]:
    """
    Run befores, queries and afters of ``query_set`` with ``params``.

    Returns the concatenated rows of the main queries. Any failure aborts the
    rest of the set; under a transaction it is rolled back first and the
    original error is raised.
    """
    with pool.connection() as conn:
        runner = open_runner(conn, pool.dialect, query_set.transaction)
        try:
            run_queries(runner, query_set.befores, params)
            rows = run_queries(runner, query_set.queries, params)
            run_queries(runner, query_set.afters, params)
        except Exception:
            runner.rollback()
            raise
        try:
            runner.commit()
        except Exception as e:
            _log.error("Commit failed: %s", e, exc_info=True)
            runner.rollback()
            raise GatewayError(ErrorKind.UNKNOWN, f"failed to commit transaction: {e}") from e
        return rows
