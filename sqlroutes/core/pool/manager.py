"""
Connection pool for the configured database.

Reuses connections to avoid open/close on every request. Includes a liveness
ping on checkout of long-idle connections and max-age eviction. One pool is
shared read-only by all request handlers; checkout/release are thread-safe.
"""

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, NamedTuple

from sqlroutes.core.config import DBConfig, settings

from .connect import Dialect, connect, get_dialect

_log = logging.getLogger(__name__)

_PING_IDLE_THRESHOLD = 30.0  # only ping connections idle longer than this (seconds)


class _PoolEntry(NamedTuple):
    conn: Any
    created_at: float  # time.monotonic() when the connection was opened
    last_used: float   # time.monotonic() when last returned to pool


class ConnectionPool:
    """Pool of autocommit connections for one DBConfig."""

    def __init__(
        self,
        config: DBConfig,
        *,
        pool_size: int | None = None,
        max_age: float | None = None,
    ) -> None:
        self.config = config
        self.dialect: Dialect = get_dialect(config.driver)
        self._idle: list[_PoolEntry] = []
        self._created: dict[int, float] = {}
        self._lock = threading.Lock()
        self._pool_size = pool_size if pool_size is not None else settings.DB_POOL_SIZE
        self._max_age = float(max_age if max_age is not None else settings.DB_POOL_MAX_AGE_SEC)

    def get_connection(self) -> Any:
        """Get a healthy connection (from pool or freshly opened)."""
        now = time.monotonic()
        while True:
            entry = self._pop()
            if entry is None:
                break
            if self._is_expired(entry):
                self._discard(entry.conn)
                continue
            idle_sec = now - entry.last_used
            if idle_sec > _PING_IDLE_THRESHOLD and not self._is_alive(entry.conn):
                self._discard(entry.conn)
                continue
            return entry.conn

        conn = connect(self.config)
        with self._lock:
            self._created[id(conn)] = time.monotonic()
        _log.debug("Opened connection to %s", self.config.dsn(mask=True))
        return conn

    def release(self, conn: Any) -> None:
        """Return a connection to the pool (or close it if pool is full)."""
        try:
            # Leaves no transaction open behind a released connection.
            conn.rollback()
        except Exception:
            self._discard(conn)
            return

        now = time.monotonic()
        with self._lock:
            if len(self._idle) < self._pool_size:
                created_at = self._created.get(id(conn), now)
                self._idle.append(_PoolEntry(conn=conn, created_at=created_at, last_used=now))
                return

        self._discard(conn)

    @contextmanager
    def connection(self) -> Iterator[Any]:
        conn = self.get_connection()
        try:
            yield conn
        finally:
            self.release(conn)

    def dispose(self) -> None:
        """Close all pooled connections."""
        _log.info("Closing connection pool %s", self.stats())
        with self._lock:
            entries = list(self._idle)
            self._idle.clear()
        for e in entries:
            self._discard(e.conn)

    def stats(self) -> dict[str, int]:
        """Return pool statistics for monitoring."""
        with self._lock:
            return {
                "idle_connections": len(self._idle),
                "open_connections": len(self._created),
                "pool_size": self._pool_size,
            }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _pop(self) -> _PoolEntry | None:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return None

    def _is_expired(self, entry: _PoolEntry) -> bool:
        return (time.monotonic() - entry.created_at) > self._max_age

    @staticmethod
    def _is_alive(conn: Any) -> bool:
        """Lightweight ping: attempt a no-op query to detect broken connections."""
        try:
            cur = conn.cursor()
            cur.execute("SELECT 1")
            cur.close()
            return True
        except Exception:
            return False

    def _discard(self, conn: Any) -> None:
        with self._lock:
            self._created.pop(id(conn), None)
        try:
            conn.close()
        except Exception:
            _log.debug("Ignoring error while closing connection", exc_info=True)
