"""
DB connections and the connection pool for the configured database.

No driver layer: sqlite3, psycopg and pymysql are used directly; DBConfig is enough.
"""

from .connect import Dialect, connect, cursor_to_dicts, execute, get_dialect
from .health import health_check
from .manager import ConnectionPool

__all__ = [
    "ConnectionPool",
    "Dialect",
    "connect",
    "cursor_to_dicts",
    "execute",
    "get_dialect",
    "health_check",
]
