"""
Placeholder compiler: ``{{name}}`` templates -> driver statement + ordered argument names.

Compilation happens once per statement at startup. The rewritten statement is
handed to the dialect's prepare step so a broken template stops the process
before any route is served.
"""

import logging
import re
from typing import Any

from sqlroutes.core.errors import sql_parse_error
from sqlroutes.core.pool import Dialect
from sqlroutes.models import Query

_log = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}", re.ASCII)


def rewrite_placeholders(
    template: str,
    marker: str,
    *,
    escape_percent: bool = False,
) -> tuple[str, tuple[str, ...]]:
    """
    Replace every ``{{name}}`` with ``marker`` and return (sql, arg_keys).

    With ``escape_percent`` (format-style drivers) literal ``%`` outside the
    placeholders is doubled so the driver does not read it as a marker.
    """
    parts: list[str] = []
    keys: list[str] = []
    pos = 0
    for m in PLACEHOLDER_RE.finditer(template):
        literal = template[pos : m.start()]
        parts.append(literal.replace("%", "%%") if escape_percent else literal)
        parts.append(marker)
        keys.append(m.group(1))
        pos = m.end()
    tail = template[pos:]
    parts.append(tail.replace("%", "%%") if escape_percent else tail)
    return "".join(parts), tuple(keys)


def compile_query(conn: Any, dialect: Dialect, template: str) -> Query:
    """
    Compile one template against the live database.

    Raises GatewayError(SQLParseError) carrying the driver message when the
    server rejects the rewritten statement.
    """
    sql, arg_keys = rewrite_placeholders(
        template, dialect.marker, escape_percent=dialect.escape_percent
    )
    try:
        dialect.prepare(conn, sql, len(arg_keys))
    except Exception as e:
        _log.error("Failed to compile SQL: %s. SQL: %s", e, sql)
        raise sql_parse_error(f"failed to parse SQL: {e}") from e
    _log.debug("Compiled SQL: %s (args: %s)", sql, ", ".join(arg_keys) or "-")
    return Query(template=template, sql=sql, arg_keys=arg_keys)
