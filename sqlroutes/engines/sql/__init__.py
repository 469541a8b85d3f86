"""
SQL engine: placeholder compiler, QuerySet builder, executor and row materializer.

Exports: compile_query, build_query_set, execute_query_set, materialize_rows.
"""

from sqlroutes.engines.sql.executor import execute_query_set
from sqlroutes.engines.sql.parser import compile_query
from sqlroutes.engines.sql.query_set import build_query_set
from sqlroutes.engines.sql.rows import RawText, materialize_rows

__all__ = [
    "RawText",
    "build_query_set",
    "compile_query",
    "execute_query_set",
    "materialize_rows",
]
