"""
Build a QuerySet from a Rule: compile befores, queries and afters in order.
"""

from collections.abc import Iterable
from typing import Any

from sqlroutes.core.pool import Dialect
from sqlroutes.models import Query, QuerySet, Rule

from .parser import compile_query


def compile_queries(conn: Any, dialect: Dialect, templates: Iterable[str]) -> tuple[Query, ...]:
    # Stops at the first template that fails to compile.
    return tuple(compile_query(conn, dialect, t) for t in templates)


def build_query_set(conn: Any, dialect: Dialect, rule: Rule) -> QuerySet:
    befores = compile_queries(conn, dialect, rule.befores)
    queries = compile_queries(conn, dialect, rule.queries)
    afters = compile_queries(conn, dialect, rule.afters)
    return QuerySet(
        befores=befores,
        queries=queries,
        afters=afters,
        transaction=rule.transaction,
    )
