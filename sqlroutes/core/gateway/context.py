"""
Router context: the pool plus every compiled route, built once at startup.

The context is immutable after build() and shared by all request handlers.
build() compiles every rule before anything is served; the first statement
that fails to compile aborts it.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from sqlroutes.core.errors import ConfigError
from sqlroutes.core.pool import ConnectionPool
from sqlroutes.engines.sql import build_query_set, execute_query_set
from sqlroutes.engines.sql.rows import RowMap
from sqlroutes.models import MethodEnum, QuerySet, Rule

from .resolver import to_route_path

_log = logging.getLogger(__name__)

_PARAM_RE = re.compile(r"\{\w+(?::path)?\}")


def _route_shape(path: str) -> str:
    """Route path with parameter names blanked: `/show/:id` and `/show/:name` share a shape."""
    return _PARAM_RE.sub("{}", to_route_path(path))


@dataclass(frozen=True)
class Route:
    rule: Rule
    query_set: QuerySet

    @property
    def method(self) -> MethodEnum:
        return self.rule.method

    @property
    def path(self) -> str:
        return to_route_path(self.rule.path)


@dataclass(frozen=True)
class RouterContext:
    pool: ConnectionPool
    routes: Mapping[tuple[MethodEnum, str], Route]

    @classmethod
    def build(cls, pool: ConnectionPool, rules: Iterable[Rule]) -> "RouterContext":
        routes: dict[tuple[MethodEnum, str], Route] = {}
        shapes: dict[tuple[MethodEnum, str], Rule] = {}
        with pool.connection() as conn:
            for rule in rules:
                shape = (rule.method, _route_shape(rule.path))
                if shape in shapes:
                    raise ConfigError(
                        f"duplicate rule for {rule.method.value} {rule.path}"
                        f" (conflicts with {shapes[shape].path})"
                    )
                shapes[shape] = rule
                key = (rule.method, to_route_path(rule.path))
                query_set = build_query_set(conn, pool.dialect, rule)
                routes[key] = Route(rule=rule, query_set=query_set)
                _log.info(
                    "Compiled route %s %s (%d before, %d main, %d after, transaction=%s)",
                    rule.method.value,
                    rule.path,
                    len(query_set.befores),
                    len(query_set.queries),
                    len(query_set.afters),
                    query_set.transaction,
                )
        return cls(pool=pool, routes=MappingProxyType(routes))

    def execute(self, route: Route, params: Mapping[str, Any]) -> list[RowMap]:
        return execute_query_set(self.pool, route.query_set, params)
