"""
Runtime models: HTTP method and driver enums, Rule, compiled Query and QuerySet.

Rules come from the YAML rule file (see core.config); Query/QuerySet are built
once at startup by engines.sql and shared read-only by every request.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, field_validator

from sqlroutes.core.errors import unknown_arg_error


class MethodEnum(str, Enum):
    """HTTP methods a rule can be bound to."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class DriverEnum(str, Enum):
    """Supported database drivers (sqlite3, postgres, mysql)."""

    SQLITE = "sqlite3"
    POSTGRES = "postgres"
    MYSQL = "mysql"


class Rule(BaseModel):
    """One route binding: path + method -> before/main/after SQL templates."""

    model_config = ConfigDict(frozen=True)

    path: str
    method: MethodEnum = MethodEnum.GET
    befores: tuple[str, ...] = ()
    queries: tuple[str, ...]
    afters: tuple[str, ...] = ()
    transaction: bool = False

    @field_validator("queries")
    @classmethod
    def _queries_not_empty(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            raise ValueError("at least one SQL query must be given per rule")
        return v


@dataclass(frozen=True)
class Query:
    """
    A compiled statement.

    ``sql`` holds the template with every ``{{name}}`` replaced by the driver's
    positional marker; ``arg_keys`` lists the names in marker order (a name
    used twice appears twice).
    """

    template: str
    sql: str
    arg_keys: tuple[str, ...]

    def bind(self, params: Mapping[str, Any]) -> tuple[Any, ...]:
        """Positional arguments for ``sql``; exact, case-sensitive name match."""
        args: list[Any] = []
        for key in self.arg_keys:
            if key not in params:
                raise unknown_arg_error(key)
            args.append(params[key])
        return tuple(args)


@dataclass(frozen=True)
class QuerySet:
    """Compiled before/main/after statements of a Rule plus its transaction flag."""

    befores: tuple[Query, ...]
    queries: tuple[Query, ...]
    afters: tuple[Query, ...]
    transaction: bool = False
