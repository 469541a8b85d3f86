"""
Error taxonomy rendered into the response envelope.

Every failure the engine reports is a GatewayError carrying an ErrorKind and a
human-readable message. classify_error() is the single place that turns any
exception into the (errorType, errorDescription) pair of the response.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Value of ``errorType`` in a failed response."""

    QUERY_EXECUTION = "QueryExecutionError"
    UNKNOWN_ARG = "UnknownArgError"
    SQL_PARSE = "SQLParseError"
    REQUEST_BODY_PARSE = "RequestBodyParseError"
    UNKNOWN = "Unknown"


class GatewayError(Exception):
    """Tagged failure: ``kind`` selects the errorType, ``message`` the description."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"GatewayError({self.kind.value}, {self.message!r})"


def query_execution_error(message: str) -> GatewayError:
    return GatewayError(ErrorKind.QUERY_EXECUTION, message)


def unknown_arg_error(name: str) -> GatewayError:
    return GatewayError(ErrorKind.UNKNOWN_ARG, f"unknown argument name: {name}")


def sql_parse_error(message: str) -> GatewayError:
    return GatewayError(ErrorKind.SQL_PARSE, message)


def request_body_parse_error(message: str) -> GatewayError:
    return GatewayError(ErrorKind.REQUEST_BODY_PARSE, message)


class ConfigError(ValueError):
    """Raised when the rule file or database settings are invalid."""

    pass


def classify_error(exc: BaseException) -> tuple[ErrorKind, str]:
    """Return (kind, description) for any exception; untagged ones are Unknown."""
    if isinstance(exc, GatewayError):
        return exc.kind, exc.message
    return ErrorKind.UNKNOWN, str(exc) or exc.__class__.__name__
