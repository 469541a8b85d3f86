"""
Gateway request/response: resolve_params, success_response, error_response.

- resolve_params: merge path, JSON body and URL query into one ParamMap.
  Precedence (lowest to highest): path < body < query.
- success_response / error_response: the fixed response envelope
  { success, rows, errorType, errorDescription }; rows are made JSON-safe.
"""

import json
import uuid
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any
from urllib.parse import parse_qsl

from sqlroutes.core.errors import classify_error, request_body_parse_error

_BODY_SHAPE_MSG = "request body must be only 1 hierarchical key/value pairs"


def parse_body(body: bytes | str | None) -> dict[str, Any]:
    """
    Decode a JSON object body. Empty (or whitespace-only) body and a bare
    JSON ``null`` -> {}.

    Values are kept as decoded (nested lists/objects pass through untouched).
    Raises GatewayError(RequestBodyParseError) for anything but a JSON object.
    """
    if not body or not body.strip():
        return {}
    try:
        raw = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise request_body_parse_error(f"{_BODY_SHAPE_MSG}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise request_body_parse_error(
            f"{_BODY_SHAPE_MSG}: got {type(raw).__name__}"
        )
    return raw


def parse_query(query_string: bytes | str | None) -> dict[str, str]:
    """URL query -> {name: value}; a repeated name keeps its first value."""
    if not query_string:
        return {}
    if isinstance(query_string, bytes):
        query_string = query_string.decode("latin-1")
    out: dict[str, str] = {}
    for k, v in parse_qsl(query_string, keep_blank_values=True):
        out.setdefault(k, v)
    return out


def resolve_params(
    path_params: Mapping[str, str],
    body: bytes | str | None = None,
    query_string: bytes | str | None = None,
) -> dict[str, Any]:
    """
    Build the ParamMap for one request.

    Path parameters are applied first, then JSON body fields overwrite them,
    then URL query parameters overwrite both.
    """
    out: dict[str, Any] = dict(path_params)
    out.update(parse_body(body))
    out.update(parse_query(query_string))
    return out


def make_json_safe(obj: Any) -> Any:
    """
    Map one driver value onto something JSONResponse can render.

    Rows reach this point with driver types still in them (psycopg returns
    Decimal, UUID and date/time objects; a MySQL BIT column is bytes).
    Whole decimals stay integers. Unrecognized types fall back to str().
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, Decimal):
        if not obj.is_finite():
            return str(obj)
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj).decode("utf-8", errors="replace")
    if isinstance(obj, Mapping):
        return {k: make_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [make_json_safe(v) for v in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted((make_json_safe(v) for v in obj), key=str)
    return str(obj)


def success_response(rows: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "success": True,
        "rows": make_json_safe(rows),
        "errorType": "",
        "errorDescription": "",
    }


def error_response(exc: BaseException) -> dict[str, Any]:
    kind, description = classify_error(exc)
    return {
        "success": False,
        "rows": None,
        "errorType": kind.value,
        "errorDescription": description,
    }
