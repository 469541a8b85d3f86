"""
Gateway: router context, parameter resolution and the response envelope.
"""

from sqlroutes.core.gateway.context import Route, RouterContext
from sqlroutes.core.gateway.request_response import (
    error_response,
    make_json_safe,
    parse_body,
    parse_query,
    resolve_params,
    success_response,
)
from sqlroutes.core.gateway.resolver import to_route_path

__all__ = [
    "Route",
    "RouterContext",
    "error_response",
    "make_json_safe",
    "parse_body",
    "parse_query",
    "resolve_params",
    "success_response",
    "to_route_path",
]
