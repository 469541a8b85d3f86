"""
Gateway routes: one FastAPI route per rule.

Flow: resolve_params -> execute QuerySet (worker thread) -> envelope.
The executor is sync/blocking; it runs in a thread so the event loop keeps
accepting concurrent requests. Failures are reported in the envelope with
HTTP 200; callers must check ``success``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sqlroutes.core.errors import ErrorKind, classify_error
from sqlroutes.core.gateway import (
    Route,
    RouterContext,
    error_response,
    resolve_params,
    success_response,
)

_log = logging.getLogger(__name__)

# Client-side mistakes; logged without traceback.
_CLIENT_ERROR_KINDS = frozenset(
    {ErrorKind.UNKNOWN_ARG, ErrorKind.REQUEST_BODY_PARSE, ErrorKind.QUERY_EXECUTION}
)


def make_handler(
    context: RouterContext, route: Route
) -> Callable[[Request], Awaitable[JSONResponse]]:
    async def handler(request: Request) -> JSONResponse:
        try:
            body = await request.body()
            params = resolve_params(request.path_params, body, request.url.query)
            rows = await asyncio.to_thread(context.execute, route, params)
        except Exception as e:
            kind, description = classify_error(e)
            if kind in _CLIENT_ERROR_KINDS:
                _log.warning(
                    "%s %s failed: %s: %s", request.method, request.url.path, kind.value, description
                )
            else:
                _log.error(
                    "%s %s failed: %s", request.method, request.url.path, description, exc_info=True
                )
            return JSONResponse(content=error_response(e))
        return JSONResponse(content=success_response(rows))

    return handler


def build_router(context: RouterContext) -> APIRouter:
    router = APIRouter(tags=["gateway"])
    for route in context.routes.values():
        router.add_api_route(
            route.path,
            make_handler(context, route),
            methods=[route.method.value],
            name=f"{route.method.value} {route.rule.path}",
        )
    return router
