import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sqlroutes.api.routes.gateway import build_router
from sqlroutes.core.config import settings
from sqlroutes.core.gateway import RouterContext, error_response

_logger = logging.getLogger(__name__)


def create_app(context: RouterContext) -> FastAPI:
    """FastAPI app serving every compiled route of ``context``."""
    if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
        sentry_sdk.init(dsn=str(settings.SENTRY_DSN), traces_sample_rate=1.0)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        context.pool.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.router_context = context

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all: log and answer with the standard envelope (errorType Unknown)."""
        _logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=200, content=error_response(exc))

    app.include_router(build_router(context))
    return app
