"""Application factory for the audio proxy."""
from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .cors import CORSHeadersMiddleware
from .errors import ProxyError
from .routers import health, proxy
from .settings import ProxySettings
from .state import AppState

logger = logging.getLogger(__name__)


async def handle_proxy_error(request: Request, exc: ProxyError) -> JSONResponse:
    """Render a ``ProxyError`` as its JSON payload and status code."""

    if exc.status_code < 500:
        logger.warning(f"Rejected {request.url.path}: {exc.message} ({exc.status_code})")
    return JSONResponse(exc.to_payload(), status_code=exc.status_code)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    """Unknown paths and unsupported methods are both reported as plain 404s."""

    if exc.status_code in (404, 405):
        return PlainTextResponse("Not Found", status_code=404)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


def create_app(
    settings: ProxySettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    ``transport`` replaces the network transport of upstream fetches.
    """

    resolved_settings = settings or ProxySettings()
    app_state = AppState(settings=resolved_settings, transport=transport)

    app = FastAPI(title=resolved_settings.service_name, version=resolved_settings.service_version)
    app.state.app_state = app_state
    app.state.settings = app_state.settings

    app.add_middleware(CORSHeadersMiddleware)
    app.add_exception_handler(ProxyError, handle_proxy_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)

    for router in (health.router, proxy.router):
        app.include_router(router)

    return app
