"""Permissive CORS handling for every response the proxy emits.

Starlette's ``CORSMiddleware`` only decorates requests that carry an
``Origin`` header and ``BaseHTTPMiddleware`` wraps streaming bodies, so the
headers are injected by a small ASGI middleware on ``http.response.start``.
"""
from __future__ import annotations

from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Allow-Headers": "Range, Content-Type",
    "Access-Control-Expose-Headers": "Content-Length, Content-Range, Content-Type",
}
PREFLIGHT_MAX_AGE = "86400"


def preflight_response() -> Response:
    """Return the empty 204 answer to an ``OPTIONS`` request."""

    headers = dict(CORS_HEADERS)
    headers["Access-Control-Max-Age"] = PREFLIGHT_MAX_AGE
    return Response(status_code=204, headers=headers)


class CORSHeadersMiddleware:
    """Answers ``OPTIONS`` on any path and adds CORS headers to all responses."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            await preflight_response()(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in CORS_HEADERS.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)
