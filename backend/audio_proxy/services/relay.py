"""Mapping of accepted upstream responses onto streaming responses."""
from __future__ import annotations

import logging
from typing import AsyncIterator

import anyio
from fastapi.responses import Response, StreamingResponse
from starlette.types import Receive, Scope, Send

from ..cors import CORS_HEADERS
from .fetcher import UpstreamOutcome

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "audio/mpeg"
CACHE_CONTROL = "public, max-age=86400"


async def _no_body() -> AsyncIterator[bytes]:
    return
    yield  # pragma: no cover


class RelayedResponse(StreamingResponse):
    """Streaming response that always releases its upstream.

    The body generator only cleans up once it has started, so the outcome is
    also closed here after the response finishes, fails or is cancelled by a
    client disconnect.
    """

    def __init__(self, outcome: UpstreamOutcome, content: AsyncIterator[bytes], **kwargs) -> None:
        super().__init__(content, **kwargs)
        self.outcome = outcome

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except BaseException:
            logger.debug(f"Relay of {self.outcome.url} ended early")
            raise
        finally:
            with anyio.CancelScope(shield=True):
                await self.outcome.aclose()


class ResponseRelay:
    """Streams an :class:`UpstreamOutcome` back to the caller."""

    def __init__(self, *, chunk_size: int = 64 * 1024) -> None:
        self._chunk_size = chunk_size

    def build_headers(self, outcome: UpstreamOutcome) -> dict[str, str]:
        """Return the outbound headers for ``outcome``.

        Content-Length and Content-Range are only ever copied, never computed.
        """

        headers = {"Content-Type": outcome.content_type or DEFAULT_CONTENT_TYPE}
        if outcome.content_length:
            headers["Content-Length"] = outcome.content_length
        if outcome.content_range:
            headers["Content-Range"] = outcome.content_range
        headers.update(CORS_HEADERS)
        headers["Cache-Control"] = CACHE_CONTROL
        return headers

    async def relay(self, outcome: UpstreamOutcome, *, include_body: bool = True) -> RelayedResponse:
        """Build the outbound response; the body is pulled lazily from upstream.

        With ``include_body`` false the upstream is released immediately and
        only the status and headers are returned.
        """

        headers = self.build_headers(outcome)

        if include_body:
            body = outcome.iter_body(self._chunk_size)
        else:
            await outcome.aclose()
            body = _no_body()

        return RelayedResponse(outcome, body, status_code=outcome.status_code, headers=headers)


class AbandonedResponse(Response):
    """Stand-in for requests whose caller disconnected; sends nothing."""

    def __init__(self) -> None:
        super().__init__(status_code=499)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        logger.debug(f"Nothing sent for {scope.get('path')}: caller disconnected")
