"""Upstream fetch with a hard deadline."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import AsyncIterator, Optional

import anyio
import httpx
from starlette.types import Receive

from ..errors import ProxyError, ProxyFailureError, UpstreamFailureError, UpstreamTimeoutError
from ..validation import TargetDescriptor

logger = logging.getLogger(__name__)

RELAYED_HEADERS = ("Content-Type", "Content-Length", "Content-Range")


@dataclass(slots=True)
class UpstreamOutcome:
    """An accepted upstream response whose body has not been read yet.

    The outcome owns the HTTP client and response; whoever consumes it must
    call :meth:`aclose` (directly or by exhausting :meth:`iter_body`).
    """

    status_code: int
    status_text: str
    headers: dict[str, str]
    url: str
    _response: httpx.Response = field(repr=False)
    _client: httpx.AsyncClient = field(repr=False)
    _closed: bool = field(default=False, repr=False)

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")

    @property
    def content_length(self) -> Optional[str]:
        return self.headers.get("Content-Length")

    @property
    def content_range(self) -> Optional[str]:
        return self.headers.get("Content-Range")

    @property
    def closed(self) -> bool:
        return self._closed

    async def iter_body(self, chunk_size: int) -> AsyncIterator[bytes]:
        """Yield the raw upstream body, closing the upstream on every exit."""

        try:
            async for chunk in self._response.aiter_raw(chunk_size):
                if chunk:
                    yield chunk
        finally:
            # Runs on client disconnect too, where the surrounding scope is cancelled.
            with anyio.CancelScope(shield=True):
                await self.aclose()

    async def aclose(self) -> None:
        """Release the upstream connection and its client."""

        if self._closed:
            return
        self._closed = True
        try:
            await self._response.aclose()
        finally:
            await self._client.aclose()


class UpstreamFetcher:
    """Issues the outbound GET for a validated target.

    A fresh client is created per fetch so a timeout or disconnect only ever
    tears down the connection that belongs to that request.
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    @property
    def timeout(self) -> float:
        return self._timeout

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=True,
            transport=self._transport,
        )

    async def fetch(self, target: TargetDescriptor, headers: dict[str, str]) -> UpstreamOutcome:
        """GET ``target`` and return the accepted response head.

        Raises :class:`UpstreamTimeoutError`, :class:`UpstreamFailureError`
        or :class:`ProxyFailureError`; the upstream connection is released
        before any of them propagates.
        """

        client = self._create_client()
        request_headers = {"Accept-Encoding": "identity", **headers}

        try:
            request = client.build_request("GET", target.url, headers=request_headers)
            response = await asyncio.wait_for(
                client.send(request, stream=True), timeout=self._timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            await client.aclose()
            logger.warning(f"Upstream timed out after {self._timeout}s: {target.hostname}")
            raise UpstreamTimeoutError() from exc
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            await client.aclose()
            logger.error(f"Upstream request failed for {target.hostname}: {exc!r}")
            raise ProxyFailureError(str(exc) or exc.__class__.__name__) from exc
        except BaseException:
            with anyio.CancelScope(shield=True):
                await client.aclose()
            raise

        if not response.is_success:
            logger.warning(
                f"Upstream {target.hostname} answered {response.status_code} {response.reason_phrase}"
            )
            await response.aclose()
            await client.aclose()
            raise UpstreamFailureError(response.status_code, response.reason_phrase)

        logger.info(f"Upstream {target.hostname} answered {response.status_code}")

        relayed = {
            name: response.headers[name] for name in RELAYED_HEADERS if response.headers.get(name)
        }
        return UpstreamOutcome(
            status_code=response.status_code,
            status_text=response.reason_phrase,
            headers=relayed,
            url=str(response.url),
            _response=response,
            _client=client,
        )

    async def fetch_while_connected(
        self, target: TargetDescriptor, headers: dict[str, str], receive: Receive
    ) -> Optional[UpstreamOutcome]:
        """Like :meth:`fetch`, but abandon the upstream if the caller disconnects.

        ``receive`` is the inbound ASGI channel. Returns ``None`` when the
        caller went away before the upstream answered; the upstream request
        has been cancelled and its connection released by then.
        """

        outcome: Optional[UpstreamOutcome] = None
        failure: Optional[ProxyError] = None

        async def watch_disconnect(scope: anyio.CancelScope) -> None:
            while True:
                message = await receive()
                if message["type"] == "http.disconnect":
                    logger.debug(f"Caller left while waiting on {target.hostname}")
                    scope.cancel()
                    return

        async with anyio.create_task_group() as tg:
            tg.start_soon(watch_disconnect, tg.cancel_scope)
            try:
                outcome = await self.fetch(target, headers)
            except ProxyError as exc:
                failure = exc
            tg.cancel_scope.cancel()

        if failure is not None:
            raise failure
        return outcome
