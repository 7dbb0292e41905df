"""Lifecycle tests for upstream fetches and the streaming relay."""
from __future__ import annotations

import asyncio
import contextlib
import sys
from pathlib import Path

import httpx
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.audio_proxy.errors import UpstreamFailureError  # noqa: E402
from backend.audio_proxy.services import ResponseRelay, UpstreamFetcher  # noqa: E402
from backend.audio_proxy.validation import TargetDescriptor  # noqa: E402

TARGET = TargetDescriptor(
    scheme="https",
    hostname="m7.music.126.net",
    url="https://m7.music.126.net/song.mp3",
)


class TrackingStream(httpx.AsyncByteStream):
    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = chunks
        self.yielded = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            self.yielded += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def make_fetcher(stream: TrackingStream, status_code: int = 200) -> UpstreamFetcher:
    transport = httpx.MockTransport(lambda request: httpx.Response(status_code, stream=stream))
    return UpstreamFetcher(timeout=5.0, transport=transport)


def test_fetch_keeps_only_relayed_headers() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            206,
            headers={
                "Content-Type": "audio/mpeg",
                "Content-Range": "bytes 0-1/2",
                "Set-Cookie": "a=b",
                "Server": "cdn",
            },
            content=b"ab",
        )

    async def scenario():
        fetcher = UpstreamFetcher(transport=httpx.MockTransport(handler))
        outcome = await fetcher.fetch(TARGET, {"User-Agent": "test"})
        await outcome.aclose()
        return outcome

    outcome = asyncio.run(scenario())

    assert outcome.status_code == 206
    assert outcome.status_text == "Partial Content"
    assert outcome.headers == {
        "Content-Type": "audio/mpeg",
        "Content-Length": "2",
        "Content-Range": "bytes 0-1/2",
    }
    assert outcome.closed


def test_fetch_requests_identity_encoding() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"")

    async def scenario() -> None:
        fetcher = UpstreamFetcher(transport=httpx.MockTransport(handler))
        outcome = await fetcher.fetch(TARGET, {"Range": "bytes=5-"})
        await outcome.aclose()

    asyncio.run(scenario())

    assert seen[0].headers["accept-encoding"] == "identity"
    assert seen[0].headers["range"] == "bytes=5-"


def test_fetch_raises_upstream_failure_for_server_errors() -> None:
    stream = TrackingStream([b"oops"])

    with pytest.raises(UpstreamFailureError) as excinfo:
        asyncio.run(make_fetcher(stream, status_code=503).fetch(TARGET, {}))

    assert excinfo.value.status == 503
    assert excinfo.value.to_payload()["statusText"] == "Service Unavailable"
    assert stream.closed


def test_relay_does_not_read_body_before_streaming() -> None:
    stream = TrackingStream([b"a", b"b", b"c"])

    async def scenario():
        outcome = await make_fetcher(stream).fetch(TARGET, {})
        response = await ResponseRelay(chunk_size=1).relay(outcome)
        read_before = stream.yielded
        collected = [chunk async for chunk in response.body_iterator]
        return read_before, collected, outcome

    read_before, collected, outcome = asyncio.run(scenario())

    assert read_before == 0
    assert b"".join(collected) == b"abc"
    assert stream.closed
    assert outcome.closed


def test_relay_closes_upstream_when_client_disconnects() -> None:
    stream = TrackingStream([b"x" * 16] * 8)
    sent: list[dict] = []

    async def receive() -> dict:
        await asyncio.sleep(10)
        return {"type": "http.disconnect"}

    async def send(message: dict) -> None:
        sent.append(message)
        if message["type"] == "http.response.body":
            raise OSError("client went away")

    async def scenario():
        outcome = await make_fetcher(stream).fetch(TARGET, {})
        response = await ResponseRelay(chunk_size=16).relay(outcome)
        scope = {
            "type": "http",
            "asgi": {"version": "3.0", "spec_version": "2.4"},
            "method": "GET",
            "path": "/proxy",
            "headers": [],
        }
        with contextlib.suppress(Exception):
            await response(scope, receive, send)
        return outcome

    outcome = asyncio.run(scenario())

    assert sent[0]["type"] == "http.response.start"
    assert stream.yielded < len(stream.chunks)
    assert stream.closed
    assert outcome.closed


def test_relay_closes_upstream_when_response_never_starts() -> None:
    stream = TrackingStream([b"never"])

    async def receive() -> dict:
        return {"type": "http.disconnect"}

    async def send(message: dict) -> None:
        raise OSError("socket already closed")

    async def scenario():
        outcome = await make_fetcher(stream).fetch(TARGET, {})
        response = await ResponseRelay().relay(outcome)
        scope = {
            "type": "http",
            "asgi": {"version": "3.0", "spec_version": "2.4"},
            "method": "GET",
            "path": "/proxy",
            "headers": [],
        }
        with contextlib.suppress(Exception):
            await response(scope, receive, send)
        return outcome

    outcome = asyncio.run(scenario())

    assert stream.yielded == 0
    assert stream.closed
    assert outcome.closed


class SlowUpstream:
    """Upstream that takes ``delay`` seconds to answer and records cancellation."""

    def __init__(self, delay: float, status_code: int = 200) -> None:
        self.delay = delay
        self.status_code = status_code
        self.state = {"started": False, "finished": False, "cancelled": False}

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.state["started"] = True
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.state["cancelled"] = True
            raise
        self.state["finished"] = True
        return httpx.Response(self.status_code, content=b"late")


def test_fetch_is_cancelled_when_caller_disconnects_first() -> None:
    upstream = SlowUpstream(delay=5)
    fetcher = UpstreamFetcher(timeout=30.0, transport=httpx.MockTransport(upstream))
    messages = iter(
        [{"type": "http.request", "body": b"", "more_body": False}, {"type": "http.disconnect"}]
    )

    async def receive() -> dict:
        await asyncio.sleep(0.01)
        return next(messages)

    async def scenario():
        loop = asyncio.get_running_loop()
        started = loop.time()
        outcome = await fetcher.fetch_while_connected(TARGET, {}, receive)
        return outcome, loop.time() - started

    outcome, elapsed = asyncio.run(scenario())

    assert outcome is None
    assert elapsed < 1
    assert upstream.state == {"started": True, "finished": False, "cancelled": True}


def test_fetch_while_connected_returns_outcome_when_caller_stays() -> None:
    stream = TrackingStream([b"ok"])
    fetcher = make_fetcher(stream)

    async def receive() -> dict:
        await asyncio.sleep(10)
        return {"type": "http.disconnect"}

    async def scenario():
        outcome = await fetcher.fetch_while_connected(TARGET, {}, receive)
        body = b"".join([chunk async for chunk in outcome.iter_body(16)])
        return outcome, body

    outcome, body = asyncio.run(scenario())

    assert outcome.status_code == 200
    assert body == b"ok"
    assert outcome.closed


def test_fetch_while_connected_raises_proxy_errors_unwrapped() -> None:
    fetcher = make_fetcher(TrackingStream([b"missing"]), status_code=404)

    async def receive() -> dict:
        await asyncio.sleep(10)
        return {"type": "http.disconnect"}

    with pytest.raises(UpstreamFailureError) as excinfo:
        asyncio.run(fetcher.fetch_while_connected(TARGET, {}, receive))

    assert excinfo.value.status == 404
