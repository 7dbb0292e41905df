"""HTTP client helpers for the audio proxy CLI."""
from __future__ import annotations

import httpx

CLI_USER_AGENT = "audio-proxy-cli/1.0.0"


def create_client(base_url: str, *, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """Return a client bound to a running proxy.

    Requests carry the CLI User-Agent so they stand apart from player traffic
    in the proxy access log.
    """

    return httpx.Client(
        base_url=base_url.rstrip("/"),
        timeout=timeout,
        transport=transport,
        headers={"User-Agent": CLI_USER_AGENT, "Accept": "application/json"},
    )
