"""Shared state container for the audio proxy."""
from __future__ import annotations

from dataclasses import dataclass

import httpx

from .domains import DomainAuthorizer
from .impersonation import HeaderImpersonator
from .services import ResponseRelay, UpstreamFetcher
from .settings import ProxySettings
from .validation import RequestValidator


@dataclass(slots=True)
class AppState:
    """Read-only collaborators built once per process and shared by requests."""

    settings: ProxySettings
    authorizer: DomainAuthorizer
    validator: RequestValidator
    impersonator: HeaderImpersonator
    fetcher: UpstreamFetcher
    relay: ResponseRelay

    def __init__(
        self,
        settings: ProxySettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.authorizer = DomainAuthorizer(settings.allowed_domains)
        self.validator = RequestValidator(self.authorizer)
        self.impersonator = HeaderImpersonator()
        self.fetcher = UpstreamFetcher(timeout=settings.request_timeout, transport=transport)
        self.relay = ResponseRelay(chunk_size=settings.chunk_size)
