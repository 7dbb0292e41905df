"""Upstream fetching and response relaying."""

from .fetcher import RELAYED_HEADERS, UpstreamFetcher, UpstreamOutcome
from .relay import (
    CACHE_CONTROL,
    DEFAULT_CONTENT_TYPE,
    AbandonedResponse,
    RelayedResponse,
    ResponseRelay,
)

__all__ = [
    "UpstreamFetcher",
    "UpstreamOutcome",
    "RELAYED_HEADERS",
    "ResponseRelay",
    "RelayedResponse",
    "AbandonedResponse",
    "CACHE_CONTROL",
    "DEFAULT_CONTENT_TYPE",
]
