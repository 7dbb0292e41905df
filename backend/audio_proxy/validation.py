"""Validation of caller-supplied proxy targets."""
from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Optional
from urllib.parse import unquote_to_bytes, urlsplit

import httpx

from .domains import DomainAuthorizer
from .errors import (
    DomainNotAllowedError,
    MalformedEncodingError,
    MalformedURLError,
    MissingParameterError,
    UnsupportedSchemeError,
)

ALLOWED_SCHEMES = frozenset({"http", "https"})

# A percent sign must introduce exactly two hex digits.
_BROKEN_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True, slots=True)
class TargetDescriptor:
    """A validated upstream request, consumed once by the fetcher."""

    scheme: str
    hostname: str
    url: str
    range: Optional[str] = None


def decode_target(raw: str) -> str:
    """Strictly percent-decode ``raw``.

    Unlike :func:`urllib.parse.unquote`, which silently keeps broken escapes
    and replaces undecodable bytes, this raises
    :class:`MalformedEncodingError` for both.
    """

    if _BROKEN_ESCAPE.search(raw):
        raise MalformedEncodingError()
    try:
        return unquote_to_bytes(raw).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedEncodingError() from exc


def parse_target(raw_url: Optional[str], range_header: Optional[str] = None) -> TargetDescriptor:
    """Turn the raw ``url`` query value into a :class:`TargetDescriptor`.

    Query strings, fragments and userinfo are kept verbatim.
    """

    if not raw_url:
        raise MissingParameterError()

    decoded = decode_target(raw_url).strip()

    try:
        parts = urlsplit(decoded)
    except ValueError as exc:
        raise MalformedURLError() from exc

    if not parts.scheme:
        raise MalformedURLError()
    if parts.scheme not in ALLOWED_SCHEMES:
        raise UnsupportedSchemeError()

    try:
        parts.port  # out-of-range ports raise ValueError
        httpx.URL(decoded)
    except (ValueError, httpx.InvalidURL) as exc:
        raise MalformedURLError() from exc
    if not parts.hostname:
        raise MalformedURLError()

    return TargetDescriptor(
        scheme=parts.scheme,
        hostname=parts.hostname,
        url=decoded,
        range=range_header or None,
    )


class RequestValidator:
    """Validates targets and checks them against the allow-list."""

    def __init__(self, authorizer: DomainAuthorizer) -> None:
        self._authorizer = authorizer

    def validate(self, raw_url: Optional[str], range_header: Optional[str] = None) -> TargetDescriptor:
        """Return a descriptor for an authorized target or raise a ``ProxyError``."""

        target = parse_target(raw_url, range_header)
        if not self._authorizer.is_allowed(target.hostname):
            raise DomainNotAllowedError(target.hostname)
        return target
