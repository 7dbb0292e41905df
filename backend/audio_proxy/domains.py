"""Allow-list checks for proxy targets."""
from __future__ import annotations

from typing import Iterable


class DomainAuthorizer:
    """Suffix-based allow-list of upstream hosts.

    A hostname is permitted when it equals an entry or is a subdomain of one.
    Entries are plain domain names; wildcards and IP ranges are not supported.
    """

    def __init__(self, domains: Iterable[str]) -> None:
        self._domains: frozenset[str] = frozenset(
            domain.strip().lower() for domain in domains if domain.strip()
        )

    @property
    def domains(self) -> frozenset[str]:
        return self._domains

    def is_allowed(self, hostname: str) -> bool:
        """Return whether ``hostname`` may be proxied."""

        host = hostname.lower()
        return any(host == domain or host.endswith("." + domain) for domain in self._domains)
