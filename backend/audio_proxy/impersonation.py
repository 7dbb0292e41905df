"""Outbound header construction for upstream audio CDNs."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)


@dataclass(frozen=True, slots=True)
class RefererRule:
    """Referer sent to hosts whose name contains any of ``markers``."""

    name: str
    markers: tuple[str, ...]
    referer: str

    def matches(self, hostname: str) -> bool:
        return any(marker in hostname for marker in self.markers)


# Order matters: the first matching rule wins.
REFERER_RULES: tuple[RefererRule, ...] = (
    RefererRule(name="qqmusic", markers=("qq.com", "qqmusic"), referer="https://y.qq.com/"),
    RefererRule(name="netease", markers=("163.com", "126.net"), referer="https://music.163.com/"),
    RefererRule(name="kugou", markers=("kugou",), referer="https://www.kugou.com/"),
    RefererRule(name="kuwo", markers=("kuwo",), referer="https://www.kuwo.cn/"),
    RefererRule(name="migu", markers=("migu",), referer="https://music.migu.cn/"),
)


class HeaderImpersonator:
    """Builds the headers an upstream CDN expects from a mobile browser."""

    def __init__(
        self,
        *,
        user_agent: str = MOBILE_USER_AGENT,
        rules: tuple[RefererRule, ...] = REFERER_RULES,
    ) -> None:
        self._user_agent = user_agent
        self._rules = rules

    def referer_for(self, hostname: str) -> Optional[str]:
        """Return the Referer for ``hostname`` or ``None`` when no rule applies."""

        host = hostname.lower()
        for rule in self._rules:
            if rule.matches(host):
                return rule.referer
        return None

    def build_outbound_headers(self, hostname: str, inbound_range: Optional[str] = None) -> dict[str, str]:
        """Return the request headers used for the upstream fetch."""

        headers = {"User-Agent": self._user_agent}

        referer = self.referer_for(hostname)
        if referer:
            headers["Referer"] = referer

        if inbound_range:
            headers["Range"] = inbound_range

        return headers
