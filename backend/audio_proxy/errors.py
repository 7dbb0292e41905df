"""Error taxonomy for proxy requests.

Every failure a request can run into before the upstream body starts
streaming is one of the classes below. Each knows its HTTP status and the
JSON payload sent back to the caller, so the application only needs a
single exception handler.
"""
from __future__ import annotations

from typing import Any

PROXY_USAGE = "GET /proxy?url=<encoded_audio_url>"


class ProxyError(RuntimeError):
    """Base class for request failures surfaced as JSON error responses."""

    status_code: int = 500

    def __init__(self, message: str, /, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body describing this error."""

        return {"error": self.message, **self.details}


class MissingParameterError(ProxyError):
    """Raised when the ``url`` query parameter is absent."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Missing url parameter", usage=PROXY_USAGE)


class MalformedEncodingError(ProxyError):
    """Raised when the target URL cannot be percent-decoded."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Invalid URL encoding")


class MalformedURLError(ProxyError):
    """Raised when the decoded target is not an absolute URL."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Invalid URL format")


class UnsupportedSchemeError(ProxyError):
    """Raised for targets that are not plain HTTP or HTTPS."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Only HTTP/HTTPS URLs are allowed")


class DomainNotAllowedError(ProxyError):
    """Raised when the target host is not on the allow-list."""

    status_code = 403

    def __init__(self, domain: str) -> None:
        super().__init__(
            "Domain not allowed",
            domain=domain,
            hint="Contact admin to add this domain to whitelist",
        )
        self.domain = domain


class UpstreamTimeoutError(ProxyError):
    """Raised when the upstream does not answer within the deadline."""

    status_code = 504

    def __init__(self) -> None:
        super().__init__("Request timeout")


class UpstreamFailureError(ProxyError):
    """Raised when the upstream answers with a non-success status."""

    status_code = 502

    def __init__(self, status: int, status_text: str) -> None:
        super().__init__("Upstream request failed", status=status, statusText=status_text)
        self.status = status
        self.status_text = status_text


class ProxyFailureError(ProxyError):
    """Raised for transport failures (DNS, refused connections, TLS)."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__("Proxy request failed", message=message)
