"""Command line interface for operating the audio proxy."""
from __future__ import annotations

import json
from typing import Optional
from urllib.parse import quote

import typer

from backend.audio_proxy.domains import DomainAuthorizer
from backend.audio_proxy.errors import ProxyError
from backend.audio_proxy.impersonation import HeaderImpersonator
from backend.audio_proxy.settings import ProxySettings
from backend.audio_proxy.validation import RequestValidator

from .client import create_client


DEFAULT_API_BASE = "http://localhost:8787"

app = typer.Typer(help="Inspect and exercise the audio proxy.")


def _api_base_option() -> typer.Option:
    return typer.Option(
        DEFAULT_API_BASE,
        "--api-base",
        help="Base URL of a running audio proxy.",
        show_default=True,
        envvar="AUDIO_PROXY_API_BASE",
    )


def _echo_json(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command()
def health(api_base: str = _api_base_option()) -> None:
    """Call the /health endpoint and pretty-print the response."""

    with create_client(api_base) as client:
        response = client.get("/health")
        response.raise_for_status()
        _echo_json(response.json())


@app.command()
def check(
    url: str = typer.Argument(..., help="Audio URL exactly as it would be passed to /proxy."),
    range_spec: Optional[str] = typer.Option(None, "--range", help="Range header to forward."),
) -> None:
    """Validate a target offline and show the headers the proxy would send."""

    settings = ProxySettings()
    validator = RequestValidator(DomainAuthorizer(settings.allowed_domains))

    try:
        target = validator.validate(url, range_spec)
    except ProxyError as exc:
        _echo_json({"status": exc.status_code, **exc.to_payload()})
        raise typer.Exit(code=1) from exc

    headers = HeaderImpersonator().build_outbound_headers(target.hostname, target.range)
    _echo_json(
        {
            "url": target.url,
            "scheme": target.scheme,
            "hostname": target.hostname,
            "headers": headers,
        }
    )


@app.command("proxy-url")
def proxy_url(
    url: str = typer.Argument(..., help="Audio URL to wrap."),
    api_base: str = _api_base_option(),
) -> None:
    """Print the proxy URL that relays ``url``."""

    typer.echo(f"{api_base.rstrip('/')}/proxy?url={quote(url, safe='')}")
