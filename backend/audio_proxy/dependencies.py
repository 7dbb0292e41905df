"""FastAPI dependencies for the audio proxy."""
from fastapi import Depends, Request

from .impersonation import HeaderImpersonator
from .services import ResponseRelay, UpstreamFetcher
from .settings import ProxySettings
from .state import AppState
from .validation import RequestValidator


def get_app_state(request: Request) -> AppState:
    """Resolve the shared application state from the FastAPI request."""
    return request.app.state.app_state


def get_settings(app_state: AppState = Depends(get_app_state)) -> ProxySettings:
    return app_state.settings


def get_validator(app_state: AppState = Depends(get_app_state)) -> RequestValidator:
    return app_state.validator


def get_impersonator(app_state: AppState = Depends(get_app_state)) -> HeaderImpersonator:
    return app_state.impersonator


def get_fetcher(app_state: AppState = Depends(get_app_state)) -> UpstreamFetcher:
    """Return the upstream fetcher dependency."""
    return app_state.fetcher


def get_relay(app_state: AppState = Depends(get_app_state)) -> ResponseRelay:
    return app_state.relay
