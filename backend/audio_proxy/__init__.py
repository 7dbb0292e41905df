"""Audio proxy: relays allow-listed audio streams with impersonated headers."""

from .app import create_app

__all__ = ["create_app"]
