"""Typer-based operator CLI for the audio proxy."""

from .app import app

__all__ = ["app"]
