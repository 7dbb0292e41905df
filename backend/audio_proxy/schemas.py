"""Pydantic models exposed by the audio proxy."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    """Liveness payload returned by ``/health``."""

    status: Literal["ok"] = Field(default="ok")
    service: str = Field(description="Human-readable service name.")
    version: str = Field(description="Version of the running proxy.")
    timestamp: str = Field(description="Current UTC time in ISO-8601 format.")


class ErrorPayload(BaseModel):
    """Shape of every JSON error body; diagnostic fields vary by error."""

    error: str = Field(description="Short description of what went wrong.")

    model_config = {"extra": "allow"}
