"""Health endpoints."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..dependencies import get_settings
from ..schemas import HealthStatus
from ..settings import ProxySettings

router = APIRouter(tags=["health"])


def utc_timestamp() -> str:
    """Return the current UTC time with millisecond precision and a ``Z`` suffix."""

    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.get("/health", response_model=HealthStatus)
def get_health(settings: ProxySettings = Depends(get_settings)) -> HealthStatus:
    """Return service heartbeat information."""

    return HealthStatus(
        service=settings.service_name,
        version=settings.service_version,
        timestamp=utc_timestamp(),
    )
