"""
Health check endpoints.

We provide two endpoints:
- /health: Basic liveness check (is the process running?)
- /health/ready: Readiness check (can we run an analysis?)

Readiness looks at configuration and at the configured capture
backend. It does not call the remote SurfCoach backend: being offline
is a normal state for a client, not a reason to be "not ready".
"""

import logging
import shutil
from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ... import __version__
from ..dependencies import SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    """Individual readiness check result."""
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response with details."""
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    """Liveness check - is the process alive?"""
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "capture_backend": settings.capture_backend,
            "backend_url": settings.backend_url,
        }
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Returns 200 if an analysis can be run. Checks configuration and frame capture.",
    responses={
        503: {
            "description": "Service not ready",
            "model": ReadinessResponse,
        }
    },
)
async def readiness_check(settings: SettingsDep, response: Response) -> ReadinessResponse:
    """
    Readiness check - can we capture frames and reach a configured backend?

    Returns 503 if any check fails.
    """
    checks: list[ReadinessCheck] = []

    problems = settings.validate_required_fields()
    if problems:
        checks.append(ReadinessCheck(
            name="configuration",
            status="error",
            error=f"Invalid configuration: {', '.join(problems)}"
        ))
    else:
        checks.append(ReadinessCheck(name="configuration", status="ok"))

    if settings.mock_capture:
        checks.append(ReadinessCheck(name="capture", status="ok", error="mock mode"))
    elif settings.capture_backend == "ffmpeg" and shutil.which(settings.ffmpeg_path) is None:
        checks.append(ReadinessCheck(
            name="capture",
            status="error",
            error=f"ffmpeg not found at {settings.ffmpeg_path!r}"
        ))
    else:
        checks.append(ReadinessCheck(name="capture", status="ok"))

    all_ok = all(c.status == "ok" for c in checks)
    if not all_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Readiness check failed",
            extra={
                "checks": [
                    {"name": c.name, "status": c.status, "error": c.error}
                    for c in checks
                ]
            }
        )

    return ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        version=__version__,
        checks=checks,
    )
