"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests with fakes
- Configuration is centralized

The session store, backend client and orchestrator are process-wide:
this API serves one user on one device, and the orchestrator's state
must survive between the request that starts an analysis and the
requests that poll it.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends

from ..config.settings import Settings, get_settings
from ..core.analysis.frames import FrameSampler
from ..core.analysis.models import ProgressEvent, QuotaState
from ..core.analysis.orchestrator import AnalysisOrchestrator, OrchestratorConfig
from ..infrastructure.backend.client import SurfCoachClient, create_backend_client
from ..infrastructure.storage.session_store import SessionStore, create_session_store
from ..infrastructure.video.capture import create_frame_capture

logger = logging.getLogger(__name__)

_session_store: Optional[SessionStore] = None
_backend_client: Optional[SurfCoachClient] = None
_orchestrator: Optional[AnalysisOrchestrator] = None


def _log_progress(event: ProgressEvent) -> None:
    logger.info(
        "Analysis progress",
        extra={
            "step": event.step_index + 1,
            "total": event.total_steps,
            "label": event.label,
        },
    )


def _log_upgrade_prompt(quota: QuotaState) -> None:
    logger.info(
        "Upgrade prompt requested",
        extra={"tier": quota.tier.value, "remaining": quota.remaining},
    )


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_session_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> SessionStore:
    """Provide the shared session store (file-backed when configured)."""
    global _session_store

    if _session_store is None:
        _session_store = create_session_store(settings.session_store_path)
    return _session_store


def get_backend_client(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> SurfCoachClient:
    """Provide the shared backend client, reusing its HTTP connection pool."""
    global _backend_client

    if _backend_client is None:
        _backend_client = create_backend_client(
            session_store=store,
            base_url=settings.backend_url,
            timeout_seconds=settings.backend_timeout_seconds,
        )
        logger.info("Created backend client", extra={"base_url": settings.backend_url})
    return _backend_client


def get_orchestrator(
    settings: Annotated[Settings, Depends(get_settings)],
    client: Annotated[SurfCoachClient, Depends(get_backend_client)],
) -> AnalysisOrchestrator:
    """
    Provide the shared orchestrator.

    The capture backend is chosen here, once, from configuration.
    """
    global _orchestrator

    if _orchestrator is None:
        capture = create_frame_capture(
            settings.capture_backend,
            ffmpeg_path=settings.ffmpeg_path,
        )
        sampler = FrameSampler(
            capture,
            fallback_duration_ms=settings.fallback_duration_ms,
            capture_timeout_seconds=settings.capture_timeout_seconds,
        )
        _orchestrator = AnalysisOrchestrator(
            sampler=sampler,
            analysis_service=client,
            quota_provider=client,
            config=OrchestratorConfig(
                frame_count=settings.frame_count,
                transition_delay_seconds=settings.transition_delay_seconds,
                finalize_delay_seconds=settings.finalize_delay_seconds,
                analysis_timeout_seconds=settings.backend_timeout_seconds,
                language=settings.analysis_language,
            ),
            on_progress=_log_progress,
            on_upgrade=_log_upgrade_prompt,
        )
        logger.info(
            "Created analysis orchestrator",
            extra={"capture_backend": settings.capture_backend},
        )
    return _orchestrator


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

SettingsDep = Annotated[Settings, Depends(get_settings)]
SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]
BackendClientDep = Annotated[SurfCoachClient, Depends(get_backend_client)]
OrchestratorDep = Annotated[AnalysisOrchestrator, Depends(get_orchestrator)]
