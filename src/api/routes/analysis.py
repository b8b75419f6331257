"""
Video analysis API endpoints.

Drives the analysis orchestrator for the presentation layer:
1. Client selects a local video (POST /video)
2. Client starts the analysis (POST /start) - runs in the background
3. Client polls progress and outcome (GET /status)
4. Client resets to pick another video (POST /reset)

The analysis runs as a background task because it spans several
seconds of frame capture plus one long network call, and the UI needs
to render "step i of N" while it runs.
"""

import asyncio
import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from ...core.analysis.errors import AnalysisError, AnalysisInProgressError
from ...core.analysis.models import VideoResource
from ...core.analysis.orchestrator import AnalysisOrchestrator
from ..dependencies import OrchestratorDep

logger = logging.getLogger(__name__)

router = APIRouter()

# strong references so running attempts are not garbage collected
_running: set[asyncio.Task] = set()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class SelectVideoRequest(BaseModel):
    """A local video picked by the user."""
    uri: str = Field(min_length=1, description="Local path or file:// URI of the video")
    duration_ms: Optional[float] = Field(
        default=None,
        description="Duration in milliseconds, if the picker knows it"
    )
    filename: str = Field(default="", description="Display name")
    size_bytes: int = Field(default=0, ge=0, description="File size")


class StartAnalysisRequest(BaseModel):
    spot_name: str = Field(default="", description="Surf spot, sent as context to the coach")
    language: Optional[str] = Field(default=None, description="Language tag, e.g. 'it' or 'en'")


class StepInfo(BaseModel):
    index: int
    total: int
    label: str


class AnalysisStatusResponse(BaseModel):
    """Snapshot of the orchestrator."""
    state: str = Field(description="Current state of the analysis state machine")
    running: bool
    video: Optional[dict[str, Any]] = None
    step: Optional[StepInfo] = None
    frames_extracted: int = 0
    outcome: Optional[str] = Field(default=None, description="complete, failed or quota_exceeded")
    error_kind: Optional[str] = None
    message: str = ""
    result: Optional[dict[str, Any]] = None


def _snapshot(orchestrator: AnalysisOrchestrator) -> AnalysisStatusResponse:
    video = orchestrator.video
    step = orchestrator.current_step
    outcome = orchestrator.outcome
    result = orchestrator.result

    return AnalysisStatusResponse(
        state=orchestrator.state.value,
        running=orchestrator.is_running,
        video={
            "uri": video.uri,
            "duration_ms": video.duration_ms,
            "filename": video.filename,
            "size": video.size_display,
        } if video else None,
        step=StepInfo(
            index=step.step_index,
            total=step.total_steps,
            label=step.label,
        ) if step else None,
        frames_extracted=len(orchestrator.frames),
        outcome=outcome.status.value if outcome else None,
        error_kind=orchestrator.error_kind.value if orchestrator.error_kind else None,
        message=outcome.message if outcome else "",
        result=result.to_dict() if result else None,
    )


async def _run_attempt(orchestrator: AnalysisOrchestrator, body: StartAnalysisRequest) -> None:
    try:
        outcome = await orchestrator.start(spot_name=body.spot_name, language=body.language)
    except AnalysisError as e:
        # two starts raced past the route's checks; the first one wins
        logger.warning("Analysis not started", extra={"error": str(e)})
        return
    logger.info("Analysis finished", extra={"outcome": outcome.status.value})


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/video",
    response_model=AnalysisStatusResponse,
    summary="Select a video",
    description="Select the local video for the next analysis. Clears any previous result.",
)
async def select_video(
    body: SelectVideoRequest,
    orchestrator: OrchestratorDep,
) -> AnalysisStatusResponse:
    try:
        orchestrator.select_video(VideoResource(
            uri=body.uri,
            duration_ms=body.duration_ms,
            filename=body.filename,
            size_bytes=body.size_bytes,
        ))
    except AnalysisInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return _snapshot(orchestrator)


@router.post(
    "/start",
    response_model=AnalysisStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start the analysis",
    description="Start analyzing the selected video. The response reports the attempt "
                "as running; poll /status for progress and the outcome.",
)
async def start_analysis(
    orchestrator: OrchestratorDep,
    body: Optional[StartAnalysisRequest] = None,
) -> AnalysisStatusResponse:
    body = body or StartAnalysisRequest()

    # checked here so misuse maps to an HTTP error instead of a failed task
    if orchestrator.video is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Select a video before starting the analysis",
        )
    if orchestrator.is_running:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An analysis is already running",
        )

    logger.info(
        "Analysis started",
        extra={"uri": orchestrator.video.uri, "spot": body.spot_name},
    )

    task = asyncio.create_task(_run_attempt(orchestrator, body))
    _running.add(task)
    task.add_done_callback(_running.discard)

    # let the attempt take its first step so the snapshot shows it running
    await asyncio.sleep(0)

    return _snapshot(orchestrator)


@router.get(
    "/status",
    response_model=AnalysisStatusResponse,
    summary="Analysis status",
)
async def analysis_status(orchestrator: OrchestratorDep) -> AnalysisStatusResponse:
    return _snapshot(orchestrator)


@router.post(
    "/reset",
    response_model=AnalysisStatusResponse,
    summary="Reset the analysis",
    description="Return to idle and discard the video, frames and result. "
                "A running analysis is abandoned; its late result is ignored.",
)
async def reset_analysis(orchestrator: OrchestratorDep) -> AnalysisStatusResponse:
    orchestrator.reset()
    return _snapshot(orchestrator)
