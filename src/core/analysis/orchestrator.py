"""
Analysis orchestration.

The orchestrator drives one analysis attempt through a fixed sequence:

    idle -> frame_extraction -> transition -> ai_analysis -> finalizing
         -> complete | failed

with a quota gate in front (idle -> quota_exceeded) and a reset that
returns to idle from anywhere. Every step entered emits a ProgressEvent.

It is framework-agnostic: the sampler, the remote analysis service and
the quota source are all passed in, so the whole flow can be exercised
with fakes and zero delays.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from .errors import (
    AnalysisInProgressError,
    CaptureUnavailableError,
    NoVideoSelectedError,
    RemoteAnalysisError,
)
from .frames import DEFAULT_FRAME_COUNT, FrameSampler
from .models import (
    AnalysisOutcome,
    AnalysisRequest,
    AnalysisResult,
    AnalysisState,
    ErrorKind,
    ProgressEvent,
    QuotaState,
    SampledFrame,
    VideoResource,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class RemoteAnalysisService(Protocol):
    """
    The backend's analysis endpoint.

    Returns the analysis object as decoded JSON; raises
    RemoteAnalysisError on transport, HTTP or parse failures.
    """

    async def analyze_frames(self, request: AnalysisRequest) -> dict[str, Any]:
        ...


class QuotaProvider(Protocol):
    """Read-only view of the user's entitlement."""

    async def get_quota(self) -> QuotaState:
        ...


# ---------------------------------------------------------------------------
# Steps and messages
# ---------------------------------------------------------------------------

STEPS: list[tuple[AnalysisState, str]] = [
    (AnalysisState.FRAME_EXTRACTION, "Extracting video frames"),
    (AnalysisState.TRANSITION, "Detecting posture and stance"),
    (AnalysisState.AI_ANALYSIS, "Analyzing with the AI coach"),
    (AnalysisState.FINALIZING, "Generating technical feedback"),
]

NO_FRAMES_MESSAGE = (
    "Could not extract any frames from the video. "
    "Try a different video, ideally an MP4."
)
PERMISSION_DENIED_MESSAGE = (
    "Access to the video was denied. Allow access to your video library "
    "in the settings and try again."
)
GENERIC_FAILURE_MESSAGE = "Analysis failed. Please try again."
TIMEOUT_MESSAGE = "The analysis took too long. Please try again."
MALFORMED_RESULT_MESSAGE = "The AI coach returned an incomplete analysis. Please try again."


@dataclass
class OrchestratorConfig:
    """
    Tunables for one orchestrator.

    The two delays are cosmetic: they only make fast steps visible on a
    progress bar. Set them to zero for scripts and tests.
    """
    frame_count: int = DEFAULT_FRAME_COUNT
    transition_delay_seconds: float = 0.9
    finalize_delay_seconds: float = 0.6
    analysis_timeout_seconds: Optional[float] = 120.0
    language: str = "it"

    def __post_init__(self) -> None:
        if self.frame_count < 1:
            raise ValueError("frame_count must be at least 1")
        if self.transition_delay_seconds < 0 or self.finalize_delay_seconds < 0:
            raise ValueError("delays cannot be negative")


class _Abandoned(Exception):
    """Internal: the attempt was reset while suspended."""


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class AnalysisOrchestrator:
    """
    Runs analysis attempts one at a time.

    State lives on the instance, so one orchestrator serves one user.
    start() is rejected while an attempt is running. reset() is always
    allowed; an attempt that resumes after a reset notices the bumped
    generation, drops whatever it received and returns an abandoned
    outcome without touching state.
    """

    def __init__(
        self,
        sampler: FrameSampler,
        analysis_service: RemoteAnalysisService,
        quota_provider: QuotaProvider,
        config: Optional[OrchestratorConfig] = None,
        on_progress: Optional[Callable[[ProgressEvent], None]] = None,
        on_upgrade: Optional[Callable[[QuotaState], None]] = None,
    ) -> None:
        self._sampler = sampler
        self._analysis_service = analysis_service
        self._quota_provider = quota_provider
        self._config = config or OrchestratorConfig()
        self._on_progress = on_progress
        self._on_upgrade = on_upgrade

        self._generation = 0
        self._busy = False
        self._state = AnalysisState.IDLE
        self._current_step: Optional[ProgressEvent] = None
        self._video: Optional[VideoResource] = None
        self._frames: list[SampledFrame] = []
        self._outcome: Optional[AnalysisOutcome] = None

    # -- read-only view ------------------------------------------------------

    @property
    def state(self) -> AnalysisState:
        return self._state

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._busy

    @property
    def video(self) -> Optional[VideoResource]:
        return self._video

    @property
    def frames(self) -> list[SampledFrame]:
        return list(self._frames)

    @property
    def current_step(self) -> Optional[ProgressEvent]:
        return self._current_step

    @property
    def outcome(self) -> Optional[AnalysisOutcome]:
        return self._outcome

    @property
    def result(self) -> Optional[AnalysisResult]:
        return self._outcome.result if self._outcome else None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self._outcome.error_kind if self._outcome else None

    @property
    def error_message(self) -> str:
        if self._outcome and self._outcome.error_kind:
            return self._outcome.message
        return ""

    # -- commands ------------------------------------------------------------

    def select_video(self, video: VideoResource) -> None:
        """Choose the video for the next attempt, dropping any previous one."""
        if self.is_running:
            raise AnalysisInProgressError("Cannot change video while an analysis is running")
        self._clear_attempt()
        self._state = AnalysisState.IDLE
        self._video = video
        logger.info(
            "Video selected",
            extra={"uri": video.uri, "duration_ms": video.duration_ms},
        )

    def reset(self) -> None:
        """Return to idle and forget video, frames, result and error."""
        self._generation += 1
        self._busy = False
        self._state = AnalysisState.IDLE
        self._video = None
        self._clear_attempt()
        logger.info("Analysis reset", extra={"generation": self._generation})

    async def start(
        self,
        spot_name: str = "",
        language: Optional[str] = None,
    ) -> AnalysisOutcome:
        """
        Run one attempt to completion and return its outcome.

        Raises NoVideoSelectedError or AnalysisInProgressError for misuse.
        Every pipeline failure is returned as a failed outcome instead.
        """
        if self.is_running:
            raise AnalysisInProgressError("An analysis is already running")
        if self._video is None:
            raise NoVideoSelectedError("Select a video before starting the analysis")

        self._clear_attempt()
        self._state = AnalysisState.IDLE
        self._busy = True
        generation = self._generation
        video = self._video

        try:
            return await self._run(generation, video, spot_name, language or self._config.language)
        except _Abandoned:
            logger.info("Discarded late result of a reset analysis")
            return AnalysisOutcome.abandoned()
        except Exception as e:
            if generation != self._generation:
                logger.info("Discarded failure of a reset analysis", extra={"error": str(e)})
                return AnalysisOutcome.abandoned()
            logger.error(
                "Unexpected analysis failure",
                extra={"state": self._state.value, "error": str(e)},
                exc_info=True,
            )
            return self._fail(ErrorKind.REMOTE_ANALYSIS_FAILED, GENERIC_FAILURE_MESSAGE)
        finally:
            # after a reset the flag belongs to whoever starts next
            if generation == self._generation:
                self._busy = False

    # -- pipeline ------------------------------------------------------------

    async def _run(
        self,
        generation: int,
        video: VideoResource,
        spot_name: str,
        language: str,
    ) -> AnalysisOutcome:
        try:
            quota = await self._quota_provider.get_quota()
        except RemoteAnalysisError as e:
            self._check_generation(generation)
            logger.error("Could not read quota", extra={"error": e.message})
            return self._fail(
                ErrorKind.REMOTE_ANALYSIS_FAILED,
                e.message or GENERIC_FAILURE_MESSAGE,
            )
        self._check_generation(generation)

        if quota.exhausted:
            logger.info(
                "Analysis blocked by quota",
                extra={"tier": quota.tier.value, "remaining": quota.remaining},
            )
            outcome = AnalysisOutcome.quota_exceeded(quota)
            self._finish(AnalysisState.QUOTA_EXCEEDED, outcome)
            if self._on_upgrade is not None:
                self._on_upgrade(quota)
            return outcome

        # Step 0: frames
        self._enter_step(0)
        try:
            frames = await self._sampler.sample(video, self._config.frame_count)
        except CaptureUnavailableError as e:
            self._check_generation(generation)
            logger.error("Frame capture unavailable", extra={"uri": video.uri, "error": str(e)})
            return self._fail(ErrorKind.PERMISSION_DENIED, PERMISSION_DENIED_MESSAGE)
        self._check_generation(generation)

        if not frames:
            logger.error("No frames extracted", extra={"uri": video.uri})
            return self._fail(ErrorKind.NO_FRAMES_EXTRACTED, NO_FRAMES_MESSAGE)
        self._frames = frames

        # Step 1: cosmetic pause
        self._enter_step(1)
        await asyncio.sleep(self._config.transition_delay_seconds)
        self._check_generation(generation)

        # Step 2: the one network round-trip
        self._enter_step(2)
        request = AnalysisRequest(frames=frames, spot_name=spot_name, language=language)
        try:
            payload = await asyncio.wait_for(
                self._analysis_service.analyze_frames(request),
                timeout=self._config.analysis_timeout_seconds,
            )
        except RemoteAnalysisError as e:
            self._check_generation(generation)
            logger.error(
                "Remote analysis failed",
                extra={"error": e.message, "status": e.status_code},
            )
            return self._fail(
                ErrorKind.REMOTE_ANALYSIS_FAILED,
                e.message or GENERIC_FAILURE_MESSAGE,
            )
        except asyncio.TimeoutError:
            self._check_generation(generation)
            logger.error(
                "Remote analysis timed out",
                extra={"timeout": self._config.analysis_timeout_seconds},
            )
            return self._fail(ErrorKind.REMOTE_ANALYSIS_FAILED, TIMEOUT_MESSAGE)
        self._check_generation(generation)

        try:
            result = AnalysisResult.from_payload(payload)
        except ValueError as e:
            logger.error("Malformed analysis result", extra={"error": str(e)})
            return self._fail(ErrorKind.REMOTE_ANALYSIS_FAILED, MALFORMED_RESULT_MESSAGE)

        # Step 3: cosmetic pause, then done
        self._enter_step(3)
        await asyncio.sleep(self._config.finalize_delay_seconds)
        self._check_generation(generation)

        outcome = AnalysisOutcome.complete(result)
        self._finish(AnalysisState.COMPLETE, outcome)
        logger.info(
            "Analysis complete",
            extra={
                "score": result.score,
                "surfer_level": result.surfer_level.value,
                "frames": len(frames),
            },
        )
        return outcome

    def _enter_step(self, index: int) -> None:
        state, label = STEPS[index]
        self._state = state
        event = ProgressEvent(
            step_index=index,
            total_steps=len(STEPS),
            label=label,
            state=state,
        )
        self._current_step = event
        logger.debug("Analysis step", extra={"step": index, "label": label})
        if self._on_progress is not None:
            self._on_progress(event)

    def _fail(self, kind: ErrorKind, message: str) -> AnalysisOutcome:
        outcome = AnalysisOutcome.failed(kind, message)
        self._finish(AnalysisState.FAILED, outcome)
        return outcome

    def _finish(self, state: AnalysisState, outcome: AnalysisOutcome) -> None:
        self._state = state
        self._outcome = outcome

    def _check_generation(self, generation: int) -> None:
        if generation != self._generation:
            raise _Abandoned()

    def _clear_attempt(self) -> None:
        self._frames = []
        self._outcome = None
        self._current_step = None
