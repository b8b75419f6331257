"""
Surf technique analysis logic.

Contains the domain models, the frame sampler and the analysis orchestrator.
"""

from .errors import (
    AnalysisError,
    AnalysisInProgressError,
    CaptureUnavailableError,
    FrameCaptureError,
    NoVideoSelectedError,
    RemoteAnalysisError,
)
from .frames import FrameCapture, FrameSampler, compute_sample_ratios
from .models import (
    AnalysisOutcome,
    AnalysisRequest,
    AnalysisResult,
    AnalysisState,
    ErrorKind,
    Feedback,
    OutcomeStatus,
    ProgressEvent,
    QuotaState,
    SampledFrame,
    SurferLevel,
    Tier,
    VideoResource,
)
from .orchestrator import AnalysisOrchestrator, OrchestratorConfig

__all__ = [
    "AnalysisError",
    "AnalysisInProgressError",
    "CaptureUnavailableError",
    "FrameCaptureError",
    "NoVideoSelectedError",
    "RemoteAnalysisError",
    "FrameCapture",
    "FrameSampler",
    "compute_sample_ratios",
    "AnalysisOutcome",
    "AnalysisRequest",
    "AnalysisResult",
    "AnalysisState",
    "ErrorKind",
    "Feedback",
    "OutcomeStatus",
    "ProgressEvent",
    "QuotaState",
    "SampledFrame",
    "SurferLevel",
    "Tier",
    "VideoResource",
    "AnalysisOrchestrator",
    "OrchestratorConfig",
]
