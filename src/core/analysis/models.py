"""
Domain models for surf technique analysis.

These models represent the core business concepts of one analysis attempt.
They have no dependencies on external frameworks, HTTP clients or video
libraries. The remote backend speaks JSON; the conversion to and from that
shape lives here as plain dict handling so the orchestrator can validate a
result without knowing how it was transported.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class SurferLevel(Enum):
    """Skill level assigned by the AI coach."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Tier(Enum):
    """Subscription tiers. Only premium is unlimited."""
    FREE = "free"
    BASE = "base"
    PREMIUM = "premium"


class AnalysisState(Enum):
    """States of the analysis state machine."""
    IDLE = "idle"
    FRAME_EXTRACTION = "frame_extraction"
    TRANSITION = "transition"
    AI_ANALYSIS = "ai_analysis"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    FAILED = "failed"
    QUOTA_EXCEEDED = "quota_exceeded"

    @property
    def is_terminal(self) -> bool:
        return self in (
            AnalysisState.COMPLETE,
            AnalysisState.FAILED,
            AnalysisState.QUOTA_EXCEEDED,
        )


class ErrorKind(Enum):
    """
    Why an attempt did not complete.

    QUOTA_EXCEEDED is not a technical error: the presentation layer routes
    it to an upgrade prompt instead of an error banner.
    """
    PERMISSION_DENIED = "permission_denied"
    NO_FRAMES_EXTRACTED = "no_frames_extracted"
    REMOTE_ANALYSIS_FAILED = "remote_analysis_failed"
    QUOTA_EXCEEDED = "quota_exceeded"


class OutcomeStatus(Enum):
    COMPLETE = "complete"
    FAILED = "failed"
    QUOTA_EXCEEDED = "quota_exceeded"
    ABANDONED = "abandoned"  # reset while the attempt was still running


@dataclass(frozen=True)
class VideoResource:
    """
    A locally available video selected for analysis.

    Frozen because a selection never changes; picking another video
    creates a new resource. duration_ms is None when the picker
    could not tell us how long the clip is.
    """
    uri: str
    duration_ms: Optional[float] = None
    filename: str = ""
    size_bytes: int = 0

    def __post_init__(self) -> None:
        if not self.uri.strip():
            raise ValueError("Video URI cannot be empty")

    @property
    def duration_known(self) -> bool:
        return bool(self.duration_ms) and self.duration_ms > 0

    @property
    def size_display(self) -> str:
        """Size in megabytes with one decimal, empty if unknown."""
        if not self.size_bytes:
            return ""
        return f"{self.size_bytes / (1024 * 1024):.1f} MB"


@dataclass(frozen=True)
class SampledFrame:
    """
    One still image captured from the video.

    data is the base64 encoded JPEG, ready to be sent as-is.
    ratio is the normalized position in (0, 1) the frame was taken at.
    """
    index: int
    ratio: float
    timestamp_ms: int
    data: str

    @property
    def timestamp_formatted(self) -> str:
        """Human-readable timestamp: MM:SS.ms"""
        seconds = self.timestamp_ms / 1000
        minutes = int(seconds // 60)
        return f"{minutes:02d}:{seconds % 60:05.2f}"


@dataclass
class AnalysisRequest:
    """Everything the remote coach needs for one analysis."""
    frames: list[SampledFrame]
    spot_name: str = ""
    language: str = "it"

    def __post_init__(self) -> None:
        if not self.frames:
            raise ValueError("Must provide at least one frame")

    @property
    def encoded_frames(self) -> list[str]:
        return [frame.data for frame in self.frames]


@dataclass
class Feedback:
    """Categorized coaching feedback."""
    positive: Optional[str] = None
    main_issue: Optional[str] = None
    analysis: Optional[str] = None


@dataclass
class AnalysisResult:
    """
    Structured response of the AI coach.

    The orchestrator treats this as pass-through data: it only checks
    that the required top-level fields are there before handing it to
    the presentation layer.
    """
    score: float
    surfer_level: SurferLevel
    summary: str
    technical_stats: dict[str, str] = field(default_factory=dict)
    feedback: Feedback = field(default_factory=Feedback)
    corrections: list[str] = field(default_factory=list)
    drill: Optional[str] = None
    next_focus: Optional[str] = None

    REQUIRED_FIELDS = ("score", "surfer_level", "summary")

    @classmethod
    def from_payload(cls, payload: Any) -> "AnalysisResult":
        """
        Build a result from the backend's JSON object.

        Raises ValueError when the payload is missing a required field
        or carries a value of the wrong shape.
        """
        if not isinstance(payload, dict):
            raise ValueError("Analysis payload must be an object")

        missing = [name for name in cls.REQUIRED_FIELDS if payload.get(name) is None]
        if missing:
            raise ValueError(f"Analysis payload missing fields: {', '.join(missing)}")

        score = payload["score"]
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ValueError("Analysis score must be a number")

        try:
            level = SurferLevel(payload["surfer_level"])
        except ValueError:
            raise ValueError(f"Unknown surfer level: {payload['surfer_level']!r}")

        if not isinstance(payload["summary"], str):
            raise ValueError("Analysis summary must be a string")

        raw_feedback = payload.get("feedback") or {}
        if not isinstance(raw_feedback, dict):
            raise ValueError("Analysis feedback must be an object")

        stats = payload.get("technical_stats") or {}
        if not isinstance(stats, dict):
            raise ValueError("Analysis technical_stats must be an object")

        corrections = payload.get("corrections") or []
        if not isinstance(corrections, list):
            raise ValueError("Analysis corrections must be a list")

        return cls(
            score=score,
            surfer_level=level,
            summary=payload["summary"],
            technical_stats={str(k): str(v) for k, v in stats.items()},
            feedback=Feedback(
                positive=raw_feedback.get("positive"),
                main_issue=raw_feedback.get("main_issue"),
                analysis=raw_feedback.get("analysis"),
            ),
            corrections=[str(c) for c in corrections],
            drill=payload.get("drill"),
            next_focus=payload.get("next_focus"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Render back to the backend's wire shape."""
        return {
            "score": self.score,
            "surfer_level": self.surfer_level.value,
            "summary": self.summary,
            "technical_stats": dict(self.technical_stats),
            "feedback": {
                "positive": self.feedback.positive,
                "main_issue": self.feedback.main_issue,
                "analysis": self.feedback.analysis,
            },
            "corrections": list(self.corrections),
            "drill": self.drill,
            "next_focus": self.next_focus,
        }


@dataclass(frozen=True)
class QuotaState:
    """
    Entitlement facts about the current user.

    The server is the system of record. This object is only ever read;
    after an analysis the client re-queries instead of decrementing.
    """
    tier: Tier = Tier.FREE
    remaining: int = 1

    @property
    def unlimited(self) -> bool:
        return self.tier == Tier.PREMIUM

    @property
    def exhausted(self) -> bool:
        return not self.unlimited and self.remaining <= 0

    @classmethod
    def from_user(cls, user: Optional[dict[str, Any]]) -> "QuotaState":
        """
        Read tier and remaining analyses from a backend user object.

        A user without remainingAnalysis gets one attempt, matching what
        a freshly registered free account is entitled to. Premium users
        may carry a display value such as "∞" instead of a count.

        Raises ValueError when a non-premium count is not a number.
        """
        user = user or {}
        try:
            tier = Tier(user.get("tier") or Tier.FREE.value)
        except ValueError:
            tier = Tier.FREE

        remaining = user.get("remainingAnalysis")
        if remaining is None:
            return cls(tier=tier, remaining=1)
        try:
            count = int(remaining)
        except (TypeError, ValueError):
            if tier == Tier.PREMIUM:
                return cls(tier=tier, remaining=0)
            raise ValueError(f"remainingAnalysis must be a number, got {remaining!r}")
        return cls(tier=tier, remaining=count)


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted on every step so a UI can render "step i of N"."""
    step_index: int
    total_steps: int
    label: str
    state: AnalysisState

    @property
    def fraction(self) -> float:
        return (self.step_index + 1) / self.total_steps


@dataclass(frozen=True)
class AnalysisOutcome:
    """Terminal result of one call to start()."""
    status: OutcomeStatus
    result: Optional[AnalysisResult] = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""

    @classmethod
    def complete(cls, result: AnalysisResult) -> "AnalysisOutcome":
        return cls(status=OutcomeStatus.COMPLETE, result=result)

    @classmethod
    def failed(cls, kind: ErrorKind, message: str) -> "AnalysisOutcome":
        return cls(status=OutcomeStatus.FAILED, error_kind=kind, message=message)

    @classmethod
    def quota_exceeded(cls, quota: QuotaState) -> "AnalysisOutcome":
        return cls(
            status=OutcomeStatus.QUOTA_EXCEEDED,
            error_kind=ErrorKind.QUOTA_EXCEEDED,
            message=(
                f"No analyses left on the {quota.tier.value} plan. "
                "Upgrade to Pro for unlimited analyses."
            ),
        )

    @classmethod
    def abandoned(cls) -> "AnalysisOutcome":
        return cls(status=OutcomeStatus.ABANDONED)
