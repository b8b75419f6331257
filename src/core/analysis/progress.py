"""
Progress summaries over past analysis sessions.

The backend returns the raw list of sessions; the numbers shown next to
the progress chart are derived here.
"""

from dataclasses import dataclass
from typing import Any, Optional

CHART_PADDING = 5


@dataclass(frozen=True)
class ProgressSummary:
    session_count: int
    average_score: Optional[int]
    best_score: Optional[float]
    total_improvement: Optional[float]  # last score minus first score
    chart_min: float
    chart_max: float

    @property
    def chart_range(self) -> float:
        return (self.chart_max - self.chart_min) or 1


def summarize_progress(sessions: list[dict[str, Any]]) -> ProgressSummary:
    """
    Summarize sessions ordered oldest first.

    Sessions without a numeric score are ignored.
    """
    scores = [
        s["score"] for s in sessions
        if isinstance(s.get("score"), (int, float)) and not isinstance(s.get("score"), bool)
    ]

    if not scores:
        return ProgressSummary(
            session_count=0,
            average_score=None,
            best_score=None,
            total_improvement=None,
            chart_min=0,
            chart_max=100,
        )

    return ProgressSummary(
        session_count=len(scores),
        average_score=round(sum(scores) / len(scores)),
        best_score=max(scores),
        total_improvement=scores[-1] - scores[0],
        chart_min=min(scores) - CHART_PADDING,
        chart_max=max(scores) + CHART_PADDING,
    )
