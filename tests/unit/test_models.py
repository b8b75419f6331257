"""
Unit tests for the analysis domain models.

These tests verify the core business rules without touching external
services (no HTTP, no video files, no ffmpeg).

Testing philosophy:
- Test behavior, not implementation
- Each test should have a clear "given/when/then" structure
- Use descriptive names that explain what we're testing
- Prefer real objects over mocks where practical
"""

import pytest

from src.core.analysis.models import (
    AnalysisOutcome,
    AnalysisRequest,
    AnalysisResult,
    AnalysisState,
    ErrorKind,
    OutcomeStatus,
    QuotaState,
    SampledFrame,
    SurferLevel,
    Tier,
    VideoResource,
)


# ---------------------------------------------------------------------------
# VideoResource and SampledFrame Tests
# ---------------------------------------------------------------------------

class TestVideoResource:
    """Tests for the VideoResource value object."""

    def test_rejects_empty_uri(self):
        """A video without a location can't be sampled."""
        with pytest.raises(ValueError, match="cannot be empty"):
            VideoResource(uri="  ")

    def test_unknown_duration_when_missing_or_zero(self):
        """None and 0 both mean the picker didn't know the duration."""
        assert not VideoResource(uri="a.mp4").duration_known
        assert not VideoResource(uri="a.mp4", duration_ms=0).duration_known
        assert VideoResource(uri="a.mp4", duration_ms=12000).duration_known

    def test_size_display_in_megabytes(self):
        video = VideoResource(uri="a.mp4", size_bytes=5 * 1024 * 1024)
        assert video.size_display == "5.0 MB"
        assert VideoResource(uri="a.mp4").size_display == ""


class TestSampledFrame:
    def test_timestamp_formats_correctly(self):
        """Timestamps should format as MM:SS.ms"""
        frame = SampledFrame(index=0, ratio=0.5, timestamp_ms=65500, data="")
        assert frame.timestamp_formatted == "01:05.50"


class TestAnalysisRequest:
    def test_requires_frames(self):
        """Zero frames is never sent to the backend."""
        with pytest.raises(ValueError, match="at least one frame"):
            AnalysisRequest(frames=[])

    def test_encoded_frames_keep_order(self):
        frames = [
            SampledFrame(index=i, ratio=0.1 * i, timestamp_ms=100 * i, data=f"img{i}")
            for i in range(3)
        ]
        request = AnalysisRequest(frames=frames)
        assert request.encoded_frames == ["img0", "img1", "img2"]
        assert request.language == "it"


# ---------------------------------------------------------------------------
# AnalysisResult Tests
# ---------------------------------------------------------------------------

class TestAnalysisResult:
    """Tests for parsing the AI coach's response."""

    def test_parses_full_payload(self, sample_analysis):
        result = AnalysisResult.from_payload(sample_analysis)

        assert result.score == 82
        assert result.surfer_level == SurferLevel.INTERMEDIATE
        assert result.feedback.main_issue.startswith("Back foot")
        assert result.corrections == sample_analysis["corrections"]
        assert result.technical_stats["pop_up_speed"] == "1.2s"
        assert result.next_focus == "Bottom turn compression"

    def test_optional_fields_may_be_absent(self):
        """Only score, surfer_level and summary are required."""
        result = AnalysisResult.from_payload({
            "score": 55.5,
            "surfer_level": "beginner",
            "summary": "Good start.",
        })

        assert result.drill is None
        assert result.corrections == []
        assert result.feedback.positive is None

    @pytest.mark.parametrize("missing", ["score", "surfer_level", "summary"])
    def test_missing_required_field_is_rejected(self, sample_analysis, missing):
        del sample_analysis[missing]
        with pytest.raises(ValueError, match=missing):
            AnalysisResult.from_payload(sample_analysis)

    def test_unknown_level_is_rejected(self, sample_analysis):
        sample_analysis["surfer_level"] = "pro"
        with pytest.raises(ValueError, match="Unknown surfer level"):
            AnalysisResult.from_payload(sample_analysis)

    def test_non_numeric_score_is_rejected(self, sample_analysis):
        sample_analysis["score"] = "82"
        with pytest.raises(ValueError, match="number"):
            AnalysisResult.from_payload(sample_analysis)

    @pytest.mark.parametrize("name, value", [
        ("technical_stats", ["a", "b"]),
        ("technical_stats", "fast"),
        ("feedback", "great job"),
        ("feedback", ["positive"]),
        ("corrections", 3),
        ("corrections", "bend your knees"),
    ])
    def test_wrong_shape_is_rejected_as_value_error(self, sample_analysis, name, value):
        """Shape errors surface as ValueError, never AttributeError or TypeError."""
        sample_analysis[name] = value
        with pytest.raises(ValueError, match=name):
            AnalysisResult.from_payload(sample_analysis)

    def test_non_object_payload_is_rejected(self):
        with pytest.raises(ValueError, match="object"):
            AnalysisResult.from_payload(["not", "a", "dict"])

    def test_to_dict_matches_wire_shape(self, sample_analysis):
        """Rendering back gives the same shape the backend sent."""
        result = AnalysisResult.from_payload(sample_analysis)
        assert result.to_dict() == sample_analysis


# ---------------------------------------------------------------------------
# QuotaState Tests
# ---------------------------------------------------------------------------

class TestQuotaState:
    def test_premium_is_unlimited_even_at_zero(self):
        quota = QuotaState(tier=Tier.PREMIUM, remaining=0)
        assert quota.unlimited
        assert not quota.exhausted

    def test_free_with_zero_remaining_is_exhausted(self):
        assert QuotaState(tier=Tier.FREE, remaining=0).exhausted
        assert QuotaState(tier=Tier.BASE, remaining=-1).exhausted

    def test_from_user_reads_backend_fields(self):
        quota = QuotaState.from_user({"tier": "base", "remainingAnalysis": 7})
        assert quota.tier == Tier.BASE
        assert quota.remaining == 7

    def test_from_user_defaults_to_one_free_analysis(self):
        """A user without counters is a fresh free account."""
        quota = QuotaState.from_user(None)
        assert quota.tier == Tier.FREE
        assert quota.remaining == 1

    def test_from_user_unknown_tier_falls_back_to_free(self):
        assert QuotaState.from_user({"tier": "platinum"}).tier == Tier.FREE

    @pytest.mark.parametrize("display", ["∞", "unlimited", None])
    def test_premium_display_value_is_unlimited(self, display):
        quota = QuotaState.from_user({"tier": "premium", "remainingAnalysis": display})
        assert quota.unlimited
        assert not quota.exhausted

    def test_numeric_string_count_is_accepted(self):
        assert QuotaState.from_user({"tier": "base", "remainingAnalysis": "4"}).remaining == 4

    @pytest.mark.parametrize("tier", ["free", "base"])
    def test_non_numeric_count_for_limited_tier_is_rejected(self, tier):
        with pytest.raises(ValueError, match="remainingAnalysis"):
            QuotaState.from_user({"tier": tier, "remainingAnalysis": "lots"})


# ---------------------------------------------------------------------------
# Outcome and State Tests
# ---------------------------------------------------------------------------

class TestAnalysisOutcome:
    def test_quota_exceeded_is_not_a_failure(self):
        outcome = AnalysisOutcome.quota_exceeded(QuotaState(tier=Tier.FREE, remaining=0))

        assert outcome.status == OutcomeStatus.QUOTA_EXCEEDED
        assert outcome.error_kind == ErrorKind.QUOTA_EXCEEDED
        assert "Upgrade" in outcome.message

    def test_failed_carries_kind_and_message(self):
        outcome = AnalysisOutcome.failed(ErrorKind.REMOTE_ANALYSIS_FAILED, "overloaded")
        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.message == "overloaded"
        assert outcome.result is None


class TestAnalysisState:
    def test_terminal_states(self):
        terminal = {s for s in AnalysisState if s.is_terminal}
        assert terminal == {
            AnalysisState.COMPLETE,
            AnalysisState.FAILED,
            AnalysisState.QUOTA_EXCEEDED,
        }
