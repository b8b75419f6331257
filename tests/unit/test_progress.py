"""
Unit tests for progress summaries.
"""

from src.core.analysis.progress import CHART_PADDING, summarize_progress


class TestSummarizeProgress:
    def test_no_sessions(self):
        summary = summarize_progress([])

        assert summary.session_count == 0
        assert summary.average_score is None
        assert summary.total_improvement is None
        assert (summary.chart_min, summary.chart_max) == (0, 100)

    def test_scores_oldest_first(self):
        sessions = [{"score": 60}, {"score": 75}, {"score": 71}]

        summary = summarize_progress(sessions)

        assert summary.session_count == 3
        assert summary.average_score == 69
        assert summary.best_score == 75
        assert summary.total_improvement == 11
        assert summary.chart_min == 60 - CHART_PADDING
        assert summary.chart_max == 75 + CHART_PADDING
        assert summary.chart_range == 25

    def test_sessions_without_numeric_score_are_ignored(self):
        sessions = [{"score": 50}, {"score": None}, {"date": "2024-05-01"}, {"score": True}, {"score": 70}]

        summary = summarize_progress(sessions)

        assert summary.session_count == 2
        assert summary.total_improvement == 20

    def test_single_session_has_flat_chart(self):
        summary = summarize_progress([{"score": 80}])

        assert summary.total_improvement == 0
        assert summary.chart_range == 2 * CHART_PADDING
