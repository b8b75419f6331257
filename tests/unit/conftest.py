"""
Shared test doubles.

Fakes for the HTTP session and the backend so no test touches the
network, ffmpeg or a real video file.
"""

from typing import Any

import pytest

from src.core.analysis.errors import RemoteAnalysisError
from src.core.analysis.models import AnalysisRequest, QuotaState, Tier


SAMPLE_ANALYSIS = {
    "score": 82,
    "surfer_level": "intermediate",
    "summary": "Solid pop-up, weight too far back on the bottom turn.",
    "technical_stats": {
        "pop_up_speed": "1.2s",
        "balance_index": "7/10",
        "rail_engagement": "Medium",
        "center_of_mass": "Rear",
    },
    "feedback": {
        "positive": "Quick and clean pop-up.",
        "main_issue": "Back foot loaded during the bottom turn.",
        "analysis": "Shift weight to the front foot before compressing.",
    },
    "corrections": ["Look where you want to go", "Bend the knees, not the waist"],
    "drill": "Ten dry pop-ups with front foot centered on the stringer.",
    "next_focus": "Bottom turn compression",
}


class FakeResponse:
    """Just enough of requests.Response for the client."""

    def __init__(self, status_code: int = 200, body: Any = None, text: str | None = None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else ""

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeHttp:
    """
    Records requests and replays queued responses.

    Responses are matched by path suffix; unmatched requests fail the test.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.calls: list[dict[str, Any]] = []

    def respond(self, path: str, response: Any) -> None:
        self.routes[path] = response

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        for path, response in self.routes.items():
            if url.endswith(path):
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"Unexpected request: {method} {url}")


class FakeAnalysisService:
    """Remote analysis + quota double for orchestrator tests."""

    def __init__(
        self,
        payload: Any = None,
        error: RemoteAnalysisError | None = None,
        quota: QuotaState | None = None,
    ) -> None:
        self.payload = SAMPLE_ANALYSIS if payload is None else payload
        self.error = error
        self.quota = quota or QuotaState(tier=Tier.FREE, remaining=3)
        self.requests: list[AnalysisRequest] = []
        self.quota_reads = 0

    async def analyze_frames(self, request: AnalysisRequest) -> dict[str, Any]:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.payload

    async def get_quota(self) -> QuotaState:
        self.quota_reads += 1
        return self.quota


@pytest.fixture
def sample_analysis() -> dict[str, Any]:
    return dict(SAMPLE_ANALYSIS)


@pytest.fixture
def fake_http() -> FakeHttp:
    return FakeHttp()
