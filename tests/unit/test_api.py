"""
API tests using FastAPI's TestClient.

Dependencies are overridden with a fake-backed orchestrator and a
backend client over FakeHttp, so no network or ffmpeg is involved.
"""

import time

import pytest
import requests
from fastapi.testclient import TestClient

from conftest import FakeAnalysisService, FakeResponse

from src.api.dependencies import get_backend_client, get_orchestrator
from src.config.settings import Settings, get_settings
from src.core.analysis.frames import FrameSampler
from src.core.analysis.orchestrator import AnalysisOrchestrator, OrchestratorConfig
from src.infrastructure.backend.client import BackendConfig, SurfCoachClient
from src.infrastructure.storage.session_store import MemorySessionStore, save_user
from src.infrastructure.video.capture import MockFrameCapture
from src.main import app


@pytest.fixture
def orchestrator() -> AnalysisOrchestrator:
    service = FakeAnalysisService()
    return AnalysisOrchestrator(
        sampler=FrameSampler(MockFrameCapture()),
        analysis_service=service,
        quota_provider=service,
        config=OrchestratorConfig(transition_delay_seconds=0, finalize_delay_seconds=0),
    )


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def backend(fake_http, store) -> SurfCoachClient:
    return SurfCoachClient(BackendConfig(base_url="http://api.test"), store, http=fake_http)


@pytest.fixture
def client(orchestrator, backend):
    app.dependency_overrides[get_settings] = lambda: Settings(capture_backend="mock")
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_backend_client] = lambda: backend
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class TestHealth:
    def test_liveness(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["details"]["capture_backend"] == "mock"

    def test_ready_with_mock_capture(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_with_unknown_backend(self, client):
        app.dependency_overrides[get_settings] = lambda: Settings(capture_backend="vhs")

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

class TestAnalysisRoutes:
    def test_initial_status_is_idle(self, client):
        body = client.get("/api/v1/analysis/status").json()

        assert body["state"] == "idle"
        assert body["running"] is False
        assert body["video"] is None
        assert body["result"] is None

    def test_select_video(self, client):
        response = client.post("/api/v1/analysis/video", json={
            "uri": "/videos/session.mp4",
            "duration_ms": 12000,
            "filename": "session.mp4",
            "size_bytes": 2 * 1024 * 1024,
        })

        assert response.status_code == 200
        video = response.json()["video"]
        assert video["uri"] == "/videos/session.mp4"
        assert video["size"] == "2.0 MB"

    def test_select_video_requires_uri(self, client):
        response = client.post("/api/v1/analysis/video", json={"uri": ""})
        assert response.status_code == 422

    def test_start_without_video_is_rejected(self, client):
        response = client.post("/api/v1/analysis/start", json={})

        assert response.status_code == 400
        assert "Select a video" in response.json()["detail"]

    def test_start_reports_running_then_completes(self, client):
        client.post("/api/v1/analysis/video", json={
            "uri": "/videos/session.mp4",
            "duration_ms": 12000,
        })

        response = client.post("/api/v1/analysis/start", json={"spot_name": "Peniche"})

        assert response.status_code == 202
        assert response.json()["running"] is True
        assert response.json()["state"] != "idle"

        body = response.json()
        for _ in range(200):
            body = client.get("/api/v1/analysis/status").json()
            if not body["running"]:
                break
            time.sleep(0.01)

        assert body["state"] == "complete"
        assert body["frames_extracted"] == 4
        assert body["result"]["score"] == 82

    def test_start_while_running_conflicts(self, client, orchestrator):
        client.post("/api/v1/analysis/video", json={"uri": "/videos/session.mp4"})
        orchestrator._busy = True

        response = client.post("/api/v1/analysis/start", json={})

        assert response.status_code == 409

    def test_reset_clears_video(self, client):
        client.post("/api/v1/analysis/video", json={"uri": "/videos/session.mp4"})

        body = client.post("/api/v1/analysis/reset").json()

        assert body["state"] == "idle"
        assert body["video"] is None


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------

class TestAccountRoutes:
    def test_me_without_session(self, client):
        body = client.get("/api/v1/account/me").json()

        assert body["user"] is None
        assert body["tier"] == "free"
        assert body["remaining"] == 1

    def test_me_premium_is_unlimited(self, client, store):
        save_user(store, {"email": "kai@example.com", "tier": "premium"}, "tok-1")

        body = client.get("/api/v1/account/me").json()

        assert body["unlimited"] is True
        assert body["remaining"] is None

    def test_me_with_unreadable_quota(self, client, store):
        save_user(store, {"tier": "free", "remainingAnalysis": "lots"}, "tok-1")

        response = client.get("/api/v1/account/me")

        assert response.status_code == 502
        assert response.json()["detail"] == "Malformed user data"

    def test_login_error_maps_status(self, client, fake_http):
        fake_http.respond("/api/auth/login", FakeResponse(401, {"message": "Invalid credentials"}))

        response = client.post(
            "/api/v1/account/login",
            json={"email": "kai@example.com", "password": "wrong"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_unreachable_backend_is_bad_gateway(self, client, fake_http):
        fake_http.respond("/api/coach/stats", requests.ConnectionError("refused"))

        assert client.get("/api/v1/account/stats").status_code == 502

    def test_progress_includes_summary(self, client, fake_http):
        fake_http.respond(
            "/api/coach/progress",
            FakeResponse(200, {"sessions": [{"score": 60}, {"score": 80}]}),
        )

        body = client.get("/api/v1/account/progress").json()

        assert body["sessions"] == [{"score": 60}, {"score": 80}]
        assert body["summary"]["average_score"] == 70
        assert body["summary"]["total_improvement"] == 20

    def test_demo_checkout(self, client, fake_http):
        fake_http.respond(
            "/api/payment/create-checkout-session",
            FakeResponse(200, {"demo": True}),
        )

        body = client.post("/api/v1/account/checkout", json={"plan": "premium"}).json()

        assert body["demo"] is True
        assert body["url"] is None

    def test_logout(self, client, store):
        save_user(store, {"email": "kai@example.com"}, "tok-1")

        response = client.post("/api/v1/account/logout")

        assert response.status_code == 204
        assert store.get("token") is None
