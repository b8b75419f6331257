"""
SurfCoach backend HTTP client.

This module provides a thin wrapper around the remote SurfCoach API that:
1. Implements the RemoteAnalysisService and QuotaProvider protocols
2. Handles auth headers, multipart encoding and JSON parsing
3. Turns every failure into a BackendError with a user-facing message
4. Persists the user and token in an explicitly passed SessionStore

requests is blocking, so each call runs in a worker thread via
asyncio.to_thread to keep the orchestrator's event loop free.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

from src.core.analysis.errors import RemoteAnalysisError
from src.core.analysis.models import AnalysisRequest, QuotaState
from src.infrastructure.storage.session_store import (
    SessionStore,
    clear_session,
    load_token,
    load_user,
    save_user,
)

logger = logging.getLogger(__name__)

AUTH_HEADER = "x-auth-token"


class BackendError(RemoteAnalysisError):
    """
    Raised when a backend call fails.

    message is the server's own "message" field when it sent one,
    otherwise a generic description. status_code is None for
    transport errors.
    """
    pass


@dataclass
class BackendConfig:
    """Configuration for the backend client."""
    base_url: str = "http://localhost:5000"
    timeout_seconds: float = 120.0  # analysis can take a while

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url is required")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.base_url = self.base_url.rstrip("/")


@dataclass(frozen=True)
class CheckoutSession:
    """
    A payment checkout started on the backend.

    demo is True when the backend has no payment provider configured;
    there is no URL to open in that case.
    """
    url: Optional[str]
    session_id: Optional[str]
    demo: bool = False


class SurfCoachClient:
    """
    Client for the SurfCoach backend.

    Knows the endpoint layout and wire format but nothing about the
    analysis state machine. One instance per user session.
    """

    def __init__(
        self,
        config: BackendConfig,
        session_store: SessionStore,
        http: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._store = session_store
        self._http = http or requests.Session()

    @property
    def session_store(self) -> SessionStore:
        return self._store

    # -- auth ----------------------------------------------------------------

    async def login(self, email: str, password: str) -> dict[str, Any]:
        data = await self._call(
            "POST", "/api/auth/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        self._remember(data)
        return data

    async def register(self, email: str, password: str) -> dict[str, Any]:
        data = await self._call(
            "POST", "/api/auth/register",
            json={"email": email, "password": password},
            authenticated=False,
        )
        self._remember(data)
        return data

    def logout(self) -> None:
        clear_session(self._store)
        logger.info("Session cleared")

    def current_user(self) -> Optional[dict[str, Any]]:
        return load_user(self._store)

    # -- coach ---------------------------------------------------------------

    async def analyze_frames(self, request: AnalysisRequest) -> dict[str, Any]:
        """
        Send sampled frames for AI analysis.

        Only the frames travel, never the video. The form carries the
        frames as a JSON list of base64 strings, the optional spot name
        and the language tag.
        """
        form: dict[str, tuple[None, str]] = {
            "frames": (None, json.dumps(request.encoded_frames)),
        }
        if request.spot_name:
            form["spot"] = (None, request.spot_name)
        form["lang"] = (None, request.language)

        logger.info(
            "Submitting frames for analysis",
            extra={"frames": len(request.frames), "lang": request.language},
        )

        data = await self._call("POST", "/api/coach/analyze", files=form)
        analysis = data.get("analysis", data) if isinstance(data, dict) else None
        if not isinstance(analysis, dict):
            raise BackendError("Malformed response from server")
        return analysis

    async def get_stats(self) -> dict[str, Any]:
        return await self._call("GET", "/api/coach/stats")

    async def get_history(self) -> Any:
        return await self._call("GET", "/api/coach/history")

    async def get_progress(self) -> dict[str, Any]:
        return await self._call("GET", "/api/coach/progress")

    async def get_quota(self) -> QuotaState:
        """
        Current entitlement, re-read from the server.

        Stats carry the authoritative remaining count; tier falls back
        to the stored user when stats do not include it.
        """
        user = dict(load_user(self._store) or {})
        stats = await self.get_stats()
        if not isinstance(stats, dict):
            raise BackendError("Malformed response from server")
        if stats.get("tier"):
            user["tier"] = stats["tier"]
        if stats.get("remainingAnalysis") is not None:
            user["remainingAnalysis"] = stats["remainingAnalysis"]
        try:
            return QuotaState.from_user(user)
        except ValueError as e:
            logger.error("Unreadable quota", extra={"error": str(e)})
            raise BackendError("Malformed response from server")

    # -- payments ------------------------------------------------------------

    async def create_checkout_session(self, plan: str = "premium") -> CheckoutSession:
        data = await self._call(
            "POST", "/api/payment/create-checkout-session",
            json={"plan": plan},
        )
        return CheckoutSession(
            url=data.get("url"),
            session_id=data.get("sessionId"),
            demo=bool(data.get("demo")),
        )

    async def verify_payment_session(self, session_id: str) -> dict[str, Any]:
        """Confirm a checkout and store the upgraded user if the server returns one."""
        data = await self._call(
            "GET", "/api/payment/verify-session",
            params={"session_id": session_id},
        )
        if data.get("user"):
            save_user(self._store, data["user"])
            logger.info(
                "Subscription updated",
                extra={"tier": data["user"].get("tier")},
            )
        return data

    # -- plumbing ------------------------------------------------------------

    def _remember(self, data: dict[str, Any]) -> None:
        if data.get("user"):
            save_user(self._store, data["user"], data.get("token"))

    def _headers(self, authenticated: bool) -> dict[str, str]:
        if not authenticated:
            return {}
        token = load_token(self._store)
        return {AUTH_HEADER: token} if token else {}

    async def _call(
        self,
        method: str,
        path: str,
        authenticated: bool = True,
        **kwargs: Any,
    ) -> Any:
        return await asyncio.to_thread(self._request, method, path, authenticated, **kwargs)

    def _request(self, method: str, path: str, authenticated: bool, **kwargs: Any) -> Any:
        url = f"{self._config.base_url}{path}"
        try:
            response = self._http.request(
                method,
                url,
                headers=self._headers(authenticated),
                timeout=self._config.timeout_seconds,
                **kwargs,
            )
        except requests.Timeout:
            logger.error("Backend request timed out", extra={"path": path})
            raise BackendError("The SurfCoach server did not respond in time")
        except requests.RequestException as e:
            logger.error("Backend unreachable", extra={"path": path, "error": str(e)})
            raise BackendError("Could not reach the SurfCoach server")

        return self._handle_response(response, path)

    def _handle_response(self, response: requests.Response, path: str) -> Any:
        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.ok:
            message = data.get("message") if isinstance(data, dict) else None
            logger.error(
                "Backend error",
                extra={"path": path, "status": response.status_code, "server_message": message},
            )
            raise BackendError(
                message or f"Server error ({response.status_code})",
                status_code=response.status_code,
            )

        if data is None:
            raise BackendError(
                "Malformed response from server",
                status_code=response.status_code,
            )
        return data


def create_backend_client(
    session_store: SessionStore,
    base_url: str = "http://localhost:5000",
    timeout_seconds: float = 120.0,
) -> SurfCoachClient:
    """Factory function to create a configured client."""
    config = BackendConfig(base_url=base_url, timeout_seconds=timeout_seconds)
    return SurfCoachClient(config, session_store)
