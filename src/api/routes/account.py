"""
Account API endpoints.

Thin pass-through to the SurfCoach backend for everything around the
analysis itself: login, dashboard stats, history, progress, and the
subscription checkout. Session persistence happens in the backend
client; these routes only translate errors into HTTP responses.
"""

import logging
from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from ...core.analysis.models import QuotaState
from ...core.analysis.progress import summarize_progress
from ...infrastructure.backend.client import BackendError
from ..dependencies import BackendClientDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class CredentialsRequest(BaseModel):
    email: str = Field(min_length=3, description="Account email")
    password: str = Field(min_length=1, description="Account password")


class CheckoutRequest(BaseModel):
    plan: str = Field(default="premium", description="Plan to subscribe to: base or premium")


class VerifyCheckoutRequest(BaseModel):
    session_id: str = Field(min_length=1, description="Checkout session returned by /checkout")


class CheckoutResponse(BaseModel):
    url: Optional[str] = Field(None, description="Payment page to open in a browser")
    session_id: Optional[str] = None
    demo: bool = Field(False, description="True when payments are not configured on the server")


class MeResponse(BaseModel):
    user: Optional[dict[str, Any]] = None
    tier: str
    unlimited: bool
    remaining: Optional[int] = Field(None, description="Remaining analyses, None when unlimited")


def _backend_failure(e: BackendError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code or status.HTTP_502_BAD_GATEWAY,
        detail=e.message,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/login", summary="Log in")
async def login(body: CredentialsRequest, client: BackendClientDep) -> dict[str, Any]:
    try:
        return await client.login(body.email, body.password)
    except BackendError as e:
        raise _backend_failure(e)


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Create an account")
async def register(body: CredentialsRequest, client: BackendClientDep) -> dict[str, Any]:
    try:
        return await client.register(body.email, body.password)
    except BackendError as e:
        raise _backend_failure(e)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Log out")
async def logout(client: BackendClientDep) -> None:
    client.logout()


@router.get("/me", response_model=MeResponse, summary="Stored user and plan")
async def me(client: BackendClientDep) -> MeResponse:
    """The locally stored user. Does not call the backend."""
    user = client.current_user()
    try:
        quota = QuotaState.from_user(user)
    except ValueError as e:
        logger.error("Stored user has an unreadable quota", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Malformed user data",
        )
    return MeResponse(
        user=user,
        tier=quota.tier.value,
        unlimited=quota.unlimited,
        remaining=None if quota.unlimited else quota.remaining,
    )


@router.get("/stats", summary="Dashboard statistics")
async def stats(client: BackendClientDep) -> dict[str, Any]:
    try:
        return await client.get_stats()
    except BackendError as e:
        raise _backend_failure(e)


@router.get("/history", summary="Past analyses")
async def history(client: BackendClientDep) -> Any:
    try:
        return await client.get_history()
    except BackendError as e:
        raise _backend_failure(e)


@router.get("/progress", summary="Progress over time")
async def progress(client: BackendClientDep) -> dict[str, Any]:
    """Backend progress data plus the summary numbers for the chart."""
    try:
        data = await client.get_progress()
    except BackendError as e:
        raise _backend_failure(e)

    sessions = data.get("sessions") or []
    return {
        **data,
        "summary": asdict(summarize_progress(sessions)),
    }


@router.post("/checkout", response_model=CheckoutResponse, summary="Start a subscription checkout")
async def checkout(body: CheckoutRequest, client: BackendClientDep) -> CheckoutResponse:
    try:
        session = await client.create_checkout_session(body.plan)
    except BackendError as e:
        raise _backend_failure(e)

    if session.demo:
        logger.warning("Payments not configured on the backend", extra={"plan": body.plan})

    return CheckoutResponse(url=session.url, session_id=session.session_id, demo=session.demo)


@router.post("/checkout/verify", summary="Confirm a completed checkout")
async def verify_checkout(body: VerifyCheckoutRequest, client: BackendClientDep) -> dict[str, Any]:
    try:
        return await client.verify_payment_session(body.session_id)
    except BackendError as e:
        raise _backend_failure(e)
