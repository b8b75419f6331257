"""
SurfCoach backend API client.

Implements the RemoteAnalysisService and QuotaProvider protocols from
core.analysis.orchestrator.
"""

from .client import (
    BackendConfig,
    BackendError,
    CheckoutSession,
    SurfCoachClient,
    create_backend_client,
)

__all__ = [
    "BackendConfig",
    "BackendError",
    "CheckoutSession",
    "SurfCoachClient",
    "create_backend_client",
]
