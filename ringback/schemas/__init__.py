"""Pydantic schemas for request/response validation."""

from ringback.schemas.calls import (
    CallJobResponse,
    CallSettings,
    CandidateOutcome,
    CheckoutResponse,
    Decision,
    EnqueueResult,
)
from ringback.schemas.common import HealthResponse, PaginatedResponse
from ringback.schemas.cron import CronSummary, ShopTickResult

__all__ = [
    "CallJobResponse",
    "CallSettings",
    "CandidateOutcome",
    "CheckoutResponse",
    "CronSummary",
    "Decision",
    "EnqueueResult",
    "HealthResponse",
    "PaginatedResponse",
    "ShopTickResult",
]
