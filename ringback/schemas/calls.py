"""Pydantic schemas for call scheduling."""

import enum
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator

from ringback.schemas.common import BaseSchema

MAX_ATTEMPTS_CEILING = 10


# --- Shop call settings ---


class CallSettings(BaseSchema):
    """Call recovery settings for one shop, resolved once per trigger invocation.

    Window strings are not validated here: a malformed value falls back to the
    default window when the schedule is computed.
    """

    enabled: bool = True
    delay_minutes: int = 30
    max_attempts: int = 2
    retry_minutes: int = 180
    min_order_value: float = 0.0
    currency: str = "USD"
    call_window_start: str = "09:00"
    call_window_end: str = "19:00"
    timezone: str = "UTC"

    @field_validator("delay_minutes", "retry_minutes", mode="before")
    @classmethod
    def non_negative_minutes(cls, value: Any) -> int:
        return max(0, int(value if value is not None else 0))

    @field_validator("max_attempts", mode="before")
    @classmethod
    def clamp_max_attempts(cls, value: Any) -> int:
        return max(1, min(MAX_ATTEMPTS_CEILING, int(value if value is not None else 2)))

    @field_validator("min_order_value", mode="before")
    @classmethod
    def coerce_min_order_value(cls, value: Any) -> float:
        return float(value if value is not None else 0)


class CallSettingsUpdate(BaseSchema):
    """Partial update of a shop's call settings."""

    enabled: bool | None = None
    delay_minutes: int | None = Field(default=None, ge=0, le=7 * 24 * 60)
    max_attempts: int | None = Field(default=None, ge=1, le=MAX_ATTEMPTS_CEILING)
    retry_minutes: int | None = Field(default=None, ge=0, le=7 * 24 * 60)
    min_order_value: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    call_window_start: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    call_window_end: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    timezone: str | None = Field(default=None, max_length=64)


# --- Scheduler results ---


class Decision(str, enum.Enum):
    """What the scheduler did with one candidate checkout."""

    ENQUEUED = "enqueued"
    NO_PHONE = "no_phone"
    IN_FLIGHT_EXISTS = "in_flight_exists"
    MAX_ATTEMPTS_REACHED = "max_attempts_reached"
    LAST_JOB_NOT_TERMINAL = "last_job_not_terminal"
    UNIQUE_CONSTRAINT = "unique_constraint"


class CandidateOutcome(BaseSchema):
    """Scheduling decision for a single checkout."""

    checkout_id: str
    decision: Decision
    scheduled_for: datetime | None = None


class EnqueueResult(BaseSchema):
    """Result of one scheduling pass for a shop."""

    enqueued: int = 0
    outcomes: list[CandidateOutcome] = Field(default_factory=list)

    def count(self, decision: Decision) -> int:
        return sum(1 for o in self.outcomes if o.decision == decision)


# --- Read models ---


class CheckoutResponse(BaseSchema):
    """API response for a checkout."""

    id: UUID
    shop: str
    checkout_id: str
    status: str
    value: float
    currency: str
    phone: str | None
    email: str | None
    customer_name: str | None
    items: list[dict[str, Any]]
    abandoned_at: datetime | None
    created_at: datetime
    updated_at: datetime


class CallJobResponse(BaseSchema):
    """API response for a call job."""

    id: UUID
    shop: str
    checkout_id: str
    phone: str
    status: str
    scheduled_for: datetime | None
    attempts: int
    outcome: str | None
    ended_reason: str | None
    recording_url: str | None
    attributed_order_id: str | None
    attributed_amount: float | None
    created_at: datetime
