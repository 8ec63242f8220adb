"""CallJob model: one row per outbound recovery call attempt."""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Enum, Index, Integer, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from ringback.models.base import Base, UTCDateTime


class CallJobStatus(str, enum.Enum):
    """Lifecycle of a call attempt. Only the call worker moves a job past QUEUED."""

    QUEUED = "queued"
    CALLING = "calling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"


IN_FLIGHT_STATUSES = frozenset({CallJobStatus.QUEUED, CallJobStatus.CALLING})
TERMINAL_STATUSES = frozenset(
    {CallJobStatus.COMPLETED, CallJobStatus.FAILED, CallJobStatus.CANCELED}
)

_IN_FLIGHT_PREDICATE = text("status IN ('queued', 'calling')")


class CallJob(Base):
    """A single call attempt for a checkout.

    Rows are created by the scheduler in QUEUED state and never deleted. The
    partial unique index allows at most one in-flight (QUEUED or CALLING) job
    per checkout; it backs the scheduler's in-flight check when two triggers
    race.
    """

    __tablename__ = "call_jobs"
    __table_args__ = (
        Index(
            "uq_call_jobs_in_flight",
            "shop",
            "checkout_id",
            unique=True,
            postgresql_where=_IN_FLIGHT_PREDICATE,
            sqlite_where=_IN_FLIGHT_PREDICATE,
        ),
        Index("ix_call_jobs_shop_checkout_created", "shop", "checkout_id", "created_at"),
        Index("ix_call_jobs_status_scheduled_for", "status", "scheduled_for"),
    )

    shop: Mapped[str] = mapped_column(String(255), nullable=False)
    checkout_id: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)

    # Scheduling
    scheduled_for: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    status: Mapped[CallJobStatus] = mapped_column(
        Enum(
            CallJobStatus,
            name="call_job_status",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=CallJobStatus.QUEUED,
        nullable=False,
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Outcome (written by the call worker)
    outcome: Mapped[str | None] = mapped_column(String(64), nullable=True)
    provider_call_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    recording_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    ended_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    transcript: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Revenue attribution
    attributed_order_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    attributed_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    attributed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    def __repr__(self) -> str:
        return f"<CallJob {self.shop}/{self.checkout_id} ({self.status.value})>"
