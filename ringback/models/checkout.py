"""Checkout model: commercial state of a Shopify checkout."""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Enum, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ringback.models.base import Base, JSONType, UTCDateTime


class CheckoutStatus(str, enum.Enum):
    """Commercial state of a checkout."""

    OPEN = "open"
    ABANDONED = "abandoned"
    CONVERTED = "converted"
    RECOVERED = "recovered"


# Terminal states survive later checkout updates
STICKY_STATUSES = frozenset({CheckoutStatus.CONVERTED, CheckoutStatus.RECOVERED})


class Checkout(Base):
    """One row per (shop, checkout_id).

    Written by the checkout webhooks and the Shopify sync, promoted to
    ABANDONED by the abandonment detector. ``updated_at`` tracks the last
    external activity; ``abandoned_at`` marks the start of the current
    abandonment cycle and is only set while the checkout is ABANDONED.
    """

    __tablename__ = "checkouts"
    __table_args__ = (
        UniqueConstraint("shop", "checkout_id", name="uq_checkouts_shop_checkout"),
        Index("ix_checkouts_shop_status", "shop", "status"),
    )

    # Tenant (Shopify shop domain)
    shop: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Upstream identifiers
    checkout_id: Mapped[str] = mapped_column(String(255), nullable=False)
    token: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Commercial state
    status: Mapped[CheckoutStatus] = mapped_column(
        Enum(
            CheckoutStatus,
            name="checkout_status",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=CheckoutStatus.OPEN,
        nullable=False,
    )
    value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    abandoned_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Contact
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Cart snapshot and upstream payload
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    raw: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    def __repr__(self) -> str:
        return f"<Checkout {self.shop}/{self.checkout_id} ({self.status.value})>"
