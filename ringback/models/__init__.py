"""SQLAlchemy models."""

from ringback.models.base import Base
from ringback.models.call_job import (
    IN_FLIGHT_STATUSES,
    TERMINAL_STATUSES,
    CallJob,
    CallJobStatus,
)
from ringback.models.checkout import STICKY_STATUSES, Checkout, CheckoutStatus
from ringback.models.shop_settings import ShopSettings

__all__ = [
    # Base
    "Base",
    # Checkouts
    "Checkout",
    "CheckoutStatus",
    "STICKY_STATUSES",
    # Call jobs
    "CallJob",
    "CallJobStatus",
    "IN_FLIGHT_STATUSES",
    "TERMINAL_STATUSES",
    # Settings
    "ShopSettings",
]
