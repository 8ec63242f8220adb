"""Per-shop call recovery settings."""

from decimal import Decimal

from sqlalchemy import Boolean, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ringback.models.base import Base


class ShopSettings(Base):
    """Call recovery configuration for one shop.

    A row is created with defaults the first time a shop is seen (webhook or
    cron tick). It is read fresh on every trigger invocation.
    """

    __tablename__ = "shop_settings"

    shop: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    delay_minutes: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    max_attempts: Mapped[int] = mapped_column(Integer, default=2, nullable=False)
    retry_minutes: Mapped[int] = mapped_column(Integer, default=180, nullable=False)
    min_order_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)

    # Daily call window, "HH:MM" in the shop's time zone
    call_window_start: Mapped[str] = mapped_column(String(5), default="09:00", nullable=False)
    call_window_end: Mapped[str] = mapped_column(String(5), default="19:00", nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), default="UTC", nullable=False)

    # Fernet-encrypted Shopify Admin API token (enables checkout sync)
    shopify_access_token: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    def __repr__(self) -> str:
        return f"<ShopSettings {self.shop} enabled={self.enabled}>"
