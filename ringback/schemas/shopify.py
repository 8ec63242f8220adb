"""Pydantic schemas for normalized Shopify checkout data."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import Field

from ringback.schemas.common import BaseSchema


class CartItem(BaseSchema):
    """A denormalized cart line for display."""

    title: str
    quantity: int = 1
    variant_title: str | None = None
    price: str | None = None
    currency: str | None = None


class NormalizedCheckout(BaseSchema):
    """A checkout extracted from a webhook payload or the Admin GraphQL API.

    ``value`` is None when the payload carried no parsable total, so an update
    can keep the previously stored amount.
    """

    checkout_id: str
    token: str | None = None
    email: str | None = None
    phone: str | None = None
    value: Decimal | None = None
    currency: str = "USD"
    customer_name: str | None = None
    items: list[CartItem] = Field(default_factory=list)
    completed: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    raw: dict[str, Any] | None = None
