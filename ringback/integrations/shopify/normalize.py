"""Normalization of Shopify checkout payloads.

Webhook bodies arrive in several shapes (REST snake_case, GraphQL camelCase,
wrapped under ``checkout``/``data``/``payload``). These helpers reduce them to
a ``NormalizedCheckout``.
"""

import json
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from ringback.schemas.shopify import CartItem, NormalizedCheckout

_GID_RE = re.compile(r"/(?:Checkout|AbandonedCheckout)/(\d+)")
_NON_DIGIT_RE = re.compile(r"\D")


def normalize_phone(raw: Any) -> str | None:
    """Reduce a phone number to ``+<digits>`` (international) or ``<digits>`` (national).

    Accepts ``tel:`` URIs and the ``00`` / ``011`` international dialing
    prefixes. Returns None when no digits remain.
    """
    value = str(raw if raw is not None else "").strip()
    if not value:
        return None

    value = re.sub(r"^tel:", "", value, flags=re.IGNORECASE).strip()
    if value.startswith("00"):
        value = "+" + value[2:]
    if value.startswith("011"):
        value = "+" + value[3:]

    digits = _NON_DIGIT_RE.sub("", value)
    if not digits:
        return None
    return f"+{digits}" if value.startswith("+") else digits


def normalize_checkout_id(raw: Any) -> str:
    """Plain ids pass through; ``gid://shopify/Checkout/123`` becomes ``123``."""
    value = str(raw if raw is not None else "").strip()
    if value.startswith("gid://"):
        match = _GID_RE.search(value)
        if match:
            return match.group(1)
    return value


def unwrap_payload(payload: Any) -> dict[str, Any] | None:
    """Return the checkout object from a webhook body in any known envelope."""
    if isinstance(payload, (bytes, str)):
        try:
            payload = json.loads(payload) if payload else None
        except ValueError:
            return None
    if not isinstance(payload, dict):
        return None

    data = payload.get("data")
    for candidate in (
        payload.get("checkout"),
        payload.get("abandoned_checkout"),
        payload.get("abandonedCheckout"),
        data.get("checkout") if isinstance(data, dict) else None,
        data,
        payload.get("payload"),
    ):
        if isinstance(candidate, dict):
            return candidate
    return payload


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first(obj: Any, *keys: str) -> Any:
    if not isinstance(obj, dict):
        return None
    for key in keys:
        value = obj.get(key)
        if value not in (None, ""):
            return value
    return None


def extract_checkout_id(checkout: dict[str, Any]) -> str:
    for key in ("id", "checkout_id", "checkoutId", "admin_graphql_api_id", "adminGraphqlApiId"):
        checkout_id = normalize_checkout_id(checkout.get(key))
        if checkout_id:
            return checkout_id
    return ""


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def extract_value_currency(checkout: dict[str, Any]) -> tuple[Decimal | None, str]:
    """Cart total and ISO currency from REST or GraphQL shaped payloads."""
    price_set = _as_dict(checkout.get("total_price_set"))
    graphql_set = _as_dict(checkout.get("totalPriceSet"))
    shop_money = _as_dict(
        price_set.get("shop_money") or price_set.get("shopMoney") or graphql_set.get("shopMoney")
    )

    value = None
    for raw in (checkout.get("total_price"), checkout.get("totalPrice"), shop_money.get("amount")):
        value = _to_decimal(raw)
        if value is not None:
            break

    currency = (
        _first(checkout, "currency", "currency_code", "currencyCode")
        or shop_money.get("currencyCode")
        or shop_money.get("currency_code")
        or "USD"
    )
    return value, str(currency).upper()[:3]


def build_customer_name(checkout: dict[str, Any]) -> str | None:
    """Full name from the shipping address, billing address or customer, in that order."""
    sources = [
        checkout.get("shipping_address") or checkout.get("shippingAddress"),
        checkout.get("billing_address") or checkout.get("billingAddress"),
        checkout.get("customer"),
    ]
    first = next((v for s in sources if (v := _first(s, "first_name", "firstName"))), None)
    last = next((v for s in sources if (v := _first(s, "last_name", "lastName"))), None)
    name = f"{str(first or '').strip()} {str(last or '').strip()}".strip()
    return name or None


def build_items(checkout: dict[str, Any]) -> list[CartItem]:
    """Cart lines from ``line_items`` (REST) or ``lineItems.edges`` (GraphQL)."""
    raw_items: Any = checkout.get("line_items") or checkout.get("lineItems") or checkout.get("items")
    if isinstance(raw_items, dict):
        edges = raw_items.get("edges")
        raw_items = [_as_dict(edge).get("node") for edge in edges] if isinstance(edges, list) else []
    if not isinstance(raw_items, list):
        return []

    items: list[CartItem] = []
    for item in raw_items:
        if not isinstance(item, dict):
            continue
        title = item.get("title") or item.get("name")
        if not title:
            continue
        unit_price = _as_dict(_as_dict(item.get("originalUnitPriceSet")).get("shopMoney"))
        try:
            quantity = int(item.get("quantity") or 1)
        except (TypeError, ValueError):
            quantity = 1
        price = item.get("price") if item.get("price") is not None else unit_price.get("amount")
        items.append(
            CartItem(
                title=str(title),
                quantity=quantity,
                variant_title=item.get("variant_title") or item.get("variantTitle"),
                price=str(price) if price is not None else None,
                currency=unit_price.get("currencyCode"),
            )
        )
    return items


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def normalize_checkout(payload: Any) -> NormalizedCheckout | None:
    """Normalize a webhook body or GraphQL node. None if no checkout id is found."""
    checkout = unwrap_payload(payload)
    if checkout is None:
        return None

    checkout_id = extract_checkout_id(checkout)
    if not checkout_id:
        return None

    value, currency = extract_value_currency(checkout)
    token = checkout.get("token")
    email = checkout.get("email")
    return NormalizedCheckout(
        checkout_id=checkout_id,
        token=str(token) if token else None,
        email=str(email) if email else None,
        phone=normalize_phone(checkout.get("phone")),
        value=value,
        currency=currency,
        customer_name=build_customer_name(checkout),
        items=build_items(checkout),
        completed=bool(_first(checkout, "completed_at", "completedAt")),
        created_at=_parse_timestamp(_first(checkout, "created_at", "createdAt")),
        updated_at=_parse_timestamp(_first(checkout, "updated_at", "updatedAt")),
        raw=checkout,
    )
