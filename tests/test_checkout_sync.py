"""Tests for the Shopify client and the abandoned checkout sync.

Covers:
- ShopifyClient GraphQL request shape and error handling
- sync_abandoned_checkouts upserts, status rules and upstream failures
"""

from collections.abc import Callable, Generator
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ringback.integrations.shopify.client import ShopifyClient, ShopifyGraphQLError
from ringback.integrations.shopify.normalize import normalize_checkout
from ringback.models import Checkout, CheckoutStatus
from ringback.services.checkout_sync import sync_abandoned_checkouts
from tests.conftest import TEST_SHOP


def _node(checkout_id: int, **overrides: Any) -> dict[str, Any]:
    node: dict[str, Any] = {
        "id": f"gid://shopify/AbandonedCheckout/{checkout_id}",
        "createdAt": "2024-01-01T09:00:00Z",
        "updatedAt": "2024-01-01T09:30:00Z",
        "completedAt": None,
        "email": "buyer@example.com",
        "phone": "+15550100200",
        "totalPriceSet": {"shopMoney": {"amount": "64.00", "currencyCode": "USD"}},
        "customer": {"firstName": "Ada", "lastName": "Lovelace"},
        "lineItems": {"edges": []},
    }
    node.update(overrides)
    return node


@pytest.fixture
def mock_shopify_http() -> Generator[AsyncMock, None, None]:
    """Patch httpx.AsyncClient used by ShopifyClient."""
    with patch("ringback.integrations.shopify.client.httpx.AsyncClient") as mock_class:
        mock_client = AsyncMock()
        mock_class.return_value.__aenter__.return_value = mock_client
        response = MagicMock()
        response.raise_for_status = MagicMock()
        mock_client.post.return_value = response
        yield mock_client


def _client_returning(nodes: list[dict[str, Any]]) -> MagicMock:
    client = MagicMock(spec=ShopifyClient)
    client.get_abandoned_checkouts = AsyncMock(return_value=nodes)
    return client


class TestShopifyClient:
    def test_headers(self) -> None:
        client = ShopifyClient("shop.myshopify.com", "shpat_abc123")

        assert client.headers["X-Shopify-Access-Token"] == "shpat_abc123"
        assert client.base_url.startswith("https://shop.myshopify.com/admin/api/")

    async def test_get_abandoned_checkouts(self, mock_shopify_http: AsyncMock) -> None:
        mock_shopify_http.post.return_value.json.return_value = {
            "data": {"abandonedCheckouts": {"edges": [{"node": _node(1)}, {"node": _node(2)}]}}
        }

        nodes = await ShopifyClient(TEST_SHOP, "token").get_abandoned_checkouts(first=25)

        assert [n["id"] for n in nodes] == [
            "gid://shopify/AbandonedCheckout/1",
            "gid://shopify/AbandonedCheckout/2",
        ]
        url = mock_shopify_http.post.call_args.args[0]
        assert url.endswith("/graphql.json")
        assert mock_shopify_http.post.call_args.kwargs["json"]["variables"] == {"first": 25}

    async def test_graphql_errors_raise(self, mock_shopify_http: AsyncMock) -> None:
        mock_shopify_http.post.return_value.json.return_value = {
            "errors": [{"message": "Access denied"}]
        }

        with pytest.raises(ShopifyGraphQLError):
            await ShopifyClient(TEST_SHOP, "token").get_abandoned_checkouts()

    async def test_http_errors_raise(self, mock_shopify_http: AsyncMock) -> None:
        mock_shopify_http.post.return_value.raise_for_status.side_effect = httpx.HTTPStatusError(
            "401", request=MagicMock(), response=MagicMock()
        )

        with pytest.raises(httpx.HTTPStatusError):
            await ShopifyClient(TEST_SHOP, "token").get_abandoned_checkouts()

    async def test_unexpected_shape_raises(self, mock_shopify_http: AsyncMock) -> None:
        mock_shopify_http.post.return_value.json.return_value = {
            "data": {"abandonedCheckouts": "x"}
        }

        with pytest.raises(ShopifyGraphQLError):
            await ShopifyClient(TEST_SHOP, "token").get_abandoned_checkouts()


class TestSyncAbandonedCheckouts:
    async def test_inserts_abandoned_checkouts(self, db_session: AsyncSession) -> None:
        client = _client_returning([_node(1), _node(2)])

        result = await sync_abandoned_checkouts(db_session, TEST_SHOP, client)

        assert result.synced == 2
        rows = (await db_session.execute(select(Checkout).order_by(Checkout.checkout_id))).scalars()
        checkouts = list(rows)
        assert [c.checkout_id for c in checkouts] == ["1", "2"]
        assert all(c.status == CheckoutStatus.ABANDONED for c in checkouts)
        assert checkouts[0].abandoned_at == datetime(2024, 1, 1, 9, 30, tzinfo=UTC)
        assert checkouts[0].value == Decimal("64.00")
        assert checkouts[0].customer_name == "Ada Lovelace"

    async def test_completed_checkout_converted(self, db_session: AsyncSession) -> None:
        client = _client_returning([_node(3, completedAt="2024-01-01T10:00:00Z")])

        await sync_abandoned_checkouts(db_session, TEST_SHOP, client)

        row = (await db_session.execute(select(Checkout))).scalar_one()
        assert row.status == CheckoutStatus.CONVERTED
        assert row.abandoned_at is None

    async def test_recovered_checkout_untouched(
        self, db_session: AsyncSession, checkout_factory: Callable[..., Any]
    ) -> None:
        await checkout_factory(checkout_id="4", status=CheckoutStatus.RECOVERED)
        client = _client_returning([_node(4)])

        await sync_abandoned_checkouts(db_session, TEST_SHOP, client)

        row = (
            await db_session.execute(
                select(Checkout).execution_options(populate_existing=True)
            )
        ).scalar_one()
        assert row.status == CheckoutStatus.RECOVERED

    async def test_resync_keeps_cycle_start(self, db_session: AsyncSession) -> None:
        client = _client_returning([_node(5)])

        await sync_abandoned_checkouts(db_session, TEST_SHOP, client)
        await sync_abandoned_checkouts(db_session, TEST_SHOP, client)

        row = (await db_session.execute(select(Checkout))).scalar_one()
        assert row.abandoned_at == datetime(2024, 1, 1, 9, 30, tzinfo=UTC)

    async def test_limit_is_clamped(self, db_session: AsyncSession) -> None:
        client = _client_returning([])

        await sync_abandoned_checkouts(db_session, TEST_SHOP, client, limit=500)

        client.get_abandoned_checkouts.assert_awaited_once_with(first=100)

    async def test_upstream_failure_syncs_nothing(self, db_session: AsyncSession) -> None:
        client = MagicMock(spec=ShopifyClient)
        client.get_abandoned_checkouts = AsyncMock(side_effect=httpx.ConnectError("boom"))

        result = await sync_abandoned_checkouts(db_session, TEST_SHOP, client)

        assert result.synced == 0

    async def test_nodes_without_id_skipped(self, db_session: AsyncSession) -> None:
        client = _client_returning([_node(6, id=None), _node(7)])

        result = await sync_abandoned_checkouts(db_session, TEST_SHOP, client)

        assert result.synced == 1

    async def test_oddly_shaped_node_fields_tolerated(self, db_session: AsyncSession) -> None:
        client = _client_returning(
            [_node(8), _node(9, totalPriceSet="oops", customer="guest", lineItems="x")]
        )

        result = await sync_abandoned_checkouts(db_session, TEST_SHOP, client)

        assert result.synced == 2
        row = (
            await db_session.execute(select(Checkout).where(Checkout.checkout_id == "9"))
        ).scalar_one()
        assert row.value == Decimal("0")
        assert row.customer_name is None

    async def test_partial_upsert_discarded_on_error(self, db_session: AsyncSession) -> None:
        client = _client_returning([_node(12), _node(13)])
        real_normalize = normalize_checkout
        calls = iter([real_normalize, MagicMock(side_effect=TypeError("bad node"))])

        with patch(
            "ringback.services.checkout_sync.normalize_checkout",
            side_effect=lambda node: next(calls)(node),
        ):
            result = await sync_abandoned_checkouts(db_session, TEST_SHOP, client)

        assert result.synced == 0
        assert (await db_session.execute(select(Checkout))).scalars().all() == []

    @pytest.mark.parametrize(
        "payload",
        [
            {"data": {"abandonedCheckouts": "x"}},
            {"data": {"abandonedCheckouts": {"edges": {"node": {}}}}},
            {"data": "x"},
            [{"data": {}}],
        ],
    )
    async def test_malformed_response_syncs_nothing(
        self, db_session: AsyncSession, mock_shopify_http: AsyncMock, payload: Any
    ) -> None:
        mock_shopify_http.post.return_value.json.return_value = payload

        result = await sync_abandoned_checkouts(
            db_session, TEST_SHOP, ShopifyClient(TEST_SHOP, "token")
        )

        assert result.synced == 0
