"""Shopify Admin API client using httpx."""

import logging
from typing import Any

import httpx

from ringback.core.config import settings

logger = logging.getLogger(__name__)

ABANDONED_CHECKOUTS_QUERY = """
query AbandonedCheckouts($first: Int!) {
  abandonedCheckouts(first: $first, reverse: true) {
    edges {
      node {
        id
        createdAt
        updatedAt
        completedAt
        email
        phone
        totalPriceSet { shopMoney { amount currencyCode } }
        shippingAddress { firstName lastName }
        billingAddress { firstName lastName }
        customer { firstName lastName }
        lineItems(first: 10) {
          edges {
            node {
              title
              quantity
              variantTitle
              originalUnitPriceSet { shopMoney { amount currencyCode } }
            }
          }
        }
      }
    }
  }
}
"""


class ShopifyGraphQLError(Exception):
    """The Admin GraphQL API answered with top-level errors."""


class ShopifyClient:
    """Async client for the Shopify Admin GraphQL API."""

    def __init__(self, shop_domain: str, access_token: str, timeout: float = 30.0) -> None:
        self.shop_domain = shop_domain
        self.base_url = f"https://{shop_domain}/admin/api/{settings.shopify_api_version}"
        self.headers = {
            "X-Shopify-Access-Token": access_token,
            "Content-Type": "application/json",
        }
        self.timeout = timeout

    async def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a GraphQL query and return its ``data`` object."""
        async with httpx.AsyncClient(headers=self.headers, timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/graphql.json",
                json={"query": query, "variables": variables or {}},
            )
            response.raise_for_status()
            payload = response.json()

        if not isinstance(payload, dict):
            raise ShopifyGraphQLError(f"Unexpected GraphQL response: {type(payload).__name__}")
        if payload.get("errors"):
            raise ShopifyGraphQLError(str(payload["errors"]))
        data = payload.get("data") or {}
        if not isinstance(data, dict):
            raise ShopifyGraphQLError("GraphQL data is not an object")
        return data

    async def get_abandoned_checkouts(self, first: int = 50) -> list[dict[str, Any]]:
        """Most recent abandoned checkouts as raw GraphQL nodes."""
        data = await self.graphql(ABANDONED_CHECKOUTS_QUERY, {"first": first})
        connection = data.get("abandonedCheckouts") or {}
        edges = (connection.get("edges") or []) if isinstance(connection, dict) else None
        if not isinstance(edges, list):
            raise ShopifyGraphQLError("abandonedCheckouts is not a connection")
        return [
            edge["node"]
            for edge in edges
            if isinstance(edge, dict) and isinstance(edge.get("node"), dict)
        ]
