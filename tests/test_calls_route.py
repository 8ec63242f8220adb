"""Tests for the call recovery read models and settings endpoints."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from httpx import AsyncClient

from ringback.models import CallJobStatus, CheckoutStatus
from tests.conftest import OTHER_SHOP, TEST_SHOP


class TestAuth:
    async def test_requires_cron_token(self, client: AsyncClient, cron_token: str) -> None:
        response = await client.get("/api/v1/calls/checkouts", params={"shop": TEST_SHOP})
        assert response.status_code == 401

    async def test_accepts_cron_token(self, client: AsyncClient, cron_token: str) -> None:
        response = await client.get(
            "/api/v1/calls/checkouts",
            params={"shop": TEST_SHOP},
            headers={"x-cron-token": cron_token},
        )
        assert response.status_code == 200


class TestListCheckouts:
    async def test_paginated_and_scoped_to_shop(
        self, client: AsyncClient, checkout_factory: Callable[..., Any]
    ) -> None:
        now = datetime.now(UTC)
        for minutes in range(3):
            await checkout_factory(updated_at=now - timedelta(minutes=minutes))
        await checkout_factory(shop=OTHER_SHOP)

        response = await client.get(
            "/api/v1/calls/checkouts", params={"shop": TEST_SHOP, "page_size": 2}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["pages"] == 2
        assert len(data["items"]) == 2
        assert all(item["shop"] == TEST_SHOP for item in data["items"])
        assert data["items"][0]["status"] == "abandoned"

    async def test_filter_by_status(
        self, client: AsyncClient, checkout_factory: Callable[..., Any]
    ) -> None:
        await checkout_factory(status=CheckoutStatus.OPEN)
        await checkout_factory(status=CheckoutStatus.CONVERTED)

        response = await client.get(
            "/api/v1/calls/checkouts", params={"shop": TEST_SHOP, "status": "converted"}
        )

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["status"] == "converted"

    async def test_requires_shop(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/calls/checkouts")
        assert response.status_code == 422


class TestListJobs:
    async def test_lists_jobs_newest_first(
        self,
        client: AsyncClient,
        checkout_factory: Callable[..., Any],
        call_job_factory: Callable[..., Any],
    ) -> None:
        checkout = await checkout_factory()
        now = datetime.now(UTC)
        await call_job_factory(
            checkout_id=checkout.checkout_id,
            status=CallJobStatus.FAILED,
            created_at=now - timedelta(hours=3),
            outcome="no_answer",
        )
        await call_job_factory(
            checkout_id=checkout.checkout_id,
            status=CallJobStatus.QUEUED,
            created_at=now,
            scheduled_for=now + timedelta(minutes=30),
        )

        response = await client.get("/api/v1/calls/jobs", params={"shop": TEST_SHOP})

        data = response.json()
        assert data["total"] == 2
        assert [j["status"] for j in data["items"]] == ["queued", "failed"]
        assert data["items"][1]["outcome"] == "no_answer"

    async def test_filter_by_status(
        self,
        client: AsyncClient,
        checkout_factory: Callable[..., Any],
        call_job_factory: Callable[..., Any],
    ) -> None:
        checkout = await checkout_factory()
        await call_job_factory(checkout_id=checkout.checkout_id, status=CallJobStatus.COMPLETED)
        await call_job_factory(checkout_id=checkout.checkout_id, status=CallJobStatus.QUEUED)

        response = await client.get(
            "/api/v1/calls/jobs", params={"shop": TEST_SHOP, "status": "completed"}
        )

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["status"] == "completed"


class TestSettingsEndpoints:
    async def test_get_creates_defaults(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/calls/settings", params={"shop": TEST_SHOP})

        assert response.status_code == 200
        data = response.json()
        assert data["enabled"] is True
        assert data["delay_minutes"] == 30
        assert data["max_attempts"] == 2
        assert data["retry_minutes"] == 180
        assert data["call_window_start"] == "09:00"
        assert data["call_window_end"] == "19:00"

    async def test_partial_update(self, client: AsyncClient) -> None:
        response = await client.put(
            "/api/v1/calls/settings",
            params={"shop": TEST_SHOP},
            json={"max_attempts": 4, "call_window_start": "08:30"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["max_attempts"] == 4
        assert data["call_window_start"] == "08:30"
        assert data["delay_minutes"] == 30

        again = await client.get("/api/v1/calls/settings", params={"shop": TEST_SHOP})
        assert again.json()["max_attempts"] == 4

    async def test_rejects_invalid_values(self, client: AsyncClient) -> None:
        for body in ({"max_attempts": 0}, {"call_window_end": "7pm"}, {"delay_minutes": -5}):
            response = await client.put(
                "/api/v1/calls/settings", params={"shop": TEST_SHOP}, json=body
            )
            assert response.status_code == 422
