"""Tests for the Celery cron tick task and beat schedule.

The task body is exercised synchronously with the async tick mocked, so no
worker or broker is needed.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

from ringback.schemas.cron import CronSummary, ShopTickResult
from ringback.workers.celery_app import celery_app, configure_worker_logging
from ringback.workers.tasks.calls import run_cron_tick


def _summary(ok: bool = True) -> CronSummary:
    return CronSummary(
        ok=ok,
        shops=1,
        per_shop=[ShopTickResult(shop="test-shop.myshopify.com", enqueued=2)],
        enqueued_total=2,
        run_calls_status=200,
        run_calls_body={"ok": True},
        server_now=datetime(2024, 1, 1, 12, 0, tzinfo=UTC),
    )


class TestRunCronTickTask:
    def test_returns_json_summary(self) -> None:
        with patch(
            "ringback.workers.tasks.calls.run_cron_tick_async",
            new=AsyncMock(return_value=_summary()),
        ) as mock_tick:
            result = run_cron_tick.run()

        mock_tick.assert_awaited_once()
        assert result["ok"] is True
        assert result["enqueuedTotal"] == 2
        assert result["perShop"][0]["enqueued"] == 2
        assert result["serverNow"].startswith("2024-01-01T12:00:00")

    def test_shop_errors_still_return_summary(self) -> None:
        with patch(
            "ringback.workers.tasks.calls.run_cron_tick_async",
            new=AsyncMock(return_value=_summary(ok=False)),
        ):
            result = run_cron_tick.run()

        assert result["ok"] is False


class TestBeatSchedule:
    def test_tick_scheduled(self) -> None:
        entry = celery_app.conf.beat_schedule["run-cron-tick"]
        assert entry["task"] == "tasks.calls.run_cron_tick"
        assert entry["schedule"] > 0


class TestWorkerLogging:
    def test_hook_installs_json_logging(self) -> None:
        with patch("ringback.workers.celery_app.setup_logging", new=MagicMock()) as mock_setup:
            configure_worker_logging(loglevel="INFO")

        mock_setup.assert_called_once()
