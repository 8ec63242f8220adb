"""Client for the call worker's run-calls endpoint."""

import logging
from datetime import datetime
from typing import Any

import httpx

logger = logging.getLogger(__name__)

RUN_CALLS_PATH = "/api/run-calls"
RUN_CALLS_SECRET_HEADER = "x-run-calls-secret"


async def trigger_run_calls(
    app_url: str,
    secret: str,
    at: datetime,
    timeout: float = 30.0,
) -> tuple[int | None, Any]:
    """Ask the call worker to dial due jobs.

    Returns ``(status_code, body)``. The body is the parsed JSON response,
    ``{"raw": text}`` when it is not JSON, or ``{"error": ...}`` with a None
    status when the request could not be made.
    """
    if not app_url:
        return None, {"error": "Missing APP_URL env"}

    url = app_url.rstrip("/") + RUN_CALLS_PATH
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(
                url,
                headers={RUN_CALLS_SECRET_HEADER: secret},
                json={"source": "cron", "at": at.isoformat()},
            )
    except httpx.HTTPError as e:
        logger.warning("run-calls request to %s failed: %s", url, e)
        return None, {"error": str(e) or e.__class__.__name__}

    try:
        body: Any = response.json()
    except ValueError:
        body = {"raw": response.text}

    if not response.is_success:
        logger.warning("run-calls returned %s", response.status_code)
    return response.status_code, body
