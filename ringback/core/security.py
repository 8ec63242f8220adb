"""Shared-secret authentication for internal endpoints."""

import hmac

from fastapi import Header, HTTPException, status

from ringback.core.config import settings


def verify_shared_secret(provided: str, expected: str) -> bool:
    """Constant-time comparison of a request header against a configured secret.

    An empty ``expected`` secret disables the check.
    """
    if not expected:
        return True
    return hmac.compare_digest(provided.encode(), expected.encode())


async def require_cron_token(
    x_cron_token: str = Header(default="", alias="x-cron-token"),
) -> None:
    """Reject cron and admin requests that do not carry the cron token."""
    if not verify_shared_secret(x_cron_token, settings.cron_token):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Unauthorized")
