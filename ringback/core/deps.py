"""Dependency injection for FastAPI routes."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ringback.core.database import async_session_maker, get_async_session
from ringback.core.security import require_cron_token


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Alias for get_async_session."""
    async for session in get_async_session():
        yield session


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory for work that opens one session per shop."""
    return async_session_maker


# Type aliases for route signatures
DBSession = Annotated[AsyncSession, Depends(get_db)]
SessionMaker = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_maker)]
CronAuth = Depends(require_cron_token)


__all__ = [
    "CronAuth",
    "DBSession",
    "SessionMaker",
    "get_db",
    "get_session_maker",
]
