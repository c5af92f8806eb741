"""
Database access for Celery workers.

Each task runs its coroutine under `asyncio.run`, so it gets a fresh
engine bound to that event loop instead of the API's shared one.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.realtime.feed import discard_pending

SessionJob = Callable[[AsyncSession], Awaitable[Any]]


async def run_in_session(job: SessionJob) -> Any:
    """Run `job(session)` in one transaction on a throwaway engine."""
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            async with session.begin():
                result = await job(session)
            # Worker processes have no realtime subscribers
            discard_pending(session)
            return result
    finally:
        await engine.dispose()
