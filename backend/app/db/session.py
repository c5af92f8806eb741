"""
Async SQLAlchemy session factory.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.realtime.feed import discard_pending, publish_pending


def engine_options(url: str) -> dict:
    """Pool options for `create_async_engine`; SQLite does not take pool sizing."""
    options: dict = {"echo": settings.DB_ECHO}
    if not url.startswith("sqlite"):
        options.update(pool_size=20, max_overflow=10, pool_pre_ping=True)
    return options


engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_options(settings.DATABASE_URL),
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """
    Dependency that yields an async DB session.

    Row changes recorded on the session are pushed to realtime
    subscribers only after the commit succeeds.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            discard_pending(session)
            raise
        else:
            publish_pending(session)
        finally:
            await session.close()
