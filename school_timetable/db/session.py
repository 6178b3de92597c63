from typing import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from school_timetable.core.config import settings


def _engine_options(database_url: str) -> dict:
    # sqlite has no server-side idle timeout to recycle against
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"echo": settings.db_echo}
    return {
        "echo": settings.db_echo,
        "pool_pre_ping": True,
        "pool_recycle": settings.db_pool_recycle,
    }


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """One session per request; anything left uncommitted on error is rolled back."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
