"""Database engine and session management."""
import json
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.pool import StaticPool

from photomatch.core.config import settings
from photomatch.core.logging import get_logger
from photomatch.infrastructure.database.models import Base

logger = get_logger(__name__)


def _json_dumps(value) -> str:
    return json.dumps(value, ensure_ascii=False)


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create the async engine for the configured database.

    In-memory SQLite databases share one connection so every session sees
    the same tables. JSON columns keep non-ASCII text as is, so keyword
    search can match it.
    """
    url = database_url or settings.DATABASE_URL
    options = {
        "echo": settings.DATABASE_ECHO,
        "json_serializer": _json_dumps
    }
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url.rstrip("/").endswith("aiosqlite:"):
            options["poolclass"] = StaticPool
    else:
        options.update(
            pool_size=settings.POOL_SIZE,
            max_overflow=settings.MAX_OVERFLOW,
            pool_timeout=settings.POOL_TIMEOUT
        )
    return create_async_engine(url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready", url=engine.url.render_as_string(hide_password=True))


@asynccontextmanager
async def get_db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Yields:
        AsyncSession: Database session

    Example:
        ```python
        async with get_db_session(session_factory) as session:
            await session.execute(query)
            await session.commit()
        ```
    """
    session = session_factory()
    logger.debug("Creating new database session")
    try:
        yield session
    except SQLAlchemyError as e:
        logger.error(
            "Database session error",
            error=str(e),
            exc_info=True
        )
        await session.rollback()
        raise
    except Exception:
        await session.rollback()
        raise
    finally:
        logger.debug("Closing database session")
        await session.close()
