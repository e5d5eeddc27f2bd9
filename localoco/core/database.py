import asyncio
from typing import Any, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from localoco.core.config import settings

logger = structlog.get_logger(__name__)

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
    pool_pre_ping=True,
    pool_recycle=300,
)

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

Base = declarative_base()


async def init_db():
    """Initialize database connection and import models."""
    # Registers every table on Base.metadata
    import localoco.models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))

        logger.info("Database connection initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", exc_info=e)
        raise


async def get_db() -> AsyncSession:
    """Dependency to get database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error("Database session error", exc_info=e)
            raise
        finally:
            await session.close()


async def fetch_concurrently(
    db: AsyncSession, *statements: Optional[Any]
) -> list[list[Any]]:
    """Run independent read statements at the same time, one session each.

    An AsyncSession cannot multiplex queries, so every statement gets its own
    short-lived session on the engine ``db`` is bound to. ``db`` ends its
    transaction first and gives its connection back to the pool before any
    other is checked out. Objects it loaded stay usable: sessions here do not
    expire on commit. ``None`` placeholders resolve to an empty result
    without touching the store. The first failure propagates and the combined
    call fails as a whole.
    """
    await db.commit()

    session_factory = async_sessionmaker(
        db.bind, class_=AsyncSession, expire_on_commit=False
    )

    async def _fetch(statement) -> list[Any]:
        if statement is None:
            return []
        async with session_factory() as session:
            result = await session.execute(statement)
            return list(result.all())

    return list(await asyncio.gather(*(_fetch(s) for s in statements)))
