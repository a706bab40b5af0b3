"""
Async database sessions for the CRM back office.

Production runs on the Supabase PostgreSQL behind its transaction
pooler (asyncpg); tests and local scripts may point DATABASE_URL at
SQLite. Services never commit: routers and scripts own the transaction,
and services use savepoints (begin_nested) for best-effort steps.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from advisy.config import settings

logger = logging.getLogger(__name__)


def engine_options(database_url: str) -> dict:
    """Engine keyword arguments for a database URL."""
    options = {"echo": not settings.is_production}
    if database_url.startswith("postgresql+asyncpg"):
        # The pooler hands out a new backend per transaction
        options["poolclass"] = NullPool
        options["connect_args"] = {"statement_cache_size": 0}
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

# Loaded policies and commissions are returned in responses after commit
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    Routers commit once the operation succeeded; whatever is still
    pending at the end of the request is committed, and an exception
    rolls the request back.

    Usage:
        @router.post("/commissions")
        async def submit_commission(db: AsyncSession = Depends(get_db)):
            commission = await create_commission(db, context, ...)
            await db.commit()
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Session outside a request, e.g. settings seeding at startup.

    Usage:
        async with get_db_context() as db:
            await seed_default_settings(db)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Session rolled back: {e}")
            await session.rollback()
            raise
