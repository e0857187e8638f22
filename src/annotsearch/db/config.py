"""Database configuration and session management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from annotsearch.config.settings import Settings, get_settings
from annotsearch.db.models.base import Base


def create_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create an async engine for the configured database.

    Args:
        settings: Settings with the database URL (default: global settings)

    Returns:
        AsyncEngine bound to ``settings.database_url``
    """
    settings = settings or get_settings()
    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        poolclass=NullPool if settings.environment == "test" else None,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory for an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create every annotation store table that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_schema(engine: AsyncEngine) -> None:
    """Drop every annotation store table."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@asynccontextmanager
async def get_async_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Context manager for obtaining a database session.

    Usage:
        async with get_async_session(session_factory) as session:
            result = await session.execute(query)

    Yields:
        AsyncSession: A database session that will be automatically closed
    """
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
