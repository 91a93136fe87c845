"""
Database Base Configuration

Declarative base plus async engine and session management for PostgreSQL.

The engine is built on first use, so importing the models (as the unit
tests and the preview script do) never needs a database driver or server.

Usage:
    from flashrecall.db.base import session_scope

    async with session_scope() as db:
        service = ReviewService(db)
        await service.review_card(user_id, card_id, "good")
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from flashrecall.config import settings, yaml_config


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


# Import models AFTER Base is defined to avoid circular imports.
# This ensures all models are registered with Base.metadata.
from flashrecall.db import models  # noqa: F401, E402


@lru_cache()
def get_engine() -> AsyncEngine:
    """Create the process-wide async engine with pool sizing from YAML."""
    db_config: dict[str, Any] = yaml_config.get("database", {})
    return create_async_engine(
        settings.POSTGRES_URL,
        pool_size=db_config.get("pool_size", 5),
        max_overflow=db_config.get("max_overflow", 10),
        pool_timeout=db_config.get("pool_timeout", 30),
        echo=settings.DEBUG,
    )


@lru_cache()
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the process-wide engine."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    Session that commits on success and rolls back on error.

    ReviewService commits its own units of work; the final commit here
    flushes anything a caller staged afterwards.
    """
    async with get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Create tables that don't exist. Existing tables are left untouched.
    """
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close pooled connections (call once at shutdown)."""
    await get_engine().dispose()
    get_session_maker.cache_clear()
    get_engine.cache_clear()
