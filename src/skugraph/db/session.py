# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from collections.abc import AsyncIterator
from functools import lru_cache
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from skugraph.config import get_settings


@lru_cache
def get_engine() -> AsyncEngine:
    """Create and cache the async database engine."""
    settings = get_settings()
    options: dict[str, Any] = {}
    if not settings.database_url.startswith("sqlite"):
        options = {
            "pool_size": settings.database_pool_size,
            "max_overflow": 10,
            "pool_timeout": 30,
        }
    return create_async_engine(settings.database_url, **options)


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Create and cache the async session factory."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a database session."""
    async with get_session_factory()() as session:
        yield session
