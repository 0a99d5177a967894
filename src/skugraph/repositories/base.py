# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from typing import Any

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from skugraph.models.base import Base


def dialect_insert(session: AsyncSession, table: Table) -> Any:
    """Return an INSERT construct supporting ON CONFLICT for the session's backend."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    msg = f"Unsupported database dialect '{dialect}'"
    raise NotImplementedError(msg)


class BaseRepository[T: Base]:
    def __init__(self, session: AsyncSession, model: type[T]) -> None:
        self.session = session
        self.model = model

    async def delete(self, entity: T) -> None:
        await self.session.delete(entity)
        await self.session.flush()
