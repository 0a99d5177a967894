# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

"""Database-backed sequence counters.

Each increment is a single ``INSERT ... ON CONFLICT DO UPDATE ... RETURNING``
committed in its own session, so numbers are never handed out twice and are
not returned to the pool when the requesting transaction rolls back.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from skugraph.models.base import utcnow
from skugraph.models.sku import SequenceCounterRow
from skugraph.repositories.base import dialect_insert
from skugraph.stores import SequenceScope


class SqlSequenceCounter:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def next(self, scope: SequenceScope) -> int:
        table = SequenceCounterRow.__table__
        async with self._session_factory() as session:
            now = utcnow()
            stmt = dialect_insert(session, table).values(
                scope_key=scope.key, value=1, updated_at=now
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.scope_key],
                set_={"value": table.c.value + 1, "updated_at": now},
            ).returning(table.c.value)
            result = await session.execute(stmt)
            value = int(result.scalar_one())
            await session.commit()
        return value

    async def peek(self, scope: SequenceScope) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SequenceCounterRow.value).where(
                    SequenceCounterRow.scope_key == scope.key
                )
            )
            current = result.scalar_one_or_none()
        return (current or 0) + 1
