# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skugraph.errors import DuplicateTypeError, ProtectedTypeError, UnknownTypeError
from skugraph.models.relationship import RelationshipType
from skugraph.repositories.base import BaseRepository


class RelationshipTypeRepository(BaseRepository[RelationshipType]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, RelationshipType)

    async def _add_all(self, types: list[RelationshipType]) -> None:
        for rel_type in types:
            if await self.session.get(RelationshipType, rel_type.name) is not None:
                raise DuplicateTypeError(rel_type.name)
        self.session.add_all(types)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # Lost a race against a concurrent registration of the same name.
            raise DuplicateTypeError(types[0].name) from exc

    async def register(self, rel_type: RelationshipType) -> RelationshipType:
        await self._add_all([rel_type])
        return rel_type

    async def get(self, name: str) -> RelationshipType:
        rel_type = await self.session.get(RelationshipType, name)
        if rel_type is None:
            raise UnknownTypeError(name)
        return rel_type

    async def create_with_reverse(
        self, rel_type: RelationshipType
    ) -> tuple[RelationshipType, RelationshipType | None]:
        if rel_type.is_bidirectional or not rel_type.reverse_name:
            return await self.register(rel_type), None
        reverse = rel_type.derive_reverse()
        await self._add_all([rel_type, reverse])
        return rel_type, reverse

    async def list_types(self) -> list[RelationshipType]:
        result = await self.session.execute(
            select(RelationshipType).order_by(RelationshipType.name)
        )
        return list(result.scalars().all())

    async def delete(self, name: str) -> None:
        rel_type = await self.get(name)
        if rel_type.is_system:
            raise ProtectedTypeError(name)
        await super().delete(rel_type)
