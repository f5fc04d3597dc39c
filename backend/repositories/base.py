from __future__ import annotations

from typing import Any, ClassVar, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Base repository with common CRUD helpers.

    No commits are performed here - commit responsibility is left to the
    service layer (or the request-scoped session).
    """

    model: ClassVar[Type[Base]]

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with an async session."""
        self.session = session

    async def add(self, entity: T) -> T:
        """Add an entity and flush so defaults (id, timestamps) are populated."""
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def get_by_id(self, id_value: str) -> Optional[T]:
        """Get an entity by its primary key."""
        return await self.session.get(self.model, id_value)

    async def list(self, limit: int = 100, offset: int = 0) -> List[T]:
        """List entities with pagination."""
        stmt = select(self.model).limit(limit).offset(offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete(self, entity: T) -> None:
        """Delete an entity from the session (not committed)."""
        await self.session.delete(entity)
        await self.session.flush()

    async def increment(self, id_value: str, **deltas: Any) -> None:
        """Atomic ``col = col + delta`` for each keyword, in one UPDATE statement.

        Avoids read-modify-write so concurrent requests cannot lose increments.
        """
        values = {
            name: getattr(self.model, name) + delta for name, delta in deltas.items()
        }
        stmt = (
            update(self.model)
            .where(self.model.id == id_value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def refresh(self, entity: T) -> T:
        await self.session.refresh(entity)
        return entity
