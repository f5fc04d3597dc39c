from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.profile import Profile
from models.user_role import UserRole
from .base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """Repository for profiles and role grants."""

    model = Profile

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get_by_user(self, user_id: str) -> Optional[Profile]:
        stmt = select(Profile).where(Profile.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_roles(self, user_id: str) -> List[str]:
        stmt = select(UserRole.role).where(UserRole.user_id == user_id).order_by(UserRole.role)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_role(self, user_id: str, role: str) -> Optional[UserRole]:
        stmt = (
            select(UserRole)
            .where(UserRole.user_id == user_id)
            .where(UserRole.role == role)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add_role(self, grant: UserRole) -> UserRole:
        self.session.add(grant)
        await self.session.flush()
        return grant

    async def remove_role(self, grant: UserRole) -> None:
        await self.session.delete(grant)
        await self.session.flush()
