from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.discussion import Discussion, DiscussionReply
from .base import BaseRepository


class DiscussionRepository(BaseRepository[Discussion]):
    """Repository for discussion threads and their replies."""

    model = Discussion

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def list_threads(self, category: Optional[str] = None, limit: int = 50) -> List[Discussion]:
        """Pinned threads first, then newest."""
        stmt = select(Discussion)
        if category:
            stmt = stmt.where(Discussion.category == category)
        stmt = stmt.order_by(Discussion.is_pinned.desc(), Discussion.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_replies(self, discussion_id: str) -> List[DiscussionReply]:
        stmt = (
            select(DiscussionReply)
            .where(DiscussionReply.discussion_id == discussion_id)
            .order_by(DiscussionReply.created_at, DiscussionReply.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add_reply(self, reply: DiscussionReply) -> DiscussionReply:
        self.session.add(reply)
        await self.session.flush()
        return reply
