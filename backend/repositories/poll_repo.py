from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.poll import Poll, PollOption, PollVote
from .base import BaseRepository


class PollOptionRepository(BaseRepository[PollOption]):
    model = PollOption

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def list_for_polls(self, poll_ids: Sequence[str]) -> Dict[str, List[PollOption]]:
        """Options grouped by poll id, in creation order."""
        grouped: Dict[str, List[PollOption]] = {poll_id: [] for poll_id in poll_ids}
        if not poll_ids:
            return grouped
        stmt = (
            select(PollOption)
            .where(PollOption.poll_id.in_(poll_ids))
            .order_by(PollOption.created_at, PollOption.id)
        )
        result = await self.session.execute(stmt)
        for option in result.scalars().all():
            grouped[option.poll_id].append(option)
        return grouped


class PollRepository(BaseRepository[Poll]):
    """Repository for polls and their votes."""

    model = Poll

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def list_active(self, limit: int = 50) -> List[Poll]:
        stmt = (
            select(Poll)
            .where(Poll.is_active == True)  # noqa: E712
            .order_by(Poll.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_vote(self, poll_id: str, user_id: str) -> Optional[PollVote]:
        stmt = select(PollVote).where(PollVote.poll_id == poll_id, PollVote.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def user_votes(self, poll_ids: Sequence[str], user_id: str) -> Dict[str, str]:
        """poll id -> chosen option id for one user."""
        if not poll_ids:
            return {}
        stmt = select(PollVote).where(PollVote.poll_id.in_(poll_ids), PollVote.user_id == user_id)
        result = await self.session.execute(stmt)
        return {vote.poll_id: vote.poll_option_id for vote in result.scalars().all()}

    async def add_vote(self, vote: PollVote) -> PollVote:
        self.session.add(vote)
        await self.session.flush()
        return vote
