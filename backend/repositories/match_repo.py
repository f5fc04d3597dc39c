from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.match import Match
from .base import BaseRepository


class MatchRepository(BaseRepository[Match]):
    """Repository for Match entities."""

    model = Match

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get_by_api_match_id(self, api_match_id: str) -> Optional[Match]:
        stmt = select(Match).where(Match.api_match_id == api_match_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_by_api_match_id(self, api_match_id: str, values: Dict[str, Any]) -> Match:
        """Insert or update the row keyed by api_match_id (latest wins)."""
        existing = await self.get_by_api_match_id(api_match_id)
        if existing is None:
            return await self.add(Match(api_match_id=api_match_id, **values))
        for key, value in values.items():
            setattr(existing, key, value)
        await self.session.flush()
        return existing

    async def find(
        self,
        status: Optional[str] = None,
        league: Optional[str] = None,
        date_prefix: Optional[str] = None,
        limit: int = 100,
    ) -> List[Match]:
        """Filter by status, league and match day (``YYYY-MM-DD`` prefix of match_date)."""
        stmt = select(Match)
        if status:
            stmt = stmt.where(Match.status == status)
        if league:
            stmt = stmt.where(Match.league == league)
        if date_prefix:
            stmt = stmt.where(Match.match_date.like(f"{date_prefix}%"))
        stmt = stmt.order_by(Match.match_date).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
