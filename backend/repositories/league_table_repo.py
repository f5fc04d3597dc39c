from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.league_table import LeagueTableRow
from .base import BaseRepository


class LeagueTableRepository(BaseRepository[LeagueTableRow]):
    """Repository for league standings rows."""

    model = LeagueTableRow

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def upsert(self, team_name: str, league: str, values: Dict[str, Any]) -> LeagueTableRow:
        """Insert or update the row keyed by (team_name, league)."""
        stmt = (
            select(LeagueTableRow)
            .where(LeagueTableRow.team_name == team_name)
            .where(LeagueTableRow.league == league)
        )
        existing = (await self.session.execute(stmt)).scalar_one_or_none()
        if existing is None:
            return await self.add(LeagueTableRow(team_name=team_name, league=league, **values))
        for key, value in values.items():
            setattr(existing, key, value)
        await self.session.flush()
        return existing

    async def list_by_league(self, league: str) -> List[LeagueTableRow]:
        stmt = (
            select(LeagueTableRow)
            .where(LeagueTableRow.league == league)
            .order_by(LeagueTableRow.position)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
