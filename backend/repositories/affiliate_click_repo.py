from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.affiliate_click import AffiliateClick
from .base import BaseRepository


class AffiliateClickRepository(BaseRepository[AffiliateClick]):
    """Repository for AffiliateClick entities."""

    model = AffiliateClick

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def latest_for_link(self, affiliate_link_id: str) -> Optional[AffiliateClick]:
        """Most recent click on a link (uses ix_affiliate_click_link_clicked)."""
        stmt = (
            select(AffiliateClick)
            .where(AffiliateClick.affiliate_link_id == affiliate_link_id)
            .order_by(AffiliateClick.clicked_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
