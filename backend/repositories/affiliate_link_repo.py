from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.affiliate_link import AffiliateLink
from .base import BaseRepository


class AffiliateLinkRepository(BaseRepository[AffiliateLink]):
    """Repository for AffiliateLink entities."""

    model = AffiliateLink

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get_by_tracking_code(self, tracking_code: str) -> Optional[AffiliateLink]:
        stmt = select(AffiliateLink).where(AffiliateLink.tracking_code == tracking_code)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def tracking_code_exists(self, tracking_code: str) -> bool:
        stmt = select(AffiliateLink.id).where(AffiliateLink.tracking_code == tracking_code)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def list_by_affiliate(self, affiliate_id: str) -> List[AffiliateLink]:
        """Links for an affiliate, newest first."""
        stmt = (
            select(AffiliateLink)
            .where(AffiliateLink.affiliate_id == affiliate_id)
            .order_by(AffiliateLink.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
