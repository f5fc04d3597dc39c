from __future__ import annotations

from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.affiliate import Affiliate
from models.affiliate_click import AffiliateClick
from models.affiliate_conversion import AffiliateConversion
from models.affiliate_link import AffiliateLink
from .base import BaseRepository


class AffiliateRepository(BaseRepository[Affiliate]):
    """Repository for Affiliate entities."""

    model = Affiliate

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get_by_user(self, user_id: str) -> Optional[Affiliate]:
        stmt = select(Affiliate).where(Affiliate.user_id == user_id).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def code_exists(self, affiliate_code: str) -> bool:
        stmt = select(Affiliate.id).where(Affiliate.affiliate_code == affiliate_code)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def list_newest_first(self) -> List[Affiliate]:
        stmt = select(Affiliate).order_by(Affiliate.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_cascade(self, affiliate: Affiliate) -> None:
        """Delete an affiliate with its conversions, clicks and links (children first)."""
        for child in (AffiliateConversion, AffiliateClick, AffiliateLink):
            await self.session.execute(
                delete(child).where(child.affiliate_id == affiliate.id)
            )
        await self.delete(affiliate)
