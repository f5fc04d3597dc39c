from __future__ import annotations

from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.affiliate_conversion import AffiliateConversion
from .base import BaseRepository


class AffiliateConversionRepository(BaseRepository[AffiliateConversion]):
    """Repository for AffiliateConversion entities."""

    model = AffiliateConversion

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def list_by_affiliate(self, affiliate_id: str) -> List[AffiliateConversion]:
        stmt = (
            select(AffiliateConversion)
            .where(AffiliateConversion.affiliate_id == affiliate_id)
            .order_by(AffiliateConversion.converted_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def commission_by_status(self, affiliate_id: str) -> Dict[str, float]:
        """Sum of commission_amount per conversion status for one affiliate."""
        stmt = (
            select(
                AffiliateConversion.status,
                func.coalesce(func.sum(AffiliateConversion.commission_amount), 0.0),
            )
            .where(AffiliateConversion.affiliate_id == affiliate_id)
            .group_by(AffiliateConversion.status)
        )
        result = await self.session.execute(stmt)
        return {status: float(total or 0.0) for status, total in result.all()}
