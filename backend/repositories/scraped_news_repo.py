from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.scraped_news import ScrapedNews
from .base import BaseRepository


class ScrapedNewsRepository(BaseRepository[ScrapedNews]):
    """Repository for scraped_news (one row per title)."""

    model = ScrapedNews

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def upsert_by_title(
        self,
        title: str,
        excerpt: Optional[str],
        category: str,
        source: str,
        source_url: Optional[str],
        scraped_at: datetime,
    ) -> ScrapedNews:
        stmt = select(ScrapedNews).where(ScrapedNews.title == title)
        existing = (await self.session.execute(stmt)).scalar_one_or_none()
        if existing is None:
            return await self.add(
                ScrapedNews(
                    title=title,
                    excerpt=excerpt,
                    category=category,
                    source=source,
                    source_url=source_url,
                    scraped_at=scraped_at,
                )
            )
        existing.excerpt = excerpt
        existing.category = category
        existing.source = source
        existing.source_url = source_url
        existing.scraped_at = scraped_at
        await self.session.flush()
        return existing

    async def list_recent(self, limit: int = 20) -> List[ScrapedNews]:
        stmt = select(ScrapedNews).order_by(ScrapedNews.scraped_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
