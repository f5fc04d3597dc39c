from __future__ import annotations

from typing import List, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.news_article import NewsArticle
from models.news_comment import NewsComment
from models.news_like import NewsLike
from .base import BaseRepository


class NewsRepository(BaseRepository[NewsArticle]):
    """Repository for articles, their comments and likes."""

    model = NewsArticle

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get_by_title(self, title: str) -> Optional[NewsArticle]:
        stmt = select(NewsArticle).where(NewsArticle.title == title)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self) -> List[NewsArticle]:
        """Every article (drafts included), newest first; admin listing."""
        stmt = select(NewsArticle).order_by(NewsArticle.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_published(
        self,
        category: Optional[str] = None,
        query: Optional[str] = None,
        limit: int = 20,
    ) -> List[NewsArticle]:
        """Published articles, newest first; optional category and text search."""
        stmt = select(NewsArticle).where(NewsArticle.is_published == True)  # noqa: E712
        if category:
            stmt = stmt.where(NewsArticle.category == category)
        if query:
            pattern = f"%{query}%"
            stmt = stmt.where(
                or_(
                    NewsArticle.title.ilike(pattern),
                    NewsArticle.content.ilike(pattern),
                    NewsArticle.tags_json.ilike(pattern),
                )
            )
        stmt = stmt.order_by(NewsArticle.published_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_cascade(self, article: NewsArticle) -> None:
        for child in (NewsComment, NewsLike):
            await self.session.execute(delete(child).where(child.article_id == article.id))
        await self.delete(article)

    # --- comments ---

    async def add_comment(self, comment: NewsComment) -> NewsComment:
        self.session.add(comment)
        await self.session.flush()
        return comment

    async def list_comments(self, article_id: str) -> List[NewsComment]:
        stmt = (
            select(NewsComment)
            .where(NewsComment.article_id == article_id)
            .order_by(NewsComment.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # --- likes ---

    async def get_like(self, article_id: str, user_id: str) -> Optional[NewsLike]:
        stmt = (
            select(NewsLike)
            .where(NewsLike.article_id == article_id)
            .where(NewsLike.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add_like(self, like: NewsLike) -> NewsLike:
        self.session.add(like)
        await self.session.flush()
        return like

    async def remove_like(self, like: NewsLike) -> None:
        await self.session.delete(like)
        await self.session.flush()
