"""Editorial news: admin CRUD, public reads, comments and likes."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, InvalidInputError, NotFoundError
from models.news_article import NewsArticle
from models.news_comment import NewsComment
from models.news_like import NewsLike
from repositories.news_repo import NewsRepository

logger = logging.getLogger(__name__)

NEWS_CATEGORIES = (
    "General",
    "CAF CHAN",
    "African Cup",
    "Transfer News",
    "Match Analysis",
    "Player Spotlight",
)
PUBLIC_LIST_LIMIT = 20
MAX_COMMENT_LENGTH = 2000


def parse_tags(tags: Union[str, Iterable[str], None]) -> List[str]:
    """Comma-separated string (or list) to trimmed, non-empty tags."""
    if tags is None:
        return []
    parts = tags.split(",") if isinstance(tags, str) else list(tags)
    return [str(tag).strip() for tag in parts if str(tag).strip()]


def article_tags(article: NewsArticle) -> List[str]:
    try:
        tags = json.loads(article.tags_json or "[]")
    except ValueError:
        return []
    return [str(t) for t in tags] if isinstance(tags, list) else []


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_relative_time(value: datetime, now: Optional[datetime] = None) -> str:
    """``Just now`` under an hour, ``{h}h ago`` under a day, ``{d}d ago`` under a week, else the date."""
    now = _as_utc(now or datetime.now(timezone.utc))
    value = _as_utc(value)
    hours = int((now - value).total_seconds() // 3600)
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 7:
        return f"{days}d ago"
    return value.date().isoformat()


def article_to_dict(article: NewsArticle) -> Dict[str, Any]:
    return {
        "id": article.id,
        "title": article.title,
        "content": article.content,
        "excerpt": article.excerpt,
        "image_url": article.image_url,
        "author_id": article.author_id,
        "category": article.category,
        "tags": article_tags(article),
        "source": article.source,
        "source_url": article.source_url,
        "is_published": article.is_published,
        "published_at": article.published_at.isoformat() if article.published_at else None,
        "view_count": article.view_count,
        "like_count": article.like_count,
        "comment_count": article.comment_count,
        "created_at": article.created_at.isoformat() if article.created_at else None,
        "updated_at": article.updated_at.isoformat() if article.updated_at else None,
    }


def comment_to_dict(comment: NewsComment, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "id": comment.id,
        "article_id": comment.article_id,
        "user_id": comment.user_id,
        "content": comment.content,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "time_ago": format_relative_time(comment.created_at, now) if comment.created_at else None,
    }


# --- admin -------------------------------------------------------------------


async def _get_article(session: AsyncSession, article_id: str) -> NewsArticle:
    article = await NewsRepository(session).get_by_id(article_id)
    if article is None:
        raise NotFoundError("Article not found")
    return article


def _set_published(article: NewsArticle, is_published: bool) -> None:
    if is_published and not article.is_published:
        article.published_at = datetime.now(timezone.utc)
    elif not is_published:
        article.published_at = None
    article.is_published = is_published


async def create_article(
    session: AsyncSession,
    author_id: str,
    title: Optional[str],
    content: Optional[str],
    excerpt: Optional[str] = None,
    image_url: Optional[str] = None,
    category: str = "General",
    tags: Union[str, List[str], None] = None,
    is_published: bool = False,
) -> NewsArticle:
    title = (title or "").strip()
    content = (content or "").strip()
    if not title or not content:
        raise InvalidInputError("Title and content are required")
    repo = NewsRepository(session)
    if await repo.get_by_title(title) is not None:
        raise ConflictError("An article with this title already exists")
    article = NewsArticle(
        title=title,
        content=content,
        excerpt=(excerpt or "").strip() or None,
        image_url=(image_url or "").strip() or None,
        author_id=author_id,
        category=(category or "").strip() or "General",
        tags_json=json.dumps(parse_tags(tags)),
        is_published=False,
    )
    _set_published(article, is_published)
    await repo.add(article)
    logger.info("Article %s created by %s (published=%s)", article.id, author_id, is_published)
    return article


async def update_article(
    session: AsyncSession,
    article_id: str,
    title: Optional[str] = None,
    content: Optional[str] = None,
    excerpt: Optional[str] = None,
    image_url: Optional[str] = None,
    category: Optional[str] = None,
    tags: Union[str, List[str], None] = None,
    is_published: Optional[bool] = None,
) -> NewsArticle:
    article = await _get_article(session, article_id)
    if title is not None:
        title = title.strip()
        if not title:
            raise InvalidInputError("Title cannot be empty")
        if title != article.title:
            existing = await NewsRepository(session).get_by_title(title)
            if existing is not None:
                raise ConflictError("An article with this title already exists")
        article.title = title
    if content is not None:
        if not content.strip():
            raise InvalidInputError("Content cannot be empty")
        article.content = content.strip()
    if excerpt is not None:
        article.excerpt = excerpt.strip() or None
    if image_url is not None:
        article.image_url = image_url.strip() or None
    if category is not None:
        article.category = category.strip() or "General"
    if tags is not None:
        article.tags_json = json.dumps(parse_tags(tags))
    if is_published is not None:
        _set_published(article, is_published)
    await session.flush()
    return article


async def delete_article(session: AsyncSession, article_id: str) -> None:
    article = await _get_article(session, article_id)
    await NewsRepository(session).delete_cascade(article)
    logger.info("Deleted article %s", article_id)


async def list_all_articles(session: AsyncSession) -> List[NewsArticle]:
    return await NewsRepository(session).list_all()


# --- public reads ------------------------------------------------------------


async def list_published(
    session: AsyncSession,
    category: Optional[str] = None,
    query: Optional[str] = None,
    limit: int = PUBLIC_LIST_LIMIT,
) -> List[NewsArticle]:
    return await NewsRepository(session).list_published(
        category=(category or "").strip() or None,
        query=(query or "").strip() or None,
        limit=limit,
    )


async def read_article(session: AsyncSession, article_id: str) -> NewsArticle:
    """Published article by id; each read counts one view."""
    repo = NewsRepository(session)
    article = await repo.get_by_id(article_id)
    if article is None or not article.is_published:
        raise NotFoundError("Article not found")
    await repo.increment(article.id, view_count=1)
    return await repo.refresh(article)


# --- comments ----------------------------------------------------------------


async def add_comment(
    session: AsyncSession,
    article_id: str,
    user_id: str,
    content: Optional[str],
) -> NewsComment:
    text = (content or "").strip()
    if not text:
        raise InvalidInputError("Comment cannot be empty")
    if len(text) > MAX_COMMENT_LENGTH:
        raise InvalidInputError(f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters")
    repo = NewsRepository(session)
    article = await repo.get_by_id(article_id)
    if article is None or not article.is_published:
        raise NotFoundError("Article not found")
    comment = await repo.add_comment(
        NewsComment(article_id=article.id, user_id=user_id, content=text)
    )
    await repo.increment(article.id, comment_count=1)
    return comment


async def list_comments(session: AsyncSession, article_id: str) -> List[NewsComment]:
    await _get_article(session, article_id)
    return await NewsRepository(session).list_comments(article_id)


# --- likes -------------------------------------------------------------------


async def toggle_like(session: AsyncSession, article_id: str, user_id: str) -> Dict[str, Any]:
    """Like, or unlike when the user already liked; returns the new state and count."""
    repo = NewsRepository(session)
    article = await repo.get_by_id(article_id)
    if article is None or not article.is_published:
        raise NotFoundError("Article not found")
    existing = await repo.get_like(article.id, user_id)
    if existing is None:
        await repo.add_like(NewsLike(article_id=article.id, user_id=user_id))
        await repo.increment(article.id, like_count=1)
        liked = True
    else:
        await repo.remove_like(existing)
        await repo.increment(article.id, like_count=-1)
        liked = False
    article = await repo.refresh(article)
    return {"liked": liked, "like_count": article.like_count}
