"""Public news: published articles, comments, likes, aggregated and scraped feeds."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from core.dependencies import get_db_session, require_user
from core.errors import ServiceError, http_error
from services import news_aggregator_service, news_scrape_service, news_service

router = APIRouter(prefix="/news", tags=["news"])


class CommentBody(BaseModel):
    content: str = Field(..., description="Comment text (trimmed, 1-2000 characters)")


@router.get("", summary="Published articles, newest first")
async def get_articles(
    category: Optional[str] = Query(default=None),
    q: Optional[str] = Query(default=None, description="Search title, content and tags"),
    limit: int = Query(default=news_service.PUBLIC_LIST_LIMIT, ge=1, le=100),
    session: AsyncSession = Depends(get_db_session),
):
    articles = await news_service.list_published(session, category=category, query=q, limit=limit)
    return {"articles": [news_service.article_to_dict(a) for a in articles]}


@router.get(
    "/aggregated",
    summary="Live aggregate of NewsAPI, RSS feeds and scraped headlines",
    description="Nothing is stored; admins persist the aggregate through /admin/news/aggregate.",
)
async def get_aggregated(session: AsyncSession = Depends(get_db_session)):
    articles = await news_aggregator_service.aggregate_news(session)
    return {
        "articles": [news_aggregator_service.aggregated_to_dict(a) for a in articles],
        "count": len(articles),
    }


@router.get("/scraped", summary="Latest scraped CAF headlines")
async def get_scraped(
    limit: int = Query(default=20, ge=1, le=100),
    session: AsyncSession = Depends(get_db_session),
):
    return {"articles": await news_scrape_service.list_scraped(session, limit=limit)}


@router.get("/{article_id}", summary="Read a published article (counts one view)")
async def get_article(article_id: str, session: AsyncSession = Depends(get_db_session)):
    try:
        article = await news_service.read_article(session, article_id)
    except ServiceError as e:
        raise http_error(e) from e
    return news_service.article_to_dict(article)


@router.get("/{article_id}/comments", summary="Comments, oldest first")
async def get_comments(article_id: str, session: AsyncSession = Depends(get_db_session)):
    try:
        comments = await news_service.list_comments(session, article_id)
    except ServiceError as e:
        raise http_error(e) from e
    return {"comments": [news_service.comment_to_dict(c) for c in comments]}


@router.post("/{article_id}/comments", summary="Comment on an article", status_code=201)
async def post_comment(
    article_id: str,
    body: CommentBody,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        comment = await news_service.add_comment(session, article_id, user_id, body.content)
    except ServiceError as e:
        raise http_error(e) from e
    return news_service.comment_to_dict(comment)


@router.post("/{article_id}/like", summary="Like or unlike an article")
async def post_like(
    article_id: str,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await news_service.toggle_like(session, article_id, user_id)
    except ServiceError as e:
        raise http_error(e) from e
