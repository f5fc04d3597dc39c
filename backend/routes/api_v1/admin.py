"""Admin endpoints: affiliates, conversions, matches, sync jobs, news, quizzes, discussions and roles.

Every route requires the admin role (``require_admin``).
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from core.dependencies import get_db_session, require_admin
from core.errors import ServiceError, http_error
from services import (
    affiliate_service,
    community_service,
    football_sync_service,
    match_scrape_service,
    match_service,
    news_aggregator_service,
    news_scrape_service,
    news_service,
    prediction_service,
    profile_service,
    quiz_service,
)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# --- bodies ------------------------------------------------------------------


class AffiliateCreateBody(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "company_name": "Mtaani Tips",
                "contact_email": "partners@mtaanitips.co.ke",
                "status": "approved",
                "commission_rate": 10,
            }
        }
    )

    company_name: str
    contact_email: str
    affiliate_code: Optional[str] = Field(default=None, description="Generated when blank")
    status: str = Field(default="pending", description="pending | approved | rejected | suspended")
    commission_rate: Optional[float] = Field(
        default=None, ge=0, description="Fraction (0.1) or percentage (10)"
    )
    user_id: Optional[str] = None


class AffiliateUpdateBody(BaseModel):
    company_name: Optional[str] = None
    contact_email: Optional[str] = None
    affiliate_code: Optional[str] = None
    status: Optional[str] = None
    commission_rate: Optional[float] = Field(default=None, ge=0)


class StatusBody(BaseModel):
    status: str


class MatchCreateBody(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "home_team": "Gor Mahia",
                "away_team": "AFC Leopards",
                "league": "Kenyan Premier League",
                "match_date": "2025-08-02",
                "start_time": "17:00",
                "status": "upcoming",
                "venue": "Nyayo Stadium",
            }
        }
    )

    home_team: Optional[str] = None
    away_team: Optional[str] = None
    league: Optional[str] = None
    match_date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    start_time: Optional[str] = Field(default=None, description="HH:MM (UTC)")
    status: str = Field(default="upcoming", description="upcoming | live | ft")
    venue: Optional[str] = None


class AccuracyBody(BaseModel):
    actual_score: str = Field(..., description="Final score as X-Y")


class ArticleCreateBody(BaseModel):
    title: str
    content: str
    excerpt: Optional[str] = None
    image_url: Optional[str] = None
    category: str = "General"
    tags: Optional[str] = Field(default=None, description="Comma-separated tags")
    is_published: bool = False


class ArticleUpdateBody(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[str] = None
    is_published: Optional[bool] = None


class QuestionBody(BaseModel):
    quiz_id: str
    question: str
    options: List[str]
    correct_answer: str
    explanation: Optional[str] = None
    difficulty: str = "medium"


class RoleBody(BaseModel):
    role: str = Field(..., description="admin | editor | viewer")


# --- affiliates ----------------------------------------------------------------


@router.get("/affiliates", summary="All affiliates, newest first")
async def get_affiliates(session: AsyncSession = Depends(get_db_session)):
    affiliates = await affiliate_service.list_affiliates(session)
    return {"affiliates": [affiliate_service.affiliate_to_dict(a) for a in affiliates]}


@router.post("/affiliates", summary="Create an affiliate", status_code=201)
async def post_affiliate(
    body: AffiliateCreateBody,
    session: AsyncSession = Depends(get_db_session),
):
    try:
        affiliate = await affiliate_service.admin_create(
            session,
            body.company_name,
            body.contact_email,
            affiliate_code=body.affiliate_code,
            status=body.status,
            commission_rate=body.commission_rate,
            user_id=body.user_id,
        )
    except ServiceError as e:
        raise http_error(e) from e
    return affiliate_service.affiliate_to_dict(affiliate)


@router.patch("/affiliates/{affiliate_id}", summary="Update an affiliate")
async def patch_affiliate(
    affiliate_id: str,
    body: AffiliateUpdateBody,
    session: AsyncSession = Depends(get_db_session),
):
    try:
        affiliate = await affiliate_service.admin_update(
            session,
            affiliate_id,
            company_name=body.company_name,
            contact_email=body.contact_email,
            affiliate_code=body.affiliate_code,
            status=body.status,
            commission_rate=body.commission_rate,
        )
    except ServiceError as e:
        raise http_error(e) from e
    return affiliate_service.affiliate_to_dict(affiliate)


@router.delete("/affiliates/{affiliate_id}", summary="Delete an affiliate with its links, clicks and conversions")
async def delete_affiliate(affiliate_id: str, session: AsyncSession = Depends(get_db_session)):
    try:
        await affiliate_service.admin_delete(session, affiliate_id)
    except ServiceError as e:
        raise http_error(e) from e
    return {"deleted": affiliate_id}


@router.post(
    "/affiliates/{affiliate_id}/status",
    summary="Approve, reject, suspend or reinstate an affiliate",
    description="Allowed: pending->approved|rejected, approved->suspended, suspended->approved, rejected->pending.",
)
async def post_affiliate_status(
    affiliate_id: str,
    body: StatusBody,
    session: AsyncSession = Depends(get_db_session),
):
    try:
        affiliate = await affiliate_service.set_status(session, affiliate_id, body.status)
    except ServiceError as e:
        raise http_error(e) from e
    return affiliate_service.affiliate_to_dict(affiliate)


@router.get("/affiliates/{affiliate_id}/stats", summary="Affiliate performance")
async def get_affiliate_stats(affiliate_id: str, session: AsyncSession = Depends(get_db_session)):
    try:
        return await affiliate_service.affiliate_stats(session, affiliate_id)
    except ServiceError as e:
        raise http_error(e) from e


@router.get("/affiliates/{affiliate_id}/links", summary="Affiliate links, newest first")
async def get_affiliate_links(affiliate_id: str, session: AsyncSession = Depends(get_db_session)):
    links = await affiliate_service.list_links(session, affiliate_id)
    return {"links": [affiliate_service.link_to_dict(link) for link in links]}


@router.get("/affiliates/{affiliate_id}/conversions", summary="Affiliate conversions, newest first")
async def get_affiliate_conversions(affiliate_id: str, session: AsyncSession = Depends(get_db_session)):
    conversions = await affiliate_service.list_conversions(session, affiliate_id)
    return {"conversions": [affiliate_service.conversion_to_dict(c) for c in conversions]}


@router.post("/links/{link_id}/toggle", summary="Activate or deactivate any affiliate link")
async def post_toggle_link(link_id: str, session: AsyncSession = Depends(get_db_session)):
    try:
        link = await affiliate_service.toggle_link(session, link_id)
    except ServiceError as e:
        raise http_error(e) from e
    return affiliate_service.link_to_dict(link)


@router.post(
    "/conversions/{conversion_id}/process",
    summary="Approve or reject a pending conversion",
    description="Approval adds the commission to the affiliate's total earnings.",
)
async def post_process_conversion(
    conversion_id: str,
    body: StatusBody,
    session: AsyncSession = Depends(get_db_session),
):
    try:
        conversion = await affiliate_service.process_conversion(session, conversion_id, body.status)
    except ServiceError as e:
        raise http_error(e) from e
    return affiliate_service.conversion_to_dict(conversion)


# --- matches and sync ----------------------------------------------------------


@router.post("/matches", summary="Add a match manually", status_code=201)
async def post_match(body: MatchCreateBody, session: AsyncSession = Depends(get_db_session)):
    try:
        match = await match_service.create_match(
            session,
            body.home_team,
            body.away_team,
            body.league,
            body.match_date,
            start_time=body.start_time,
            status=body.status,
            venue=body.venue,
        )
    except ServiceError as e:
        raise http_error(e) from e
    return match_service.match_to_dict(match)


@router.post("/matches/quick-add-caf", summary="Add today's CAF CHAN sample fixtures", status_code=201)
async def post_quick_add_caf(session: AsyncSession = Depends(get_db_session)):
    matches = await match_service.quick_add_caf_matches(session)
    return {"matches": [match_service.match_to_dict(m) for m in matches]}


@router.post(
    "/matches/scrape-caf",
    summary="Scrape CAF CHAN results through Firecrawl",
    description="FlashScore first, the CAF site on failure; the CHAN results are upserted by api_match_id.",
)
async def post_scrape_caf_matches(session: AsyncSession = Depends(get_db_session)):
    try:
        result = await match_scrape_service.scrape_caf_matches(session)
    except ServiceError as e:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to scrape CAF matches", "details": e.detail},
        )
    return {"success": True, **result}


@router.post(
    "/sync/football",
    summary="Sync fixtures and standings from API-Football",
    description="operation: live | fixtures | standings | all. Per-item failures are returned in results.errors.",
)
async def post_sync_football(
    operation: str = Query(default="all"),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        results = await football_sync_service.sync_football_data(session, operation=operation)
    except ServiceError as e:
        raise http_error(e) from e
    return {"success": True, "message": "Football data updated successfully", "results": results}


# --- predictions -----------------------------------------------------------------


@router.post("/predictions/generate", summary="Generate AI predictions for the next fixtures")
async def post_generate_predictions(session: AsyncSession = Depends(get_db_session)):
    try:
        predictions = await prediction_service.generate_predictions(session)
    except ServiceError as e:
        raise http_error(e) from e
    return {"predictions": predictions}


@router.post("/predictions/{prediction_id}/accuracy", summary="Record the actual result of a prediction")
async def post_prediction_accuracy(
    prediction_id: str,
    body: AccuracyBody,
    session: AsyncSession = Depends(get_db_session),
):
    try:
        row = await prediction_service.record_accuracy(session, prediction_id, body.actual_score)
    except ServiceError as e:
        raise http_error(e) from e
    return {
        "prediction_id": row.prediction_id,
        "actual_score": row.actual_score,
        "was_correct": row.was_correct,
        "confidence_score": row.confidence_score,
    }


# --- news ----------------------------------------------------------------------


@router.get("/news", summary="All articles including drafts")
async def get_all_articles(session: AsyncSession = Depends(get_db_session)):
    articles = await news_service.list_all_articles(session)
    return {"articles": [news_service.article_to_dict(a) for a in articles]}


@router.post("/news", summary="Create an article", status_code=201)
async def post_article(
    body: ArticleCreateBody,
    admin_id: str = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        article = await news_service.create_article(
            session,
            admin_id,
            body.title,
            body.content,
            excerpt=body.excerpt,
            image_url=body.image_url,
            category=body.category,
            tags=body.tags,
            is_published=body.is_published,
        )
    except ServiceError as e:
        raise http_error(e) from e
    return news_service.article_to_dict(article)


@router.patch("/news/{article_id}", summary="Update an article")
async def patch_article(
    article_id: str,
    body: ArticleUpdateBody,
    session: AsyncSession = Depends(get_db_session),
):
    try:
        article = await news_service.update_article(
            session,
            article_id,
            title=body.title,
            content=body.content,
            excerpt=body.excerpt,
            image_url=body.image_url,
            category=body.category,
            tags=body.tags,
            is_published=body.is_published,
        )
    except ServiceError as e:
        raise http_error(e) from e
    return news_service.article_to_dict(article)


@router.delete("/news/{article_id}", summary="Delete an article with its comments and likes")
async def delete_article(article_id: str, session: AsyncSession = Depends(get_db_session)):
    try:
        await news_service.delete_article(session, article_id)
    except ServiceError as e:
        raise http_error(e) from e
    return {"deleted": article_id}


@router.post("/news/scrape", summary="Scrape CAF news sources through Firecrawl")
async def post_scrape_news(session: AsyncSession = Depends(get_db_session)):
    try:
        return await news_scrape_service.scrape_caf_news(session)
    except ServiceError as e:
        raise http_error(e) from e


@router.post(
    "/news/aggregate",
    summary="Aggregate NewsAPI, RSS and scraped news",
    description="With save=true the aggregate is upserted into news_articles as published system articles.",
)
async def post_aggregate_news(
    save: bool = Query(default=True),
    session: AsyncSession = Depends(get_db_session),
):
    articles = await news_aggregator_service.aggregate_news(session)
    saved = await news_aggregator_service.save_aggregated(session, articles) if save else 0
    return {
        "articles": [news_aggregator_service.aggregated_to_dict(a) for a in articles],
        "count": len(articles),
        "saved": saved,
    }


# --- quizzes -------------------------------------------------------------------


@router.post("/quizzes/questions", summary="Add a quiz question", status_code=201)
async def post_question(body: QuestionBody, session: AsyncSession = Depends(get_db_session)):
    try:
        question = await quiz_service.add_question(
            session,
            body.quiz_id,
            body.question,
            body.options,
            body.correct_answer,
            explanation=body.explanation,
            difficulty=body.difficulty,
        )
    except ServiceError as e:
        raise http_error(e) from e
    return {
        **quiz_service.question_to_public_dict(question),
        "correct_answer": question.correct_answer,
        "explanation": question.explanation,
    }


# --- community ---------------------------------------------------------------


@router.post("/discussions/{discussion_id}/pin", summary="Pin or unpin a discussion")
async def post_pin_discussion(
    discussion_id: str,
    pinned: bool = Query(default=True),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        discussion = await community_service.set_pinned(session, discussion_id, pinned)
    except ServiceError as e:
        raise http_error(e) from e
    return community_service.discussion_to_dict(discussion)


# --- roles ---------------------------------------------------------------------


@router.get("/roles/{user_id}", summary="Roles held by a user")
async def get_roles(user_id: str, session: AsyncSession = Depends(get_db_session)):
    return {"user_id": user_id, "roles": await profile_service.get_user_roles(session, user_id)}


@router.post("/roles/{user_id}", summary="Grant a role")
async def post_role(user_id: str, body: RoleBody, session: AsyncSession = Depends(get_db_session)):
    try:
        roles = await profile_service.grant_role(session, user_id, body.role)
    except ServiceError as e:
        raise http_error(e) from e
    return {"user_id": user_id, "roles": roles}


@router.delete("/roles/{user_id}/{role}", summary="Revoke a role")
async def delete_role(user_id: str, role: str, session: AsyncSession = Depends(get_db_session)):
    try:
        roles = await profile_service.revoke_role(session, user_id, role)
    except ServiceError as e:
        raise http_error(e) from e
    return {"user_id": user_id, "roles": roles}
