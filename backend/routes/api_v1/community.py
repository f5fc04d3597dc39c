"""Community: polls (one vote per user) and discussion threads with replies."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from core.dependencies import get_db_session, get_optional_user_id, require_user
from core.errors import ServiceError, http_error
from services import community_service

router = APIRouter(tags=["community"])


class PollBody(BaseModel):
    title: str
    description: Optional[str] = None
    options: List[str] = Field(..., description="At least two non-empty options")
    expires_in_days: Optional[int] = Field(default=None, ge=0, description="0 or null: never expires")


class VoteBody(BaseModel):
    option_id: str


class DiscussionBody(BaseModel):
    title: str
    content: str
    category: str = Field(default="general", description="general | matches | teams | players | predictions | news")


class ReplyBody(BaseModel):
    content: str


# --- polls -------------------------------------------------------------------


@router.get("/polls", summary="Active polls, newest first, with the caller's vote")
async def get_polls(
    user_id: Optional[str] = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    return {"polls": await community_service.list_polls(session, user_id)}


@router.post("/polls", summary="Create a poll", status_code=201)
async def post_poll(
    body: PollBody,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await community_service.create_poll(
            session,
            user_id,
            body.title,
            body.options,
            description=body.description,
            expires_in_days=body.expires_in_days,
        )
    except ServiceError as e:
        raise http_error(e) from e


@router.post("/polls/{poll_id}/vote", summary="Vote once in a poll")
async def post_vote(
    poll_id: str,
    body: VoteBody,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await community_service.vote(session, poll_id, body.option_id, user_id)
    except ServiceError as e:
        raise http_error(e) from e


# --- discussions ---------------------------------------------------------------


@router.get("/discussions", summary="Discussions, pinned first then newest")
async def get_discussions(
    category: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        discussions = await community_service.list_discussions(session, category)
    except ServiceError as e:
        raise http_error(e) from e
    return {"discussions": [community_service.discussion_to_dict(d) for d in discussions]}


@router.post("/discussions", summary="Start a discussion", status_code=201)
async def post_discussion(
    body: DiscussionBody,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        discussion = await community_service.create_discussion(
            session, user_id, body.title, body.content, category=body.category
        )
    except ServiceError as e:
        raise http_error(e) from e
    return community_service.discussion_to_dict(discussion)


@router.get("/discussions/{discussion_id}", summary="Open a discussion (counts one view) with its replies")
async def get_discussion(discussion_id: str, session: AsyncSession = Depends(get_db_session)):
    try:
        discussion = await community_service.open_discussion(session, discussion_id)
        replies = await community_service.list_replies(session, discussion_id)
    except ServiceError as e:
        raise http_error(e) from e
    return {
        "discussion": community_service.discussion_to_dict(discussion),
        "replies": [community_service.reply_to_dict(r) for r in replies],
    }


@router.post("/discussions/{discussion_id}/replies", summary="Reply to a discussion", status_code=201)
async def post_reply(
    discussion_id: str,
    body: ReplyBody,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        reply = await community_service.add_reply(session, discussion_id, user_id, body.content)
    except ServiceError as e:
        raise http_error(e) from e
    return community_service.reply_to_dict(reply)
