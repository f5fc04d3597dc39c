"""Community features: polls with one vote per user, and discussion threads with replies."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, InvalidInputError, NotFoundError
from models.discussion import DISCUSSION_CATEGORIES, Discussion, DiscussionReply
from models.poll import Poll, PollOption, PollVote
from ops.ops_events import log_poll_vote
from repositories.discussion_repo import DiscussionRepository
from repositories.poll_repo import PollOptionRepository, PollRepository
from services.news_service import MAX_COMMENT_LENGTH, format_relative_time

logger = logging.getLogger(__name__)

MIN_POLL_OPTIONS = 2


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# --- polls -------------------------------------------------------------------


def poll_to_dict(
    poll: Poll,
    options: Sequence[PollOption],
    user_vote: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "id": poll.id,
        "user_id": poll.user_id,
        "title": poll.title,
        "description": poll.description,
        "expires_at": _iso(poll.expires_at),
        "is_active": poll.is_active,
        "total_votes": poll.total_votes,
        "created_at": _iso(poll.created_at),
        "options": [
            {"id": o.id, "option_text": o.option_text, "vote_count": o.vote_count}
            for o in options
        ],
        "user_vote": user_vote,
    }


async def create_poll(
    session: AsyncSession,
    user_id: str,
    title: Optional[str],
    options: Sequence[str],
    description: Optional[str] = None,
    expires_in_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    title = (title or "").strip()
    if not title:
        raise InvalidInputError("Poll title is required")
    texts = [(text or "").strip() for text in options]
    if any(not text for text in texts):
        raise InvalidInputError("Poll options cannot be empty")
    if len(texts) < MIN_POLL_OPTIONS:
        raise InvalidInputError(f"A poll needs at least {MIN_POLL_OPTIONS} options")

    now = now or datetime.now(timezone.utc)
    expires_at = now + timedelta(days=expires_in_days) if expires_in_days and expires_in_days > 0 else None
    poll = await PollRepository(session).add(
        Poll(
            user_id=user_id,
            title=title,
            description=(description or "").strip() or None,
            expires_at=expires_at,
        )
    )
    option_repo = PollOptionRepository(session)
    created = [await option_repo.add(PollOption(poll_id=poll.id, option_text=text)) for text in texts]
    logger.info("Poll %s created by %s with %d options", poll.id, user_id, len(created))
    return poll_to_dict(poll, created)


async def list_polls(session: AsyncSession, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Active polls, newest first, with options and the caller's vote."""
    repo = PollRepository(session)
    polls = await repo.list_active()
    poll_ids = [p.id for p in polls]
    options = await PollOptionRepository(session).list_for_polls(poll_ids)
    votes = await repo.user_votes(poll_ids, user_id) if user_id else {}
    return [poll_to_dict(p, options[p.id], votes.get(p.id)) for p in polls]


async def vote(
    session: AsyncSession,
    poll_id: str,
    option_id: str,
    user_id: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    repo = PollRepository(session)
    poll = await repo.get_by_id(poll_id)
    if poll is None:
        raise NotFoundError("Poll not found")
    now = now or datetime.now(timezone.utc)
    if not poll.is_active or (poll.expires_at is not None and _as_utc(poll.expires_at) <= now):
        raise InvalidInputError("This poll is closed")
    option_repo = PollOptionRepository(session)
    option = await option_repo.get_by_id(option_id)
    if option is None or option.poll_id != poll.id:
        raise InvalidInputError("Option does not belong to this poll")
    if await repo.get_vote(poll.id, user_id) is not None:
        raise ConflictError("You have already voted in this poll")

    await repo.add_vote(PollVote(poll_id=poll.id, poll_option_id=option.id, user_id=user_id))
    await option_repo.increment(option.id, vote_count=1)
    await repo.increment(poll.id, total_votes=1)
    log_poll_vote(poll.id, option.id)

    poll = await repo.refresh(poll)
    options = (await option_repo.list_for_polls([poll.id]))[poll.id]
    for o in options:
        await option_repo.refresh(o)
    return poll_to_dict(poll, options, option.id)


# --- discussions ---------------------------------------------------------------


def discussion_to_dict(discussion: Discussion, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "id": discussion.id,
        "user_id": discussion.user_id,
        "title": discussion.title,
        "content": discussion.content,
        "category": discussion.category,
        "is_pinned": discussion.is_pinned,
        "reply_count": discussion.reply_count,
        "view_count": discussion.view_count,
        "created_at": _iso(discussion.created_at),
        "time_ago": format_relative_time(discussion.created_at, now) if discussion.created_at else None,
    }


def reply_to_dict(reply: DiscussionReply, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "id": reply.id,
        "discussion_id": reply.discussion_id,
        "user_id": reply.user_id,
        "content": reply.content,
        "created_at": _iso(reply.created_at),
        "time_ago": format_relative_time(reply.created_at, now) if reply.created_at else None,
    }


async def _get_discussion(session: AsyncSession, discussion_id: str) -> Discussion:
    discussion = await DiscussionRepository(session).get_by_id(discussion_id)
    if discussion is None:
        raise NotFoundError("Discussion not found")
    return discussion


async def create_discussion(
    session: AsyncSession,
    user_id: str,
    title: Optional[str],
    content: Optional[str],
    category: str = "general",
) -> Discussion:
    title = (title or "").strip()
    content = (content or "").strip()
    if not title or not content:
        raise InvalidInputError("Title and content are required")
    category = (category or "general").strip().lower()
    if category not in DISCUSSION_CATEGORIES:
        raise InvalidInputError(f"Category must be one of: {', '.join(DISCUSSION_CATEGORIES)}")
    discussion = await DiscussionRepository(session).add(
        Discussion(user_id=user_id, title=title, content=content, category=category)
    )
    logger.info("Discussion %s started by %s in %s", discussion.id, user_id, category)
    return discussion


async def list_discussions(session: AsyncSession, category: Optional[str] = None) -> List[Discussion]:
    category = (category or "").strip().lower() or None
    if category is not None and category not in DISCUSSION_CATEGORIES:
        raise InvalidInputError(f"Category must be one of: {', '.join(DISCUSSION_CATEGORIES)}")
    return await DiscussionRepository(session).list_threads(category=category)


async def open_discussion(session: AsyncSession, discussion_id: str) -> Discussion:
    """Discussion by id; each open counts one view."""
    discussion = await _get_discussion(session, discussion_id)
    repo = DiscussionRepository(session)
    await repo.increment(discussion.id, view_count=1)
    return await repo.refresh(discussion)


async def list_replies(session: AsyncSession, discussion_id: str) -> List[DiscussionReply]:
    await _get_discussion(session, discussion_id)
    return await DiscussionRepository(session).list_replies(discussion_id)


async def add_reply(
    session: AsyncSession,
    discussion_id: str,
    user_id: str,
    content: Optional[str],
) -> DiscussionReply:
    text = (content or "").strip()
    if not text:
        raise InvalidInputError("Reply cannot be empty")
    if len(text) > MAX_COMMENT_LENGTH:
        raise InvalidInputError(f"Reply cannot exceed {MAX_COMMENT_LENGTH} characters")
    discussion = await _get_discussion(session, discussion_id)
    repo = DiscussionRepository(session)
    reply = await repo.add_reply(DiscussionReply(discussion_id=discussion.id, user_id=user_id, content=text))
    await repo.increment(discussion.id, reply_count=1)
    return reply


async def set_pinned(session: AsyncSession, discussion_id: str, is_pinned: bool) -> Discussion:
    discussion = await _get_discussion(session, discussion_id)
    discussion.is_pinned = is_pinned
    await session.flush()
    return discussion
