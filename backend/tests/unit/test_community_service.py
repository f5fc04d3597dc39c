"""Unit tests for polls (validation, one vote per user, counters) and discussions (ordering, views, replies)."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

_backend = Path(__file__).resolve().parent.parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

import pytest

from core.errors import ConflictError, InvalidInputError, NotFoundError
from models.discussion import Discussion
from services import community_service as svc

NOW = datetime(2025, 8, 10, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_create_poll_validation(session) -> None:
    with pytest.raises(InvalidInputError):
        await svc.create_poll(session, "u1", "  ", ["Yes", "No"])
    with pytest.raises(InvalidInputError):
        await svc.create_poll(session, "u1", "Who wins CHAN?", ["Kenya"])
    with pytest.raises(InvalidInputError):
        await svc.create_poll(session, "u1", "Who wins CHAN?", ["Kenya", " "])

    poll = await svc.create_poll(
        session, "u1", " Who wins CHAN? ", [" Kenya ", "Morocco"], description="  ", expires_in_days=7, now=NOW
    )
    assert poll["title"] == "Who wins CHAN?"
    assert poll["description"] is None
    assert [o["option_text"] for o in poll["options"]] == ["Kenya", "Morocco"]
    assert poll["expires_at"] == (NOW + timedelta(days=7)).isoformat()
    assert poll["total_votes"] == 0

    forever = await svc.create_poll(session, "u1", "Best derby?", ["Mashemeji", "Nairobi"], expires_in_days=0)
    assert forever["expires_at"] is None


@pytest.mark.asyncio
async def test_one_vote_per_user(session) -> None:
    poll = await svc.create_poll(session, "u1", "Who wins CHAN?", ["Kenya", "Morocco"])
    kenya, morocco = (o["id"] for o in poll["options"])

    voted = await svc.vote(session, poll["id"], kenya, "fan-1")
    assert voted["user_vote"] == kenya
    await svc.vote(session, poll["id"], morocco, "fan-2")
    await svc.vote(session, poll["id"], kenya, "fan-3")

    with pytest.raises(ConflictError):
        await svc.vote(session, poll["id"], morocco, "fan-1")

    (listed,) = await svc.list_polls(session, user_id="fan-2")
    assert listed["total_votes"] == 3
    assert [o["vote_count"] for o in listed["options"]] == [2, 1]
    assert listed["user_vote"] == morocco
    (anonymous,) = await svc.list_polls(session)
    assert anonymous["user_vote"] is None


@pytest.mark.asyncio
async def test_vote_rejects_foreign_option_and_closed_polls(session) -> None:
    first = await svc.create_poll(session, "u1", "Who wins CHAN?", ["Kenya", "Morocco"])
    other = await svc.create_poll(session, "u1", "Best derby?", ["Mashemeji", "Nairobi"], expires_in_days=1, now=NOW)

    with pytest.raises(InvalidInputError):
        await svc.vote(session, first["id"], other["options"][0]["id"], "fan-1")
    with pytest.raises(NotFoundError):
        await svc.vote(session, "missing", first["options"][0]["id"], "fan-1")
    with pytest.raises(InvalidInputError):
        await svc.vote(session, other["id"], other["options"][0]["id"], "fan-1", now=NOW + timedelta(days=2))

    ok = await svc.vote(session, other["id"], other["options"][0]["id"], "fan-1", now=NOW + timedelta(hours=1))
    assert ok["total_votes"] == 1


@pytest.mark.asyncio
async def test_discussion_validation(session) -> None:
    with pytest.raises(InvalidInputError):
        await svc.create_discussion(session, "u1", "Title", "  ")
    with pytest.raises(InvalidInputError):
        await svc.create_discussion(session, "u1", "Title", "Body", category="politics")
    with pytest.raises(InvalidInputError):
        await svc.list_discussions(session, category="politics")

    discussion = await svc.create_discussion(session, "u1", " Harambee tactics ", " 4-3-3? ", category="Teams")
    assert (discussion.title, discussion.content, discussion.category) == ("Harambee tactics", "4-3-3?", "teams")


@pytest.mark.asyncio
async def test_pinned_discussions_first(session) -> None:
    session.add_all([
        Discussion(user_id="u1", title="Old pinned", content="c", created_at=NOW - timedelta(days=3), is_pinned=True),
        Discussion(user_id="u1", title="Newest", content="c", created_at=NOW),
        Discussion(user_id="u1", title="Older", content="c", category="matches", created_at=NOW - timedelta(days=1)),
    ])
    await session.flush()

    titles = [d.title for d in await svc.list_discussions(session)]
    assert titles == ["Old pinned", "Newest", "Older"]
    assert [d.title for d in await svc.list_discussions(session, "matches")] == ["Older"]

    older = (await svc.list_discussions(session, "matches"))[0]
    await svc.set_pinned(session, older.id, True)
    assert [d.title for d in await svc.list_discussions(session)] == ["Older", "Old pinned", "Newest"]


@pytest.mark.asyncio
async def test_replies_and_views_are_counted(session) -> None:
    discussion = await svc.create_discussion(session, "u1", "Who starts up front?", "Olunga or Omala?")

    with pytest.raises(InvalidInputError):
        await svc.add_reply(session, discussion.id, "u2", "   ")
    with pytest.raises(NotFoundError):
        await svc.add_reply(session, "missing", "u2", "Olunga")

    await svc.add_reply(session, discussion.id, "u2", " Olunga ")
    await svc.add_reply(session, discussion.id, "u3", "Omala")

    replies = await svc.list_replies(session, discussion.id)
    assert [r.content for r in replies] == ["Olunga", "Omala"]

    opened = await svc.open_discussion(session, discussion.id)
    assert opened.reply_count == 2
    assert opened.view_count == 1
    opened = await svc.open_discussion(session, discussion.id)
    assert opened.view_count == 2
