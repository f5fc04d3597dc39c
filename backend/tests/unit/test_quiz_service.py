"""Unit tests for quiz scoring tiers, question validation, session ownership and the leaderboard window."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

_backend = Path(__file__).resolve().parent.parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

import pytest

from core.errors import InvalidInputError, NotFoundError
from models.quiz_session import QuizSession
from services import quiz_service as svc

NOW = datetime(2025, 6, 14, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "score,total,percentage,badge,points",
    [
        (9, 10, 90, "Excellent!", 1000),
        (7, 10, 70, "Good Job!", 750),
        (2, 3, 67, "Not Bad", 500),
        (5, 8, 63, "Not Bad", 500),
        (7, 8, 88, "Good Job!", 750),
        (1, 8, 13, "Try Again", 250),
        (4, 10, 40, "Try Again", 250),
        (0, 0, 0, "Try Again", 250),
    ],
)
def test_quiz_result_tiers(score, total, percentage, badge, points) -> None:
    result = svc.quiz_result(score, total)
    assert (result["percentage"], result["badge"], result["points"]) == (percentage, badge, points)


@pytest.mark.asyncio
async def test_add_question_validation(session) -> None:
    with pytest.raises(InvalidInputError):
        await svc.add_question(session, "1", "  ", ["A", "B"], "A")
    with pytest.raises(InvalidInputError):
        await svc.add_question(session, "1", "Q?", ["A"], "A")
    with pytest.raises(InvalidInputError):
        await svc.add_question(session, "1", "Q?", ["A", " A "], "A")
    with pytest.raises(InvalidInputError):
        await svc.add_question(session, "1", "Q?", ["A", "B"], "C")
    with pytest.raises(InvalidInputError):
        await svc.add_question(session, "1", "Q?", ["A", "B"], "A", difficulty="brutal")

    question = await svc.add_question(
        session, "2", " Who captains Harambee Stars? ", [" Michael Olunga ", "Victor Wanyama", ""], "Michael Olunga",
        explanation="  ", difficulty="Easy",
    )
    public = svc.question_to_public_dict(question)
    assert public["question"] == "Who captains Harambee Stars?"
    assert public["options"] == ["Michael Olunga", "Victor Wanyama"]
    assert public["difficulty"] == "easy"
    assert question.explanation is None


@pytest.mark.asyncio
async def test_submit_checks_owner(session) -> None:
    question = await svc.add_question(session, "1", "Q?", ["A", "B"], "A")
    quiz_session = await svc.start_session(session, "1", user_id="owner")

    with pytest.raises(NotFoundError):
        await svc.submit_session(session, quiz_session.id, {question.id: "A"}, user_id="someone-else")
    with pytest.raises(NotFoundError):
        await svc.submit_session(session, "missing", {})

    out = await svc.submit_session(session, quiz_session.id, {question.id: "A"}, user_id="owner")
    assert out["result"]["score"] == 1
    assert out["session"]["answers"] == {question.id: "A"}
    assert out["session"]["time_taken"] >= 0


@pytest.mark.asyncio
async def test_anonymous_session_unanswered_questions_score_zero(session) -> None:
    await svc.add_question(session, "3", "Q1?", ["A", "B"], "A")
    await svc.add_question(session, "3", "Q2?", ["A", "B"], "B")
    quiz_session = await svc.start_session(session, "3")

    out = await svc.submit_session(session, quiz_session.id, {})
    assert out["result"]["score"] == 0
    assert [q["selected_answer"] for q in out["questions"]] == [None, None]


@pytest.mark.asyncio
async def test_leaderboard_counts_last_seven_days_only(session) -> None:
    def completed(user_id, score, total, days_ago):
        return QuizSession(
            quiz_id="1",
            user_id=user_id,
            total_questions=total,
            score=score,
            answers_json="{}",
            completed_at=NOW - timedelta(days=days_ago),
        )

    session.add_all([
        completed("amina", 10, 10, 1),
        completed("amina", 5, 10, 3),
        completed("brian", 7, 10, 2),
        completed("brian", 10, 10, 9),
        completed(None, 10, 10, 0),
        QuizSession(quiz_id="1", user_id="carol", total_questions=5, score=0, answers_json="{}"),
    ])
    await session.flush()

    board = await svc.weekly_leaderboard(session, now=NOW)
    assert board == [
        {"rank": 1, "user_id": "amina", "points": 1500, "quizzes_completed": 2},
        {"rank": 2, "user_id": "brian", "points": 750, "quizzes_completed": 1},
    ]
