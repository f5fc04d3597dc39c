"""Quizzes: questions, timed sessions, scoring, rewards and the weekly leaderboard."""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, InvalidInputError, NotFoundError
from models.quiz_question import QUIZ_DIFFICULTIES, QuizQuestion
from models.quiz_session import QuizSession
from repositories.quiz_repo import QuizRepository
from services import metrics

logger = logging.getLogger(__name__)

QUIZ_CATALOGUE: List[Dict[str, Any]] = [
    {
        "id": "1",
        "title": "Premier League Legends",
        "description": "Test your knowledge about Premier League history and legendary players",
        "difficulty": "Medium",
        "questions": 20,
        "timeLimit": "15 min",
        "participants": 1247,
        "reward": "500 points",
        "category": "History",
    },
    {
        "id": "2",
        "title": "Kenyan Football Heroes",
        "description": "How well do you know Harambee Stars and local football legends?",
        "difficulty": "Easy",
        "questions": 15,
        "timeLimit": "10 min",
        "participants": 892,
        "reward": "300 points",
        "category": "Local",
    },
    {
        "id": "3",
        "title": "World Cup Trivia",
        "description": "From 1930 to 2022 - the ultimate World Cup knowledge test",
        "difficulty": "Hard",
        "questions": 25,
        "timeLimit": "20 min",
        "participants": 2156,
        "reward": "1000 points",
        "category": "International",
    },
    {
        "id": "4",
        "title": "Transfer Market Madness",
        "description": "Can you guess the transfer fees and destination clubs?",
        "difficulty": "Medium",
        "questions": 18,
        "timeLimit": "12 min",
        "participants": 756,
        "reward": "600 points",
        "category": "Transfers",
    },
]

# (minimum percentage, badge, reward points), highest threshold first.
RESULT_TIERS = (
    (90, "Excellent!", 1000),
    (70, "Good Job!", 750),
    (50, "Not Bad", 500),
    (0, "Try Again", 250),
)

LEADERBOARD_SIZE = 10
LEADERBOARD_DAYS = 7


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def quiz_result(score: int, total_questions: int) -> Dict[str, Any]:
    """Percentage (rounded), badge and reward points for a score."""
    percentage = metrics.percentage(score, total_questions)
    for threshold, badge, points in RESULT_TIERS:
        if percentage >= threshold:
            break
    return {
        "score": score,
        "total_questions": total_questions,
        "percentage": percentage,
        "badge": badge,
        "points": points,
    }


def question_options(question: QuizQuestion) -> List[str]:
    try:
        options = json.loads(question.options_json or "[]")
    except ValueError:
        return []
    return [str(o) for o in options] if isinstance(options, list) else []


def question_to_public_dict(question: QuizQuestion) -> Dict[str, Any]:
    """Question as shown to players (no correct answer or explanation)."""
    return {
        "id": question.id,
        "quiz_id": question.quiz_id,
        "question": question.question,
        "options": question_options(question),
        "difficulty": question.difficulty,
    }


def session_to_dict(quiz_session: QuizSession) -> Dict[str, Any]:
    try:
        answers = json.loads(quiz_session.answers_json or "{}")
    except ValueError:
        answers = {}
    return {
        "id": quiz_session.id,
        "quiz_id": quiz_session.quiz_id,
        "user_id": quiz_session.user_id,
        "total_questions": quiz_session.total_questions,
        "score": quiz_session.score,
        "answers": answers,
        "time_taken": quiz_session.time_taken,
        "completed_at": quiz_session.completed_at.isoformat() if quiz_session.completed_at else None,
    }


async def add_question(
    session: AsyncSession,
    quiz_id: str,
    question: str,
    options: List[str],
    correct_answer: str,
    explanation: Optional[str] = None,
    difficulty: str = "medium",
) -> QuizQuestion:
    text = (question or "").strip()
    if not (quiz_id or "").strip() or not text:
        raise InvalidInputError("quiz_id and question are required")
    cleaned = [str(o).strip() for o in options or [] if str(o).strip()]
    if len(cleaned) < 2:
        raise InvalidInputError("A question needs at least two options")
    if len(set(cleaned)) != len(cleaned):
        raise InvalidInputError("Options must be distinct")
    answer = (correct_answer or "").strip()
    if answer not in cleaned:
        raise InvalidInputError("Correct answer must be one of the options")
    level = (difficulty or "").strip().lower()
    if level not in QUIZ_DIFFICULTIES:
        raise InvalidInputError(f"difficulty must be one of {', '.join(QUIZ_DIFFICULTIES)}")
    row = QuizQuestion(
        quiz_id=quiz_id.strip(),
        question=text,
        options_json=json.dumps(cleaned),
        correct_answer=answer,
        explanation=(explanation or "").strip() or None,
        difficulty=level,
    )
    return await QuizRepository(session).add_question(row)


async def list_questions(session: AsyncSession, quiz_id: str) -> List[QuizQuestion]:
    return await QuizRepository(session).list_questions(quiz_id)


async def start_session(
    session: AsyncSession,
    quiz_id: str,
    user_id: Optional[str] = None,
) -> QuizSession:
    repo = QuizRepository(session)
    questions = await repo.list_questions(quiz_id)
    if not questions:
        raise NotFoundError("No questions found for this quiz")
    quiz_session = QuizSession(
        quiz_id=quiz_id,
        user_id=user_id,
        total_questions=len(questions),
        score=0,
        answers_json="{}",
    )
    return await repo.add(quiz_session)


async def submit_session(
    session: AsyncSession,
    session_id: str,
    answers: Dict[str, str],
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Score the answers (question id -> chosen option) and close the session."""
    repo = QuizRepository(session)
    quiz_session = await repo.get_by_id(session_id)
    if quiz_session is None:
        raise NotFoundError("Quiz session not found")
    if quiz_session.user_id and user_id != quiz_session.user_id:
        raise NotFoundError("Quiz session not found")
    if quiz_session.completed_at is not None:
        raise ConflictError("Quiz session already submitted")

    now = now or datetime.now(timezone.utc)
    questions = await repo.list_questions(quiz_session.quiz_id)
    answers = {str(k): str(v) for k, v in (answers or {}).items()}
    breakdown: List[Dict[str, Any]] = []
    score = 0
    for question in questions:
        chosen = answers.get(question.id)
        correct = chosen is not None and chosen == question.correct_answer
        score += int(correct)
        breakdown.append({
            "question_id": question.id,
            "selected_answer": chosen,
            "correct_answer": question.correct_answer,
            "is_correct": correct,
            "explanation": question.explanation,
        })

    quiz_session.score = score
    quiz_session.answers_json = json.dumps(answers)
    quiz_session.completed_at = now
    quiz_session.time_taken = max(
        0, int((_as_utc(now) - _as_utc(quiz_session.created_at)).total_seconds())
    )
    await session.flush()
    logger.info(
        "Quiz session %s completed: %d/%d", quiz_session.id, score, quiz_session.total_questions
    )
    return {
        "session": session_to_dict(quiz_session),
        "result": quiz_result(score, quiz_session.total_questions),
        "questions": breakdown,
    }


def quiz_catalogue() -> List[Dict[str, Any]]:
    return [dict(q) for q in QUIZ_CATALOGUE]


async def weekly_leaderboard(
    session: AsyncSession,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Reward points per user over completed sessions in the last seven days (top 10)."""
    now = _as_utc(now or datetime.now(timezone.utc))
    since = now - timedelta(days=LEADERBOARD_DAYS)
    points: Dict[str, int] = defaultdict(int)
    quizzes: Dict[str, int] = defaultdict(int)
    for row in await QuizRepository(session).list_completed_sessions():
        if not row.user_id or row.completed_at is None or _as_utc(row.completed_at) < since:
            continue
        points[row.user_id] += quiz_result(row.score, row.total_questions)["points"]
        quizzes[row.user_id] += 1
    ranked = sorted(points.items(), key=lambda item: (-item[1], item[0]))[:LEADERBOARD_SIZE]
    return [
        {"rank": i, "user_id": uid, "points": total, "quizzes_completed": quizzes[uid]}
        for i, (uid, total) in enumerate(ranked, start=1)
    ]
