"""Quiz catalogue, questions, sessions and the weekly leaderboard."""

from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from core.dependencies import get_db_session, get_optional_user_id
from core.errors import ServiceError, http_error
from services import quiz_service

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


class SubmitBody(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"example": {"answers": {"<question id>": "Alan Shearer"}}}
    )

    answers: Dict[str, str] = Field(default_factory=dict, description="question id -> chosen option")


@router.get("", summary="Quiz catalogue")
def get_catalogue():
    return {"quizzes": quiz_service.quiz_catalogue()}


@router.get("/leaderboard", summary="Weekly leaderboard by reward points (top 10)")
async def get_leaderboard(session: AsyncSession = Depends(get_db_session)):
    return {"leaderboard": await quiz_service.weekly_leaderboard(session)}


@router.get("/{quiz_id}/questions", summary="Questions without answers, in quiz order")
async def get_questions(quiz_id: str, session: AsyncSession = Depends(get_db_session)):
    questions = await quiz_service.list_questions(session, quiz_id)
    return {"questions": [quiz_service.question_to_public_dict(q) for q in questions]}


@router.post("/{quiz_id}/sessions", summary="Start a quiz session", status_code=201)
async def post_session(
    quiz_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        quiz_session = await quiz_service.start_session(session, quiz_id, user_id=user_id)
    except ServiceError as e:
        raise http_error(e) from e
    return quiz_service.session_to_dict(quiz_session)


@router.post(
    "/sessions/{session_id}/submit",
    summary="Submit answers and get the score",
    description="Returns the score, badge and reward points with per-question correctness.",
)
async def post_submit(
    session_id: str,
    body: SubmitBody,
    user_id: Optional[str] = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await quiz_service.submit_session(session, session_id, body.answers, user_id=user_id)
    except ServiceError as e:
        raise http_error(e) from e
