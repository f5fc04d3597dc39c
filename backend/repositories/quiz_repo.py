from __future__ import annotations

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.quiz_question import QuizQuestion
from models.quiz_session import QuizSession
from .base import BaseRepository


class QuizRepository(BaseRepository[QuizSession]):
    """Repository for quiz sessions and the questions they are scored against."""

    model = QuizSession

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def add_question(self, question: QuizQuestion) -> QuizQuestion:
        self.session.add(question)
        await self.session.flush()
        return question

    async def list_questions(self, quiz_id: str) -> List[QuizQuestion]:
        """Questions in creation order."""
        stmt = (
            select(QuizQuestion)
            .where(QuizQuestion.quiz_id == quiz_id)
            .order_by(QuizQuestion.created_at, QuizQuestion.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_completed_sessions(self) -> List[QuizSession]:
        stmt = select(QuizSession).where(QuizSession.completed_at.is_not(None))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
