from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.prediction import Prediction
from models.prediction_accuracy import PredictionAccuracy
from .base import BaseRepository


class PredictionRepository(BaseRepository[Prediction]):
    """Repository for Prediction and PredictionAccuracy rows."""

    model = Prediction

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def list_recent(self, limit: int = 20) -> List[Prediction]:
        stmt = select(Prediction).order_by(Prediction.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_accuracy(self, prediction_id: str) -> Optional[PredictionAccuracy]:
        stmt = select(PredictionAccuracy).where(
            PredictionAccuracy.prediction_id == prediction_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add_accuracy(self, row: PredictionAccuracy) -> PredictionAccuracy:
        self.session.add(row)
        await self.session.flush()
        return row

    async def accuracy_counts(self) -> tuple[int, int]:
        """(total evaluated, correct) over prediction_accuracy."""
        stmt = select(
            func.count(PredictionAccuracy.id),
            func.count(PredictionAccuracy.id).filter(PredictionAccuracy.was_correct == True),  # noqa: E712
        )
        total, correct = (await self.session.execute(stmt)).one()
        return int(total or 0), int(correct or 0)
