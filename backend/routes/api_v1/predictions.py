"""Published AI predictions and their track record."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.dependencies import get_db_session
from services import prediction_service

router = APIRouter(prefix="/predictions", tags=["predictions"])


@router.get("", summary="Latest predictions, newest first")
async def get_predictions(
    limit: int = Query(default=20, ge=1, le=100),
    session: AsyncSession = Depends(get_db_session),
):
    rows = await prediction_service.list_predictions(session, limit=limit)
    return {"predictions": [prediction_service.prediction_to_display(p) for p in rows]}


@router.get("/accuracy", summary="Share of predictions whose score was exactly right")
async def get_accuracy(session: AsyncSession = Depends(get_db_session)):
    return await prediction_service.accuracy_summary(session)
