"""Matches, live scores and league tables."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from core.dependencies import get_db_session
from core.errors import ServiceError, http_error
from services import live_scores_service, match_service

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get("", summary="Stored matches ordered by kick-off")
async def get_matches(
    status: Optional[str] = Query(default=None, description="upcoming | live | ft"),
    league: Optional[str] = Query(default=None),
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    limit: int = Query(default=100, ge=1, le=500),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        matches = await match_service.list_matches(
            session, status=status, league=league, date=date, limit=limit
        )
    except ServiceError as e:
        raise http_error(e) from e
    return {"matches": [match_service.match_to_dict(m) for m in matches]}


@router.get(
    "/live-scores",
    summary="Live and recent scores from football-data.org",
    description="Matches from yesterday to today. Sample AFCON results are returned when the upstream list is empty.",
)
async def get_live_scores():
    try:
        return await live_scores_service.get_live_scores()
    except ServiceError as e:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch live scores", "details": e.detail},
        )


@router.get("/league-table", summary="League standings ordered by position")
async def get_league_table(
    league: str = Query(..., description="League name, e.g. Premier League"),
    session: AsyncSession = Depends(get_db_session),
):
    rows = await match_service.list_league_table(session, league)
    return {"league": league, "table": [match_service.league_row_to_dict(r) for r in rows]}
