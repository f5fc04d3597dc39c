"""Matches entered by admins, match listings and league tables."""

from __future__ import annotations

import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import InvalidInputError
from models.league_table import LeagueTableRow
from models.match import MANUAL_MATCH_STATUSES, Match
from repositories.league_table_repo import LeagueTableRepository
from repositories.match_repo import MatchRepository

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

CAF_CHAN_LEAGUE = "CAF African Nations Championship"

# Fixed CHAN sample fixtures the admin page can add in one click (kick-off HH:MM UTC).
CAF_CHAN_SAMPLE_FIXTURES: List[Dict[str, str]] = [
    {"home_team": "Congo", "away_team": "Sudan", "start_time": "17:00"},
    {"home_team": "Senegal", "away_team": "Nigeria", "start_time": "20:00"},
]


def compose_match_timestamp(match_date: str, start_time: Optional[str] = None) -> str:
    """``{date}T{time}:00Z``, or midnight UTC when no kick-off time is given."""
    if start_time:
        return f"{match_date}T{start_time}:00Z"
    return f"{match_date}T00:00:00Z"


def match_to_dict(match: Match) -> Dict[str, Any]:
    return {
        "id": match.id,
        "api_match_id": match.api_match_id,
        "home_team": match.home_team,
        "away_team": match.away_team,
        "league": match.league,
        "competition_id": match.competition_id,
        "match_date": match.match_date,
        "start_time": match.start_time,
        "status": match.status,
        "venue": match.venue,
        "minute": match.minute,
        "home_score": match.home_score,
        "away_score": match.away_score,
    }


def league_row_to_dict(row: LeagueTableRow) -> Dict[str, Any]:
    return {
        "team_name": row.team_name,
        "league": row.league,
        "position": row.position,
        "points": row.points,
        "matches_played": row.matches_played,
        "wins": row.wins,
        "draws": row.draws,
        "losses": row.losses,
        "goals_for": row.goals_for,
        "goals_against": row.goals_against,
        "goal_difference": row.goal_difference,
    }


async def _manual_match_id(repo: MatchRepository, prefix: str = "manual") -> str:
    stamp = int(time.time() * 1000)
    while await repo.get_by_api_match_id(f"{prefix}_{stamp}") is not None:
        stamp += 1
    return f"{prefix}_{stamp}"


async def create_match(
    session: AsyncSession,
    home_team: Optional[str],
    away_team: Optional[str],
    league: Optional[str],
    match_date: Optional[str],
    start_time: Optional[str] = None,
    status: str = "upcoming",
    venue: Optional[str] = None,
) -> Match:
    """Insert one manually entered match.

    ``match_date`` is a calendar day (YYYY-MM-DD) and ``start_time`` an optional
    HH:MM kick-off; both are folded into one ISO-8601 UTC timestamp.
    """
    home = (home_team or "").strip()
    away = (away_team or "").strip()
    league_name = (league or "").strip()
    day = (match_date or "").strip()
    if not (home and away and league_name and day):
        raise InvalidInputError("Please fill in all required fields")
    if not _DATE_RE.match(day):
        raise InvalidInputError("match_date must be YYYY-MM-DD")
    kickoff = (start_time or "").strip() or None
    if kickoff is not None and not _TIME_RE.match(kickoff):
        raise InvalidInputError("start_time must be HH:MM")
    if status not in MANUAL_MATCH_STATUSES:
        raise InvalidInputError(
            f"status must be one of {', '.join(MANUAL_MATCH_STATUSES)}"
        )

    timestamp = compose_match_timestamp(day, kickoff)
    repo = MatchRepository(session)
    match = Match(
        api_match_id=await _manual_match_id(repo),
        home_team=home,
        away_team=away,
        league=league_name,
        match_date=timestamp,
        start_time=timestamp if kickoff else None,
        status=status,
        venue=(venue or "").strip() or None,
    )
    await repo.add(match)
    logger.info("Added match %s vs %s (%s) at %s", home, away, league_name, timestamp)
    return match


async def quick_add_caf_matches(
    session: AsyncSession,
    today: Optional[str] = None,
) -> List[Match]:
    """Add the CHAN sample fixtures for today."""
    day = today or datetime.now(timezone.utc).date().isoformat()
    repo = MatchRepository(session)
    added: List[Match] = []
    for sample in CAF_CHAN_SAMPLE_FIXTURES:
        timestamp = compose_match_timestamp(day, sample["start_time"])
        match = Match(
            api_match_id=await _manual_match_id(repo, prefix="manual_caf"),
            home_team=sample["home_team"],
            away_team=sample["away_team"],
            league=CAF_CHAN_LEAGUE,
            match_date=timestamp,
            start_time=timestamp,
            status="upcoming",
            venue="Stadium",
        )
        added.append(await repo.add(match))
    logger.info("Added %d CAF CHAN sample matches for %s", len(added), day)
    return added


async def list_matches(
    session: AsyncSession,
    status: Optional[str] = None,
    league: Optional[str] = None,
    date: Optional[str] = None,
    limit: int = 100,
) -> List[Match]:
    if date and not _DATE_RE.match(date):
        raise InvalidInputError("date must be YYYY-MM-DD")
    return await MatchRepository(session).find(
        status=status, league=league, date_prefix=date, limit=limit
    )


async def list_league_table(session: AsyncSession, league: str) -> List[LeagueTableRow]:
    return await LeagueTableRepository(session).list_by_league(league)
