"""
API-Football sync: live fixtures, today's fixtures and league standings.
Per-request and per-item failures are logged and collected into ``errors``;
the job carries on with the next item.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.errors import ConfigurationError, InvalidInputError, UpstreamError
from integrations.api_football import TRACKED_LEAGUES, ApiFootballClient
from ops.ops_events import log_football_sync_summary
from repositories.league_table_repo import LeagueTableRepository
from repositories.match_repo import MatchRepository

logger = logging.getLogger(__name__)

SYNC_OPERATIONS = ("live", "fixtures", "standings", "all")
STANDINGS_LEAGUE_COUNT = 3


def fixture_to_match_values(fixture: Dict[str, Any], live: bool = False) -> Dict[str, Any]:
    """Map one API-Football fixture to ``matches`` columns (api_match_id included).

    Raises ValueError when the fixture lacks an id or team names.
    """
    fx = fixture.get("fixture") or {}
    teams = fixture.get("teams") or {}
    goals = fixture.get("goals") or {}
    league = fixture.get("league") or {}
    if fx.get("id") is None:
        raise ValueError("fixture id missing")
    try:
        home_team = teams["home"]["name"]
        away_team = teams["away"]["name"]
    except (KeyError, TypeError) as e:
        raise ValueError(f"fixture {fx.get('id')} missing team names") from e
    status_short = (fx.get("status") or {}).get("short")
    values: Dict[str, Any] = {
        "api_match_id": str(fx["id"]),
        "home_team": home_team,
        "away_team": away_team,
        "home_score": goals.get("home"),
        "away_score": goals.get("away"),
        "status": status_short,
        "start_time": fx.get("date"),
        "match_date": fx.get("date") or "",
        "league": league.get("name") or "Unknown",
        "venue": (fx.get("venue") or {}).get("name"),
    }
    if league.get("id") is not None:
        values["competition_id"] = str(league["id"])
    if live:
        values["minute"] = "LIVE" if status_short == "LIVE" else None
    return values


def standing_to_values(team: Dict[str, Any]) -> Dict[str, Any]:
    """Map one API-Football standings entry to ``league_tables`` columns (team_name excluded)."""
    played = team.get("all") or {}
    goals = played.get("goals") or {}
    return {
        "position": int(team["rank"]),
        "points": int(team.get("points") or 0),
        "matches_played": int(played.get("played") or 0),
        "wins": int(played.get("win") or 0),
        "draws": int(played.get("draw") or 0),
        "losses": int(played.get("lose") or 0),
        "goals_for": int(goals.get("for") or 0),
        "goals_against": int(goals.get("against") or 0),
        "goal_difference": int(team.get("goalsDiff") or 0),
    }


async def _upsert_fixtures(
    session: AsyncSession,
    fixtures: List[Dict[str, Any]],
    live: bool,
    errors: List[str],
) -> int:
    repo = MatchRepository(session)
    count = 0
    for fixture in fixtures:
        try:
            values = fixture_to_match_values(fixture, live=live)
        except ValueError as e:
            logger.warning("Skipping fixture: %s", e)
            errors.append(f"{'Match' if live else 'Fixture'} upsert error: {e}")
            continue
        api_match_id = values.pop("api_match_id")
        await repo.upsert_by_api_match_id(api_match_id, values)
        count += 1
    return count


async def _sync_standings(
    session: AsyncSession,
    client: ApiFootballClient,
    errors: List[str],
) -> int:
    repo = LeagueTableRepository(session)
    count = 0
    for league in TRACKED_LEAGUES[:STANDINGS_LEAGUE_COUNT]:
        try:
            payload = await client.standings(league["id"])
        except UpstreamError as e:
            logger.warning("Standings fetch failed for %s: %s", league["name"], e.detail)
            errors.append(f"Standings error for {league['name']}: {e.detail}")
            continue
        if not payload:
            continue
        league_data = payload[0].get("league") or {}
        groups = league_data.get("standings") or []
        if not groups:
            continue
        league_name = league_data.get("name") or league["name"]
        for team in groups[0]:
            try:
                team_name = team["team"]["name"]
                values = standing_to_values(team)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping standings row in %s: %s", league_name, e)
                errors.append(f"Standing upsert error: {e}")
                continue
            await repo.upsert(team_name, league_name, values)
            count += 1
    return count


async def sync_football_data(
    session: AsyncSession,
    operation: str = "all",
    client: Optional[ApiFootballClient] = None,
    settings: Optional[Settings] = None,
    today: Optional[str] = None,
) -> Dict[str, Any]:
    """Run one sync operation (live | fixtures | standings | all)."""
    if operation not in SYNC_OPERATIONS:
        raise InvalidInputError(
            f"Unknown operation: {operation} (expected one of {', '.join(SYNC_OPERATIONS)})"
        )
    settings = settings or get_settings()
    owns_client = client is None
    if client is None:
        if not settings.api_football_key:
            raise ConfigurationError("APIFOOTBALL_KEY not configured")
        client = ApiFootballClient(
            settings.api_football_key, timeout=settings.http_timeout_seconds
        )

    results: Dict[str, Any] = {"liveMatches": 0, "fixtures": 0, "standings": 0, "errors": []}
    errors: List[str] = results["errors"]
    logger.info("Starting football data sync: %s", operation)
    try:
        if operation in ("live", "all"):
            try:
                live = await client.live_fixtures()
                results["liveMatches"] = await _upsert_fixtures(session, live, True, errors)
            except UpstreamError as e:
                logger.warning("Live matches fetch failed: %s", e.detail)
                errors.append(f"Live matches error: {e.detail}")

        if operation in ("fixtures", "all"):
            day = today or datetime.now(timezone.utc).date().isoformat()
            try:
                fixtures = await client.fixtures_on(day)
                results["fixtures"] = await _upsert_fixtures(session, fixtures, False, errors)
            except UpstreamError as e:
                logger.warning("Fixtures fetch failed: %s", e.detail)
                errors.append(f"Fixtures error: {e.detail}")

        if operation in ("standings", "all"):
            results["standings"] = await _sync_standings(session, client, errors)
    finally:
        if owns_client:
            await client.aclose()

    log_football_sync_summary(
        operation,
        results["liveMatches"],
        results["fixtures"],
        results["standings"],
        errors,
    )
    return results
