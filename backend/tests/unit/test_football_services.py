"""
Unit tests for live scores (football-data.org), the API-Football sync and
manual match helpers. Upstream HTTP is faked with httpx.MockTransport.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

_backend = Path(__file__).resolve().parent.parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

import httpx
import pytest
from sqlalchemy import select

from core.errors import ConfigurationError, InvalidInputError
from integrations.api_football import ApiFootballClient
from integrations.football_data import FootballDataClient
from models.league_table import LeagueTableRow
from models.match import Match
from services import football_sync_service, live_scores_service, match_service

NOW = datetime(2025, 1, 20, 18, 30, tzinfo=timezone.utc)


def _fd_match(status: str, minute=None, home=None, away=None, utc_date="2025-01-20T19:00:00Z") -> dict:
    return {
        "id": 501,
        "utcDate": utc_date,
        "status": status,
        "minute": minute,
        "homeTeam": {"name": "Morocco"},
        "awayTeam": {"name": "Mali"},
        "competition": {"name": "Africa Cup of Nations"},
        "score": {"fullTime": {"home": home, "away": away}},
    }


def test_map_status() -> None:
    assert live_scores_service.map_status("IN_PLAY") == "LIVE"
    assert live_scores_service.map_status("FINISHED") == "FT"
    assert live_scores_service.map_status("TIMED") == "UPCOMING"
    assert live_scores_service.map_status(None) == "UPCOMING"


def test_display_minute() -> None:
    assert live_scores_service.display_minute(_fd_match("IN_PLAY", minute=67)) == "67'"
    assert live_scores_service.display_minute(_fd_match("FINISHED")) == "FT"
    assert live_scores_service.display_minute(_fd_match("TIMED")) == "19:00"


def test_transform_match_defaults_missing_scores_to_zero() -> None:
    out = live_scores_service.transform_match(_fd_match("TIMED"))
    assert (out["homeScore"], out["awayScore"]) == (0, 0)
    assert out["status"] == "UPCOMING"
    assert out["league"] == "Africa Cup of Nations"

    legacy = _fd_match("FINISHED")
    legacy["score"] = {"fullTime": {"homeTeam": 2, "awayTeam": 1}}
    out = live_scores_service.transform_match(legacy)
    assert (out["homeScore"], out["awayScore"], out["minute"]) == (2, 1, "FT")


@pytest.mark.asyncio
async def test_live_scores_queries_yesterday_to_today(mock_http) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        seen["token"] = request.headers.get("X-Auth-Token")
        return httpx.Response(200, json={"matches": [_fd_match("IN_PLAY", minute=12, home=1, away=0)]})

    client = FootballDataClient("fd-key", client=mock_http(handler))
    result = await live_scores_service.get_live_scores(client=client, now=NOW)

    assert seen["params"] == {"dateFrom": "2025-01-19", "dateTo": "2025-01-20", "status": "LIVE,FINISHED,TIMED"}
    assert seen["token"] == "fd-key"
    (match,) = result["matches"]
    assert (match["status"], match["minute"], match["homeScore"]) == ("LIVE", "12'", 1)


@pytest.mark.asyncio
async def test_live_scores_falls_back_to_afcon_samples(mock_http) -> None:
    client = FootballDataClient(
        "fd-key", client=mock_http(lambda request: httpx.Response(200, json={"matches": []}))
    )
    result = await live_scores_service.get_live_scores(client=client, now=NOW)
    assert [m["id"] for m in result["matches"]] == ["caf_001", "caf_002", "caf_003", "caf_004"]
    assert all(m["status"] == "FT" for m in result["matches"])


def _fixture(fixture_id, home="Arsenal", away="Chelsea", status="NS", goals=(None, None)) -> dict:
    return {
        "fixture": {
            "id": fixture_id,
            "date": "2025-01-20T15:00:00+00:00",
            "status": {"short": status},
            "venue": {"name": "Emirates Stadium"},
        },
        "league": {"id": 39, "name": "Premier League"},
        "teams": {"home": {"name": home}, "away": {"name": away}},
        "goals": {"home": goals[0], "away": goals[1]},
    }


def _standings(league_name: str) -> dict:
    return {
        "response": [
            {
                "league": {
                    "name": league_name,
                    "standings": [[
                        {
                            "rank": 1,
                            "team": {"name": "Liverpool"},
                            "points": 50,
                            "goalsDiff": 30,
                            "all": {"played": 21, "win": 15, "draw": 5, "lose": 1, "goals": {"for": 50, "against": 20}},
                        },
                    ]],
                }
            }
        ]
    }


def _api_football_handler(request: httpx.Request) -> httpx.Response:
    params = request.url.params
    if request.url.path == "/fixtures" and params.get("live") == "all":
        return httpx.Response(200, json={"response": [_fixture(1001, status="LIVE", goals=(1, 0))]})
    if request.url.path == "/fixtures" and params.get("date"):
        return httpx.Response(200, json={"response": [_fixture(1001), _fixture(1002, home="Everton", away="Fulham"), {"fixture": {}}]})
    if request.url.path == "/standings":
        if params.get("league") == "140":
            return httpx.Response(500, json={})
        names = {"39": "Premier League", "78": "Bundesliga"}
        return httpx.Response(200, json=_standings(names[params["league"]]))
    return httpx.Response(404)


@pytest.mark.asyncio
async def test_sync_all_upserts_and_collects_errors(session, mock_http) -> None:
    client = ApiFootballClient("af-key", client=mock_http(_api_football_handler))
    results = await football_sync_service.sync_football_data(
        session, operation="all", client=client, today="2025-01-20"
    )

    assert results["liveMatches"] == 1
    assert results["fixtures"] == 2
    assert results["standings"] == 2
    assert len(results["errors"]) == 2  # fixture without id + La Liga standings failure

    matches = (await session.execute(select(Match).order_by(Match.api_match_id))).scalars().all()
    assert [m.api_match_id for m in matches] == ["1001", "1002"]
    # The later fixtures pass overwrote the live row for 1001.
    assert matches[0].status == "NS"

    rows = (await session.execute(select(LeagueTableRow))).scalars().all()
    assert {(r.team_name, r.league, r.points) for r in rows} == {
        ("Liverpool", "Premier League", 50),
        ("Liverpool", "Bundesliga", 50),
    }


@pytest.mark.asyncio
async def test_sync_is_idempotent(session, mock_http) -> None:
    client = ApiFootballClient("af-key", client=mock_http(_api_football_handler))
    await football_sync_service.sync_football_data(session, "fixtures", client=client, today="2025-01-20")
    await football_sync_service.sync_football_data(session, "fixtures", client=client, today="2025-01-20")
    matches = (await session.execute(select(Match))).scalars().all()
    assert len(matches) == 2


@pytest.mark.asyncio
async def test_sync_validation(session, settings) -> None:
    with pytest.raises(InvalidInputError):
        await football_sync_service.sync_football_data(session, "weekly", settings=settings)
    with pytest.raises(ConfigurationError):
        await football_sync_service.sync_football_data(session, "live", settings=settings)


def test_fixture_to_match_values_live_minute() -> None:
    values = football_sync_service.fixture_to_match_values(_fixture(7, status="LIVE", goals=(2, 2)), live=True)
    assert values["api_match_id"] == "7"
    assert values["minute"] == "LIVE"
    assert (values["home_score"], values["away_score"]) == (2, 2)
    assert values["competition_id"] == "39"
    with pytest.raises(ValueError):
        football_sync_service.fixture_to_match_values({"fixture": {"id": 8}, "teams": {}})


def test_compose_match_timestamp() -> None:
    assert match_service.compose_match_timestamp("2025-08-02", "17:00") == "2025-08-02T17:00:00Z"
    assert match_service.compose_match_timestamp("2025-08-02") == "2025-08-02T00:00:00Z"


@pytest.mark.asyncio
async def test_create_match_validation(session) -> None:
    with pytest.raises(InvalidInputError):
        await match_service.create_match(session, "A", "B", "L", "02/08/2025")
    with pytest.raises(InvalidInputError):
        await match_service.create_match(session, "A", "B", "L", "2025-08-02", start_time="25:00")
    with pytest.raises(InvalidInputError):
        await match_service.create_match(session, "A", "B", "L", "2025-08-02", status="postponed")
    match = await match_service.create_match(session, " A ", "B", "L", "2025-08-02", status="live")
    assert match.home_team == "A"
    assert match.status == "live"
