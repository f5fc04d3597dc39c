"""
Unit tests for the CAF CHAN results scrape: FlashScore then CAF through
Firecrawl (faked with httpx.MockTransport), results upserted by api_match_id.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

_backend = Path(__file__).resolve().parent.parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

import httpx
import pytest
from sqlalchemy import select

from core.config import Settings
from core.errors import ConfigurationError
from integrations.firecrawl import FirecrawlClient
from models.match import Match
from services import match_scrape_service as svc
from services.match_service import CAF_CHAN_LEAGUE

NOW = datetime(2025, 8, 10, 18, 0, tzinfo=timezone.utc)


def _flashscore_down(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    if "flashscore" in body["url"]:
        return httpx.Response(500, json={"success": False})
    assert body["waitFor"] == 3000
    assert body["formats"] == ["markdown", "html"]
    return httpx.Response(200, json={"success": True, "data": {"markdown": "CHAN results " * 60}})


def test_chan_sample_results() -> None:
    results = svc.chan_sample_results(NOW)
    assert [r["id"] for r in results] == [f"caf_chan_00{i}" for i in range(1, 7)]
    kenya = results[-1]
    assert (kenya["homeTeam"], kenya["awayTeam"], kenya["homeScore"], kenya["awayScore"]) == (
        "Kenya A'",
        "Tanzania A'",
        1,
        2,
    )
    assert kenya["matchDate"] == "2025-08-09T18:00:00Z"
    assert all(r["league"] == CAF_CHAN_LEAGUE and r["status"] == "FT" for r in results)


@pytest.mark.asyncio
async def test_scrape_falls_back_to_caf_and_upserts(session, mock_http) -> None:
    client = FirecrawlClient("fc", client=mock_http(_flashscore_down))

    result = await svc.scrape_caf_matches(session, client=client, settings=Settings(), now=NOW)
    assert len(result["matches"]) == 6
    assert result["scrapedContent"].startswith("CHAN results")
    assert len(result["scrapedContent"]) == svc.SCRAPED_CONTENT_PREVIEW + 3

    await svc.scrape_caf_matches(session, client=client, settings=Settings(), now=NOW)
    rows = (await session.execute(select(Match).order_by(Match.api_match_id))).scalars().all()
    assert len(rows) == 6
    assert {r.status for r in rows} == {"ft"}
    assert (rows[2].home_team, rows[2].home_score, rows[2].away_score) == ("Nigeria A'", 3, 0)


@pytest.mark.asyncio
async def test_scrape_stores_results_when_every_source_fails(session, mock_http) -> None:
    client = FirecrawlClient("fc", client=mock_http(lambda request: httpx.Response(502)))
    result = await svc.scrape_caf_matches(session, client=client, settings=Settings(), now=NOW)
    assert result["scrapedContent"] == "..."
    rows = (await session.execute(select(Match))).scalars().all()
    assert len(rows) == 6


@pytest.mark.asyncio
async def test_scrape_requires_key(session) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        await svc.scrape_caf_matches(session, settings=Settings(firecrawl_api_key=""))
    assert excinfo.value.detail == "Firecrawl API key not configured"
