"""
CAF CHAN results via Firecrawl.
FlashScore is scraped first and the CAF championship page on failure; the
stored results are the fixed CHAN sample set, upserted by api_match_id.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.errors import ConfigurationError, UpstreamError
from integrations.firecrawl import FirecrawlClient
from ops.ops_events import log_caf_match_scrape
from repositories.match_repo import MatchRepository
from services.match_service import CAF_CHAN_LEAGUE

logger = logging.getLogger(__name__)

# (url, extraction prompt, waitFor ms), tried in order until one succeeds.
CAF_MATCH_SOURCES = (
    (
        "https://www.flashscore.co.ke/football/africa/african-nations-championship/",
        "Extract all football match results with team names, scores, dates, and match status. "
        "Focus on recent matches and current tournament fixtures.",
        5000,
    ),
    (
        "https://www.cafonline.com/caf-african-nations-championship/",
        "Extract all football match results with team names, scores, dates, and match status.",
        3000,
    ),
)

# (id, home, away, home score, away score, days ago)
CHAN_SAMPLE_RESULTS = (
    ("caf_chan_001", "Morocco A'", "Mali A'", 2, 0, 1),
    ("caf_chan_002", "Algeria A'", "Libya A'", 1, 1, 1),
    ("caf_chan_003", "Nigeria A'", "Niger A'", 3, 0, 2),
    ("caf_chan_004", "Senegal A'", "Mauritania A'", 2, 1, 2),
    ("caf_chan_005", "Ghana A'", "Burkina Faso A'", 0, 0, 2),
    ("caf_chan_006", "Kenya A'", "Tanzania A'", 1, 2, 1),
)

SCRAPED_CONTENT_PREVIEW = 500


def chan_sample_results(now: datetime) -> List[Dict[str, Any]]:
    return [
        {
            "id": match_id,
            "homeTeam": home,
            "awayTeam": away,
            "homeScore": home_score,
            "awayScore": away_score,
            "status": "FT",
            "minute": "FT",
            "league": CAF_CHAN_LEAGUE,
            "matchDate": (now - timedelta(days=days_ago)).isoformat().replace("+00:00", "Z"),
        }
        for match_id, home, away, home_score, away_score, days_ago in CHAN_SAMPLE_RESULTS
    ]


async def _scrape_first_available(client: FirecrawlClient) -> Optional[Dict[str, Any]]:
    for url, prompt, wait_for_ms in CAF_MATCH_SOURCES:
        try:
            data = await client.scrape(
                url,
                extraction_prompt=prompt,
                formats=("markdown", "html"),
                wait_for_ms=wait_for_ms,
            )
        except UpstreamError as e:
            logger.warning("CAF match scrape failed for %s: %s", url, e.detail)
            continue
        logger.info("CAF match scrape completed: %s", url)
        return data
    return None


async def scrape_caf_matches(
    session: AsyncSession,
    client: Optional[FirecrawlClient] = None,
    settings: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    settings = settings or get_settings()
    owns_client = client is None
    if client is None:
        if not settings.firecrawl_api_key:
            raise ConfigurationError("Firecrawl API key not configured")
        client = FirecrawlClient(settings.firecrawl_api_key, timeout=settings.http_timeout_seconds)

    try:
        data = await _scrape_first_available(client)
    finally:
        if owns_client:
            await client.aclose()

    markdown = (data or {}).get("markdown") or ""
    matches = chan_sample_results(now or datetime.now(timezone.utc))
    repo = MatchRepository(session)
    for match in matches:
        await repo.upsert_by_api_match_id(
            match["id"],
            {
                "home_team": match["homeTeam"],
                "away_team": match["awayTeam"],
                "league": match["league"],
                "match_date": match["matchDate"],
                "status": match["status"].lower(),
                "home_score": match["homeScore"],
                "away_score": match["awayScore"],
            },
        )

    log_caf_match_scrape(scraped=data is not None, stored=len(matches))
    return {
        "matches": matches,
        "scrapedContent": markdown[:SCRAPED_CONTENT_PREVIEW] + "...",
    }
