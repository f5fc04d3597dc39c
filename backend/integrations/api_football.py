"""API-Football (api-sports.io v3): fixtures and standings."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from .base import DEFAULT_TIMEOUT_SECONDS, UpstreamClient

API_FOOTBALL_BASE_URL = "https://v3.football.api-sports.io"
API_FOOTBALL_HOST = "v3.football.api-sports.io"

# Standings sync covers only the first three entries.
TRACKED_LEAGUES: List[Dict[str, Any]] = [
    {"id": 39, "name": "Premier League", "country": "England"},
    {"id": 140, "name": "La Liga", "country": "Spain"},
    {"id": 78, "name": "Bundesliga", "country": "Germany"},
    {"id": 135, "name": "Serie A", "country": "Italy"},
    {"id": 61, "name": "Ligue 1", "country": "France"},
    {"id": 233, "name": "CAF CHAN", "country": "Africa"},
]
STANDINGS_SEASON = 2024


class ApiFootballClient(UpstreamClient):
    service_name = "API-Football"

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(API_FOOTBALL_BASE_URL, timeout=timeout, client=client)
        self._headers = {
            "x-apisports-key": api_key,
            "x-rapidapi-host": API_FOOTBALL_HOST,
        }

    async def _response_list(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        data = await self._get_json(path, params=params, headers=self._headers)
        items = data.get("response") if isinstance(data, dict) else None
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    async def live_fixtures(self) -> List[Dict[str, Any]]:
        return await self._response_list("/fixtures", {"live": "all"})

    async def fixtures_on(self, date: str) -> List[Dict[str, Any]]:
        """Fixtures for one day (``YYYY-MM-DD``)."""
        return await self._response_list("/fixtures", {"date": date})

    async def next_fixtures(self, count: int = 10) -> List[Dict[str, Any]]:
        return await self._response_list("/fixtures", {"next": count})

    async def standings(self, league_id: int, season: int = STANDINGS_SEASON) -> List[Dict[str, Any]]:
        return await self._response_list("/standings", {"league": league_id, "season": season})
