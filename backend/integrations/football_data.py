"""football-data.org v4: recent and live matches."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from .base import DEFAULT_TIMEOUT_SECONDS, UpstreamClient

FOOTBALL_DATA_BASE_URL = "https://api.football-data.org/v4"


class FootballDataClient(UpstreamClient):
    service_name = "Football Data"

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(FOOTBALL_DATA_BASE_URL, timeout=timeout, client=client)
        self._headers = {"X-Auth-Token": api_key, "Content-Type": "application/json"}

    async def matches(
        self,
        date_from: str,
        date_to: str,
        status: str = "LIVE,FINISHED,TIMED",
    ) -> List[Dict[str, Any]]:
        params = {"dateFrom": date_from, "dateTo": date_to, "status": status}
        data = await self._get_json("/matches", params=params, headers=self._headers)
        items = data.get("matches") if isinstance(data, dict) else None
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]
