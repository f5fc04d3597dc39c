"""NewsAPI.org ``everything`` search."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from .base import DEFAULT_TIMEOUT_SECONDS, UpstreamClient

NEWS_API_BASE_URL = "https://newsapi.org/v2"


class NewsApiClient(UpstreamClient):
    service_name = "NewsAPI"

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(NEWS_API_BASE_URL, timeout=timeout, client=client)
        self._api_key = api_key

    async def everything(self, query: str, language: str = "en") -> List[Dict[str, Any]]:
        params = {
            "q": query,
            "language": language,
            "sortBy": "publishedAt",
            "apiKey": self._api_key,
        }
        data = await self._get_json("/everything", params=params)
        if not isinstance(data, dict) or data.get("status") != "ok":
            return []
        articles = data.get("articles")
        if not isinstance(articles, list):
            return []
        return [a for a in articles if isinstance(a, dict)]
