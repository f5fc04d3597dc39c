"""Firecrawl v0 scrape endpoint (markdown + optional LLM extraction)."""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import httpx

from .base import DEFAULT_TIMEOUT_SECONDS, UpstreamClient

FIRECRAWL_BASE_URL = "https://api.firecrawl.dev/v0"


class FirecrawlClient(UpstreamClient):
    service_name = "Firecrawl"

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(FIRECRAWL_BASE_URL, timeout=timeout, client=client)
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def scrape(
        self,
        url: str,
        extraction_prompt: Optional[str] = None,
        formats: Sequence[str] = ("markdown",),
        wait_for_ms: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Scrape one page. Returns the ``data`` object ({} when the call reports no success)."""
        body: Dict[str, Any] = {
            "url": url,
            "formats": list(formats),
            "onlyMainContent": True,
        }
        if wait_for_ms:
            body["waitFor"] = wait_for_ms
        if extraction_prompt:
            body["extractorOptions"] = {
                "mode": "llm-extraction",
                "extractionPrompt": extraction_prompt,
            }
        data = await self._request_json("POST", "/scrape", headers=self._headers, json_body=body)
        if not isinstance(data, dict) or not data.get("success"):
            return {}
        payload = data.get("data")
        return payload if isinstance(payload, dict) else {}
