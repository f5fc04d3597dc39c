"""Google Gemini generateContent (v1beta)."""

from __future__ import annotations

from typing import Optional

import httpx

from core.errors import UpstreamError
from .base import DEFAULT_TIMEOUT_SECONDS, UpstreamClient

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_MODEL = "gemini-1.5-flash-latest"


class GeminiClient(UpstreamClient):
    service_name = "Gemini"

    def __init__(
        self,
        api_key: str,
        model: str = GEMINI_MODEL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(GEMINI_BASE_URL, timeout=timeout, client=client)
        self._api_key = api_key
        self._model = model

    async def generate_text(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_output_tokens: int = 1000,
    ) -> str:
        """Return the first candidate's text. Raises UpstreamError if the reply has none."""
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }
        data = await self._request_json(
            "POST",
            f"/models/{self._model}:generateContent",
            params={"key": self._api_key},
            json_body=body,
        )
        try:
            return str(data["candidates"][0]["content"]["parts"][0]["text"])
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError("Gemini reply has no candidate text") from e
