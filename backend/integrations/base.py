"""
Shared async HTTP plumbing for upstream clients.
Each client owns an httpx.AsyncClient unless one is injected (tests pass one
built on httpx.MockTransport). Transport and status failures become UpstreamError.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from core.errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0


class UpstreamClient:
    """Base class: one service name, one base URL, JSON in and out."""

    service_name = "upstream"

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "UpstreamClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        url = self._url(path)
        try:
            r = await self._client.request(
                method,
                url,
                params=params,
                headers=headers,
                json=json_body,
                timeout=self._timeout,
            )
            r.raise_for_status()
            return r
        except httpx.TimeoutException as e:
            logger.warning("%s request timed out: %s", self.service_name, url)
            raise UpstreamError(f"{self.service_name} request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(
                "%s returned HTTP %s for %s", self.service_name, e.response.status_code, url
            )
            raise UpstreamError(
                f"{self.service_name} API error: {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            logger.warning("%s request failed: %s", self.service_name, e)
            raise UpstreamError(f"{self.service_name} request failed: {e!s}") from e

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        r = await self._send(method, path, **kwargs)
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamError(f"{self.service_name} returned invalid JSON") from e

    async def _get_json(self, path: str, **kwargs: Any) -> Any:
        return await self._request_json("GET", path, **kwargs)

    async def _get_text(self, path: str, **kwargs: Any) -> str:
        r = await self._send("GET", path, **kwargs)
        return r.text
