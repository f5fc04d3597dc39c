"""
RSS 2.0 feed reader.
Items are parsed with ElementTree; HTML in descriptions is reduced to text
with BeautifulSoup.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

import httpx
from bs4 import BeautifulSoup

from .base import DEFAULT_TIMEOUT_SECONDS, UpstreamClient

logger = logging.getLogger(__name__)


def strip_html(value: str) -> str:
    """Visible text of an HTML fragment, whitespace collapsed."""
    if not value:
        return ""
    text = BeautifulSoup(value, "html.parser").get_text(separator=" ")
    return " ".join(text.split())


def parse_rss_items(xml_text: str) -> List[Dict[str, str]]:
    """Return ``title``/``description``/``link``/``pub_date`` per <item>; [] on malformed XML."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        logger.warning("Malformed RSS document: %s", e)
        return []
    items: List[Dict[str, str]] = []
    for item in root.iter("item"):
        items.append({
            "title": strip_html(item.findtext("title") or ""),
            "description": strip_html(item.findtext("description") or ""),
            "link": (item.findtext("link") or "").strip(),
            "pub_date": (item.findtext("pubDate") or "").strip(),
        })
    return items


class RssClient(UpstreamClient):
    service_name = "RSS"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__("", timeout=timeout, client=client)

    async def fetch_items(self, feed_url: str) -> List[Dict[str, str]]:
        text = await self._get_text(feed_url)
        return parse_rss_items(text)
