"""
CAF news scraping through Firecrawl.
Per source: LLM-extracted articles, else markdown headings, else one
placeholder article. Results are upserted into scraped_news by title.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.errors import ConfigurationError, UpstreamError
from integrations.firecrawl import FirecrawlClient
from ops.ops_events import log_news_scrape_summary
from repositories.scraped_news_repo import ScrapedNewsRepository

logger = logging.getLogger(__name__)

CAF_NEWS_SOURCES = (
    "https://www.cafonline.com/news",
    "https://www.fifa.com/tournaments/mens/africacupofnations",
    "https://www.bbc.com/sport/football/africa",
    "https://www.goal.com/en/news/africa",
)

EXTRACTION_PROMPT = (
    "Extract football news articles related to CAF, CHAN, African Cup of Nations, "
    "or African football. For each article, provide:\n"
    "- title: Article headline\n"
    "- excerpt: Brief summary (max 150 chars)\n"
    '- category: Type of news (e.g., "CAF", "CHAN", "AFCON", "Transfers")\n'
    "- source: Website name\n"
    "- url: Article URL if available\n\n"
    "Return as JSON array of articles."
)

MAX_HEADINGS_PER_SOURCE = 5
MAX_TITLE_LENGTH = 100
RETURN_LIMIT = 20


def source_category(source_url: str) -> str:
    if "cafonline" in source_url:
        return "CAF"
    if "fifa" in source_url:
        return "AFCON"
    return "African Football"


def _article(title: str, excerpt: str, category: str, host: str, url: str) -> Dict[str, Any]:
    return {
        "title": title,
        "excerpt": excerpt,
        "category": category,
        "source": host,
        "url": url,
        "timeAgo": "Recently",
        "readTime": "2 min read",
    }


def placeholder_article(source_url: str) -> Dict[str, Any]:
    host = urlparse(source_url).hostname or source_url
    return _article(
        f"Latest news from {host}",
        "African football updates and news",
        "African Football",
        host,
        source_url,
    )


def headings_from_markdown(markdown: str, source_url: str) -> List[Dict[str, Any]]:
    """Up to five ``#`` headings longer than 10 characters, titles cut to 100."""
    host = urlparse(source_url).hostname or source_url
    lines = [line.strip() for line in (markdown or "").split("\n") if line.strip()]
    headings = [line for line in lines if line.startswith("#") and len(line) > 10]
    return [
        _article(
            line.lstrip("#").strip()[:MAX_TITLE_LENGTH],
            f"Latest news from {host}",
            source_category(source_url),
            host,
            source_url,
        )
        for line in headings[:MAX_HEADINGS_PER_SOURCE]
    ]


def _extracted_articles(extract: Any, source_url: str) -> List[Dict[str, Any]]:
    """Normalise Firecrawl's LLM extraction (JSON string, list, or {"articles": [...]})."""
    data = json.loads(extract) if isinstance(extract, str) else extract
    if isinstance(data, dict):
        data = data.get("articles", [])
    if not isinstance(data, list):
        raise ValueError("extraction is not a list of articles")
    host = urlparse(source_url).hostname or source_url
    articles: List[Dict[str, Any]] = []
    for item in data:
        if not isinstance(item, dict) or not item.get("title"):
            continue
        articles.append(
            _article(
                str(item["title"])[:MAX_TITLE_LENGTH],
                str(item.get("excerpt") or "")[:150],
                str(item.get("category") or source_category(source_url)),
                str(item.get("source") or host),
                str(item.get("url") or source_url),
            )
        )
    return articles


def articles_from_scrape(data: Dict[str, Any], source_url: str) -> List[Dict[str, Any]]:
    try:
        if data.get("extract"):
            return _extracted_articles(data["extract"], source_url)
        return headings_from_markdown(data.get("markdown") or "", source_url)
    except (TypeError, ValueError) as e:
        logger.warning("Error parsing extracted data from %s: %s", source_url, e)
        return [placeholder_article(source_url)]


async def scrape_caf_news(
    session: AsyncSession,
    client: Optional[FirecrawlClient] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    settings = settings or get_settings()
    owns_client = client is None
    if client is None:
        if not settings.firecrawl_api_key:
            raise ConfigurationError("Missing Firecrawl API key")
        client = FirecrawlClient(settings.firecrawl_api_key, timeout=settings.http_timeout_seconds)

    all_news: List[Dict[str, Any]] = []
    errors: List[str] = []
    try:
        for source_url in CAF_NEWS_SOURCES:
            logger.info("Scraping: %s", source_url)
            try:
                data = await client.scrape(source_url, extraction_prompt=EXTRACTION_PROMPT)
            except UpstreamError as e:
                logger.warning("Failed to scrape %s: %s", source_url, e.detail)
                errors.append(f"{source_url}: {e.detail}")
                continue
            if data:
                all_news.extend(articles_from_scrape(data, source_url))
    finally:
        if owns_client:
            await client.aclose()

    repo = ScrapedNewsRepository(session)
    scraped_at = datetime.now(timezone.utc)
    saved_titles = set()
    for article in all_news:
        if article["title"] in saved_titles:
            continue
        await repo.upsert_by_title(
            title=article["title"],
            excerpt=article.get("excerpt"),
            category=article["category"],
            source=article["source"],
            source_url=article.get("url"),
            scraped_at=scraped_at,
        )
        saved_titles.add(article["title"])

    log_news_scrape_summary(len(CAF_NEWS_SOURCES), len(all_news), len(saved_titles), errors)
    return {"success": True, "articles": all_news[:RETURN_LIMIT], "count": len(all_news)}


async def list_scraped(session: AsyncSession, limit: int = RETURN_LIMIT) -> List[Dict[str, Any]]:
    rows = await ScrapedNewsRepository(session).list_recent(limit=limit)
    return [
        {
            "id": row.id,
            "title": row.title,
            "excerpt": row.excerpt,
            "category": row.category,
            "source": row.source,
            "source_url": row.source_url,
            "scraped_at": row.scraped_at.isoformat() if row.scraped_at else None,
        }
        for row in rows
    ]
