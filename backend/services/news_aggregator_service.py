"""
News aggregation from NewsAPI, RSS feeds and stored scraped headlines.
A failing source contributes nothing; it never fails the aggregate.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.errors import UpstreamError
from integrations.newsapi import NewsApiClient
from integrations.rss import RssClient
from models.news_article import SYSTEM_AUTHOR_ID, NewsArticle
from repositories.news_repo import NewsRepository
from repositories.scraped_news_repo import ScrapedNewsRepository

logger = logging.getLogger(__name__)

NEWSAPI_QUERIES = (
    'football OR soccer OR "Premier League" OR "La Liga" OR "Serie A" OR "Bundesliga"',
    'Champions League OR "Europa League" OR "World Cup"',
    'Kenya OR "Gor Mahia" OR "AFC Leopards" OR CAF OR AFCON',
)

RSS_SOURCES: List[Dict[str, str]] = [
    {
        "name": "BBC Sport Football",
        "url": "https://feeds.bbci.co.uk/sport/football/rss.xml",
        "category": "International",
    },
    {
        "name": "ESPN Football",
        "url": "https://www.espn.com/espn/rss/soccer/news.rss",
        "category": "International",
    },
    {
        "name": "Goal.com",
        "url": "https://www.goal.com/en/feeds/news/news",
        "category": "International",
    },
    {
        "name": "CAF Media",
        "url": "https://www.cafonline.com/news",
        "category": "African",
    },
]

FOOTBALL_KEYWORDS = (
    "Premier League", "La Liga", "Serie A", "Bundesliga", "Champions League",
    "Europa League", "World Cup", "Euro", "AFCON", "CAF", "Kenya", "Gor Mahia",
    "AFC Leopards", "Tusker", "Sofapaka", "Kariobangi Sharks", "Bandari",
    "Arsenal", "Chelsea", "Manchester United", "Manchester City", "Liverpool",
    "Real Madrid", "Barcelona", "Bayern Munich", "PSG", "Juventus", "AC Milan",
)

COMMON_TERMS = ("transfer", "injury", "goal", "assist", "red card", "yellow card", "penalty")

CREDIBLE_SOURCES = ("BBC", "ESPN", "Goal.com", "Sky Sports", "The Guardian")

# First match wins.
CATEGORY_RULES = (
    (("champions league", "europa league"), "UEFA"),
    (("premier league",), "Premier League"),
    (("la liga",), "La Liga"),
    (("serie a",), "Serie A"),
    (("bundesliga",), "Bundesliga"),
    (("caf", "afcon"), "African"),
    (("kenya", "gor mahia", "afc leopards"), "Kenyan"),
    (("transfer", "signing"), "Transfer News"),
    (("injury", "suspension"), "Player News"),
    (("match", "result"), "Match Report"),
)

MAX_TAGS = 5
WORDS_PER_MINUTE = 200
AGGREGATE_LIMIT = 50
SCRAPED_LIMIT = 20

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _text(title: Optional[str], description: Optional[str]) -> str:
    return f"{title or ''} {description or ''}".lower()


def is_football_related(title: Optional[str], description: Optional[str]) -> bool:
    text = _text(title, description)
    return any(keyword.lower() in text for keyword in FOOTBALL_KEYWORDS)


def categorize_article(title: Optional[str], description: Optional[str]) -> str:
    text = _text(title, description)
    for needles, category in CATEGORY_RULES:
        if any(needle in text for needle in needles):
            return category
    return "General"


def extract_tags(title: Optional[str], description: Optional[str]) -> List[str]:
    text = _text(title, description)
    tags = [keyword for keyword in FOOTBALL_KEYWORDS if keyword.lower() in text]
    tags.extend(term[0].upper() + term[1:] for term in COMMON_TERMS if term in text)
    return tags[:MAX_TAGS]


def calculate_read_time(content: Optional[str]) -> str:
    words = len((content or "").split(" "))
    return f"{math.ceil(words / WORDS_PER_MINUTE)} min read"


def calculate_engagement_score(
    title: Optional[str],
    content: Optional[str],
    has_image: bool = False,
    source_name: Optional[str] = None,
) -> int:
    score = 0
    if title:
        if 30 <= len(title) <= 80:
            score += 10
        elif len(title) > 80:
            score += 5
    if content:
        if len(content) >= 200:
            score += 15
        elif len(content) >= 100:
            score += 10
    if has_image:
        score += 10
    if source_name and any(source in source_name for source in CREDIBLE_SOURCES):
        score += 20
    return score


def parse_published_at(value: Any) -> datetime:
    """ISO-8601 (NewsAPI), RFC 822 (RSS) or datetime; unparseable values sort last."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    raw = str(value or "").strip()
    if not raw:
        return _EPOCH
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        try:
            dt = parsedate_to_datetime(raw)
        except (TypeError, ValueError):
            return _EPOCH
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def remove_duplicates(articles: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep the first article per (lowercase title, source)."""
    seen = set()
    unique: List[Dict[str, Any]] = []
    for article in articles:
        key = (article["title"].lower(), article.get("source"))
        if key in seen:
            continue
        seen.add(key)
        unique.append(article)
    return unique


def _from_newsapi(item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    title = item.get("title") or ""
    description = item.get("description") or ""
    if not title or not is_football_related(title, description):
        return None
    content = item.get("content") or description
    source_name = (item.get("source") or {}).get("name") or "NewsAPI"
    return {
        "title": title,
        "content": content,
        "excerpt": description,
        "image_url": item.get("urlToImage"),
        "source": source_name,
        "source_url": item.get("url"),
        "category": categorize_article(title, description),
        "tags": extract_tags(title, description),
        "published_at": parse_published_at(item.get("publishedAt")),
        "author": item.get("author"),
        "read_time": calculate_read_time(content),
        "engagement_score": calculate_engagement_score(
            title, content, bool(item.get("urlToImage")), source_name
        ),
    }


def _from_rss(item: Dict[str, str], source: Dict[str, str]) -> Optional[Dict[str, Any]]:
    title = item.get("title") or ""
    description = item.get("description") or ""
    if not title or not is_football_related(title, description):
        return None
    return {
        "title": title,
        "content": description,
        "excerpt": description[:200],
        "image_url": None,
        "source": source["name"],
        "source_url": item.get("link") or None,
        "category": source["category"],
        "tags": extract_tags(title, description),
        "published_at": parse_published_at(item.get("pub_date")),
        "author": None,
        "read_time": calculate_read_time(description),
        "engagement_score": calculate_engagement_score(title, None),
    }


async def fetch_newsapi(client: NewsApiClient) -> List[Dict[str, Any]]:
    articles: List[Dict[str, Any]] = []
    for query in NEWSAPI_QUERIES:
        try:
            items = await client.everything(query)
        except UpstreamError as e:
            logger.warning("NewsAPI query failed: %s", e.detail)
            continue
        for item in items:
            article = _from_newsapi(item)
            if article is not None:
                articles.append(article)
    return articles


async def fetch_rss(client: RssClient) -> List[Dict[str, Any]]:
    articles: List[Dict[str, Any]] = []
    for source in RSS_SOURCES:
        try:
            items = await client.fetch_items(source["url"])
        except UpstreamError as e:
            logger.warning("Error fetching RSS from %s: %s", source["name"], e.detail)
            continue
        for item in items:
            article = _from_rss(item, source)
            if article is not None:
                articles.append(article)
    return articles


async def fetch_scraped(session: AsyncSession) -> List[Dict[str, Any]]:
    rows = await ScrapedNewsRepository(session).list_recent(limit=SCRAPED_LIMIT)
    return [
        {
            "title": row.title,
            "content": row.excerpt or "",
            "excerpt": row.excerpt,
            "image_url": None,
            "source": row.source,
            "source_url": row.source_url,
            "category": row.category,
            "tags": [],
            "published_at": parse_published_at(row.scraped_at),
            "author": None,
            "read_time": calculate_read_time(row.excerpt),
            "engagement_score": 0,
        }
        for row in rows
    ]


async def aggregate_news(
    session: AsyncSession,
    newsapi_client: Optional[NewsApiClient] = None,
    rss_client: Optional[RssClient] = None,
    settings: Optional[Settings] = None,
) -> List[Dict[str, Any]]:
    """Merged, de-duplicated articles, newest first (top 50)."""
    settings = settings or get_settings()
    owned: List[Any] = []
    if newsapi_client is None and settings.news_api_key:
        newsapi_client = NewsApiClient(settings.news_api_key, timeout=settings.http_timeout_seconds)
        owned.append(newsapi_client)
    if rss_client is None:
        rss_client = RssClient(timeout=settings.http_timeout_seconds)
        owned.append(rss_client)

    collected: List[Dict[str, Any]] = []
    try:
        if newsapi_client is not None:
            collected.extend(await fetch_newsapi(newsapi_client))
        else:
            logger.warning("NewsAPI key not configured")
        collected.extend(await fetch_rss(rss_client))
    finally:
        for client in owned:
            await client.aclose()
    collected.extend(await fetch_scraped(session))

    unique = remove_duplicates(collected)
    unique.sort(key=lambda a: a["published_at"], reverse=True)
    return unique[:AGGREGATE_LIMIT]


def aggregated_to_dict(article: Dict[str, Any]) -> Dict[str, Any]:
    published = article.get("published_at")
    return {
        **article,
        "published_at": published.isoformat() if isinstance(published, datetime) else published,
    }


async def save_aggregated(session: AsyncSession, articles: List[Dict[str, Any]]) -> int:
    """Upsert aggregated articles into news_articles by title, published, as the system author."""
    repo = NewsRepository(session)
    saved = 0
    for article in articles:
        title = (article.get("title") or "").strip()
        if not title:
            continue
        content = article.get("content") or article.get("excerpt") or title
        values = {
            "content": content,
            "excerpt": article.get("excerpt"),
            "image_url": article.get("image_url"),
            "category": article.get("category") or "General",
            "tags_json": json.dumps(article.get("tags") or []),
            "source": article.get("source"),
            "source_url": article.get("source_url"),
            "published_at": parse_published_at(article.get("published_at")),
            "is_published": True,
        }
        existing = await repo.get_by_title(title)
        if existing is None:
            await repo.add(NewsArticle(title=title, author_id=SYSTEM_AUTHOR_ID, **values))
        else:
            for key, value in values.items():
                setattr(existing, key, value)
            await session.flush()
        saved += 1
    logger.info("Saved %d aggregated articles", saved)
    return saved
