"""HTTP clients for third-party football, news and AI APIs."""

from .api_football import TRACKED_LEAGUES, ApiFootballClient
from .base import UpstreamClient
from .firecrawl import FirecrawlClient
from .football_data import FootballDataClient
from .gemini import GeminiClient
from .newsapi import NewsApiClient
from .rss import RssClient, strip_html

__all__ = [
    "TRACKED_LEAGUES",
    "ApiFootballClient",
    "FirecrawlClient",
    "FootballDataClient",
    "GeminiClient",
    "NewsApiClient",
    "RssClient",
    "UpstreamClient",
    "strip_html",
]
