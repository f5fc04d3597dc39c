"""Static site configuration served to the frontend (ad placements and news settings)."""

from __future__ import annotations

from typing import Any, Dict

from services.news_service import NEWS_CATEGORIES

ADSENSE_CONFIG: Dict[str, Any] = {
    "publisherId": "ca-pub-YOUR_PUBLISHER_ID",
    "adSlots": {
        "banner": "YOUR_BANNER_AD_SLOT",
        "sidebar": "YOUR_SIDEBAR_AD_SLOT",
        "inArticle": "YOUR_IN_ARTICLE_AD_SLOT",
        "mobile": "YOUR_MOBILE_AD_SLOT",
    },
    "adSizes": {
        "banner": {"width": 728, "height": 90},
        "leaderboard": {"width": 970, "height": 250},
        "rectangle": {"width": 300, "height": 250},
        "sidebar": {"width": 300, "height": 600},
        "mobile": {"width": 320, "height": 50},
    },
}

NEWS_CATEGORY_DESCRIPTIONS: Dict[str, str] = {
    "Premier League": "English Premier League news and updates",
    "La Liga": "Spanish La Liga news and updates",
    "Serie A": "Italian Serie A news and updates",
    "Bundesliga": "German Bundesliga news and updates",
    "UEFA": "Champions League, Europa League, and UEFA competitions",
    "African": "CAF competitions and African football news",
    "Kenyan": "Kenyan Premier League and local football news",
    "Transfer News": "Player transfers and signing updates",
    "Player News": "Player injuries, suspensions, and personal updates",
    "Match Report": "Match results and analysis",
    "General": "General football news and updates",
}

SOURCE_CREDIBILITY: Dict[str, int] = {
    "BBC Sport": 95,
    "ESPN": 90,
    "Goal.com": 85,
    "Sky Sports": 90,
    "The Guardian": 88,
    "CAF Media": 80,
    "NewsAPI": 75,
}

# Minutes.
UPDATE_INTERVALS: Dict[str, int] = {
    "breaking": 5,
    "live": 15,
    "regular": 60,
    "daily": 1440,
}


def get_site_config() -> Dict[str, Any]:
    return {
        "adsense": ADSENSE_CONFIG,
        "news": {
            "categories": NEWS_CATEGORY_DESCRIPTIONS,
            "editorialCategories": list(NEWS_CATEGORIES),
            "sourceCredibility": SOURCE_CREDIBILITY,
            "updateIntervals": UPDATE_INTERVALS,
        },
    }
