"""Repository layer for DB access only (CRUD + simple queries).

Repositories operate on models from backend/models/ and never commit;
the request-scoped session (core.dependencies.get_db_session) does.
"""

from .base import BaseRepository
from .affiliate_repo import AffiliateRepository
from .affiliate_link_repo import AffiliateLinkRepository
from .affiliate_click_repo import AffiliateClickRepository
from .affiliate_conversion_repo import AffiliateConversionRepository
from .match_repo import MatchRepository
from .league_table_repo import LeagueTableRepository
from .prediction_repo import PredictionRepository
from .news_repo import NewsRepository
from .scraped_news_repo import ScrapedNewsRepository
from .quiz_repo import QuizRepository
from .profile_repo import ProfileRepository
from .poll_repo import PollOptionRepository, PollRepository
from .discussion_repo import DiscussionRepository

__all__ = [
    "BaseRepository",
    "AffiliateRepository",
    "AffiliateLinkRepository",
    "AffiliateClickRepository",
    "AffiliateConversionRepository",
    "MatchRepository",
    "LeagueTableRepository",
    "PredictionRepository",
    "NewsRepository",
    "ScrapedNewsRepository",
    "QuizRepository",
    "ProfileRepository",
    "PollRepository",
    "PollOptionRepository",
    "DiscussionRepository",
]
