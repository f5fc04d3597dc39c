"""SQLAlchemy models for the Ball Mtaani schema.

Importing this package registers every table on ``Base.metadata``.
"""

from .base import Base
from .affiliate import Affiliate
from .affiliate_click import AffiliateClick
from .affiliate_conversion import AffiliateConversion
from .affiliate_link import AffiliateLink
from .discussion import Discussion, DiscussionReply
from .league_table import LeagueTableRow
from .match import Match
from .news_article import NewsArticle
from .news_comment import NewsComment
from .news_like import NewsLike
from .poll import Poll, PollOption, PollVote
from .prediction import Prediction
from .prediction_accuracy import PredictionAccuracy
from .profile import Profile
from .quiz_question import QuizQuestion
from .quiz_session import QuizSession
from .scraped_news import ScrapedNews
from .user_role import UserRole

__all__ = [
    "Base",
    "Affiliate",
    "AffiliateClick",
    "AffiliateConversion",
    "AffiliateLink",
    "Discussion",
    "DiscussionReply",
    "LeagueTableRow",
    "Match",
    "NewsArticle",
    "NewsComment",
    "NewsLike",
    "Poll",
    "PollOption",
    "PollVote",
    "Prediction",
    "PredictionAccuracy",
    "Profile",
    "QuizQuestion",
    "QuizSession",
    "ScrapedNews",
    "UserRole",
]
