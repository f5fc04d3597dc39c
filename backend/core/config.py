import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "https://ballmtaani.com",
]


@dataclass
class Settings:
    """Application settings loaded from environment variables with safe defaults."""

    app_name: str = "Ball Mtaani API"
    env: str = "dev"
    database_url: str = "sqlite+aiosqlite:///./ballmtaani.db"
    log_level: str = "INFO"
    site_url: str = "https://ballmtaani.com"
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    admin_user_ids: List[str] = field(default_factory=list)

    # Third-party keys; operations needing a missing key fail on use, not at startup.
    api_football_key: str = ""
    football_data_api_key: str = ""
    gemini_api_key: str = ""
    firecrawl_api_key: str = ""
    news_api_key: str = ""
    http_timeout_seconds: float = 20.0

    affiliate_default_commission_rate: float = 0.05
    affiliate_attribution_window_days: int = 30

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        cors = os.getenv("CORS_ORIGINS")
        return cls(
            app_name=os.getenv("APP_NAME", cls.app_name),
            env=os.getenv("ENV", cls.env),
            database_url=os.getenv("DATABASE_URL") or cls.database_url,
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            site_url=(os.getenv("SITE_URL") or cls.site_url).rstrip("/"),
            cors_origins=_split_csv(cors) if cors else list(DEFAULT_CORS_ORIGINS),
            admin_user_ids=_split_csv(os.getenv("ADMIN_USER_IDS", "")),
            api_football_key=os.getenv("APIFOOTBALL_KEY", ""),
            football_data_api_key=os.getenv("FOOTBALL_DATA_API_KEY", ""),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            firecrawl_api_key=os.getenv("FIRECRAWL_API_KEY", ""),
            news_api_key=os.getenv("NEWS_API_KEY", ""),
            http_timeout_seconds=_env_float("HTTP_TIMEOUT_SECONDS", cls.http_timeout_seconds),
            affiliate_default_commission_rate=_env_float(
                "AFFILIATE_DEFAULT_COMMISSION_RATE", cls.affiliate_default_commission_rate
            ),
            affiliate_attribution_window_days=max(
                0, _env_int("AFFILIATE_ATTRIBUTION_WINDOW_DAYS", cls.affiliate_attribution_window_days)
            ),
        )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings.from_env()
