"""Operational logging: structured ops events."""

from .ops_events import (
    log_affiliate_click_rejected,
    log_affiliate_click_tracked,
    log_affiliate_conversion_processed,
    log_affiliate_conversion_recorded,
    log_affiliate_status_changed,
    log_caf_match_scrape,
    log_football_sync_summary,
    log_news_scrape_summary,
    log_poll_vote,
    log_predictions_generated,
)

__all__ = [
    "log_affiliate_click_rejected",
    "log_affiliate_click_tracked",
    "log_affiliate_conversion_processed",
    "log_affiliate_conversion_recorded",
    "log_affiliate_status_changed",
    "log_caf_match_scrape",
    "log_football_sync_summary",
    "log_news_scrape_summary",
    "log_poll_vote",
    "log_predictions_generated",
]
