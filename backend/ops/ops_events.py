"""
Structured ops events for affiliate attribution and batch jobs.
Log-level + structured event dict on the ``ops_events`` logger.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

OPS_LOGGER_NAME = "ops_events"


def _logger() -> logging.Logger:
    return logging.getLogger(OPS_LOGGER_NAME)


def _event(event_type: str, level: int = logging.INFO, **kwargs: Any) -> None:
    """Emit a structured ops event (keys sorted in the message)."""
    msg = f"ops_event={event_type} " + " ".join(f"{k}={v!r}" for k, v in sorted(kwargs.items()))
    _logger().log(level, msg, extra={"ops_event_type": event_type, "ops_event": {**kwargs}})


def log_affiliate_click_tracked(
    affiliate_id: str,
    link_id: str,
    browser: str,
    device_type: str,
) -> None:
    _event(
        "affiliate_click_tracked",
        affiliate_id=affiliate_id,
        link_id=link_id,
        browser=browser,
        device_type=device_type,
    )


def log_affiliate_click_rejected(tracking_code: str, reason: str) -> None:
    """Click refused (empty/unknown code, inactive link, affiliate not approved)."""
    _event("affiliate_click_rejected", logging.WARNING, tracking_code=tracking_code, reason=reason)


def log_affiliate_conversion_recorded(
    affiliate_id: str,
    conversion_id: str,
    conversion_type: str,
    commission_amount: float,
) -> None:
    _event(
        "affiliate_conversion_recorded",
        affiliate_id=affiliate_id,
        conversion_id=conversion_id,
        conversion_type=conversion_type,
        commission_amount=round(commission_amount, 2),
    )


def log_affiliate_conversion_processed(
    affiliate_id: str,
    conversion_id: str,
    status: str,
    commission_amount: float,
) -> None:
    _event(
        "affiliate_conversion_processed",
        affiliate_id=affiliate_id,
        conversion_id=conversion_id,
        status=status,
        commission_amount=round(commission_amount, 2),
    )


def log_affiliate_status_changed(affiliate_id: str, old_status: str, new_status: str) -> None:
    _event(
        "affiliate_status_changed",
        affiliate_id=affiliate_id,
        old_status=old_status,
        new_status=new_status,
    )


def log_football_sync_summary(
    operation: str,
    live_matches: int,
    fixtures: int,
    standings: int,
    errors: List[str] | None = None,
) -> None:
    """Counts per sync operation; errors are the per-item messages collected by the job."""
    payload: Dict[str, Any] = {
        "operation": operation,
        "live_matches": live_matches,
        "fixtures": fixtures,
        "standings": standings,
        "error_count": len(errors or []),
    }
    level = logging.WARNING if errors else logging.INFO
    _event("football_sync_summary", level, **payload)


def log_predictions_generated(requested: int, saved: int, fallbacks: int) -> None:
    _event("predictions_generated", requested=requested, saved=saved, fallbacks=fallbacks)


def log_news_scrape_summary(
    sources: int,
    scraped: int,
    saved: int,
    errors: List[str] | None = None,
) -> None:
    payload: Dict[str, Any] = {
        "sources": sources,
        "scraped": scraped,
        "saved": saved,
        "error_count": len(errors or []),
    }
    level = logging.WARNING if errors else logging.INFO
    _event("news_scrape_summary", level, **payload)


def log_caf_match_scrape(scraped: bool, stored: int) -> None:
    """``scraped`` is False when every source failed; the sample results are stored either way."""
    _event("caf_match_scrape", logging.INFO if scraped else logging.WARNING, scraped=scraped, stored=stored)


def log_poll_vote(poll_id: str, option_id: str) -> None:
    _event("poll_vote", poll_id=poll_id, option_id=option_id)
