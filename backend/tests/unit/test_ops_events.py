"""
Tests for ops events: affiliate attribution and batch job summaries are
emitted on the ops logger with structured extras.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_backend = Path(__file__).resolve().parent.parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

import pytest

from ops.ops_events import (
    OPS_LOGGER_NAME,
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


def test_ops_logger_name() -> None:
    assert OPS_LOGGER_NAME == "ops_events"


def test_click_tracked_emits_structured_extra(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=OPS_LOGGER_NAME)
    log_affiliate_click_tracked("aff-1", "link-1", "Chrome", "Desktop")
    (record,) = caplog.records
    assert record.ops_event_type == "affiliate_click_tracked"
    assert record.ops_event == {
        "affiliate_id": "aff-1",
        "link_id": "link-1",
        "browser": "Chrome",
        "device_type": "Desktop",
    }
    assert record.getMessage().startswith("ops_event=affiliate_click_tracked affiliate_id='aff-1'")


def test_click_rejected_is_warning(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=OPS_LOGGER_NAME)
    log_affiliate_click_rejected("BM-UNKNOWN", "not_found")
    (record,) = caplog.records
    assert record.levelno == logging.WARNING
    assert "not_found" in caplog.text


def test_conversion_events_round_commission(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=OPS_LOGGER_NAME)
    log_affiliate_conversion_recorded("aff-1", "conv-1", "subscription", 12.3456)
    log_affiliate_conversion_processed("aff-1", "conv-1", "approved", 12.3456)
    recorded, processed = caplog.records
    assert recorded.ops_event["commission_amount"] == 12.35
    assert processed.ops_event["status"] == "approved"


def test_status_changed_emits(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=OPS_LOGGER_NAME)
    log_affiliate_status_changed("aff-1", "pending", "approved")
    assert "affiliate_status_changed" in caplog.text
    assert "new_status='approved'" in caplog.text


def test_sync_summary_level_follows_errors(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=OPS_LOGGER_NAME)
    log_football_sync_summary("all", 1, 2, 3)
    log_football_sync_summary("standings", 0, 0, 2, errors=["La Liga: 500"])
    ok, failed = caplog.records
    assert ok.levelno == logging.INFO
    assert ok.ops_event["error_count"] == 0
    assert failed.levelno == logging.WARNING
    assert failed.ops_event["error_count"] == 1


def test_predictions_and_scrape_summaries(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=OPS_LOGGER_NAME)
    log_predictions_generated(requested=5, saved=4, fallbacks=1)
    log_news_scrape_summary(4, 7, 6)
    assert "predictions_generated" in caplog.text and "fallbacks=1" in caplog.text
    assert caplog.records[1].ops_event == {"sources": 4, "scraped": 7, "saved": 6, "error_count": 0}


def test_caf_match_scrape_and_poll_vote(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=OPS_LOGGER_NAME)
    log_caf_match_scrape(scraped=True, stored=6)
    log_caf_match_scrape(scraped=False, stored=6)
    log_poll_vote("poll-1", "opt-2")
    scraped, fallback, voted = caplog.records
    assert scraped.levelno == logging.INFO
    assert fallback.levelno == logging.WARNING
    assert fallback.ops_event == {"scraped": False, "stored": 6}
    assert voted.ops_event_type == "poll_vote"
    assert voted.ops_event == {"poll_id": "poll-1", "option_id": "opt-2"}
