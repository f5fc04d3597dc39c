"""
Unit tests for affiliate_service: codes, user-agent parsing, click tracking,
conversion attribution, status transitions and stats.
"""

from __future__ import annotations

import re
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

_backend = Path(__file__).resolve().parent.parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

import pytest
from sqlalchemy import func, select

from core.config import Settings
from core.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from models.affiliate_click import AffiliateClick
from repositories.affiliate_link_repo import AffiliateLinkRepository
from repositories.affiliate_repo import AffiliateRepository
from services import affiliate_service as svc

CHROME_DESKTOP = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
IPHONE_SAFARI = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


async def _approved_affiliate_with_link(session, settings, rate=10):
    affiliate = await svc.admin_create(
        session,
        "Mtaani Tips",
        "partners@mtaanitips.co.ke",
        status="approved",
        commission_rate=rate,
        settings=settings,
    )
    link = await svc.create_link(session, affiliate.id, "Launch", settings=settings)
    return affiliate, link


def test_generated_codes_have_expected_shape() -> None:
    assert re.fullmatch(r"AFF[A-Z0-9]{8}", svc.generate_affiliate_code())
    assert re.fullmatch(r"[a-z0-9]{12}", svc.generate_tracking_code())


def test_parse_user_agent() -> None:
    assert svc.parse_user_agent(CHROME_DESKTOP) == ("Chrome", "Desktop")
    assert svc.parse_user_agent(IPHONE_SAFARI) == ("Safari", "Mobile")
    assert svc.parse_user_agent("Mozilla/5.0 (Android; Tablet; rv:109.0) Firefox/119.0") == (
        "Firefox",
        "Tablet",
    )
    assert svc.parse_user_agent(None) == ("Unknown", "Desktop")


def test_client_ip_header_precedence() -> None:
    assert svc.client_ip({"CF-Connecting-IP": "1.1.1.1", "X-Forwarded-For": "2.2.2.2"}) == "1.1.1.1"
    assert svc.client_ip({"x-forwarded-for": "2.2.2.2, 10.0.0.1", "X-Real-IP": "3.3.3.3"}) == "2.2.2.2"
    assert svc.client_ip({"X-Real-IP": "3.3.3.3"}) == "3.3.3.3"
    assert svc.client_ip({}) == "unknown"


def test_normalize_commission_rate() -> None:
    assert svc.normalize_commission_rate(None, 0.05) == 0.05
    assert svc.normalize_commission_rate(0.1, 0.05) == 0.1
    assert svc.normalize_commission_rate(10, 0.05) == 0.1
    with pytest.raises(InvalidInputError):
        svc.normalize_commission_rate(-1, 0.05)
    with pytest.raises(InvalidInputError):
        svc.normalize_commission_rate(150, 0.05)


def test_conversion_rate_formatting() -> None:
    assert svc.conversion_rate(0, 0) == "0.00"
    assert svc.conversion_rate(3, 1) == "33.33"


def test_affiliate_url(settings: Settings) -> None:
    assert svc.affiliate_url("abc123", settings) == "https://ballmtaani.com?ref=abc123"


@pytest.mark.asyncio
async def test_apply_creates_pending_affiliate_once(session, settings: Settings) -> None:
    affiliate = await svc.apply(session, "user-1", "Kilimani FC Fans", "fans@kilimani.ke", settings=settings)
    assert affiliate.status == "pending"
    assert affiliate.commission_rate == 0.05
    assert affiliate.affiliate_code.startswith("AFF")

    with pytest.raises(ConflictError):
        await svc.apply(session, "user-1", "Again", "again@kilimani.ke", settings=settings)


@pytest.mark.asyncio
async def test_apply_rejects_bad_email(session, settings: Settings) -> None:
    with pytest.raises(InvalidInputError):
        await svc.apply(session, "user-2", "Name", "not-an-email", settings=settings)


@pytest.mark.asyncio
async def test_track_click_inserts_one_row_and_increments_counters(session, settings: Settings) -> None:
    affiliate, link = await _approved_affiliate_with_link(session, settings)

    result = await svc.track_click(
        session,
        link.tracking_code,
        user_agent=IPHONE_SAFARI,
        referrer="https://twitter.com/",
        headers={"X-Forwarded-For": "41.90.0.1"},
        settings=settings,
    )

    assert result["success"] is True
    assert result["redirectUrl"] == "https://ballmtaani.com"
    assert result["message"] == "Click tracked successfully"

    clicks = (await session.execute(select(func.count()).select_from(AffiliateClick))).scalar_one()
    assert clicks == 1
    click = await session.get(AffiliateClick, result["clickId"])
    assert (click.browser, click.device_type, click.ip_address) == ("Safari", "Mobile", "41.90.0.1")

    await session.refresh(link)
    await session.refresh(affiliate)
    assert link.click_count == 1
    assert affiliate.total_clicks == 1


@pytest.mark.asyncio
async def test_track_click_rejections(session, settings: Settings) -> None:
    pending = await svc.admin_create(session, "Pending Co", "p@example.com", settings=settings)
    pending_link = await svc.create_link(session, pending.id, "Soon", settings=settings)

    with pytest.raises(InvalidInputError):
        await svc.track_click(session, "  ", settings=settings)
    with pytest.raises(NotFoundError):
        await svc.track_click(session, "doesnotexist", settings=settings)
    with pytest.raises(ForbiddenError):
        await svc.track_click(session, pending_link.tracking_code, settings=settings)

    _, link = await _approved_affiliate_with_link(session, settings)
    await svc.toggle_link(session, link.id)
    with pytest.raises(NotFoundError):
        await svc.track_click(session, link.tracking_code, settings=settings)


@pytest.mark.asyncio
async def test_conversion_commission_and_counters(session, settings: Settings) -> None:
    affiliate, link = await _approved_affiliate_with_link(session, settings, rate=10)
    click = await svc.track_click(session, link.tracking_code, settings=settings)

    conversion = await svc.record_conversion(
        session, click_id=click["clickId"], conversion_value=250.0, settings=settings
    )
    assert conversion.status == "pending"
    assert conversion.commission_amount == 25.0

    await session.refresh(link)
    await session.refresh(affiliate)
    assert link.conversion_count == 1
    assert affiliate.total_conversions == 1
    # Pending conversions do not count toward earnings.
    assert affiliate.total_earnings == 0.0


@pytest.mark.asyncio
async def test_conversion_by_tracking_code_uses_latest_click(session, settings: Settings) -> None:
    _, link = await _approved_affiliate_with_link(session, settings)
    await svc.track_click(session, link.tracking_code, settings=settings)
    latest = await svc.track_click(session, link.tracking_code, settings=settings)
    # Clicks in the same instant; make the second one strictly newer.
    click = await session.get(AffiliateClick, latest["clickId"])
    click.clicked_at = datetime.now(timezone.utc) + timedelta(seconds=1)
    await session.flush()

    conversion = await svc.record_conversion(
        session, tracking_code=link.tracking_code, settings=settings
    )
    assert conversion.affiliate_click_id == latest["clickId"]
    assert conversion.commission_amount == 0.0


@pytest.mark.asyncio
async def test_inactive_link_is_not_applied_toward_commission(session, settings: Settings) -> None:
    affiliate, link = await _approved_affiliate_with_link(session, settings)
    click = await svc.track_click(session, link.tracking_code, settings=settings)
    await svc.toggle_link(session, link.id)

    with pytest.raises(ForbiddenError):
        await svc.record_conversion(
            session, click_id=click["clickId"], conversion_value=100.0, settings=settings
        )
    await session.refresh(affiliate)
    assert affiliate.total_conversions == 0


@pytest.mark.asyncio
async def test_click_outside_attribution_window(session, settings: Settings) -> None:
    _, link = await _approved_affiliate_with_link(session, settings)
    click = await svc.track_click(session, link.tracking_code, settings=settings)
    later = datetime.now(timezone.utc) + timedelta(days=31)

    with pytest.raises(InvalidInputError):
        await svc.record_conversion(session, click_id=click["clickId"], now=later, settings=settings)

    no_window = Settings(affiliate_attribution_window_days=0)
    conversion = await svc.record_conversion(
        session, click_id=click["clickId"], now=later, settings=no_window
    )
    assert conversion.status == "pending"


@pytest.mark.asyncio
async def test_only_approved_conversions_count_toward_earnings(session, settings: Settings) -> None:
    affiliate, link = await _approved_affiliate_with_link(session, settings, rate=0.1)
    click = await svc.track_click(session, link.tracking_code, settings=settings)
    first = await svc.record_conversion(session, click_id=click["clickId"], conversion_value=100.0, settings=settings)
    second = await svc.record_conversion(session, click_id=click["clickId"], conversion_value=50.0, settings=settings)

    await svc.process_conversion(session, first.id, "approved")
    await svc.process_conversion(session, second.id, "rejected")

    stats = await svc.affiliate_stats(session, affiliate.id)
    assert stats["total_earnings"] == 10.0
    assert stats["approved_earnings"] == 10.0
    assert stats["pending_earnings"] == 0.0
    assert stats["payout_eligible"] is True
    assert stats["conversion_rate"] == "200.00"
    assert stats["commission_rate_percent"] == "10.0"

    with pytest.raises(ConflictError):
        await svc.process_conversion(session, first.id, "rejected")
    with pytest.raises(InvalidInputError):
        await svc.process_conversion(session, second.id, "pending")


@pytest.mark.asyncio
async def test_status_transitions(session, settings: Settings) -> None:
    affiliate = await svc.admin_create(session, "Flow Co", "flow@example.com", settings=settings)

    with pytest.raises(InvalidInputError):
        await svc.set_status(session, affiliate.id, "suspended")

    assert (await svc.set_status(session, affiliate.id, "approved")).status == "approved"
    assert (await svc.set_status(session, affiliate.id, "suspended")).status == "suspended"
    assert (await svc.set_status(session, affiliate.id, "approved")).status == "approved"
    with pytest.raises(InvalidInputError):
        await svc.set_status(session, affiliate.id, "pending")
    assert (await svc.set_status(session, affiliate.id, "approved")).status == "approved"


@pytest.mark.asyncio
async def test_rejected_affiliate_cannot_create_links(session, settings: Settings) -> None:
    affiliate = await svc.admin_create(
        session, "Nope Co", "nope@example.com", status="rejected", settings=settings
    )
    with pytest.raises(ForbiddenError):
        await svc.create_link(session, affiliate.id, "Campaign", settings=settings)


@pytest.mark.asyncio
async def test_create_link_validates_url(session, settings: Settings) -> None:
    affiliate = await svc.admin_create(session, "Url Co", "url@example.com", settings=settings)
    with pytest.raises(InvalidInputError):
        await svc.create_link(session, affiliate.id, "Campaign", "ftp://example.com", settings=settings)
    link = await svc.create_link(
        session, affiliate.id, "Campaign", "https://ballmtaani.com/news", settings=settings
    )
    assert link.is_active is True
    assert (link.click_count, link.conversion_count) == (0, 0)
    assert svc.link_to_dict(link, settings)["affiliate_url"] == (
        f"https://ballmtaani.com?ref={link.tracking_code}"
    )


@pytest.mark.asyncio
async def test_admin_delete_cascades(session, settings: Settings) -> None:
    affiliate, link = await _approved_affiliate_with_link(session, settings)
    await svc.track_click(session, link.tracking_code, settings=settings)

    await svc.admin_delete(session, affiliate.id)

    with pytest.raises(NotFoundError):
        await svc.get_affiliate(session, affiliate.id)
    clicks = (await session.execute(select(func.count()).select_from(AffiliateClick))).scalar_one()
    assert clicks == 0


@pytest.mark.asyncio
async def test_counter_increments_are_sql_side(session, settings: Settings) -> None:
    affiliate, link = await _approved_affiliate_with_link(session, settings)
    links = AffiliateLinkRepository(session)
    affiliates = AffiliateRepository(session)

    # Both updates run against the loaded (now stale) objects; neither reads the old value.
    await links.increment(link.id, click_count=1)
    await links.increment(link.id, click_count=1)
    await affiliates.increment(affiliate.id, total_clicks=1, total_earnings=2.5)
    await affiliates.increment(affiliate.id, total_clicks=1, total_earnings=2.5)
    assert link.click_count == 0

    await links.refresh(link)
    await affiliates.refresh(affiliate)
    assert link.click_count == 2
    assert affiliate.total_clicks == 2
    assert affiliate.total_earnings == 5.0
