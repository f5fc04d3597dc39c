"""
Affiliate program: applications, tracked links, click tracking and
conversion attribution.

Counters (clicks, conversions, earnings) are only ever changed through
BaseRepository.increment, a single ``UPDATE ... SET n = n + delta``, so
concurrent requests cannot lose updates. Only approved conversions add to
``affiliates.total_earnings``.
"""

from __future__ import annotations

import logging
import re
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from models.affiliate import AFFILIATE_STATUSES, Affiliate
from models.affiliate_click import AffiliateClick
from models.affiliate_conversion import AffiliateConversion
from models.affiliate_link import AffiliateLink
from ops.ops_events import (
    log_affiliate_click_rejected,
    log_affiliate_click_tracked,
    log_affiliate_conversion_processed,
    log_affiliate_conversion_recorded,
    log_affiliate_status_changed,
)
from repositories.affiliate_click_repo import AffiliateClickRepository
from repositories.affiliate_conversion_repo import AffiliateConversionRepository
from repositories.affiliate_link_repo import AffiliateLinkRepository
from repositories.affiliate_repo import AffiliateRepository

logger = logging.getLogger(__name__)

AFFILIATE_CODE_PREFIX = "AFF"
AFFILIATE_CODE_LENGTH = 8
TRACKING_CODE_LENGTH = 12
MAX_CODE_ATTEMPTS = 10

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Same-status updates are no-ops and are not listed here.
STATUS_TRANSITIONS: Dict[str, tuple[str, ...]] = {
    "pending": ("approved", "rejected"),
    "approved": ("suspended",),
    "suspended": ("approved",),
    "rejected": ("pending",),
}

CONVERSION_DECISIONS = ("approved", "rejected")

# Browser tokens are checked in this order; Chrome UAs also contain "Safari".
_BROWSER_TOKENS = ("Chrome", "Firefox", "Safari", "Edge")


# --- codes -----------------------------------------------------------------


def generate_affiliate_code() -> str:
    """``AFF`` followed by 8 uppercase letters/digits."""
    alphabet = string.ascii_uppercase + string.digits
    return AFFILIATE_CODE_PREFIX + "".join(
        secrets.choice(alphabet) for _ in range(AFFILIATE_CODE_LENGTH)
    )


def generate_tracking_code() -> str:
    """12 lowercase letters/digits."""
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(TRACKING_CODE_LENGTH))


async def _unused_code(
    generate: Callable[[], str],
    exists: Callable[[str], Awaitable[bool]],
) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate()
        if not await exists(code):
            return code
    raise ConflictError("Could not generate a unique code")


# --- request parsing -------------------------------------------------------


def parse_user_agent(user_agent: Optional[str]) -> tuple[str, str]:
    """(browser, device_type) from a User-Agent string."""
    ua = user_agent or ""
    browser = next((token for token in _BROWSER_TOKENS if token in ua), "Unknown")
    if "Mobile" in ua:
        device_type = "Mobile"
    elif "Tablet" in ua:
        device_type = "Tablet"
    else:
        device_type = "Desktop"
    return browser, device_type


def client_ip(headers: Mapping[str, str]) -> str:
    """CF-Connecting-IP, then first X-Forwarded-For hop, then X-Real-IP, else ``unknown``."""
    lowered = {k.lower(): v for k, v in headers.items()}
    cf_ip = (lowered.get("cf-connecting-ip") or "").strip()
    if cf_ip:
        return cf_ip
    forwarded = (lowered.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    real_ip = (lowered.get("x-real-ip") or "").strip()
    return real_ip or "unknown"


# --- serialization ---------------------------------------------------------


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def affiliate_url(tracking_code: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return f"{settings.site_url}?ref={tracking_code}"


def affiliate_to_dict(affiliate: Affiliate) -> Dict[str, Any]:
    return {
        "id": affiliate.id,
        "user_id": affiliate.user_id,
        "company_name": affiliate.company_name,
        "contact_email": affiliate.contact_email,
        "affiliate_code": affiliate.affiliate_code,
        "status": affiliate.status,
        "commission_rate": affiliate.commission_rate,
        "total_clicks": affiliate.total_clicks,
        "total_conversions": affiliate.total_conversions,
        "total_earnings": round(affiliate.total_earnings or 0.0, 2),
        "website": affiliate.website,
        "marketing_channels": affiliate.marketing_channels,
        "expected_traffic": affiliate.expected_traffic,
        "created_at": _iso(affiliate.created_at),
        "updated_at": _iso(affiliate.updated_at),
    }


def link_to_dict(link: AffiliateLink, settings: Optional[Settings] = None) -> Dict[str, Any]:
    return {
        "id": link.id,
        "affiliate_id": link.affiliate_id,
        "original_url": link.original_url,
        "tracking_code": link.tracking_code,
        "campaign_name": link.campaign_name,
        "is_active": link.is_active,
        "click_count": link.click_count,
        "conversion_count": link.conversion_count,
        "affiliate_url": affiliate_url(link.tracking_code, settings),
        "created_at": _iso(link.created_at),
        "updated_at": _iso(link.updated_at),
    }


def conversion_to_dict(conversion: AffiliateConversion) -> Dict[str, Any]:
    return {
        "id": conversion.id,
        "affiliate_id": conversion.affiliate_id,
        "affiliate_click_id": conversion.affiliate_click_id,
        "conversion_type": conversion.conversion_type,
        "conversion_value": conversion.conversion_value,
        "commission_amount": conversion.commission_amount,
        "status": conversion.status,
        "converted_at": _iso(conversion.converted_at),
        "processed_at": _iso(conversion.processed_at),
    }


# --- validation ------------------------------------------------------------


def _require_text(value: Optional[str], label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidInputError(f"{label} is required")
    return text


def _validate_email(value: Optional[str]) -> str:
    email = _require_text(value, "Contact email")
    if not _EMAIL_RE.match(email):
        raise InvalidInputError("Contact email is not a valid email address")
    return email


def normalize_commission_rate(value: Optional[float], default: float) -> float:
    """Fraction in [0, 1]. Values above 1 are read as percentages (10 -> 0.10)."""
    if value is None:
        return default
    rate = float(value)
    if rate < 0:
        raise InvalidInputError("Commission rate cannot be negative")
    if rate > 1:
        if rate > 100:
            raise InvalidInputError("Commission rate cannot exceed 100%")
        rate = rate / 100.0
    return round(rate, 4)


def _validate_url(value: str) -> str:
    if not (value.startswith("http://") or value.startswith("https://")):
        raise InvalidInputError("URL must start with http:// or https://")
    return value


# --- affiliates ------------------------------------------------------------


async def get_affiliate(session: AsyncSession, affiliate_id: str) -> Affiliate:
    affiliate = await AffiliateRepository(session).get_by_id(affiliate_id)
    if affiliate is None:
        raise NotFoundError("Affiliate not found")
    return affiliate


async def get_affiliate_for_user(session: AsyncSession, user_id: str) -> Optional[Affiliate]:
    return await AffiliateRepository(session).get_by_user(user_id)


async def list_affiliates(session: AsyncSession) -> List[Affiliate]:
    return await AffiliateRepository(session).list_newest_first()


async def apply(
    session: AsyncSession,
    user_id: str,
    company_name: Optional[str],
    contact_email: Optional[str],
    website: Optional[str] = None,
    marketing_channels: Optional[str] = None,
    expected_traffic: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Affiliate:
    """Self-service application: one per user, starts ``pending`` at the default rate."""
    settings = settings or get_settings()
    repo = AffiliateRepository(session)
    if await repo.get_by_user(user_id) is not None:
        raise ConflictError("You have already applied to the affiliate program")
    affiliate = Affiliate(
        user_id=user_id,
        company_name=_require_text(company_name, "Company name"),
        contact_email=_validate_email(contact_email),
        affiliate_code=await _unused_code(generate_affiliate_code, repo.code_exists),
        status="pending",
        commission_rate=settings.affiliate_default_commission_rate,
        website=(website or "").strip() or None,
        marketing_channels=(marketing_channels or "").strip() or None,
        expected_traffic=(expected_traffic or "").strip() or None,
    )
    await repo.add(affiliate)
    logger.info("Affiliate application %s submitted by user %s", affiliate.id, user_id)
    return affiliate


async def admin_create(
    session: AsyncSession,
    company_name: Optional[str],
    contact_email: Optional[str],
    affiliate_code: Optional[str] = None,
    status: str = "pending",
    commission_rate: Optional[float] = None,
    user_id: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Affiliate:
    settings = settings or get_settings()
    repo = AffiliateRepository(session)
    if status not in AFFILIATE_STATUSES:
        raise InvalidInputError(f"Unknown affiliate status: {status}")
    code = (affiliate_code or "").strip().upper()
    if code:
        if await repo.code_exists(code):
            raise ConflictError(f"Affiliate code {code} is already in use")
    else:
        code = await _unused_code(generate_affiliate_code, repo.code_exists)
    affiliate = Affiliate(
        user_id=user_id,
        company_name=_require_text(company_name, "Company name"),
        contact_email=_validate_email(contact_email),
        affiliate_code=code,
        status=status,
        commission_rate=normalize_commission_rate(
            commission_rate, settings.affiliate_default_commission_rate
        ),
    )
    await repo.add(affiliate)
    logger.info("Admin created affiliate %s (%s)", affiliate.id, code)
    return affiliate


async def admin_update(
    session: AsyncSession,
    affiliate_id: str,
    company_name: Optional[str] = None,
    contact_email: Optional[str] = None,
    affiliate_code: Optional[str] = None,
    status: Optional[str] = None,
    commission_rate: Optional[float] = None,
) -> Affiliate:
    """Partial update; a status change goes through the transition rules."""
    repo = AffiliateRepository(session)
    affiliate = await get_affiliate(session, affiliate_id)
    if company_name is not None:
        affiliate.company_name = _require_text(company_name, "Company name")
    if contact_email is not None:
        affiliate.contact_email = _validate_email(contact_email)
    if affiliate_code is not None:
        code = _require_text(affiliate_code, "Affiliate code").upper()
        if code != affiliate.affiliate_code and await repo.code_exists(code):
            raise ConflictError(f"Affiliate code {code} is already in use")
        affiliate.affiliate_code = code
    if commission_rate is not None:
        affiliate.commission_rate = normalize_commission_rate(
            commission_rate, affiliate.commission_rate
        )
    await session.flush()
    if status is not None:
        affiliate = await set_status(session, affiliate_id, status)
    return affiliate


async def admin_delete(session: AsyncSession, affiliate_id: str) -> None:
    affiliate = await get_affiliate(session, affiliate_id)
    await AffiliateRepository(session).delete_cascade(affiliate)
    logger.info("Deleted affiliate %s with its links, clicks and conversions", affiliate_id)


async def set_status(session: AsyncSession, affiliate_id: str, status: str) -> Affiliate:
    affiliate = await get_affiliate(session, affiliate_id)
    if status not in AFFILIATE_STATUSES:
        raise InvalidInputError(f"Unknown affiliate status: {status}")
    old_status = affiliate.status
    if status == old_status:
        return affiliate
    if status not in STATUS_TRANSITIONS.get(old_status, ()):
        raise InvalidInputError(f"Cannot change affiliate status from {old_status} to {status}")
    affiliate.status = status
    await session.flush()
    log_affiliate_status_changed(affiliate.id, old_status, status)
    return affiliate


# --- links -----------------------------------------------------------------


async def get_link(session: AsyncSession, link_id: str) -> AffiliateLink:
    link = await AffiliateLinkRepository(session).get_by_id(link_id)
    if link is None:
        raise NotFoundError("Affiliate link not found")
    return link


async def create_link(
    session: AsyncSession,
    affiliate_id: str,
    campaign_name: Optional[str],
    original_url: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> AffiliateLink:
    settings = settings or get_settings()
    affiliate = await get_affiliate(session, affiliate_id)
    if affiliate.status == "rejected":
        raise ForbiddenError("Rejected affiliates cannot create links")
    campaign = _require_text(campaign_name, "Campaign name")
    url = _validate_url((original_url or "").strip() or settings.site_url)
    repo = AffiliateLinkRepository(session)
    link = AffiliateLink(
        affiliate_id=affiliate.id,
        original_url=url,
        tracking_code=await _unused_code(generate_tracking_code, repo.tracking_code_exists),
        campaign_name=campaign,
        is_active=True,
        click_count=0,
        conversion_count=0,
    )
    await repo.add(link)
    logger.info("Created affiliate link %s for affiliate %s", link.tracking_code, affiliate.id)
    return link


async def list_links(session: AsyncSession, affiliate_id: str) -> List[AffiliateLink]:
    return await AffiliateLinkRepository(session).list_by_affiliate(affiliate_id)


async def toggle_link(session: AsyncSession, link_id: str) -> AffiliateLink:
    link = await get_link(session, link_id)
    link.is_active = not link.is_active
    await session.flush()
    logger.info("Affiliate link %s is now %s", link.id, "active" if link.is_active else "inactive")
    return link


# --- clicks ----------------------------------------------------------------


async def track_click(
    session: AsyncSession,
    tracking_code: Optional[str],
    user_agent: Optional[str] = None,
    referrer: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Record one click on an active link of an approved affiliate."""
    settings = settings or get_settings()
    code = (tracking_code or "").strip()
    if not code:
        log_affiliate_click_rejected("", "missing_code")
        raise InvalidInputError("Tracking code is required")

    link = await AffiliateLinkRepository(session).get_by_tracking_code(code)
    if link is None or not link.is_active:
        log_affiliate_click_rejected(code, "unknown_or_inactive")
        raise NotFoundError("Invalid tracking code")

    affiliate = await AffiliateRepository(session).get_by_id(link.affiliate_id)
    if affiliate is None or affiliate.status != "approved":
        log_affiliate_click_rejected(code, "affiliate_not_approved")
        raise ForbiddenError("Affiliate not approved")

    browser, device_type = parse_user_agent(user_agent)
    click = AffiliateClick(
        affiliate_id=affiliate.id,
        affiliate_link_id=link.id,
        ip_address=client_ip(headers or {}),
        user_agent=user_agent,
        referrer=referrer,
        browser=browser,
        device_type=device_type,
        country=None,
        city=None,
    )
    await AffiliateClickRepository(session).add(click)
    await AffiliateLinkRepository(session).increment(link.id, click_count=1)
    await AffiliateRepository(session).increment(affiliate.id, total_clicks=1)
    log_affiliate_click_tracked(affiliate.id, link.id, browser, device_type)

    return {
        "success": True,
        "redirectUrl": link.original_url or settings.site_url,
        "message": "Click tracked successfully",
        "clickId": click.id,
    }


# --- conversions -----------------------------------------------------------


async def _resolve_click(
    session: AsyncSession,
    click_id: Optional[str],
    tracking_code: Optional[str],
) -> AffiliateClick:
    if click_id:
        click = await AffiliateClickRepository(session).get_by_id(click_id)
        if click is None:
            raise NotFoundError("Click not found")
        return click
    code = (tracking_code or "").strip()
    if not code:
        raise InvalidInputError("click_id or tracking_code is required")
    link = await AffiliateLinkRepository(session).get_by_tracking_code(code)
    if link is None:
        raise NotFoundError("Invalid tracking code")
    click = await AffiliateClickRepository(session).latest_for_link(link.id)
    if click is None:
        raise NotFoundError("No click recorded for this tracking code")
    return click


async def record_conversion(
    session: AsyncSession,
    click_id: Optional[str] = None,
    tracking_code: Optional[str] = None,
    conversion_type: str = "signup",
    conversion_value: Optional[float] = None,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> AffiliateConversion:
    """Attribute a pending conversion to a click (latest click when given a tracking code)."""
    settings = settings or get_settings()
    now = now or datetime.now(timezone.utc)
    click = await _resolve_click(session, click_id, tracking_code)

    link = await AffiliateLinkRepository(session).get_by_id(click.affiliate_link_id)
    if link is None or not link.is_active:
        raise ForbiddenError("Affiliate link is inactive; conversion not attributed")
    affiliate = await AffiliateRepository(session).get_by_id(click.affiliate_id)
    if affiliate is None or affiliate.status != "approved":
        raise ForbiddenError("Affiliate not approved")

    window_days = settings.affiliate_attribution_window_days
    if window_days > 0 and _as_utc(now) - _as_utc(click.clicked_at) > timedelta(days=window_days):
        raise InvalidInputError(
            f"Click is older than the {window_days}-day attribution window"
        )

    kind = _require_text(conversion_type, "Conversion type").lower()
    if conversion_value is not None and conversion_value < 0:
        raise InvalidInputError("Conversion value cannot be negative")
    commission = round((conversion_value or 0.0) * affiliate.commission_rate, 2)

    conversion = AffiliateConversion(
        affiliate_id=affiliate.id,
        affiliate_click_id=click.id,
        conversion_type=kind,
        conversion_value=conversion_value,
        commission_amount=commission,
        status="pending",
        converted_at=now,
    )
    await AffiliateConversionRepository(session).add(conversion)
    await AffiliateLinkRepository(session).increment(link.id, conversion_count=1)
    await AffiliateRepository(session).increment(affiliate.id, total_conversions=1)
    log_affiliate_conversion_recorded(affiliate.id, conversion.id, kind, commission)
    return conversion


async def process_conversion(
    session: AsyncSession,
    conversion_id: str,
    status: str,
) -> AffiliateConversion:
    """Approve or reject a pending conversion; approval credits total_earnings."""
    if status not in CONVERSION_DECISIONS:
        raise InvalidInputError("Conversion status must be approved or rejected")
    repo = AffiliateConversionRepository(session)
    conversion = await repo.get_by_id(conversion_id)
    if conversion is None:
        raise NotFoundError("Conversion not found")
    if conversion.status != "pending":
        raise ConflictError(f"Conversion already {conversion.status}")

    conversion.status = status
    conversion.processed_at = datetime.now(timezone.utc)
    await session.flush()
    commission = conversion.commission_amount or 0.0
    if status == "approved" and commission:
        await AffiliateRepository(session).increment(
            conversion.affiliate_id, total_earnings=commission
        )
    log_affiliate_conversion_processed(conversion.affiliate_id, conversion.id, status, commission)
    return conversion


async def list_conversions(session: AsyncSession, affiliate_id: str) -> List[AffiliateConversion]:
    return await AffiliateConversionRepository(session).list_by_affiliate(affiliate_id)


# --- stats -----------------------------------------------------------------


def conversion_rate(total_clicks: int, total_conversions: int) -> str:
    """Click-to-conversion percentage with two decimals; ``"0.00"`` without clicks."""
    if total_clicks <= 0:
        return "0.00"
    return f"{total_conversions / total_clicks * 100:.2f}"


async def affiliate_stats(session: AsyncSession, affiliate_id: str) -> Dict[str, Any]:
    affiliate = await get_affiliate(session, affiliate_id)
    await session.refresh(affiliate)
    by_status = await AffiliateConversionRepository(session).commission_by_status(affiliate.id)
    approved = round(by_status.get("approved", 0.0), 2)
    return {
        "affiliate_id": affiliate.id,
        "affiliate_code": affiliate.affiliate_code,
        "status": affiliate.status,
        "total_clicks": affiliate.total_clicks,
        "total_conversions": affiliate.total_conversions,
        "total_earnings": round(affiliate.total_earnings or 0.0, 2),
        "conversion_rate": conversion_rate(affiliate.total_clicks, affiliate.total_conversions),
        "commission_rate_percent": f"{affiliate.commission_rate * 100:.1f}",
        "pending_earnings": round(by_status.get("pending", 0.0), 2),
        "approved_earnings": approved,
        "payout_eligible": affiliate.status == "approved" and approved > 0,
    }
