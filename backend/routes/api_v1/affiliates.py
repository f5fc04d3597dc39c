"""Affiliate endpoints: public click tracking and the signed-in affiliate's dashboard."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from core.dependencies import get_db_session, require_user
from core.errors import NotFoundError, ServiceError, http_error
from services import affiliate_service

router = APIRouter(prefix="/affiliates", tags=["affiliates"])


class TrackClickBody(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "trackingCode": "k3j9x0q2mzp1",
                "userAgent": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile Safari/604.1",
                "referrer": "https://twitter.com/",
            }
        }
    )

    trackingCode: Optional[str] = Field(default=None, description="Tracking code from the ?ref= parameter")
    userAgent: Optional[str] = Field(default=None, description="Visitor user agent; defaults to the request header")
    referrer: Optional[str] = Field(default=None, description="Page the visitor came from")


class ApplyBody(BaseModel):
    company_name: str = Field(..., description="Company or brand name")
    contact_email: str = Field(..., description="Contact email for payouts")
    website: Optional[str] = Field(default=None)
    marketing_channels: Optional[str] = Field(default=None, description="How you plan to promote Ball Mtaani")
    expected_traffic: Optional[str] = Field(default=None, description="Expected monthly visitors")


class CreateLinkBody(BaseModel):
    campaign_name: str = Field(..., description="Campaign label shown in the dashboard")
    original_url: Optional[str] = Field(
        default=None, description="Landing page; blank uses the site home page"
    )


class RecordConversionBody(BaseModel):
    click_id: Optional[str] = Field(default=None, description="Click returned by track-click")
    tracking_code: Optional[str] = Field(
        default=None, description="Used when click_id is absent; the latest click on the link is credited"
    )
    conversion_type: str = Field(default="signup", description="signup | deposit | subscription ...")
    conversion_value: Optional[float] = Field(default=None, ge=0, description="Value the commission is taken from")


@router.post(
    "/track-click",
    summary="Record a click on an affiliate link",
    description="Validates the tracking code, records one click with browser/device/IP details and returns the redirect URL.",
)
async def post_track_click(
    body: TrackClickBody,
    request: Request,
    session: AsyncSession = Depends(get_db_session),
):
    try:
        return await affiliate_service.track_click(
            session,
            body.trackingCode,
            user_agent=body.userAgent or request.headers.get("user-agent"),
            referrer=body.referrer,
            headers=request.headers,
        )
    except ServiceError as e:
        raise http_error(e) from e


@router.post("/apply", summary="Apply to the affiliate program", status_code=201)
async def post_apply(
    body: ApplyBody,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        affiliate = await affiliate_service.apply(
            session,
            user_id,
            body.company_name,
            body.contact_email,
            website=body.website,
            marketing_channels=body.marketing_channels,
            expected_traffic=body.expected_traffic,
        )
    except ServiceError as e:
        raise http_error(e) from e
    return affiliate_service.affiliate_to_dict(affiliate)


async def _my_affiliate(session: AsyncSession, user_id: str):
    affiliate = await affiliate_service.get_affiliate_for_user(session, user_id)
    if affiliate is None:
        raise http_error(NotFoundError("You have not applied to the affiliate program"))
    return affiliate


@router.get("/me", summary="My affiliate account")
async def get_me(
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    return affiliate_service.affiliate_to_dict(await _my_affiliate(session, user_id))


@router.get("/me/stats", summary="My clicks, conversions and earnings")
async def get_my_stats(
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    affiliate = await _my_affiliate(session, user_id)
    return await affiliate_service.affiliate_stats(session, affiliate.id)


@router.get("/me/links", summary="My tracked links, newest first")
async def get_my_links(
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    affiliate = await _my_affiliate(session, user_id)
    links = await affiliate_service.list_links(session, affiliate.id)
    return {"links": [affiliate_service.link_to_dict(link) for link in links]}


@router.post("/me/links", summary="Create a tracked link", status_code=201)
async def post_my_link(
    body: CreateLinkBody,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    affiliate = await _my_affiliate(session, user_id)
    try:
        link = await affiliate_service.create_link(
            session, affiliate.id, body.campaign_name, body.original_url
        )
    except ServiceError as e:
        raise http_error(e) from e
    return affiliate_service.link_to_dict(link)


@router.post("/me/links/{link_id}/toggle", summary="Activate or deactivate one of my links")
async def post_toggle_my_link(
    link_id: str,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    affiliate = await _my_affiliate(session, user_id)
    try:
        link = await affiliate_service.get_link(session, link_id)
        if link.affiliate_id != affiliate.id:
            raise NotFoundError("Affiliate link not found")
        link = await affiliate_service.toggle_link(session, link_id)
    except ServiceError as e:
        raise http_error(e) from e
    return affiliate_service.link_to_dict(link)


@router.get("/me/conversions", summary="My conversions, newest first")
async def get_my_conversions(
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    affiliate = await _my_affiliate(session, user_id)
    conversions = await affiliate_service.list_conversions(session, affiliate.id)
    return {"conversions": [affiliate_service.conversion_to_dict(c) for c in conversions]}


@router.post(
    "/conversions",
    summary="Attribute a conversion to a tracked click",
    description="Recorded as pending; it adds to earnings only once an admin approves it.",
    status_code=201,
)
async def post_conversion(
    body: RecordConversionBody,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        conversion = await affiliate_service.record_conversion(
            session,
            click_id=body.click_id,
            tracking_code=body.tracking_code,
            conversion_type=body.conversion_type,
            conversion_value=body.conversion_value,
        )
    except ServiceError as e:
        raise http_error(e) from e
    return affiliate_service.conversion_to_dict(conversion)
