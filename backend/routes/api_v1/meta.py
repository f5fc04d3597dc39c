"""Application version and static site configuration."""

from __future__ import annotations

from fastapi import APIRouter

from services.site_config import get_site_config
from version import get_version

router = APIRouter(prefix="/meta", tags=["meta"])


@router.get("/version", summary="Application version")
def meta_version() -> dict:
    """Return version from repo root VERSION file."""
    return {"version": get_version()}


@router.get("/site-config", summary="Ad slots, news categories, source credibility and refresh intervals")
def meta_site_config() -> dict:
    return get_site_config()
