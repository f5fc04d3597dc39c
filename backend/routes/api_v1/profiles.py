"""The signed-in user's profile and roles."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from core.dependencies import get_db_session, require_user
from services import profile_service

router = APIRouter(prefix="/profiles", tags=["profiles"])


class ProfileUpdateBody(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


@router.get("/me", summary="My profile (created on first read)")
async def get_my_profile(
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    profile = await profile_service.get_profile(session, user_id)
    return profile_service.profile_to_dict(profile)


@router.patch("/me", summary="Update my profile")
async def patch_my_profile(
    body: ProfileUpdateBody,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    profile = await profile_service.update_profile(
        session, user_id, full_name=body.full_name, avatar_url=body.avatar_url
    )
    return profile_service.profile_to_dict(profile)


@router.get("/me/roles", summary="My roles")
async def get_my_roles(
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    return {"user_id": user_id, "roles": await profile_service.get_user_roles(session, user_id)}
