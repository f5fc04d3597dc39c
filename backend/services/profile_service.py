"""Profiles and role grants (app_role: admin | editor | viewer)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import InvalidInputError, NotFoundError
from models.profile import Profile
from models.user_role import APP_ROLES, UserRole
from repositories.profile_repo import ProfileRepository

logger = logging.getLogger(__name__)


def profile_to_dict(profile: Profile) -> Dict[str, Any]:
    return {
        "id": profile.id,
        "user_id": profile.user_id,
        "full_name": profile.full_name,
        "avatar_url": profile.avatar_url,
        "created_at": profile.created_at.isoformat() if profile.created_at else None,
        "updated_at": profile.updated_at.isoformat() if profile.updated_at else None,
    }


async def get_profile(session: AsyncSession, user_id: str) -> Profile:
    """Profile for user_id; an empty one is created on first read."""
    repo = ProfileRepository(session)
    profile = await repo.get_by_user(user_id)
    if profile is None:
        profile = await repo.add(Profile(user_id=user_id))
        logger.info("Created profile for user %s", user_id)
    return profile


async def update_profile(
    session: AsyncSession,
    user_id: str,
    full_name: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> Profile:
    profile = await get_profile(session, user_id)
    if full_name is not None:
        profile.full_name = full_name.strip() or None
    if avatar_url is not None:
        profile.avatar_url = avatar_url.strip() or None
    await session.flush()
    return profile


def _check_role(role: str) -> str:
    role = (role or "").strip().lower()
    if role not in APP_ROLES:
        raise InvalidInputError(f"Unknown role: {role!r} (expected one of {', '.join(APP_ROLES)})")
    return role


async def get_user_roles(session: AsyncSession, user_id: str) -> List[str]:
    return await ProfileRepository(session).list_roles(user_id)


async def has_role(session: AsyncSession, user_id: str, role: str) -> bool:
    if not user_id:
        return False
    return await ProfileRepository(session).get_role(user_id, role) is not None


async def grant_role(session: AsyncSession, user_id: str, role: str) -> List[str]:
    """Grant role (idempotent); returns the user's roles."""
    role = _check_role(role)
    repo = ProfileRepository(session)
    if await repo.get_role(user_id, role) is None:
        await repo.add_role(UserRole(user_id=user_id, role=role))
        logger.info("Granted role %s to user %s", role, user_id)
    return await repo.list_roles(user_id)


async def revoke_role(session: AsyncSession, user_id: str, role: str) -> List[str]:
    role = _check_role(role)
    repo = ProfileRepository(session)
    grant = await repo.get_role(user_id, role)
    if grant is None:
        raise NotFoundError(f"User {user_id} does not have role {role}")
    await repo.remove_role(grant)
    logger.info("Revoked role %s from user %s", role, user_id)
    return await repo.list_roles(user_id)
