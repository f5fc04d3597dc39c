from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import get_database_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding an AsyncSession from the DatabaseManager."""
    manager = get_database_manager()
    async with manager.session() as session:
        yield session


async def get_optional_user_id(
    x_user_id: Optional[str] = Header(default=None),
) -> Optional[str]:
    """User id forwarded by the auth layer in the X-User-Id header, if any."""
    if x_user_id is None:
        return None
    value = x_user_id.strip()
    return value or None


async def require_user(
    user_id: Optional[str] = Depends(get_optional_user_id),
) -> str:
    """Reject anonymous callers with 401."""
    if user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user_id


async def require_admin(
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
) -> str:
    """Admit users with the admin role or listed in ADMIN_USER_IDS."""
    from services.profile_service import has_role

    if user_id in get_settings().admin_user_ids:
        return user_id
    if await has_role(session, user_id, "admin"):
        return user_id
    raise HTTPException(status_code=403, detail="Admin role required")
