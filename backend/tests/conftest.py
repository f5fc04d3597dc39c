# Ensure backend is at sys.path[0] when pytest runs (from repo root or from backend dir)
import sys
from pathlib import Path

_tests_dir = Path(__file__).resolve().parent
_backend = _tests_dir.parent
_str_backend = str(_backend)
if sys.path[0:1] != [_str_backend]:
    sys.path.insert(0, _str_backend)

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from core.config import Settings
from core.database import dispose_database, get_database_manager, init_database

ADMIN_ID = "admin-user"
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db():
    """In-memory SQLite with the full schema; torn down after each test."""
    await init_database(TEST_DATABASE_URL)
    manager = get_database_manager()
    await manager.create_all()
    yield manager
    await dispose_database()


@pytest_asyncio.fixture
async def session(db):
    async with db.session() as s:
        yield s


@pytest_asyncio.fixture
async def client(db):
    """API client over ASGI; requests use the same in-memory database."""
    from main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def admin_headers(db):
    """X-User-Id headers for a user holding the admin role."""
    from services.profile_service import grant_role

    async with db.session() as s:
        await grant_role(s, ADMIN_ID, "admin")
    return {"X-User-Id": ADMIN_ID}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        site_url="https://ballmtaani.com",
        affiliate_default_commission_rate=0.05,
        affiliate_attribution_window_days=30,
    )


@pytest.fixture
def mock_http():
    """Factory: httpx client whose requests are answered by handler(request) -> httpx.Response."""

    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
