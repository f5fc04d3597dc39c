"""
Integration tests for polls, discussions, the admin pin and the CAF
results scrape endpoint.
"""

from __future__ import annotations

import sys
from pathlib import Path

_backend = Path(__file__).resolve().parent.parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

import pytest

from core.config import Settings
from services import match_scrape_service

FAN = {"X-User-Id": "fan-1"}
OTHER_FAN = {"X-User-Id": "fan-2"}


@pytest.mark.asyncio
async def test_poll_vote_flow(client) -> None:
    r = await client.post("/api/v1/polls", json={"title": "Who wins CHAN?", "options": ["Kenya", "Morocco"]})
    assert r.status_code == 401

    r = await client.post(
        "/api/v1/polls", json={"title": "Who wins CHAN?", "options": ["Kenya", "Morocco"]}, headers=FAN
    )
    assert r.status_code == 201, r.text
    poll = r.json()
    kenya = poll["options"][0]["id"]

    r = await client.post(f"/api/v1/polls/{poll['id']}/vote", json={"option_id": kenya}, headers=FAN)
    assert r.status_code == 200
    assert r.json()["total_votes"] == 1

    r = await client.post(f"/api/v1/polls/{poll['id']}/vote", json={"option_id": kenya}, headers=FAN)
    assert r.status_code == 409

    r = await client.get("/api/v1/polls", headers=FAN)
    (listed,) = r.json()["polls"]
    assert listed["user_vote"] == kenya
    assert listed["options"][0]["vote_count"] == 1

    r = await client.get("/api/v1/polls", headers=OTHER_FAN)
    assert r.json()["polls"][0]["user_vote"] is None


@pytest.mark.asyncio
async def test_poll_needs_two_options(client) -> None:
    r = await client.post("/api/v1/polls", json={"title": "Lonely", "options": ["Only one"]}, headers=FAN)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_discussion_replies_and_pin(client, admin_headers) -> None:
    r = await client.post(
        "/api/v1/discussions",
        json={"title": "Mashemeji derby preview", "content": "Predictions?", "category": "matches"},
        headers=FAN,
    )
    assert r.status_code == 201, r.text
    discussion_id = r.json()["id"]

    for text in ("Gor by two", "Draw"):
        r = await client.post(
            f"/api/v1/discussions/{discussion_id}/replies", json={"content": text}, headers=OTHER_FAN
        )
        assert r.status_code == 201

    r = await client.get(f"/api/v1/discussions/{discussion_id}")
    body = r.json()
    assert body["discussion"]["reply_count"] == 2
    assert body["discussion"]["view_count"] == 1
    assert [reply["content"] for reply in body["replies"]] == ["Gor by two", "Draw"]

    r = await client.post(f"/api/v1/admin/discussions/{discussion_id}/pin", headers=FAN)
    assert r.status_code == 403
    r = await client.post(f"/api/v1/admin/discussions/{discussion_id}/pin", headers=admin_headers)
    assert r.json()["is_pinned"] is True

    r = await client.get("/api/v1/discussions", params={"category": "matches"})
    assert [d["id"] for d in r.json()["discussions"]] == [discussion_id]
    r = await client.get("/api/v1/discussions", params={"category": "politics"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_scrape_caf_matches_without_key_returns_500_body(client, admin_headers, monkeypatch) -> None:
    monkeypatch.setattr(match_scrape_service, "get_settings", lambda: Settings(firecrawl_api_key=""))
    r = await client.post("/api/v1/admin/matches/scrape-caf", headers=admin_headers)
    assert r.status_code == 500
    assert r.json() == {
        "error": "Failed to scrape CAF matches",
        "details": "Firecrawl API key not configured",
    }
