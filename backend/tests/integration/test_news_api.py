"""
Integration tests for news: admin CRUD, published reads, search, views,
comments and like toggling.
"""

from __future__ import annotations

import sys
from pathlib import Path

_backend = Path(__file__).resolve().parent.parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

import pytest

READER = {"X-User-Id": "reader-1"}


async def _create(client, admin_headers, **overrides) -> dict:
    body = {
        "title": "Harambee Stars name CHAN squad",
        "content": "The national team has named a 23-man squad for the CHAN opener.",
        "category": "CAF CHAN",
        "tags": "Kenya, CHAN , ,Harambee Stars",
        "is_published": True,
    }
    body.update(overrides)
    r = await client.post("/api/v1/admin/news", json=body, headers=admin_headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_create_article_parses_tags_and_sets_published_at(client, admin_headers) -> None:
    article = await _create(client, admin_headers)
    assert article["tags"] == ["Kenya", "CHAN", "Harambee Stars"]
    assert article["is_published"] is True
    assert article["published_at"] is not None
    assert article["author_id"] == admin_headers["X-User-Id"]

    r = await client.patch(
        f"/api/v1/admin/news/{article['id']}", json={"is_published": False}, headers=admin_headers
    )
    assert r.json()["published_at"] is None


@pytest.mark.asyncio
async def test_duplicate_title_conflicts(client, admin_headers) -> None:
    await _create(client, admin_headers)
    r = await client.post(
        "/api/v1/admin/news",
        json={"title": "Harambee Stars name CHAN squad", "content": "dup"},
        headers=admin_headers,
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_public_list_shows_published_only_and_searches(client, admin_headers) -> None:
    await _create(client, admin_headers)
    await _create(client, admin_headers, title="Draft transfer rumour", category="Transfer News", is_published=False)
    await _create(
        client, admin_headers, title="Gor Mahia win Mashemeji derby", category="Match Analysis", tags="Gor Mahia"
    )

    r = await client.get("/api/v1/news")
    titles = {a["title"] for a in r.json()["articles"]}
    assert titles == {"Harambee Stars name CHAN squad", "Gor Mahia win Mashemeji derby"}

    r = await client.get("/api/v1/news", params={"category": "Match Analysis"})
    assert [a["title"] for a in r.json()["articles"]] == ["Gor Mahia win Mashemeji derby"]

    r = await client.get("/api/v1/news", params={"q": "harambee"})
    assert [a["title"] for a in r.json()["articles"]] == ["Harambee Stars name CHAN squad"]

    r = await client.get("/api/v1/admin/news", headers=admin_headers)
    assert len(r.json()["articles"]) == 3


@pytest.mark.asyncio
async def test_reading_counts_views_and_hides_drafts(client, admin_headers) -> None:
    article = await _create(client, admin_headers)
    draft = await _create(client, admin_headers, title="Unpublished", is_published=False)

    r = await client.get(f"/api/v1/news/{article['id']}")
    assert r.json()["view_count"] == 1
    r = await client.get(f"/api/v1/news/{article['id']}")
    assert r.json()["view_count"] == 2

    r = await client.get(f"/api/v1/news/{draft['id']}")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_comments(client, admin_headers) -> None:
    article = await _create(client, admin_headers)

    r = await client.post(f"/api/v1/news/{article['id']}/comments", json={"content": "Great squad"})
    assert r.status_code == 401

    r = await client.post(f"/api/v1/news/{article['id']}/comments", json={"content": "   "}, headers=READER)
    assert r.status_code == 400

    r = await client.post(
        f"/api/v1/news/{article['id']}/comments", json={"content": "  Great squad  "}, headers=READER
    )
    assert r.status_code == 201
    assert r.json()["content"] == "Great squad"
    assert r.json()["time_ago"] == "Just now"

    await client.post(f"/api/v1/news/{article['id']}/comments", json={"content": "Second"}, headers=READER)
    r = await client.get(f"/api/v1/news/{article['id']}/comments")
    assert [c["content"] for c in r.json()["comments"]] == ["Great squad", "Second"]

    r = await client.get(f"/api/v1/news/{article['id']}")
    assert r.json()["comment_count"] == 2


@pytest.mark.asyncio
async def test_like_toggles(client, admin_headers) -> None:
    article = await _create(client, admin_headers)

    r = await client.post(f"/api/v1/news/{article['id']}/like", headers=READER)
    assert r.json() == {"liked": True, "like_count": 1}
    r = await client.post(f"/api/v1/news/{article['id']}/like", headers={"X-User-Id": "reader-2"})
    assert r.json() == {"liked": True, "like_count": 2}
    r = await client.post(f"/api/v1/news/{article['id']}/like", headers=READER)
    assert r.json() == {"liked": False, "like_count": 1}


@pytest.mark.asyncio
async def test_delete_article_removes_comments(client, admin_headers) -> None:
    article = await _create(client, admin_headers)
    await client.post(f"/api/v1/news/{article['id']}/comments", json={"content": "Hi"}, headers=READER)

    r = await client.delete(f"/api/v1/admin/news/{article['id']}", headers=admin_headers)
    assert r.status_code == 200
    r = await client.get(f"/api/v1/news/{article['id']}/comments")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_scraped_list_empty(client) -> None:
    r = await client.get("/api/v1/news/scraped")
    assert r.status_code == 200
    assert r.json() == {"articles": []}
