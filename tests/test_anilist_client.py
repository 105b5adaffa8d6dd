import json

import httpx
import pytest

from bingo.anilist.client import AniListClient, filter_by_status

MEDIA = [
    {"id": 1, "title": {"romaji": "Naruto"}},
    {"id": 2, "title": {"romaji": "Frieren"}},
    {"id": 3, "title": {"romaji": "Mushishi"}},
]


def _client(handler):
    return AniListClient("https://anilist.test/graphql", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_search_anime_sends_variables():
    seen = {}

    def handler(request):
        seen.update(json.loads(request.content))
        body = {"data": {"Page": {"pageInfo": {"hasNextPage": True}, "media": MEDIA}}}
        return httpx.Response(200, json=body)

    client = _client(handler)
    media, has_next = await client.search_anime("nar", genre="Drama", page=2)
    await client.aclose()

    assert media == MEDIA
    assert has_next is True
    assert seen["variables"] == {"page": 2, "perPage": 18, "search": "nar", "genre": "Drama"}
    assert "Page(page: $page, perPage: $perPage)" in seen["query"]


@pytest.mark.asyncio
async def test_search_anime_http_error_returns_empty_page():
    client = _client(lambda request: httpx.Response(500, text="boom"))
    assert await client.search_anime() == ([], False)
    await client.aclose()


@pytest.mark.asyncio
async def test_search_anime_network_error_returns_empty_page():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = _client(handler)
    assert await client.search_anime("x") == ([], False)
    await client.aclose()


@pytest.mark.asyncio
async def test_user_statuses():
    def handler(request):
        body = {
            "data": {
                "MediaListCollection": {
                    "lists": [
                        {"name": "Completed", "entries": [{"mediaId": 1, "status": "COMPLETED"}]},
                        {"name": "Watching", "entries": [{"mediaId": 2, "status": "CURRENT"}]},
                    ]
                }
            }
        }
        return httpx.Response(200, json=body)

    client = _client(handler)
    assert await client.user_statuses("ana") == {1: "COMPLETED", 2: "CURRENT"}
    await client.aclose()


@pytest.mark.asyncio
async def test_user_statuses_without_user_skips_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    client = _client(handler)
    assert await client.user_statuses("") == {}
    assert calls == []
    await client.aclose()


def test_filter_by_status():
    statuses = {1: "COMPLETED", 2: "PLANNING"}
    assert filter_by_status(MEDIA, statuses, ["COMPLETED"]) == MEDIA[1:]
    # PLANNING is not a filterable status
    assert filter_by_status(MEDIA, statuses, ["PLANNING"]) == MEDIA
    assert filter_by_status(MEDIA, statuses, []) == MEDIA
