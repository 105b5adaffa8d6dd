# bingo/anilist/client.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx
import structlog

from bingo.domain.common.types import FILTERABLE_STATUSES

logger = structlog.get_logger()

SEARCH_QUERY = """
query ($page: Int, $perPage: Int, $search: String, $genre: String) {
  Page(page: $page, perPage: $perPage) {
    pageInfo { hasNextPage }
    media(search: $search, type: ANIME, sort: POPULARITY_DESC, isAdult: false, genre: $genre) {
      id, title { romaji }, coverImage { extraLarge }, studios(isMain: true) { nodes { name } },
      seasonYear, format, episodes, genres, averageScore
    }
  }
}
"""

USER_LIST_QUERY = """
query ($userName: String) {
  MediaListCollection(userName: $userName, type: ANIME) {
    lists { name, entries { mediaId, status } }
  }
}
"""


class AniListClient:
    """
    Thin GraphQL client. Failures are logged and turned into empty results;
    the game never depends on AniList being reachable.
    """
    def __init__(
        self,
        api_url: str = "https://graphql.anilist.co",
        *,
        timeout: float = 10.0,
        page_size: int = 18,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url
        self.page_size = page_size
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, query: str, variables: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            response = await self._client.post(self.api_url, json={"query": query, "variables": variables})
        except httpx.RequestError as e:
            logger.warning("anilist request failed", error=str(e))
            return None

        if response.status_code != 200:
            logger.warning("anilist error response", status=response.status_code, body=response.text[:200])
            return None
        try:
            body = response.json()
        except ValueError:
            logger.warning("anilist returned invalid json")
            return None
        return body.get("data") if isinstance(body, dict) else None

    async def search_anime(
        self,
        search: str = "",
        genre: Optional[str] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> Tuple[List[Dict[str, Any]], bool]:
        """One page of popular non-adult anime. Returns (media, has_next_page)."""
        variables: Dict[str, Any] = {"page": page, "perPage": per_page or self.page_size}
        if search:
            variables["search"] = search
        if genre:
            variables["genre"] = genre

        data = await self._call(SEARCH_QUERY, variables)
        page_data = (data or {}).get("Page") or {}
        media = page_data.get("media") or []
        has_next = bool((page_data.get("pageInfo") or {}).get("hasNextPage"))
        return media, has_next

    async def user_statuses(self, user_name: str) -> Dict[int, str]:
        """mediaId -> list status (CURRENT, COMPLETED, ...) for an AniList user."""
        if not user_name:
            return {}
        data = await self._call(USER_LIST_QUERY, {"userName": user_name})
        collection = (data or {}).get("MediaListCollection") or {}
        statuses: Dict[int, str] = {}
        for lst in collection.get("lists") or []:
            for entry in lst.get("entries") or []:
                if entry.get("mediaId") is not None and entry.get("status"):
                    statuses[entry["mediaId"]] = entry["status"]
        return statuses


def filter_by_status(
    media: Iterable[Dict[str, Any]],
    statuses: Dict[int, str],
    hidden: Iterable[str],
) -> List[Dict[str, Any]]:
    """Drop titles whose list status is toggled off. Only COMPLETED/CURRENT/DROPPED can be hidden."""
    hide = set(hidden) & FILTERABLE_STATUSES
    return [m for m in media if statuses.get(m.get("id")) not in hide]
