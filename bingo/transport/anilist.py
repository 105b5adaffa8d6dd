# bingo/transport/anilist.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from bingo.anilist.client import filter_by_status

router = APIRouter(prefix="/anilist", tags=["anilist"])


@router.get("/search")
async def search(
    request: Request,
    q: str = "",
    genre: Optional[str] = None,
    page: int = Query(1, ge=1),
    user: str = "",
    hide: List[str] = Query([]),
):
    """
    One page of anime for the indication picker. When `user` is given the
    media are annotated with that user's list status and `hide` drops
    COMPLETED / CURRENT / DROPPED entries.
    """
    client = request.app.state.anilist
    media, has_next = await client.search_anime(q, genre, page)

    statuses = await client.user_statuses(user) if user else {}
    if hide:
        media = filter_by_status(media, statuses, hide)
    items = [{**m, "userStatus": statuses.get(m.get("id"))} for m in media]
    return {"media": items, "page": page, "hasNextPage": has_next}


@router.get("/users/{user_name}/statuses")
async def user_statuses(user_name: str, request: Request):
    statuses = await request.app.state.anilist.user_statuses(user_name)
    # JSON object keys are strings
    return {"user": user_name, "statuses": {str(k): v for k, v in statuses.items()}}
