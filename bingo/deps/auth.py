# bingo/deps/auth.py
from __future__ import annotations

import re
import uuid
from typing import Optional

from fastapi import Request, Response, WebSocket

UID_HEADER = "X-User-Id"
UID_COOKIE = "bingo_uid"
UID_QUERY = "uid"

_UID_RE = re.compile(r"^[A-Za-z0-9_\-:.]{1,128}$")


def mint_anonymous_id() -> str:
    return f"anon_{uuid.uuid4().hex}"


def clean_uid(value: Optional[str]) -> Optional[str]:
    """Return the id when it looks like one, else None."""
    if not value:
        return None
    value = value.strip()
    return value if _UID_RE.match(value) else None


async def current_user_id(request: Request, response: Response) -> str:
    """
    Header first, then cookie. Unknown callers get an anonymous id that is
    remembered through the cookie.
    """
    uid = clean_uid(request.headers.get(UID_HEADER)) or clean_uid(request.cookies.get(UID_COOKIE))
    if uid:
        return uid

    uid = mint_anonymous_id()
    response.set_cookie(UID_COOKIE, uid, httponly=True, samesite="lax", max_age=60 * 60 * 24 * 365)
    return uid


def websocket_user_id(websocket: WebSocket) -> str:
    return (
        clean_uid(websocket.query_params.get(UID_QUERY))
        or clean_uid(websocket.headers.get(UID_HEADER))
        or clean_uid(websocket.cookies.get(UID_COOKIE))
        or mint_anonymous_id()
    )
