from __future__ import annotations

import asyncio
import contextlib
from typing import AsyncIterator, Dict


class GameLocks:
    """
    One asyncio.Lock per game id. Host actions on a game run one at a time,
    so two draws can never read the same "available genres" list.
    """
    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @contextlib.asynccontextmanager
    async def hold(self, game_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(game_id, asyncio.Lock())
        self._users[game_id] = self._users.get(game_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[game_id] -= 1
            if self._users[game_id] == 0:
                self._users.pop(game_id, None)
                self._locks.pop(game_id, None)

    def active(self) -> int:
        return len(self._locks)
