# bingo/store/redis_repo.py
from __future__ import annotations

import uuid
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import WatchError

from bingo.errors import WriteConflictError
from bingo.store.models import Game, UserState
from bingo.store.redis_keys import RK


class RedisRepo:
    """
    Document store for games and per-user state.
    Every game is one JSON document; writes are whole-document and versioned.
    """
    def __init__(self, r: Redis, app_id: str = "default-anime-bingo-app"):
        self.r = r
        self.rk = RK(app_id)

    def _dec(self, x):
        """Decode redis bytes -> str; pass through str/None safely."""
        if x is None:
            return None
        if isinstance(x, bytes):
            return x.decode("utf-8")
        return x

    @staticmethod
    def new_game_id() -> str:
        return uuid.uuid4().hex[:20]

    # ----------------------------
    # Games
    # ----------------------------
    async def game_exists(self, game_id: str) -> bool:
        return bool(await self.r.exists(self.rk.game(game_id)))

    async def get_game(self, game_id: str) -> Optional[Game]:
        raw = await self.r.get(self.rk.game(game_id))
        if not raw:
            return None
        game = Game.model_validate_json(self._dec(raw))
        game.id = game_id
        return game

    async def list_games(self) -> list[Game]:
        ids = sorted(self._dec(x) for x in await self.r.smembers(self.rk.games_index()))
        if not ids:
            return []
        raws = await self.r.mget([self.rk.game(i) for i in ids])
        games: list[Game] = []
        for gid, raw in zip(ids, raws):
            if not raw:
                continue
            game = Game.model_validate_json(self._dec(raw))
            game.id = gid
            games.append(game)
        # stable order: creation time, then id
        games.sort(key=lambda g: (g.created_at or "", g.id))
        return games

    async def create_game(self, game: Game) -> Game:
        if not game.id:
            game.id = self.new_game_id()
        game.version = 1
        pipe = self.r.pipeline()
        pipe.set(self.rk.game(game.id), game.model_dump_json(by_alias=True))
        pipe.sadd(self.rk.games_index(), game.id)
        await pipe.execute()
        return game

    async def save_game(self, game: Game) -> Game:
        """
        Replace the stored document if nobody wrote it since `game.version` was read.
        Returns the game with its bumped version.
        """
        key = self.rk.game(game.id)
        async with self.r.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                raw = await pipe.get(key)
                if not raw:
                    # deleted since it was read
                    raise WriteConflictError(game.id, game.version)
                found = Game.model_validate_json(self._dec(raw)).version
                if found != game.version:
                    raise WriteConflictError(game.id, game.version, found)

                saved = game.model_copy(update={"version": game.version + 1})
                pipe.multi()
                pipe.set(key, saved.model_dump_json(by_alias=True))
                pipe.sadd(self.rk.games_index(), game.id)
                await pipe.execute()
            except WatchError:
                raise WriteConflictError(game.id, game.version) from None
        return saved

    async def upsert_game(self, game: Game) -> Game:
        """Create-or-replace without a version check (restore)."""
        key = self.rk.game(game.id)
        raw = await self.r.get(key)
        current = Game.model_validate_json(self._dec(raw)).version if raw else 0
        saved = game.model_copy(update={"version": max(current, game.version) + 1})
        pipe = self.r.pipeline()
        pipe.set(key, saved.model_dump_json(by_alias=True))
        pipe.sadd(self.rk.games_index(), game.id)
        await pipe.execute()
        return saved

    async def delete_game(self, game_id: str) -> bool:
        pipe = self.r.pipeline()
        pipe.delete(self.rk.game(game_id))
        pipe.srem(self.rk.games_index(), game_id)
        deleted, _ = await pipe.execute()
        return bool(deleted)

    # ----------------------------
    # User state ("current selection")
    # ----------------------------
    async def get_user_state(self, user_id: str) -> UserState:
        raw = await self.r.get(self.rk.user_state(user_id))
        if not raw:
            return UserState()
        return UserState.model_validate_json(self._dec(raw))

    async def set_user_state(self, user_id: str, **fields: Any) -> UserState:
        state = await self.get_user_state(user_id)
        for k, v in fields.items():
            setattr(state, k, v)
        await self.r.set(self.rk.user_state(user_id), state.model_dump_json(by_alias=True))
        return state
