# bingo/store/redis_keys.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RK:
    """
    Redis key builder, namespaced per deployment (APP_ID).
    Games are never given a TTL; they live until deleted.
    """
    app_id: str

    def games_index(self) -> str:
        return f"artifacts:{self.app_id}:bingos"  # SET game_id

    def game(self, game_id: str) -> str:
        return f"artifacts:{self.app_id}:bingos:{game_id}"  # STRING game JSON

    def user_state(self, user_id: str) -> str:
        return f"artifacts:{self.app_id}:users:{user_id}:appState"  # STRING user state JSON
