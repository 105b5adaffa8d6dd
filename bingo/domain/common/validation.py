# bingo/domain/common/validation.py
from __future__ import annotations

from typing import Optional

from bingo.store.models import Game


def is_host(user_id: Optional[str], game: Game) -> bool:
    """Only the creator of a game drives its transitions."""
    return bool(user_id) and game.created_by == user_id
