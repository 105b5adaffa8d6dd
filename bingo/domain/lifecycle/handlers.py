# bingo/domain/lifecycle/handlers.py
from __future__ import annotations

from typing import List, Optional

import structlog

from bingo.domain.common.session import Result, build_snapshot
from bingo.domain.common.types import MODE_NAMES, GameMode
from bingo.domain.common.validation import is_host
from bingo.store.models import Game, UserState
from bingo.transport.protocols import (
    InHeartbeat,
    InSnapshot,
    OutError,
    OutGamesList,
)
from bingo.util.timeutil import now_iso

logger = structlog.get_logger()


async def handle_snapshot(*, app, game_id: str, uid: Optional[str], msg: InSnapshot) -> Result:
    game = await app.state.repo.get_game(game_id)
    if game is None:
        return [OutError(code="GAME_NOT_FOUND", message=f"Game {game_id} not found")], []
    return [build_snapshot(game)], []


async def handle_heartbeat(*, app, game_id: str, uid: Optional[str], msg: InHeartbeat) -> Result:
    return [], []


# ----------------------------
# Lobby (REST + /ws-lobby)
# ----------------------------
def lobby_entry(game: Game) -> dict:
    return {
        "id": game.id,
        "name": game.name,
        "gameMode": game.game_mode,
        "modeName": MODE_NAMES.get(game.game_mode, game.game_mode),
        "currentPhase": game.current_phase,
        "createdBy": game.created_by,
        "createdAt": game.created_at,
        "participants": len(game.participants),
    }


async def games_list(app) -> OutGamesList:
    games: List[Game] = await app.state.repo.list_games()
    return OutGamesList(games=[lobby_entry(g) for g in games])


async def create_game(app, *, uid: str, name: str, game_mode: GameMode) -> Game:
    """Create an empty game in REGISTRATION and make it the creator's active game."""
    repo = app.state.repo
    game = Game(
        name=name.strip(),
        game_mode=game_mode,
        created_by=uid,
        created_at=now_iso(),
    )
    game = await repo.create_game(game)
    await repo.set_user_state(uid, active_game_id=game.id)
    logger.info("game created", game_id=game.id, mode=game_mode, created_by=uid)
    return game


async def delete_game(app, *, uid: str, game_id: str) -> Optional[OutError]:
    repo = app.state.repo
    game = await repo.get_game(game_id)
    if game is None:
        return OutError(code="GAME_NOT_FOUND", message=f"Game {game_id} not found")
    if not is_host(uid, game):
        return OutError(code="NOT_HOST", message="Only the host can delete this game")

    await repo.delete_game(game_id)
    state = await repo.get_user_state(uid)
    if state.active_game_id == game_id:
        await repo.set_user_state(uid, active_game_id=None)
    logger.info("game deleted", game_id=game_id, deleted_by=uid)
    return None


async def select_game(app, *, uid: str, game_id: Optional[str]) -> Optional[UserState]:
    """Persist the user's current selection; None when the game does not exist."""
    repo = app.state.repo
    if game_id is not None and not await repo.game_exists(game_id):
        return None
    return await repo.set_user_state(uid, active_game_id=game_id)
