# bingo/transport/games.py
from __future__ import annotations

import json
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field
from redis.exceptions import RedisError

from bingo.deps.auth import current_user_id
from bingo.domain.backup.handlers import backup_filename, export_games, parse_backup, restore_games
from bingo.domain.common.session import build_snapshot
from bingo.domain.common.types import GameMode
from bingo.domain.lifecycle.handlers import create_game, delete_game, games_list, select_game
from bingo.errors import BackupFormatError
from bingo.transport.protocols import OutGameDeleted
from bingo.transport.ws import push_lobby
from bingo.util.timeutil import now_iso

logger = structlog.get_logger()

router = APIRouter(tags=["games"])


class CreateGameBody(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    game_mode: GameMode = Field(alias="gameMode")

    model_config = {"populate_by_name": True}


class ActiveGameBody(BaseModel):
    game_id: Optional[str] = Field(default=None, alias="gameId")

    model_config = {"populate_by_name": True}


def _unavailable(e: RedisError) -> HTTPException:
    logger.error("backend error", error=str(e))
    return HTTPException(status_code=503, detail="Storage is unavailable")


def _download(body: dict, filename: str) -> Response:
    return Response(
        content=json.dumps(body, ensure_ascii=False, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/games")
async def list_games(request: Request):
    try:
        return {"games": (await games_list(request.app)).games}
    except RedisError as e:
        raise _unavailable(e)


@router.post("/games", status_code=201)
async def post_game(body: CreateGameBody, request: Request, uid: str = Depends(current_user_id)):
    if not body.name.strip():
        raise HTTPException(status_code=422, detail="Game name is required")
    try:
        game = await create_game(request.app, uid=uid, name=body.name, game_mode=body.game_mode)
    except RedisError as e:
        raise _unavailable(e)
    await push_lobby(request.app)
    return game.to_doc()


@router.get("/games/{game_id}")
async def get_game(game_id: str, request: Request):
    try:
        game = await request.app.state.repo.get_game(game_id)
    except RedisError as e:
        raise _unavailable(e)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")
    return build_snapshot(game).model_dump()


@router.delete("/games/{game_id}")
async def remove_game(game_id: str, request: Request, uid: str = Depends(current_user_id)):
    app = request.app
    try:
        async with app.state.locks.hold(game_id):
            err = await delete_game(app, uid=uid, game_id=game_id)
    except RedisError as e:
        raise _unavailable(e)
    if err is not None:
        status = 404 if err.code == "GAME_NOT_FOUND" else 403
        raise HTTPException(status_code=status, detail=err.message)

    await app.state.wsman.broadcast(game_id, OutGameDeleted(game_id=game_id).model_dump())
    await app.state.wsman.close_channel(game_id)
    await push_lobby(app)
    return {"ok": True, "gameId": game_id}


@router.get("/me/active-game")
async def get_active_game(request: Request, uid: str = Depends(current_user_id)):
    try:
        state = await request.app.state.repo.get_user_state(uid)
    except RedisError as e:
        raise _unavailable(e)
    return {"uid": uid, **state.to_doc()}


@router.put("/me/active-game")
async def put_active_game(body: ActiveGameBody, request: Request, uid: str = Depends(current_user_id)):
    try:
        state = await select_game(request.app, uid=uid, game_id=body.game_id)
    except RedisError as e:
        raise _unavailable(e)
    if state is None:
        raise HTTPException(status_code=404, detail="Game not found")
    return {"uid": uid, **state.to_doc()}


# ----------------------------
# Backup / restore
# ----------------------------
@router.get("/backup")
async def backup_all(request: Request):
    try:
        games = await request.app.state.repo.list_games()
    except RedisError as e:
        raise _unavailable(e)
    return _download(export_games(games), backup_filename(day=now_iso()[:10]))


@router.get("/backup/{game_id}")
async def backup_one(game_id: str, request: Request):
    try:
        game = await request.app.state.repo.get_game(game_id)
    except RedisError as e:
        raise _unavailable(e)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")
    return _download(export_games([game]), backup_filename(game))


@router.post("/restore")
async def restore(request: Request, uid: str = Depends(current_user_id)):
    """
    Body is a backup file. The whole file is validated first; a malformed
    file writes nothing.
    """
    raw = await request.body()
    try:
        games = parse_backup(raw, importing_user=uid)
    except BackupFormatError as e:
        logger.info("backup rejected", uid=uid, reason=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    try:
        restored = await restore_games(request.app.state.repo, games)
    except RedisError as e:
        raise _unavailable(e)
    await push_lobby(request.app)
    return {"ok": True, "restored": restored}
