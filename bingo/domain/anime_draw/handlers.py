from __future__ import annotations

from typing import Optional

import structlog

from bingo.domain.common.actions import draw_anime, draw_club_anime, mass_draw
from bingo.domain.common.fsm import fire
from bingo.domain.common.session import Result, commit, load_host_game
from bingo.domain.common.types import is_club
from bingo.domain.helpers.draw import ANIME_REEL_MS
from bingo.transport.protocols import (
    InBackToIndication,
    InDrawAnime,
    InMassDraw,
    OutDrawResult,
    OutError,
)

logger = structlog.get_logger()


async def handle_draw_anime(*, app, game_id: str, uid: Optional[str], msg: InDrawAnime) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    rng = getattr(app.state, "rng", None)
    if is_club(game.game_mode):
        nxt, winner = draw_club_anime(game, rng)
        key = "club"
    else:
        if not msg.participant_id:
            return [OutError(code="BAD_REQUEST", message="participant_id is required")], []
        nxt, winner = draw_anime(game, msg.participant_id, rng)
        key = msg.participant_id

    logger.info("anime drawn", game_id=game_id, participant_id=key, title=winner.anime_title)
    drawn = OutDrawResult(kind="anime", results={key: winner.anime_title}, reveal_ms=ANIME_REEL_MS)
    return await commit(app, game, nxt, extra=[drawn])


async def handle_mass_draw(*, app, game_id: str, uid: Optional[str], msg: InMassDraw) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt, results = mass_draw(game, getattr(app.state, "rng", None))
    logger.info("mass draw", game_id=game_id, drawn=len(results))
    drawn = OutDrawResult(
        kind="anime",
        results={pid: ind.anime_title for pid, ind in results.items()},
        reveal_ms=ANIME_REEL_MS,
    )
    return await commit(app, game, nxt, extra=[drawn])


async def handle_back_to_indication(*, app, game_id: str, uid: Optional[str], msg: InBackToIndication) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt, _ = fire(game, "go_back")
    logger.info("draws reset", game_id=game_id)
    return await commit(app, game, nxt)
