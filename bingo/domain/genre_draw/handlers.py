from __future__ import annotations

from typing import Optional

import structlog

from bingo.domain.common.actions import draw_club_genre, draw_genre
from bingo.domain.common.fsm import fire
from bingo.domain.common.genres import get_genre
from bingo.domain.common.session import Result, commit, load_host_game
from bingo.domain.common.types import is_club
from bingo.domain.helpers.draw import genre_reveal_ms
from bingo.transport.protocols import (
    InDrawGenre,
    InResetGenres,
    InStartIndication,
    OutDrawResult,
    OutError,
)

logger = structlog.get_logger()


async def handle_draw_genre(*, app, game_id: str, uid: Optional[str], msg: InDrawGenre) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    rng = getattr(app.state, "rng", None)
    if is_club(game.game_mode):
        nxt, genre = draw_club_genre(game, rng)
        key = "club"
    else:
        if not msg.participant_id:
            return [OutError(code="BAD_REQUEST", message="participant_id is required")], []
        nxt, genre = draw_genre(game, msg.participant_id, rng)
        key = msg.participant_id

    logger.info("genre drawn", game_id=game_id, participant_id=key, genre=genre)
    info = get_genre(genre)
    drawn = OutDrawResult(
        kind="genre",
        results={key: genre},
        reveal_ms=genre_reveal_ms(rng),
        colors={genre: info.color} if info else {},
    )
    return await commit(app, game, nxt, extra=[drawn])


async def handle_reset_genres(*, app, game_id: str, uid: Optional[str], msg: InResetGenres) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt, _ = fire(game, "reset")
    logger.info("genres reset", game_id=game_id)
    return await commit(app, game, nxt)


async def handle_start_indication(*, app, game_id: str, uid: Optional[str], msg: InStartIndication) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt, _ = fire(game, "advance")
    return await commit(app, game, nxt)
