from __future__ import annotations

from typing import Optional

import structlog

from bingo.domain.common.fsm import fire
from bingo.domain.common.session import Result, commit, load_host_game
from bingo.transport.protocols import InMarkWatched, InUnmarkWatched
from bingo.util.timeutil import now_iso

logger = structlog.get_logger()


async def handle_mark_watched(*, app, game_id: str, uid: Optional[str], msg: InMarkWatched) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt, row = fire(game, "mark_watched", participant_id=msg.participant_id, watched_at=now_iso())
    logger.info(
        "anime watched",
        game_id=game_id,
        participant_id=msg.participant_id,
        next_phase=row.target,
    )
    return await commit(app, game, nxt)


async def handle_unmark_watched(*, app, game_id: str, uid: Optional[str], msg: InUnmarkWatched) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt, _ = fire(game, "unmark_watched", participant_id=msg.participant_id)
    return await commit(app, game, nxt)
