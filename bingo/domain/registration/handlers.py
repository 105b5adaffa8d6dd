from __future__ import annotations

from typing import Optional

import structlog

from bingo.domain.common.actions import add_participant, remove_participant, update_participant
from bingo.domain.common.fsm import fire
from bingo.domain.common.session import Result, commit, load_host_game
from bingo.transport.protocols import (
    InAddParticipant,
    InRemoveParticipant,
    InStartGenreDraw,
    InUpdateParticipant,
)

logger = structlog.get_logger()


async def handle_add_participant(*, app, game_id: str, uid: Optional[str], msg: InAddParticipant) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt, p = add_participant(
        game,
        msg.name,
        added_by=uid,
        anilist_user=msg.anilist_user,
        rng=getattr(app.state, "rng", None),
    )
    logger.info("participant added", game_id=game_id, participant_id=p.id, name=p.name)
    return await commit(app, game, nxt)


async def handle_update_participant(*, app, game_id: str, uid: Optional[str], msg: InUpdateParticipant) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt = update_participant(game, msg.participant_id, name=msg.name, anilist_user=msg.anilist_user)
    return await commit(app, game, nxt)


async def handle_remove_participant(*, app, game_id: str, uid: Optional[str], msg: InRemoveParticipant) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt = remove_participant(game, msg.participant_id)
    logger.info("participant removed", game_id=game_id, participant_id=msg.participant_id)
    return await commit(app, game, nxt)


async def handle_start_genre_draw(*, app, game_id: str, uid: Optional[str], msg: InStartGenreDraw) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt, _ = fire(game, "start_draw")
    return await commit(app, game, nxt)
