from __future__ import annotations

from typing import Optional

import structlog

from bingo.domain.common.actions import indicate, indicate_club, set_indicator
from bingo.domain.common.fsm import fire
from bingo.domain.common.session import Result, commit, load_host_game
from bingo.domain.common.types import is_club
from bingo.transport.protocols import (
    InFinishIndication,
    InIndicate,
    InSetIndicator,
    OutError,
)

logger = structlog.get_logger()


async def handle_set_indicator(*, app, game_id: str, uid: Optional[str], msg: InSetIndicator) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt = set_indicator(game, msg.participant_id)
    return await commit(app, game, nxt)


async def handle_indicate(*, app, game_id: str, uid: Optional[str], msg: InIndicate) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    if is_club(game.game_mode):
        nxt, ind = indicate_club(game, msg.anime, indicator_id=msg.indicator_id)
        receiver = "club"
    else:
        if not msg.receiver_id:
            return [OutError(code="BAD_REQUEST", message="receiver_id is required")], []
        nxt, ind = indicate(game, msg.receiver_id, msg.anime, indicator_id=msg.indicator_id)
        receiver = msg.receiver_id

    logger.info(
        "anime indicated",
        game_id=game_id,
        indicator_id=ind.indicator_id,
        receiver_id=receiver,
        title=ind.anime_title,
    )
    return await commit(app, game, nxt)


async def handle_finish_indication(*, app, game_id: str, uid: Optional[str], msg: InFinishIndication) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt, _ = fire(game, "advance")
    return await commit(app, game, nxt)
