from __future__ import annotations

from typing import Optional

from bingo.domain.common.actions import select_anime, select_club_anime
from bingo.domain.common.fsm import fire
from bingo.domain.common.session import Result, commit, load_host_game
from bingo.domain.common.types import is_club
from bingo.transport.protocols import InSelectAnime, InStartTracking, OutError


async def handle_select_anime(*, app, game_id: str, uid: Optional[str], msg: InSelectAnime) -> Result:
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    if is_club(game.game_mode):
        nxt = select_club_anime(game, msg.anime_title)
    else:
        if not msg.participant_id:
            return [OutError(code="BAD_REQUEST", message="participant_id is required")], []
        nxt = select_anime(game, msg.participant_id, msg.anime_title)
    return await commit(app, game, nxt)


async def handle_start_tracking(*, app, game_id: str, uid: Optional[str], msg: InStartTracking) -> Result:
    """Leave ANIME_DRAW or SELECTION once everyone has a title."""
    game, err = await load_host_game(app, game_id, uid)
    if game is None:
        return err, []

    nxt, _ = fire(game, "advance")
    return await commit(app, game, nxt)
