# bingo/domain/common/session.py
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import structlog

from bingo.domain.common.fsm import available_events
from bingo.domain.common.validation import is_host
from bingo.store.models import Game
from bingo.transport.protocols import OutError, OutGameSnapshot, OutPhaseChanged, OutgoingEvent

logger = structlog.get_logger()

# Returns: (to_sender, to_room)
Result = Tuple[List[OutgoingEvent], List[OutgoingEvent]]


def build_snapshot(game: Game) -> OutGameSnapshot:
    return OutGameSnapshot(game=game.to_doc(), available_events=available_events(game))


async def load_host_game(app, game_id: str, uid: Optional[str]) -> Tuple[Optional[Game], List[OutgoingEvent]]:
    if not uid:
        return None, [OutError(code="NO_UID", message="Missing user id")]

    game = await app.state.repo.get_game(game_id)
    if game is None:
        return None, [OutError(code="GAME_NOT_FOUND", message=f"Game {game_id} not found")]

    if not is_host(uid, game):
        return None, [OutError(code="NOT_HOST", message="Only the host can change this game")]
    return game, []


async def commit(app, before: Game, after: Game, extra: Sequence[OutgoingEvent] = ()) -> Result:
    """
    Persist `after` (version-checked against what was read) and build the
    events every subscriber of the game receives.
    """
    saved = await app.state.repo.save_game(after)

    events: List[OutgoingEvent] = list(extra)
    if saved.current_phase != before.current_phase:
        logger.info(
            "phase changed",
            game_id=saved.id,
            mode=saved.game_mode,
            previous=before.current_phase,
            phase=saved.current_phase,
            player_in_focus=saved.player_in_focus,
        )
        events.append(
            OutPhaseChanged(
                phase=saved.current_phase,
                previous=before.current_phase,
                player_in_focus=saved.player_in_focus,
            )
        )
    events.append(build_snapshot(saved))
    return list(events), events
