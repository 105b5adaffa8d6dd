# bingo/transport/dispatcher.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import structlog
from pydantic import ValidationError
from redis.exceptions import RedisError

from bingo.domain.anime_draw.handlers import (
    handle_back_to_indication,
    handle_draw_anime,
    handle_mass_draw,
)
from bingo.domain.genre_draw.handlers import (
    handle_draw_genre,
    handle_reset_genres,
    handle_start_indication,
)
from bingo.domain.indication.handlers import (
    handle_finish_indication,
    handle_indicate,
    handle_set_indicator,
)
from bingo.domain.lifecycle.handlers import handle_heartbeat, handle_snapshot
from bingo.domain.registration.handlers import (
    handle_add_participant,
    handle_remove_participant,
    handle_start_genre_draw,
    handle_update_participant,
)
from bingo.domain.selection.handlers import handle_select_anime, handle_start_tracking
from bingo.domain.tracking.handlers import handle_mark_watched, handle_unmark_watched
from bingo.errors import GameRuleError, WriteConflictError
from bingo.transport.protocols import (
    READ_ONLY_TYPES,
    InAddParticipant,
    InBackToIndication,
    InDrawAnime,
    InDrawGenre,
    InFinishIndication,
    InHeartbeat,
    InIndicate,
    InMarkWatched,
    InMassDraw,
    InRemoveParticipant,
    InResetGenres,
    InSelectAnime,
    InSetIndicator,
    InSnapshot,
    InStartGenreDraw,
    InStartIndication,
    InStartTracking,
    InUnmarkWatched,
    InUpdateParticipant,
    OutError,
    OutgoingEvent,
    parse_incoming,
)

logger = structlog.get_logger()

DispatchResult = Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]
# (to_sender_events, to_room_events), each event is JSON dict

_HANDLERS = (
    (InSnapshot, handle_snapshot),
    (InHeartbeat, handle_heartbeat),
    # REGISTRATION
    (InAddParticipant, handle_add_participant),
    (InUpdateParticipant, handle_update_participant),
    (InRemoveParticipant, handle_remove_participant),
    (InStartGenreDraw, handle_start_genre_draw),
    # GENRE_DRAW
    (InDrawGenre, handle_draw_genre),
    (InResetGenres, handle_reset_genres),
    (InStartIndication, handle_start_indication),
    # INDICATION
    (InSetIndicator, handle_set_indicator),
    (InIndicate, handle_indicate),
    (InFinishIndication, handle_finish_indication),
    # ANIME_DRAW / SELECTION
    (InDrawAnime, handle_draw_anime),
    (InMassDraw, handle_mass_draw),
    (InBackToIndication, handle_back_to_indication),
    (InSelectAnime, handle_select_anime),
    (InStartTracking, handle_start_tracking),
    # TRACKING
    (InMarkWatched, handle_mark_watched),
    (InUnmarkWatched, handle_unmark_watched),
)


async def dispatch_message(
    *,
    app,
    game_id: str,
    uid: Optional[str],
    raw: Dict[str, Any],
) -> DispatchResult:
    """
    Transport layer calls this.
    - Parses + validates raw JSON
    - Routes to the correct domain handler (writes hold the game's lock)
    - Returns (to_sender, to_room) events as JSON dicts

    Rule violations and stale writes become an error for the sender only;
    nothing is broadcast and the stored game is unchanged.
    """
    try:
        msg = parse_incoming(raw)
    except (ValidationError, ValueError) as e:
        err = OutError(code="BAD_MESSAGE", message=str(e)).model_dump()
        return [err], []

    handler = next((h for cls, h in _HANDLERS if isinstance(msg, cls)), None)
    if handler is None:
        err = OutError(code="NOT_IMPLEMENTED", message=f"Handler not implemented for type={msg.type}").model_dump()
        return [err], []

    try:
        if msg.type in READ_ONLY_TYPES:
            to_sender, to_room = await handler(app=app, game_id=game_id, uid=uid, msg=msg)
        else:
            async with app.state.locks.hold(game_id):
                to_sender, to_room = await handler(app=app, game_id=game_id, uid=uid, msg=msg)
    except GameRuleError as e:
        return [OutError(code=e.code, message=e.message).model_dump()], []
    except WriteConflictError as e:
        logger.warning("write conflict", game_id=game_id, type=msg.type, expected=e.expected, found=e.found)
        err = OutError(code="CONFLICT", message="The game changed meanwhile, try again").model_dump()
        return [err], []
    except RedisError as e:
        logger.error("backend error", game_id=game_id, type=msg.type, error=str(e))
        err = OutError(code="BACKEND_ERROR", message="Storage is unavailable, try again").model_dump()
        return [err], []

    return _dump(to_sender), _dump(to_room)


def _dump(events: List[OutgoingEvent]) -> List[Dict[str, Any]]:
    """
    Convert pydantic events -> JSON dicts.
    """
    return [e.model_dump() for e in events]
