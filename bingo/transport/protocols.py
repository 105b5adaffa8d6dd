# bingo/transport/protocols.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from bingo.domain.common.types import Phase


# =========================
# Incoming (Client -> Server)
# =========================

class InBase(BaseModel):
    type: str


class InSnapshot(InBase):
    type: Literal["snapshot"] = "snapshot"


class InHeartbeat(InBase):
    type: Literal["heartbeat"] = "heartbeat"


# ---- REGISTRATION ----

class InAddParticipant(InBase):
    type: Literal["add_participant"] = "add_participant"
    name: str = Field(min_length=1, max_length=40)
    anilist_user: str = Field(default="", max_length=40)


class InUpdateParticipant(InBase):
    type: Literal["update_participant"] = "update_participant"
    participant_id: str
    name: str = Field(min_length=1, max_length=40)
    anilist_user: str = Field(default="", max_length=40)


class InRemoveParticipant(InBase):
    type: Literal["remove_participant"] = "remove_participant"
    participant_id: str


class InStartGenreDraw(InBase):
    type: Literal["start_genre_draw"] = "start_genre_draw"


# ---- GENRE_DRAW ----

class InDrawGenre(InBase):
    """
    Individual modes: participant_id is required.
    Club modes: omit it to draw the club genre.
    """
    type: Literal["draw_genre"] = "draw_genre"
    participant_id: Optional[str] = None


class InResetGenres(InBase):
    type: Literal["reset_genres"] = "reset_genres"


class InStartIndication(InBase):
    type: Literal["start_indication"] = "start_indication"


# ---- INDICATION ----

class InSetIndicator(InBase):
    type: Literal["set_indicator"] = "set_indicator"
    participant_id: str


class InIndicate(InBase):
    """
    `anime` is the AniList media object picked from search; it is stored as the
    indication's metadata snapshot. receiver_id is omitted for club indications.
    """
    type: Literal["indicate"] = "indicate"
    anime: Dict[str, Any]
    receiver_id: Optional[str] = None
    indicator_id: Optional[str] = None


class InFinishIndication(InBase):
    type: Literal["finish_indication"] = "finish_indication"


# ---- ANIME_DRAW / SELECTION ----

class InDrawAnime(InBase):
    type: Literal["draw_anime"] = "draw_anime"
    participant_id: Optional[str] = None


class InMassDraw(InBase):
    type: Literal["mass_draw"] = "mass_draw"


class InBackToIndication(InBase):
    type: Literal["back_to_indication"] = "back_to_indication"


class InSelectAnime(InBase):
    type: Literal["select_anime"] = "select_anime"
    anime_title: str = Field(min_length=1)
    participant_id: Optional[str] = None


class InStartTracking(InBase):
    type: Literal["start_tracking"] = "start_tracking"


# ---- TRACKING ----

class InMarkWatched(InBase):
    type: Literal["mark_watched"] = "mark_watched"
    participant_id: str


class InUnmarkWatched(InBase):
    type: Literal["unmark_watched"] = "unmark_watched"
    participant_id: str


IncomingMessage = Union[
    InSnapshot,
    InHeartbeat,
    InAddParticipant,
    InUpdateParticipant,
    InRemoveParticipant,
    InStartGenreDraw,
    InDrawGenre,
    InResetGenres,
    InStartIndication,
    InSetIndicator,
    InIndicate,
    InFinishIndication,
    InDrawAnime,
    InMassDraw,
    InBackToIndication,
    InSelectAnime,
    InStartTracking,
    InMarkWatched,
    InUnmarkWatched,
]

# Messages that never write; everything else takes the per-game lock
READ_ONLY_TYPES = frozenset({"snapshot", "heartbeat"})


# =========================
# Outgoing (Server -> Client)
# =========================

class OutBase(BaseModel):
    type: str


class OutError(OutBase):
    type: Literal["error"] = "error"
    code: str
    message: str


class OutHello(OutBase):
    type: Literal["hello"] = "hello"
    uid: str
    game_id: str


class OutGameSnapshot(OutBase):
    type: Literal["game_snapshot"] = "game_snapshot"
    game: Dict[str, Any]
    available_events: List[str] = Field(default_factory=list)


class OutPhaseChanged(OutBase):
    type: Literal["phase_changed"] = "phase_changed"
    phase: Phase
    previous: Phase
    player_in_focus: Optional[str] = None


class OutDrawResult(OutBase):
    type: Literal["draw_result"] = "draw_result"
    kind: Literal["genre", "anime"]
    # participant_id -> drawn value; "club" for club draws
    results: Dict[str, str]
    reveal_ms: int
    # genre draws: drawn genre -> display colour
    colors: Dict[str, str] = Field(default_factory=dict)


class OutGamesList(OutBase):
    type: Literal["games_list"] = "games_list"
    games: List[Dict[str, Any]]


class OutGameDeleted(OutBase):
    type: Literal["game_deleted"] = "game_deleted"
    game_id: str


OutgoingEvent = Union[
    OutError,
    OutHello,
    OutGameSnapshot,
    OutPhaseChanged,
    OutDrawResult,
    OutGamesList,
    OutGameDeleted,
]


# =========================
# Parser helpers
# =========================

_INCOMING_BY_TYPE = {
    "snapshot": InSnapshot,
    "heartbeat": InHeartbeat,
    "add_participant": InAddParticipant,
    "update_participant": InUpdateParticipant,
    "remove_participant": InRemoveParticipant,
    "start_genre_draw": InStartGenreDraw,
    "draw_genre": InDrawGenre,
    "reset_genres": InResetGenres,
    "start_indication": InStartIndication,
    "set_indicator": InSetIndicator,
    "indicate": InIndicate,
    "finish_indication": InFinishIndication,
    "draw_anime": InDrawAnime,
    "mass_draw": InMassDraw,
    "back_to_indication": InBackToIndication,
    "select_anime": InSelectAnime,
    "start_tracking": InStartTracking,
    "mark_watched": InMarkWatched,
    "unmark_watched": InUnmarkWatched,
}


def parse_incoming(payload: Dict[str, Any]) -> IncomingMessage:
    """
    Convert raw dict -> validated message model.
    Raises ValidationError if the body is invalid, ValueError if the type is missing/unknown.
    """
    t = payload.get("type") if isinstance(payload, dict) else None
    if not isinstance(t, str):
        raise ValueError("Missing/invalid type")

    cls = _INCOMING_BY_TYPE.get(t)
    if cls is None:
        raise ValueError(f"Unknown message type: {t}")

    return cls.model_validate(payload)
