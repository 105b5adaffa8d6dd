# bingo/domain/common/actions.py
from __future__ import annotations

import random
import string
from typing import Any, Dict, Optional, Tuple

from bingo.domain.common.genres import color_from_name
from bingo.domain.common.rules import anime_draw_scope, genre_draw_scope
from bingo.domain.common.types import is_club
from bingo.domain.helpers.draw import (
    candidate_indications,
    pick_club_genre,
    pick_genre,
    pick_indication,
    plan_mass_draw,
    titles_chosen_by_others,
)
from bingo.errors import (
    ALREADY_ASSIGNED,
    ALREADY_INDICATED,
    BAD_MODE,
    BAD_PHASE,
    DUPLICATE_TITLE,
    INVALID_ANIME,
    INVALID_NAME,
    NO_CANDIDATES,
    NO_INDICATOR,
    NOT_IN_DRAW_SCOPE,
    PARTICIPANT_NOT_FOUND,
    SELF_INDICATION,
    UNKNOWN_TITLE,
    GameRuleError,
)
from bingo.store.models import Game, Indication, Participant
from bingo.util.timeutil import now_ms

MAX_NAME_LEN = 40

_ID_ALPHABET = string.ascii_lowercase + string.digits


def require_phase(game: Game, *phases: str) -> None:
    if game.current_phase not in phases:
        raise GameRuleError(BAD_PHASE, f"Not allowed during {game.current_phase}")


def require_club(game: Game, club: bool) -> None:
    if is_club(game.game_mode) != club:
        kind = "club" if club else "individual"
        raise GameRuleError(BAD_MODE, f"Only available in {kind} modes")


def require_participant(game: Game, participant_id: Optional[str]) -> Participant:
    p = game.find_participant(participant_id)
    if p is None:
        raise GameRuleError(PARTICIPANT_NOT_FOUND, f"Participant {participant_id} not found")
    return p


def new_participant_id(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    suffix = "".join(rng.choice(_ID_ALPHABET) for _ in range(9))
    return f"p_{now_ms()}_{suffix}"


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned or len(cleaned) > MAX_NAME_LEN:
        raise GameRuleError(INVALID_NAME, f"Name must be 1-{MAX_NAME_LEN} characters")
    return cleaned


# ----------------------------
# REGISTRATION
# ----------------------------
def add_participant(
    game: Game,
    name: str,
    *,
    added_by: Optional[str] = None,
    anilist_user: str = "",
    rng: Optional[random.Random] = None,
) -> Tuple[Game, Participant]:
    require_phase(game, "REGISTRATION")
    cleaned = _clean_name(name)
    p = Participant(
        id=new_participant_id(rng),
        name=cleaned,
        color=color_from_name(cleaned),
        anilist_user=(anilist_user or "").strip(),
        added_by=added_by,
    )
    nxt = game.model_copy(deep=True)
    nxt.participants.append(p)
    return nxt, p


def update_participant(game: Game, participant_id: str, *, name: str, anilist_user: str = "") -> Game:
    require_phase(game, "REGISTRATION")
    cleaned = _clean_name(name)
    nxt = game.model_copy(deep=True)
    p = require_participant(nxt, participant_id)
    p.name = cleaned
    p.anilist_user = (anilist_user or "").strip()
    return nxt


def remove_participant(game: Game, participant_id: str) -> Game:
    require_phase(game, "REGISTRATION")
    require_participant(game, participant_id)
    nxt = game.model_copy(deep=True)
    nxt.participants = [p for p in nxt.participants if p.id != participant_id]
    return nxt


# ----------------------------
# GENRE_DRAW
# ----------------------------
def draw_genre(game: Game, participant_id: str, rng: Optional[random.Random] = None) -> Tuple[Game, str]:
    require_phase(game, "GENRE_DRAW")
    require_club(game, False)
    require_participant(game, participant_id)
    if participant_id not in {p.id for p in genre_draw_scope(game)}:
        raise GameRuleError(NOT_IN_DRAW_SCOPE, "This participant cannot draw a genre now")

    genre = pick_genre(game, rng)
    if genre is None:
        raise GameRuleError(NO_CANDIDATES, "Every genre is already taken")

    nxt = game.model_copy(deep=True)
    require_participant(nxt, participant_id).assigned_genre = genre
    return nxt, genre


def draw_club_genre(game: Game, rng: Optional[random.Random] = None) -> Tuple[Game, str]:
    require_phase(game, "GENRE_DRAW")
    require_club(game, True)
    if game.club_genre:
        raise GameRuleError(ALREADY_ASSIGNED, "The club genre is already drawn")
    genre = pick_club_genre(rng)
    nxt = game.model_copy(deep=True)
    nxt.club_genre = genre
    return nxt, genre


# ----------------------------
# INDICATION
# ----------------------------
def anime_title(anime: Dict[str, Any]) -> str:
    title = anime.get("title") if isinstance(anime, dict) else None
    if isinstance(title, dict):
        value = title.get("romaji") or title.get("english") or ""
    else:
        value = title or ""
    value = str(value).strip()
    if not value:
        raise GameRuleError(INVALID_ANIME, "Anime has no title")
    return value


def set_indicator(game: Game, participant_id: str) -> Game:
    require_phase(game, "INDICATION")
    require_participant(game, participant_id)
    nxt = game.model_copy(deep=True)
    nxt.current_indicator_id = participant_id
    return nxt


def _indicator(game: Game, indicator_id: Optional[str]) -> Participant:
    pid = indicator_id or game.current_indicator_id
    if not pid:
        raise GameRuleError(NO_INDICATOR, "No participant is indicating")
    return require_participant(game, pid)


def indicate(
    game: Game,
    receiver_id: str,
    anime: Dict[str, Any],
    *,
    indicator_id: Optional[str] = None,
) -> Tuple[Game, Indication]:
    require_phase(game, "INDICATION")
    require_club(game, False)
    indicator = _indicator(game, indicator_id)
    receiver = require_participant(game, receiver_id)
    if indicator.id == receiver.id:
        raise GameRuleError(SELF_INDICATION, "A participant cannot indicate to themselves")
    if any(ind.indicator_id == indicator.id for ind in receiver.indications):
        raise GameRuleError(ALREADY_INDICATED, f"{indicator.name} already indicated to {receiver.name}")
    title = anime_title(anime)
    if any(ind.anime_title == title for ind in receiver.indications):
        raise GameRuleError(DUPLICATE_TITLE, f"{receiver.name} was already indicated {title}")

    ind = Indication(
        indicator_id=indicator.id,
        indicator_name=indicator.name,
        anime_title=title,
        anime_data=dict(anime),
    )
    nxt = game.model_copy(deep=True)
    require_participant(nxt, receiver.id).indications.append(ind)
    return nxt, ind


def indicate_club(game: Game, anime: Dict[str, Any], *, indicator_id: Optional[str] = None) -> Tuple[Game, Indication]:
    require_phase(game, "INDICATION")
    require_club(game, True)
    indicator = _indicator(game, indicator_id)
    if any(ind.indicator_id == indicator.id for ind in game.club_indications):
        raise GameRuleError(ALREADY_INDICATED, f"{indicator.name} already indicated to the club")
    title = anime_title(anime)
    if any(ind.anime_title == title for ind in game.club_indications):
        raise GameRuleError(DUPLICATE_TITLE, f"The club was already indicated {title}")

    ind = Indication(
        indicator_id=indicator.id,
        indicator_name=indicator.name,
        anime_title=title,
        anime_data=dict(anime),
    )
    nxt = game.model_copy(deep=True)
    nxt.club_indications.append(ind)
    return nxt, ind


# ----------------------------
# ANIME_DRAW
# ----------------------------
def _apply_draw(p: Participant, winner: Indication) -> None:
    p.chosen_anime = winner.anime_title
    if winner.anime_title not in p.drawn_indication_titles:
        p.drawn_indication_titles.append(winner.anime_title)


def draw_anime(game: Game, participant_id: str, rng: Optional[random.Random] = None) -> Tuple[Game, Indication]:
    require_phase(game, "ANIME_DRAW")
    require_club(game, False)
    p = require_participant(game, participant_id)
    if participant_id not in {x.id for x in anime_draw_scope(game)}:
        raise GameRuleError(NOT_IN_DRAW_SCOPE, "This participant cannot draw an anime now")

    winner = pick_indication(candidate_indications(p, titles_chosen_by_others(game, p.id)), rng)
    if winner is None:
        raise GameRuleError(NO_CANDIDATES, f"{p.name} has no indications left to draw")

    nxt = game.model_copy(deep=True)
    _apply_draw(require_participant(nxt, participant_id), winner)
    return nxt, winner


def mass_draw(game: Game, rng: Optional[random.Random] = None) -> Tuple[Game, Dict[str, Indication]]:
    """Draw for every participant still in scope; one write for the whole pass."""
    require_phase(game, "ANIME_DRAW")
    require_club(game, False)
    results = plan_mass_draw(game, anime_draw_scope(game), rng)
    if not results:
        raise GameRuleError(NO_CANDIDATES, "Nobody has indications left to draw")

    nxt = game.model_copy(deep=True)
    for pid, winner in results.items():
        _apply_draw(require_participant(nxt, pid), winner)
    return nxt, results


def draw_club_anime(game: Game, rng: Optional[random.Random] = None) -> Tuple[Game, Indication]:
    require_phase(game, "ANIME_DRAW")
    require_club(game, True)
    if game.club_chosen_anime:
        raise GameRuleError(ALREADY_ASSIGNED, "The club anime is already drawn")
    winner = pick_indication(game.club_indications, rng)
    if winner is None:
        raise GameRuleError(NO_CANDIDATES, "The club has no indications")

    nxt = game.model_copy(deep=True)
    nxt.club_chosen_anime = winner.anime_title
    nxt.club_chosen_anime_data = winner.anime_data
    return nxt, winner


# ----------------------------
# SELECTION
# ----------------------------
def select_anime(game: Game, participant_id: str, title: str) -> Game:
    require_phase(game, "SELECTION")
    require_club(game, False)
    p = require_participant(game, participant_id)
    if p.chosen_anime:
        raise GameRuleError(ALREADY_ASSIGNED, f"{p.name} already has a selected anime")
    if not any(ind.anime_title == title for ind in p.indications):
        raise GameRuleError(UNKNOWN_TITLE, f"{title!r} was not indicated to {p.name}")

    nxt = game.model_copy(deep=True)
    require_participant(nxt, participant_id).chosen_anime = title
    return nxt


def select_club_anime(game: Game, title: str) -> Game:
    require_phase(game, "SELECTION")
    require_club(game, True)
    if game.club_chosen_anime:
        raise GameRuleError(ALREADY_ASSIGNED, "The club anime is already selected")
    chosen = next((ind for ind in game.club_indications if ind.anime_title == title), None)
    if chosen is None:
        raise GameRuleError(UNKNOWN_TITLE, f"{title!r} was not indicated to the club")

    nxt = game.model_copy(deep=True)
    nxt.club_chosen_anime = chosen.anime_title
    nxt.club_chosen_anime_data = chosen.anime_data
    return nxt
