# bingo/domain/common/fsm.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from bingo.domain.common import rules
from bingo.domain.common.rules import TransitionContext
from bingo.domain.common.types import (
    ALL_MODES,
    CLUB_MODES,
    SELECTION_MODES,
    SOLO_MODES,
    Event,
    Phase,
)
from bingo.errors import (
    BAD_PHASE,
    GUARD_FAILED,
    PARTICIPANT_NOT_FOUND,
    GameRuleError,
)
from bingo.store.models import Game

Guard = Callable[[Game, TransitionContext], bool]
Effect = Callable[[Game, TransitionContext], None]

# Events that act on one participant
PARTICIPANT_EVENTS = frozenset({"mark_watched", "unmark_watched"})

_DRAW_MODES = ALL_MODES - SELECTION_MODES


@dataclass(frozen=True)
class Transition:
    source: Phase
    event: Event
    modes: frozenset
    target: Phase
    guard: Guard = rules.always
    effect: Optional[Effect] = None
    error: str = ""


TRANSITIONS: Tuple[Transition, ...] = (
    Transition("REGISTRATION", "start_draw", ALL_MODES, "GENRE_DRAW",
               guard=rules.has_participants, error="Add at least one participant first"),

    Transition("GENRE_DRAW", "advance", CLUB_MODES, "INDICATION",
               guard=rules.club_genre_set, effect=rules.set_first_indicator,
               error="The club genre has not been drawn"),
    Transition("GENRE_DRAW", "advance", SOLO_MODES, "INDICATION",
               guard=rules.all_genres_assigned, effect=rules.set_first_indicator,
               error="Every participant needs a genre"),
    Transition("GENRE_DRAW", "reset", CLUB_MODES, "GENRE_DRAW", effect=rules.reset_club_genre),
    Transition("GENRE_DRAW", "reset", SOLO_MODES, "GENRE_DRAW",
               guard=rules.no_focus, effect=rules.reset_genres,
               error="Genres cannot be reset while a participant is in focus"),

    Transition("INDICATION", "advance", frozenset({"soberano"}), "SELECTION",
               guard=rules.all_indications_done, error="Every participant must indicate to every other"),
    Transition("INDICATION", "advance", frozenset({"clube_escolhido"}), "SELECTION",
               guard=rules.club_indications_done, error="Every participant must indicate to the club"),
    Transition("INDICATION", "advance", frozenset({"clube_sorteado"}), "ANIME_DRAW",
               guard=rules.club_indications_done, error="Every participant must indicate to the club"),
    Transition("INDICATION", "advance", frozenset({"infinito", "tradicional"}), "ANIME_DRAW",
               guard=rules.all_indications_done, error="Every participant must indicate to every other"),

    Transition("ANIME_DRAW", "advance", frozenset({"clube_sorteado"}), "TRACKING",
               guard=rules.club_anime_chosen, effect=rules.clear_focus,
               error="The club anime has not been drawn"),
    Transition("ANIME_DRAW", "advance", _DRAW_MODES & SOLO_MODES, "TRACKING",
               guard=rules.all_anime_drawn, effect=rules.clear_focus,
               error="Every participant needs a drawn anime"),
    Transition("ANIME_DRAW", "go_back", _DRAW_MODES, "INDICATION", effect=rules.reset_draws),

    Transition("SELECTION", "advance", frozenset({"clube_escolhido"}), "TRACKING",
               guard=rules.club_anime_chosen, error="The club anime has not been selected"),
    Transition("SELECTION", "advance", frozenset({"soberano"}), "TRACKING",
               guard=rules.all_anime_selected, error="Every participant needs a selected anime"),

    Transition("TRACKING", "mark_watched", CLUB_MODES, "TRACKING",
               guard=rules.club_participant_can_watch, effect=rules.set_club_watched,
               error="There is no club anime to watch"),
    Transition("TRACKING", "mark_watched", frozenset({"infinito", "soberano"}), "GENRE_DRAW",
               guard=rules.participant_has_chosen, effect=rules.restart_season,
               error="Participant has no anime to watch"),
    Transition("TRACKING", "mark_watched", frozenset({"tradicional"}), "ANIME_DRAW",
               guard=rules.indications_remaining, effect=rules.next_indication,
               error="Participant has no anime to watch"),
    Transition("TRACKING", "mark_watched", frozenset({"tradicional"}), "GENRE_DRAW",
               guard=rules.indications_exhausted, effect=rules.restart_tradicional,
               error="Participant has no anime to watch"),
    Transition("TRACKING", "unmark_watched", ALL_MODES, "TRACKING",
               guard=rules.participant_watched, effect=rules.unset_watched,
               error="Participant is not marked as watched"),
)


def candidates(phase: str, event: str, mode: str) -> List[Transition]:
    return [t for t in TRANSITIONS if t.source == phase and t.event == event and mode in t.modes]


def fire(
    game: Game,
    event: Event,
    *,
    participant_id: Optional[str] = None,
    watched_at: str = "",
) -> Tuple[Game, Transition]:
    """
    Evaluate the transition table for (phase, event, mode) and apply the first
    row whose guard holds. Returns a new game; the input is not modified.
    Raises GameRuleError when no row matches or every guard fails.
    """
    rows = candidates(game.current_phase, event, game.game_mode)
    if not rows:
        raise GameRuleError(BAD_PHASE, f"Cannot {event} during {game.current_phase} in mode {game.game_mode}")

    ctx = TransitionContext(participant_id=participant_id, watched_at=watched_at)
    if event in PARTICIPANT_EVENTS and game.find_participant(participant_id) is None:
        raise GameRuleError(PARTICIPANT_NOT_FOUND, f"Participant {participant_id} not found")

    for row in rows:
        if row.guard(game, ctx):
            nxt = game.model_copy(deep=True)
            if row.effect is not None:
                row.effect(nxt, ctx)
            nxt.current_phase = row.target
            return nxt, row

    raise GameRuleError(GUARD_FAILED, rows[0].error or f"Cannot {event} yet")


def available_events(game: Game, participant_id: Optional[str] = None) -> List[str]:
    """Events whose guard currently holds; clients enable only these controls."""
    ctx = TransitionContext(participant_id=participant_id)
    out: List[str] = []
    for row in TRANSITIONS:
        if row.source != game.current_phase or game.game_mode not in row.modes:
            continue
        if row.event in PARTICIPANT_EVENTS and participant_id is None:
            continue
        if row.event not in out and row.guard(game, ctx):
            out.append(row.event)
    return out
