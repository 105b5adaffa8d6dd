# bingo/domain/common/rules.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from bingo.domain.common.types import is_club
from bingo.domain.helpers.draw import candidate_indications, titles_chosen_by_others
from bingo.store.models import Game, HistoryEntry, Participant


@dataclass
class TransitionContext:
    participant_id: Optional[str] = None
    watched_at: str = ""


# ----------------------------
# Draw scope
# ----------------------------
def genre_draw_scope(game: Game) -> List[Participant]:
    """Participants still waiting for a genre; only the focused one during a repeat cycle."""
    if not is_club(game.game_mode) and game.player_in_focus:
        return [p for p in game.participants if p.id == game.player_in_focus and not p.assigned_genre]
    return [p for p in game.participants if not p.assigned_genre]


def anime_draw_scope(game: Game) -> List[Participant]:
    if not is_club(game.game_mode) and game.player_in_focus:
        return [p for p in game.participants if p.id == game.player_in_focus and not p.chosen_anime]
    return [p for p in game.participants if not p.chosen_anime]


# ----------------------------
# Guards
# ----------------------------
def has_participants(game: Game, ctx: TransitionContext) -> bool:
    return len(game.participants) >= 1


def club_genre_set(game: Game, ctx: TransitionContext) -> bool:
    return bool(game.club_genre)


def all_genres_assigned(game: Game, ctx: TransitionContext) -> bool:
    return bool(game.participants) and not genre_draw_scope(game)


def club_indications_done(game: Game, ctx: TransitionContext) -> bool:
    return len(game.participants) > 0 and len(game.club_indications) == len(game.participants)


def all_indications_done(game: Game, ctx: TransitionContext) -> bool:
    n = len(game.participants)
    if n <= 1:
        return True
    return all(len(p.indications) == n - 1 for p in game.participants)


def club_anime_chosen(game: Game, ctx: TransitionContext) -> bool:
    return bool(game.club_chosen_anime)


def all_anime_drawn(game: Game, ctx: TransitionContext) -> bool:
    return bool(game.participants) and not anime_draw_scope(game)


def all_anime_selected(game: Game, ctx: TransitionContext) -> bool:
    return bool(game.participants) and all(p.chosen_anime for p in game.participants)


def always(game: Game, ctx: TransitionContext) -> bool:
    return True


def _target(game: Game, ctx: TransitionContext) -> Optional[Participant]:
    return game.find_participant(ctx.participant_id)


def participant_has_chosen(game: Game, ctx: TransitionContext) -> bool:
    p = _target(game, ctx)
    return p is not None and bool(p.chosen_anime)


def club_participant_can_watch(game: Game, ctx: TransitionContext) -> bool:
    return _target(game, ctx) is not None and bool(game.club_chosen_anime)


def _has_drawable_indication(game: Game, p: Participant) -> bool:
    return bool(candidate_indications(p, titles_chosen_by_others(game, p.id)))


def indications_remaining(game: Game, ctx: TransitionContext) -> bool:
    p = _target(game, ctx)
    return participant_has_chosen(game, ctx) and _has_drawable_indication(game, p)


def indications_exhausted(game: Game, ctx: TransitionContext) -> bool:
    p = _target(game, ctx)
    return participant_has_chosen(game, ctx) and not _has_drawable_indication(game, p)


def no_focus(game: Game, ctx: TransitionContext) -> bool:
    return game.player_in_focus is None


def participant_watched(game: Game, ctx: TransitionContext) -> bool:
    p = _target(game, ctx)
    return p is not None and p.watched


# ----------------------------
# Side effects (mutate the working copy)
# ----------------------------
def set_first_indicator(game: Game, ctx: TransitionContext) -> None:
    game.current_indicator_id = game.participants[0].id if game.participants else None


def reset_genres(game: Game, ctx: TransitionContext) -> None:
    for p in game.participants:
        p.assigned_genre = None
    game.player_in_focus = None


def reset_club_genre(game: Game, ctx: TransitionContext) -> None:
    game.club_genre = None
    game.club_indications = []
    game.club_chosen_anime = None
    game.club_chosen_anime_data = None
    game.club_watched_by = []


def reset_draws(game: Game, ctx: TransitionContext) -> None:
    for p in game.participants:
        p.chosen_anime = None
        p.watched = False
        p.drawn_indication_titles = []
    if is_club(game.game_mode):
        game.club_chosen_anime = None
        game.club_chosen_anime_data = None
        game.club_watched_by = []


def clear_focus(game: Game, ctx: TransitionContext) -> None:
    game.player_in_focus = None


def history_entry(p: Participant, watched_at: str) -> HistoryEntry:
    ind = p.chosen_indication()
    if ind is None:
        return HistoryEntry(anime_title=p.chosen_anime or "", watched_at=watched_at)
    return HistoryEntry(
        anime_title=ind.anime_title,
        indicator_id=ind.indicator_id,
        indicator_name=ind.indicator_name,
        anime_data=ind.anime_data,
        watched_at=watched_at,
    )


def restart_season(game: Game, ctx: TransitionContext) -> None:
    """infinito / soberano: the participant starts over with a new genre."""
    p = _target(game, ctx)
    p.watched_history.append(history_entry(p, ctx.watched_at))
    p.chosen_anime = None
    p.assigned_genre = None
    p.indications = []
    p.watched = False
    game.player_in_focus = p.id


def next_indication(game: Game, ctx: TransitionContext) -> None:
    """tradicional with undrawn indications left: back to the anime draw for this participant."""
    p = _target(game, ctx)
    p.watched_history.append(history_entry(p, ctx.watched_at))
    p.chosen_anime = None
    p.watched = False
    game.player_in_focus = p.id


def restart_tradicional(game: Game, ctx: TransitionContext) -> None:
    p = _target(game, ctx)
    p.watched_history.append(history_entry(p, ctx.watched_at))
    p.chosen_anime = None
    p.assigned_genre = None
    p.indications = []
    p.drawn_indication_titles = []
    p.watched = False
    game.player_in_focus = p.id


def set_club_watched(game: Game, ctx: TransitionContext) -> None:
    p = _target(game, ctx)
    p.watched = True
    if p.id not in game.club_watched_by:
        game.club_watched_by.append(p.id)


def unset_watched(game: Game, ctx: TransitionContext) -> None:
    p = _target(game, ctx)
    p.watched = False
    if p.id in game.club_watched_by:
        game.club_watched_by.remove(p.id)
