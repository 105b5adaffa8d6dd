from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional, Sequence

from bingo.domain.common.genres import GENRE_NAMES
from bingo.store.models import Game, Indication, Participant

# Reveal timing for the client animation; the outcome is already persisted.
GENRE_SPIN_MIN_MS = 3000
GENRE_SPIN_JITTER_MS = 2000
GENRE_HOLD_MS = 1200
ANIME_REEL_MS = 6500


def genre_reveal_ms(rng: Optional[random.Random] = None) -> int:
    rng = rng or random
    return GENRE_SPIN_MIN_MS + int(rng.random() * GENRE_SPIN_JITTER_MS) + GENRE_HOLD_MS


def available_genres(game: Game) -> List[str]:
    """Genres not yet assigned to any participant, in catalogue order."""
    assigned = {p.assigned_genre for p in game.participants if p.assigned_genre}
    return [g for g in GENRE_NAMES if g not in assigned]


def pick_genre(game: Game, rng: Optional[random.Random] = None) -> Optional[str]:
    rng = rng or random
    pool = available_genres(game)
    if not pool:
        return None
    return rng.choice(pool)


def pick_club_genre(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return rng.choice(GENRE_NAMES)


def candidate_indications(participant: Participant, taken_titles: Iterable[str] = ()) -> List[Indication]:
    """
    Indications this participant may still draw: not drawn in an earlier
    cycle and not currently chosen by someone else.
    """
    drawn = set(participant.drawn_indication_titles)
    taken = set(taken_titles)
    return [ind for ind in participant.indications if ind.anime_title not in drawn and ind.anime_title not in taken]


def titles_chosen_by_others(game: Game, participant_id: str) -> set[str]:
    return {p.chosen_anime for p in game.participants if p.id != participant_id and p.chosen_anime}


def pick_indication(candidates: Sequence[Indication], rng: Optional[random.Random] = None) -> Optional[Indication]:
    rng = rng or random
    if not candidates:
        return None
    return rng.choice(list(candidates))


def plan_mass_draw(
    game: Game,
    participants: Iterable[Participant],
    rng: Optional[random.Random] = None,
) -> Dict[str, Indication]:
    """
    Draw for every given participant before anything is written.
    Titles picked earlier in the pass are excluded for later participants.
    Participants left without candidates are omitted from the result.
    """
    rng = rng or random
    results: Dict[str, Indication] = {}
    picked: set[str] = set()
    for p in participants:
        taken = titles_chosen_by_others(game, p.id) | picked
        winner = pick_indication(candidate_indications(p, taken), rng)
        if winner is None:
            continue
        results[p.id] = winner
        picked.add(winner.anime_title)
    return results
