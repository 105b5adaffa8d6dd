from __future__ import annotations

from .draw import (
    candidate_indications,
    genre_reveal_ms,
    pick_club_genre,
    pick_genre,
    pick_indication,
    plan_mass_draw,
)

__all__ = [
    "candidate_indications",
    "genre_reveal_ms",
    "pick_club_genre",
    "pick_genre",
    "pick_indication",
    "plan_mass_draw",
]
