# bingo/domain/common/types.py
from __future__ import annotations

from typing import Literal

GameMode = Literal["infinito", "soberano", "tradicional", "clube_sorteado", "clube_escolhido"]
Phase = Literal["REGISTRATION", "GENRE_DRAW", "INDICATION", "ANIME_DRAW", "SELECTION", "TRACKING"]
Event = Literal["start_draw", "advance", "reset", "go_back", "mark_watched", "unmark_watched"]

ALL_MODES: frozenset[str] = frozenset({"infinito", "soberano", "tradicional", "clube_sorteado", "clube_escolhido"})
CLUB_MODES: frozenset[str] = frozenset({"clube_sorteado", "clube_escolhido"})
SOLO_MODES: frozenset[str] = ALL_MODES - CLUB_MODES
# Modes where the host picks the anime instead of drawing it
SELECTION_MODES: frozenset[str] = frozenset({"soberano", "clube_escolhido"})

MODE_NAMES: dict[str, str] = {
    "infinito": "Infinito",
    "soberano": "Soberano",
    "tradicional": "Tradicional",
    "clube_sorteado": "Clube (Sorteado)",
    "clube_escolhido": "Clube (Escolhido)",
}

# AniList list statuses the search filter can hide
FILTERABLE_STATUSES: frozenset[str] = frozenset({"COMPLETED", "CURRENT", "DROPPED"})


def is_club(mode: str) -> bool:
    return mode in CLUB_MODES
