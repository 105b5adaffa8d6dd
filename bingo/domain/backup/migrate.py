"""
Normalisation of legacy game documents (backup files written by older clients).

Every function here is pure and idempotent: feeding its output back in
returns the same value.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Optional

from bingo.domain.common.genres import color_from_name
from bingo.domain.common.types import SELECTION_MODES

LEGACY_PHASES = {"WATCH_LOOP": "TRACKING"}


def rescale_score(score: Any) -> Optional[int]:
    """0-10 legacy score -> 0-100 averageScore, rounded half up."""
    if score is None or score == "" or isinstance(score, bool):
        return None
    try:
        value = float(score)
    except (TypeError, ValueError):
        return None
    if value == 0:
        return None
    return int(math.floor(value * 10 + 0.5))


def _legacy_indication(ind: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(ind)
    out["animeData"] = {
        "id": ind.get("malId"),
        "title": {"romaji": ind.get("animeTitle")},
        "coverImage": {"extraLarge": ind.get("animeImageUrl")},
        "averageScore": rescale_score(ind.get("score")),
    }
    return out


def normalize_participant(record: Dict[str, Any]) -> Dict[str, Any]:
    p = dict(record)

    if not p.get("color"):
        p["color"] = color_from_name(str(p.get("name") or ""))

    if "animeToWatch" in p:
        legacy = p.pop("animeToWatch")
        if isinstance(legacy, dict):
            p["chosenAnime"] = legacy.get("animeTitle")
        elif legacy:
            p["chosenAnime"] = str(legacy)
        p["watched"] = False

    if "receivedIndications" in p:
        legacy = p.pop("receivedIndications")
        if not p.get("indications") and isinstance(legacy, list):
            p["indications"] = [_legacy_indication(i) for i in legacy if isinstance(i, dict)]

    return p


def normalize_game(doc: Dict[str, Any]) -> Dict[str, Any]:
    g = dict(doc)

    phase = g.get("currentPhase")
    if phase in LEGACY_PHASES:
        g["currentPhase"] = LEGACY_PHASES[phase]
    # older clients kept manual-pick modes in ANIME_DRAW
    if g.get("currentPhase") == "ANIME_DRAW" and g.get("gameMode") in SELECTION_MODES:
        g["currentPhase"] = "SELECTION"

    if g.get("userId") and not g.get("createdBy"):
        g["createdBy"] = g["userId"]

    participants = g.get("participants")
    if isinstance(participants, list):
        g["participants"] = [normalize_participant(p) if isinstance(p, dict) else p for p in participants]

    return g
