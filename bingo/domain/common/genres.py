# bingo/domain/common/genres.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Genre:
    name: str
    color: str


GENRES: tuple[Genre, ...] = (
    Genre("Ação/Aventura", "#ef4444"),
    Genre("Comédia", "#f97316"),
    Genre("Cute Girls", "#ec4899"),
    Genre("Drama", "#8b5cf6"),
    Genre("Escola Mágica", "#a855f7"),
    Genre("Escolar", "#6366f1"),
    Genre("Esporte", "#f59e0b"),
    Genre("Fantasia", "#d946ef"),
    Genre("Ficção Científica", "#0ea5e9"),
    Genre("Garota Mágica", "#f43f5e"),
    Genre("Harém", "#e11d48"),
    Genre("Histórico", "#ca8a04"),
    Genre("Isekai", "#7e22ce"),
    Genre("Mecha/Espacial", "#0891b2"),
    Genre("Militar", "#166534"),
    Genre("Mistério/Policial", "#1d4ed8"),
    Genre("Música/Idol", "#db2777"),
    Genre("Pós-Apocalíptico", "#9a3412"),
    Genre("Profissional", "#475569"),
    Genre("Psicológico", "#be185d"),
    Genre("Romance", "#f472b6"),
    Genre("Slice of Life", "#22c55e"),
    Genre("Sobrenatural/Terror", "#7f1d1d"),
    Genre("Isekai de Comédia", "#6d28d9"),
    Genre("Isekai de Vilã", "#4a044e"),
)

GENRE_NAMES: tuple[str, ...] = tuple(g.name for g in GENRES)


def get_genre(name: Optional[str]) -> Optional[Genre]:
    for g in GENRES:
        if g.name == name:
            return g
    return None


def _int32(x: int) -> int:
    x &= 0xFFFFFFFF
    return x - 0x100000000 if x >= 0x80000000 else x


def _js_string_hash(s: str) -> int:
    """
    `hash = charCode + ((hash << 5) - hash)` as a browser evaluates it:
    UTF-16 code units, shift wraps to int32, the subtraction does not.
    """
    h = 0
    raw = s.encode("utf-16-le")
    for i in range(0, len(raw), 2):
        code = raw[i] | (raw[i + 1] << 8)
        h = code + (_int32(_int32(h) << 5) - h)
    return h


def color_from_name(name: str) -> str:
    """Deterministic participant colour; matches colours stored by the browser client."""
    h = _js_string_hash(name)
    # JS `%` keeps the dividend's sign
    hue = abs(h) % 360
    if h < 0:
        hue = -hue
    return f"hsl({hue}, 80%, 70%)"
