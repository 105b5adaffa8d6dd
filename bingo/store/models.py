# bingo/store/models.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bingo.domain.common.types import GameMode, Phase


class DocModel(BaseModel):
    """
    Stored documents use camelCase keys (same shape as backup files).
    Unknown keys are kept so a restore never drops data.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_doc(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Indication(DocModel):
    indicator_id: str
    indicator_name: str = ""
    anime_title: str
    # Denormalised AniList media snapshot: title, coverImage, studios, episodes, genres, averageScore...
    anime_data: Optional[Dict[str, Any]] = None


class HistoryEntry(DocModel):
    anime_title: str
    indicator_id: Optional[str] = None
    indicator_name: Optional[str] = None
    anime_data: Optional[Dict[str, Any]] = None
    watched_at: str


class Participant(DocModel):
    id: str
    name: str
    color: str = ""
    anilist_user: str = ""
    added_by: Optional[str] = None
    assigned_genre: Optional[str] = None
    indications: List[Indication] = Field(default_factory=list)
    chosen_anime: Optional[str] = None
    drawn_indication_titles: List[str] = Field(default_factory=list)
    watched: bool = False
    watched_history: List[HistoryEntry] = Field(default_factory=list)

    def chosen_indication(self) -> Optional[Indication]:
        if not self.chosen_anime:
            return None
        for ind in self.indications:
            if ind.anime_title == self.chosen_anime:
                return ind
        return None


class Game(DocModel):
    id: str = ""
    name: str
    game_mode: GameMode
    current_phase: Phase = "REGISTRATION"
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    participants: List[Participant] = Field(default_factory=list)

    # club modes
    club_genre: Optional[str] = None
    club_indications: List[Indication] = Field(default_factory=list)
    club_chosen_anime: Optional[str] = None
    club_chosen_anime_data: Optional[Dict[str, Any]] = None
    club_watched_by: List[str] = Field(default_factory=list)

    player_in_focus: Optional[str] = None
    current_indicator_id: Optional[str] = None

    # bumped on every write; stale writes are rejected
    version: int = 0

    def find_participant(self, participant_id: Optional[str]) -> Optional[Participant]:
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None


class UserState(DocModel):
    active_game_id: Optional[str] = None
