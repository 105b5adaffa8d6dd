from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Union

import structlog
from pydantic import ValidationError

from bingo.domain.backup.migrate import normalize_game
from bingo.errors import BackupFormatError
from bingo.store.models import Game

logger = structlog.get_logger()


def export_games(games: List[Game]) -> Dict[str, Dict[str, Any]]:
    """Backup file body: bare mapping gameId -> game document."""
    return {g.id: g.to_doc() for g in games}


def backup_filename(game: Game | None = None, *, day: str = "") -> str:
    if game is None:
        return f"anime-bingo-backup-TODOS-{day}.json"
    safe = re.sub(r"[^a-z0-9]", "_", game.name, flags=re.IGNORECASE).lower()
    return f"anime-bingo-backup-{safe}.json"


def parse_backup(raw: Union[str, bytes, Dict[str, Any]], *, importing_user: str) -> Dict[str, Game]:
    """
    Parse, normalise and validate a whole backup before anything is written.
    Accepts `{"games": {id: game}}` or a bare `{id: game}` mapping.
    Raises BackupFormatError naming the first problem found.
    """
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BackupFormatError(f"Backup is not valid JSON: {e}") from e
    else:
        data = raw

    if isinstance(data, dict) and isinstance(data.get("games"), dict):
        data = data["games"]
    if not isinstance(data, dict):
        raise BackupFormatError("Backup must be an object mapping game ids to games")

    games: Dict[str, Game] = {}
    for game_id, doc in data.items():
        if not isinstance(game_id, str) or not game_id.strip():
            raise BackupFormatError("Backup contains an empty game id")
        if not isinstance(doc, dict):
            raise BackupFormatError(f"Game {game_id!r} is not an object")

        normalized = normalize_game(doc)
        normalized.pop("id", None)
        normalized["createdBy"] = importing_user
        try:
            game = Game.model_validate(normalized)
        except ValidationError as e:
            raise BackupFormatError(f"Game {game_id!r} is invalid: {e.errors()[0].get('msg', str(e))}") from e
        game.id = game_id
        games[game_id] = game
    return games


async def restore_games(repo, games: Dict[str, Game]) -> List[str]:
    """Upsert each game; existing games not in the backup are left alone."""
    restored: List[str] = []
    for game_id, game in games.items():
        await repo.upsert_game(game)
        restored.append(game_id)
    logger.info("backup restored", games=len(restored))
    return restored
