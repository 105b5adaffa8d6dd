import json

import pytest

from bingo.domain.backup.handlers import backup_filename, export_games, parse_backup, restore_games
from bingo.errors import BackupFormatError
from bingo.store.models import Game, Participant


class FakeRepo:
    def __init__(self, games=None):
        self.games = dict(games or {})
        self.upserts = 0

    async def upsert_game(self, game):
        self.upserts += 1
        self.games[game.id] = game
        return game


def _doc(name="Temporada 1", mode="infinito"):
    return {
        "name": name,
        "gameMode": mode,
        "currentPhase": "REGISTRATION",
        "createdBy": "someone-else",
        "participants": [{"id": "p1", "name": "Ana"}],
    }


def test_parse_backup_bare_mapping():
    games = parse_backup(json.dumps({"g1": _doc()}), importing_user="u9")
    game = games["g1"]
    assert game.id == "g1"
    assert game.created_by == "u9"
    assert game.participants[0].color


def test_parse_backup_games_wrapper():
    games = parse_backup({"games": {"g1": _doc(), "g2": _doc("B", "clube_sorteado")}}, importing_user="u9")
    assert sorted(games) == ["g1", "g2"]
    assert games["g2"].game_mode == "clube_sorteado"


def test_parse_backup_applies_migrations():
    doc = _doc()
    doc["currentPhase"] = "WATCH_LOOP"
    games = parse_backup({"g1": doc}, importing_user="u9")
    assert games["g1"].current_phase == "TRACKING"


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        json.dumps([1, 2, 3]),
        json.dumps({"g1": "nope"}),
        json.dumps({"g1": {"name": "x", "gameMode": "unknown"}}),
        json.dumps({"g1": {"gameMode": "infinito"}}),
    ],
)
def test_parse_backup_rejects_malformed(raw):
    with pytest.raises(BackupFormatError):
        parse_backup(raw, importing_user="u9")


def test_one_bad_game_rejects_the_whole_file():
    raw = {"g1": _doc(), "g2": {"name": "broken"}}
    with pytest.raises(BackupFormatError):
        parse_backup(raw, importing_user="u9")


@pytest.mark.asyncio
async def test_restore_upserts_without_removing_games():
    existing = Game(id="g0", name="Keep", game_mode="infinito")
    repo = FakeRepo({"g0": existing})

    games = parse_backup({"g1": _doc()}, importing_user="u9")
    restored = await restore_games(repo, games)

    assert restored == ["g1"]
    assert repo.upserts == 1
    assert set(repo.games) == {"g0", "g1"}


def test_export_uses_camel_case_keys():
    game = Game(id="g1", name="G", game_mode="soberano", participants=[Participant(id="p1", name="Ana")])
    out = export_games([game])
    doc = out["g1"]
    assert doc["gameMode"] == "soberano"
    assert doc["currentPhase"] == "REGISTRATION"
    assert doc["participants"][0]["watchedHistory"] == []
    assert "game_mode" not in doc


def test_export_then_parse_keeps_game():
    game = Game(id="g1", name="G", game_mode="tradicional", participants=[Participant(id="p1", name="Ana", color="c")])
    again = parse_backup(json.dumps(export_games([game])), importing_user="u1")["g1"]
    assert again.participants == game.participants
    assert again.game_mode == game.game_mode


def test_backup_filename():
    assert backup_filename(day="2024-05-01") == "anime-bingo-backup-TODOS-2024-05-01.json"
    game = Game(id="g1", name="Temporada Ação 2!", game_mode="infinito")
    assert backup_filename(game) == "anime-bingo-backup-temporada_a__o_2_.json"
