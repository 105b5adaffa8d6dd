import json

import pytest
from fastapi.testclient import TestClient

from bingo.domain.common.locks import GameLocks
from bingo.main import create_app
from bingo.store.models import Game, UserState
from bingo.transport.ws_manager import WSManager


class FakeRepo:
    def __init__(self):
        self.games = {}
        self.users = {}
        self.upserts = 0
        self._next = 0

    async def game_exists(self, game_id):
        return game_id in self.games

    async def get_game(self, game_id):
        g = self.games.get(game_id)
        return g.model_copy(deep=True) if g else None

    async def list_games(self):
        return sorted(self.games.values(), key=lambda g: (g.created_at or "", g.id))

    async def create_game(self, game):
        self._next += 1
        game.id = game.id or f"game{self._next}"
        game.version = 1
        self.games[game.id] = game
        return game

    async def save_game(self, game):
        saved = game.model_copy(update={"version": game.version + 1})
        self.games[game.id] = saved
        return saved

    async def upsert_game(self, game):
        self.upserts += 1
        self.games[game.id] = game
        return game

    async def delete_game(self, game_id):
        return self.games.pop(game_id, None) is not None

    async def get_user_state(self, user_id):
        return self.users.get(user_id, UserState())

    async def set_user_state(self, user_id, **fields):
        state = self.users.get(user_id, UserState()).model_copy(update=fields)
        self.users[user_id] = state
        return state


class FakeAniList:
    async def search_anime(self, search="", genre=None, page=1, per_page=None):
        media = [{"id": 1, "title": {"romaji": "Naruto"}}, {"id": 2, "title": {"romaji": "Frieren"}}]
        return media, False

    async def user_statuses(self, user_name):
        return {1: "COMPLETED"}


@pytest.fixture
def client_and_repo():
    app = create_app()
    repo = FakeRepo()
    app.state.repo = repo
    app.state.wsman = WSManager()
    app.state.locks = GameLocks()
    app.state.anilist = FakeAniList()
    # no context manager: startup (Redis connection) is skipped
    return TestClient(app), repo


def _create(client, uid="u1", name="Temporada", mode="infinito"):
    r = client.post("/games", json={"name": name, "gameMode": mode}, headers={"X-User-Id": uid})
    assert r.status_code == 201
    return r.json()


def test_create_game_selects_it(client_and_repo):
    client, repo = client_and_repo
    doc = _create(client)
    assert doc["gameMode"] == "infinito"
    assert doc["currentPhase"] == "REGISTRATION"
    assert doc["createdBy"] == "u1"

    r = client.get("/me/active-game", headers={"X-User-Id": "u1"})
    assert r.json()["activeGameId"] == doc["id"]

    r = client.get("/games")
    assert [g["id"] for g in r.json()["games"]] == [doc["id"]]


def test_anonymous_user_gets_cookie(client_and_repo):
    client, _ = client_and_repo
    r = client.post("/games", json={"name": "X", "gameMode": "soberano"})
    assert r.status_code == 201
    assert r.json()["createdBy"].startswith("anon_")
    assert r.cookies.get("bingo_uid") == r.json()["createdBy"]


def test_create_game_rejects_unknown_mode(client_and_repo):
    client, _ = client_and_repo
    r = client.post("/games", json={"name": "X", "gameMode": "battle_royale"}, headers={"X-User-Id": "u1"})
    assert r.status_code == 422


def test_get_game_snapshot(client_and_repo):
    client, _ = client_and_repo
    doc = _create(client)
    r = client.get(f"/games/{doc['id']}")
    assert r.status_code == 200
    assert r.json()["type"] == "game_snapshot"
    assert r.json()["available_events"] == []
    assert client.get("/games/missing").status_code == 404


def test_only_host_deletes(client_and_repo):
    client, repo = client_and_repo
    doc = _create(client)
    r = client.delete(f"/games/{doc['id']}", headers={"X-User-Id": "intruder"})
    assert r.status_code == 403
    assert doc["id"] in repo.games

    r = client.delete(f"/games/{doc['id']}", headers={"X-User-Id": "u1"})
    assert r.status_code == 200
    assert doc["id"] not in repo.games
    assert client.get("/me/active-game", headers={"X-User-Id": "u1"}).json()["activeGameId"] is None


def test_select_active_game(client_and_repo):
    client, _ = client_and_repo
    doc = _create(client)
    h = {"X-User-Id": "u2"}
    assert client.put("/me/active-game", json={"gameId": "missing"}, headers=h).status_code == 404
    r = client.put("/me/active-game", json={"gameId": doc["id"]}, headers=h)
    assert r.json()["activeGameId"] == doc["id"]
    r = client.put("/me/active-game", json={"gameId": None}, headers=h)
    assert r.json()["activeGameId"] is None


def test_backup_download(client_and_repo):
    client, repo = client_and_repo
    doc = _create(client, name="Minha Temporada")
    r = client.get(f"/backup/{doc['id']}")
    assert r.status_code == 200
    assert 'filename="anime-bingo-backup-minha_temporada.json"' in r.headers["content-disposition"]
    assert r.json()[doc["id"]]["name"] == "Minha Temporada"

    r = client.get("/backup")
    assert "anime-bingo-backup-TODOS-" in r.headers["content-disposition"]
    assert list(r.json()) == [doc["id"]]


def test_restore_malformed_writes_nothing(client_and_repo):
    client, repo = client_and_repo
    body = {"g1": {"name": "ok", "gameMode": "infinito"}, "g2": {"name": "bad", "gameMode": "???"}}
    r = client.post("/restore", content=json.dumps(body), headers={"X-User-Id": "u1"})
    assert r.status_code == 400
    assert repo.upserts == 0
    assert repo.games == {}


def test_restore_adds_games(client_and_repo):
    client, repo = client_and_repo
    existing = _create(client)
    body = {"games": {"g1": {"name": "Velho", "gameMode": "tradicional", "currentPhase": "WATCH_LOOP"}}}
    r = client.post("/restore", content=json.dumps(body), headers={"X-User-Id": "u7"})
    assert r.status_code == 200
    assert r.json()["restored"] == ["g1"]
    assert set(repo.games) == {existing["id"], "g1"}
    assert repo.games["g1"].created_by == "u7"
    assert repo.games["g1"].current_phase == "TRACKING"


def test_anilist_search_with_filter(client_and_repo):
    client, _ = client_and_repo
    r = client.get("/anilist/search", params={"q": "x", "user": "ana", "hide": ["COMPLETED"]})
    body = r.json()
    assert [m["id"] for m in body["media"]] == [2]
    assert body["hasNextPage"] is False

    r = client.get("/anilist/search", params={"user": "ana"})
    assert [m["userStatus"] for m in r.json()["media"]] == ["COMPLETED", None]


def test_websocket_game_session(client_and_repo):
    client, repo = client_and_repo
    doc = _create(client)
    with client.websocket_connect(f"/ws/{doc['id']}?uid=u1") as ws:
        hello = ws.receive_json()
        assert hello == {"type": "hello", "uid": "u1", "game_id": doc["id"]}
        assert ws.receive_json()["type"] == "game_snapshot"

        ws.send_json({"type": "add_participant", "name": "Ana"})
        snap = ws.receive_json()
        assert snap["type"] == "game_snapshot"
        assert snap["game"]["participants"][0]["name"] == "Ana"

        ws.send_json({"type": "start_genre_draw"})
        assert ws.receive_json()["type"] == "phase_changed"
        assert ws.receive_json()["type"] == "game_snapshot"

        ws.send_json({"type": "start_genre_draw"})
        err = ws.receive_json()
        assert err["type"] == "error"
        assert err["code"] == "BAD_PHASE"

    assert repo.games[doc["id"]].current_phase == "GENRE_DRAW"


def test_websocket_guest_cannot_act(client_and_repo):
    client, repo = client_and_repo
    doc = _create(client)
    with client.websocket_connect(f"/ws/{doc['id']}?uid=guest") as ws:
        ws.receive_json()
        ws.receive_json()
        ws.send_json({"type": "add_participant", "name": "Ana"})
        assert ws.receive_json()["code"] == "NOT_HOST"
    assert repo.games[doc["id"]].participants == []


def test_lobby_websocket_lists_games(client_and_repo):
    client, _ = client_and_repo
    doc = _create(client)
    with client.websocket_connect("/ws-lobby") as ws:
        listing = ws.receive_json()
        assert listing["type"] == "games_list"
        assert listing["games"][0]["id"] == doc["id"]
        assert listing["games"][0]["participants"] == 0
