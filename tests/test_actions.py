import random

import pytest

from bingo.domain.common.actions import (
    add_participant,
    anime_title,
    draw_anime,
    draw_club_genre,
    draw_genre,
    indicate,
    indicate_club,
    mass_draw,
    remove_participant,
    select_anime,
    select_club_anime,
    update_participant,
)
from bingo.domain.common.genres import GENRE_NAMES, color_from_name
from bingo.errors import GameRuleError
from bingo.store.models import Game, Indication, Participant


def _game(mode="infinito", phase="REGISTRATION", n=0):
    return Game(
        id="g1",
        name="G",
        game_mode=mode,
        current_phase=phase,
        created_by="u1",
        participants=[Participant(id=f"p{i}", name=f"P{i}") for i in range(n)],
    )


def _ind(indicator, title):
    return Indication(indicator_id=indicator, anime_title=title)


def _anime(title):
    return {"id": 1, "title": {"romaji": title}, "averageScore": 80}


def _code(fn, *args, **kwargs):
    with pytest.raises(GameRuleError) as e:
        fn(*args, **kwargs)
    return e.value.code


# ---- REGISTRATION ----

def test_add_participant():
    game = _game()
    nxt, p = add_participant(game, "  Ana  ", added_by="u1", anilist_user="ana_al", rng=random.Random(3))
    assert p.name == "Ana"
    assert p.color == color_from_name("Ana")
    assert p.id.startswith("p_")
    assert p.added_by == "u1"
    assert nxt.participants == [p]
    assert game.participants == []


def test_add_participant_rejects_blank_name_and_wrong_phase():
    assert _code(add_participant, _game(), "   ") == "INVALID_NAME"
    assert _code(add_participant, _game(phase="GENRE_DRAW"), "Ana") == "BAD_PHASE"


def test_update_and_remove_participant():
    game = _game(n=2)
    nxt = update_participant(game, "p1", name="Bia", anilist_user="bia")
    assert nxt.find_participant("p1").name == "Bia"
    assert nxt.find_participant("p1").anilist_user == "bia"

    nxt = remove_participant(nxt, "p0")
    assert [p.id for p in nxt.participants] == ["p1"]
    assert _code(remove_participant, nxt, "p0") == "PARTICIPANT_NOT_FOUND"


# ---- GENRE_DRAW ----

def test_genres_are_unique_until_exhausted():
    game = _game(phase="GENRE_DRAW", n=26)
    rng = random.Random(7)
    for p in game.participants[:25]:
        game, _ = draw_genre(game, p.id, rng)

    assigned = [p.assigned_genre for p in game.participants[:25]]
    assert sorted(assigned) == sorted(GENRE_NAMES)
    assert _code(draw_genre, game, "p25", rng) == "NO_CANDIDATES"


def test_draw_genre_twice_is_rejected():
    game, _ = draw_genre(_game(phase="GENRE_DRAW", n=2), "p0", random.Random(1))
    assert _code(draw_genre, game, "p0") == "NOT_IN_DRAW_SCOPE"


def test_draw_genre_respects_focus():
    game = _game(phase="GENRE_DRAW", n=2)
    game.player_in_focus = "p1"
    assert _code(draw_genre, game, "p0") == "NOT_IN_DRAW_SCOPE"
    nxt, genre = draw_genre(game, "p1", random.Random(1))
    assert nxt.find_participant("p1").assigned_genre == genre


def test_club_genre_draw():
    game = _game("clube_sorteado", "GENRE_DRAW", n=2)
    assert _code(draw_genre, game, "p0") == "BAD_MODE"
    nxt, genre = draw_club_genre(game, random.Random(2))
    assert nxt.club_genre == genre
    assert _code(draw_club_genre, nxt) == "ALREADY_ASSIGNED"


# ---- INDICATION ----

def test_anime_title():
    assert anime_title({"title": {"romaji": "Naruto", "english": "NARUTO"}}) == "Naruto"
    assert anime_title({"title": {"english": "Frieren"}}) == "Frieren"
    assert _code(anime_title, {"title": {}}) == "INVALID_ANIME"


def test_indicate_rules():
    game = _game(phase="INDICATION", n=2)
    game.current_indicator_id = "p0"

    assert _code(indicate, game, "p0", _anime("X")) == "SELF_INDICATION"

    nxt, ind = indicate(game, "p1", _anime("X"))
    assert ind.indicator_id == "p0"
    assert ind.indicator_name == "P0"
    assert ind.anime_data["title"]["romaji"] == "X"
    assert nxt.find_participant("p1").indications == [ind]

    assert _code(indicate, nxt, "p1", _anime("Y")) == "ALREADY_INDICATED"


def test_indicate_rejects_repeated_title():
    game = _game(phase="INDICATION", n=3)
    game, _ = indicate(game, "p0", _anime("X"), indicator_id="p1")
    assert _code(indicate, game, "p0", _anime("X"), indicator_id="p2") == "DUPLICATE_TITLE"

    # the same title to a different receiver is fine
    game, _ = indicate(game, "p1", _anime("X"), indicator_id="p2")
    assert [i.anime_title for i in game.find_participant("p1").indications] == ["X"]


def test_indicate_without_indicator():
    game = _game(phase="INDICATION", n=2)
    assert _code(indicate, game, "p1", _anime("X")) == "NO_INDICATOR"
    nxt, _ = indicate(game, "p1", _anime("X"), indicator_id="p0")
    assert len(nxt.find_participant("p1").indications) == 1


def test_indicate_club():
    game = _game("clube_escolhido", "INDICATION", n=2)
    nxt, ind = indicate_club(game, _anime("X"), indicator_id="p0")
    assert nxt.club_indications == [ind]
    assert _code(indicate_club, nxt, _anime("Y"), indicator_id="p0") == "ALREADY_INDICATED"
    assert _code(indicate_club, nxt, _anime("X"), indicator_id="p1") == "DUPLICATE_TITLE"


# ---- ANIME_DRAW / SELECTION ----

def test_draw_skips_titles_chosen_by_others():
    game = _game(phase="ANIME_DRAW", n=2)
    game.participants[0].indications = [_ind("p1", "X"), _ind("p1", "Y")]
    game.participants[1].chosen_anime = "X"

    for seed in range(10):
        nxt, winner = draw_anime(game, "p0", random.Random(seed))
        assert winner.anime_title == "Y"
        assert nxt.find_participant("p0").drawn_indication_titles == ["Y"]

    game.participants[0].indications = [_ind("p1", "X")]
    assert _code(draw_anime, game, "p0") == "NO_CANDIDATES"


def test_draw_skips_titles_drawn_before():
    game = _game("tradicional", "ANIME_DRAW", n=2)
    p0 = game.participants[0]
    p0.indications = [_ind("p1", "X"), _ind("p1", "Y")]
    p0.drawn_indication_titles = ["X"]
    game.participants[1].chosen_anime = "Z"
    _, winner = draw_anime(game, "p0", random.Random(0))
    assert winner.anime_title == "Y"


def test_mass_draw_never_duplicates_titles():
    game = _game(phase="ANIME_DRAW", n=2)
    for p in game.participants:
        p.indications = [_ind("x", "A"), _ind("x", "B")]

    for seed in range(10):
        nxt, results = mass_draw(game, random.Random(seed))
        titles = [results["p0"].anime_title, results["p1"].anime_title]
        assert sorted(titles) == ["A", "B"]
        assert {p.chosen_anime for p in nxt.participants} == {"A", "B"}


def test_mass_draw_with_nothing_to_draw():
    assert _code(mass_draw, _game(phase="ANIME_DRAW", n=2)) == "NO_CANDIDATES"


def test_select_anime():
    game = _game("soberano", "SELECTION", n=2)
    game.participants[0].indications = [_ind("p1", "X")]

    assert _code(select_anime, game, "p0", "Nope") == "UNKNOWN_TITLE"
    nxt = select_anime(game, "p0", "X")
    assert nxt.find_participant("p0").chosen_anime == "X"
    assert _code(select_anime, nxt, "p0", "X") == "ALREADY_ASSIGNED"


def test_select_club_anime_copies_metadata():
    game = _game("clube_escolhido", "SELECTION", n=1)
    game.club_indications = [Indication(indicator_id="p0", anime_title="X", anime_data={"id": 5})]
    nxt = select_club_anime(game, "X")
    assert nxt.club_chosen_anime == "X"
    assert nxt.club_chosen_anime_data == {"id": 5}
