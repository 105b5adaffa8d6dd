import pytest
from pydantic import ValidationError

from bingo.transport.protocols import OutDrawResult, parse_incoming


def test_parse_incoming_add_participant():
    msg = parse_incoming({"type": "add_participant", "name": "Ana", "anilist_user": "ana_al"})
    assert msg.type == "add_participant"
    assert msg.name == "Ana"
    assert msg.anilist_user == "ana_al"


def test_parse_incoming_name_bounds():
    with pytest.raises(ValidationError):
        parse_incoming({"type": "add_participant", "name": ""})

    with pytest.raises(ValidationError):
        parse_incoming({"type": "add_participant", "name": "x" * 41})


def test_parse_incoming_indicate():
    msg = parse_incoming(
        {
            "type": "indicate",
            "receiver_id": "p2",
            "anime": {"id": 20, "title": {"romaji": "Naruto"}},
        }
    )
    assert msg.type == "indicate"
    assert msg.receiver_id == "p2"
    assert msg.indicator_id is None
    assert msg.anime["title"]["romaji"] == "Naruto"


def test_parse_incoming_mark_watched_requires_participant():
    with pytest.raises(ValidationError):
        parse_incoming({"type": "mark_watched"})


def test_parse_incoming_draw_genre_participant_optional():
    msg = parse_incoming({"type": "draw_genre"})
    assert msg.participant_id is None


def test_parse_incoming_unknown_type():
    with pytest.raises(ValueError):
        parse_incoming({"type": "does_not_exist"})


def test_parse_incoming_missing_type():
    with pytest.raises(ValueError):
        parse_incoming({"name": "Ana"})


def test_draw_result_dump():
    e = OutDrawResult(kind="genre", results={"p1": "Isekai"}, reveal_ms=4500)
    assert e.model_dump() == {
        "type": "draw_result",
        "kind": "genre",
        "results": {"p1": "Isekai"},
        "reveal_ms": 4500,
        "colors": {},
    }
