from bingo.domain.common.validation import is_host
from bingo.store.models import Game


def test_is_host():
    game = Game(id="g1", name="G", game_mode="infinito", created_by="u1")
    assert is_host("u1", game) is True
    assert is_host("u2", game) is False


def test_is_host_requires_uid():
    game = Game(id="g1", name="G", game_mode="infinito", created_by=None)
    assert is_host(None, game) is False
    assert is_host("", game) is False
