# bingo/errors.py
from __future__ import annotations


class GameRuleError(Exception):
    """A host action whose precondition does not hold. Nothing has been written."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class WriteConflictError(Exception):
    """The stored game changed or was deleted since it was read."""
    def __init__(self, game_id: str, expected: int, found: int | None = None):
        self.game_id = game_id
        self.expected = expected
        self.found = found
        super().__init__(f"Game {game_id} changed concurrently (expected version {expected}, found {found})")


class BackupFormatError(ValueError):
    """Backup payload could not be parsed or has the wrong shape."""


# Rule error codes
BAD_PHASE = "BAD_PHASE"
BAD_MODE = "BAD_MODE"
GUARD_FAILED = "GUARD_FAILED"
PARTICIPANT_NOT_FOUND = "PARTICIPANT_NOT_FOUND"
INVALID_NAME = "INVALID_NAME"
NOT_IN_DRAW_SCOPE = "NOT_IN_DRAW_SCOPE"
ALREADY_ASSIGNED = "ALREADY_ASSIGNED"
NO_CANDIDATES = "NO_CANDIDATES"
SELF_INDICATION = "SELF_INDICATION"
ALREADY_INDICATED = "ALREADY_INDICATED"
DUPLICATE_TITLE = "DUPLICATE_TITLE"
NO_INDICATOR = "NO_INDICATOR"
INVALID_ANIME = "INVALID_ANIME"
UNKNOWN_TITLE = "UNKNOWN_TITLE"
