from __future__ import annotations


class MoveRejected(ValueError):
    """A move that was refused before anything was written."""

    code = "move_rejected"


class InvalidPosition(MoveRejected):
    code = "invalid_position"


class WrongTurn(MoveRejected):
    code = "wrong_turn"


class CellOccupied(MoveRejected):
    code = "cell_occupied"


class GameNotActive(MoveRejected):
    code = "game_not_active"


class PersistenceFailure(RuntimeError):
    """The game document could not be read from or written to the store."""


class NotificationFailure(RuntimeError):
    """An outbound message could not be delivered."""
