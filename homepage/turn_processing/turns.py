from __future__ import annotations

from collections.abc import Sequence

from homepage.api.models import EMPTY_CELL, Actor, GameState, GameStatus, Mark
from homepage.errors import WrongTurn


# 3 rows, 3 columns, 2 diagonals.
WIN_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

_MARKS: dict[Actor, Mark] = {Actor.alex: Mark.x, Actor.world: Mark.o}


def mark_for(actor: Actor) -> Mark:
    return _MARKS[actor]


def other_actor(actor: Actor) -> Actor:
    return Actor.world if actor == Actor.alex else Actor.alex


def assert_is_actors_turn(*, state: GameState, actor: Actor) -> None:
    if state.current_turn != actor:
        if state.current_turn == Actor.alex:
            raise WrongTurn("It's Alex's turn!")
        raise WrongTurn("It's The World's turn!")


def evaluate_board(board: Sequence[str]) -> GameStatus:
    """Classify a board: first complete line wins, then full board is a draw."""

    for a, b, c in WIN_LINES:
        if board[a] != EMPTY_CELL and board[a] == board[b] == board[c]:
            return GameStatus.alex_won if board[a] == Mark.x else GameStatus.world_won

    if all(cell != EMPTY_CELL for cell in board):
        return GameStatus.draw

    return GameStatus.active
