from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from homepage.api.models import EMPTY_CELL, Actor, GameState, GameStatus
from homepage.errors import CellOccupied, GameNotActive, InvalidPosition


BOARD_SIZE = 9


@dataclass(frozen=True, slots=True)
class MoveContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    actor: Actor
    position: object


class MoveValidator(ABC):
    """A small, composable validation unit for an incoming move."""

    @abstractmethod
    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        raise NotImplementedError


def is_valid_position(position: object) -> bool:
    # bool is an int subclass; True must not mean cell 1.
    return isinstance(position, int) and not isinstance(position, bool) and 0 <= position < BOARD_SIZE


@dataclass(frozen=True, slots=True)
class PositionValidator(MoveValidator):
    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        if not is_valid_position(ctx.position):
            raise InvalidPosition("Invalid position (0-8)")


@dataclass(frozen=True, slots=True)
class ActiveGameValidator(MoveValidator):
    """Deny every move once the game reached a terminal status."""

    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        if state.status != GameStatus.active:
            raise GameNotActive("Game is not active")


@dataclass(frozen=True, slots=True)
class TurnOrderValidator(MoveValidator):
    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        from homepage.turn_processing.turns import assert_is_actors_turn

        assert_is_actors_turn(state=state, actor=ctx.actor)


@dataclass(frozen=True, slots=True)
class EmptyCellValidator(MoveValidator):
    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        if state.board[ctx.position] != EMPTY_CELL:  # type: ignore[index]
            raise CellOccupied("Cell already taken")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[MoveValidator, ...]

    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, state=state)


# Order matters: the cell check indexes the board, so position goes first.
DEFAULT_MOVE_PIPELINE = ValidatorPipeline(
    validators=(
        PositionValidator(),
        ActiveGameValidator(),
        TurnOrderValidator(),
        EmptyCellValidator(),
    )
)
