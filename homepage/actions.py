from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from homepage.api.models import Actor, GameState, GameStatus, MoveRecord, NotificationStatus
from homepage.errors import MoveRejected
from homepage.fsm import GameFSM
from homepage.game_store import StateStore, get_or_create_game, save_game
from homepage.notifications import Notifier
from homepage.turn_processing.board_context import move_notification_text
from homepage.turn_processing.turns import evaluate_board, mark_for, other_actor
from homepage.turn_processing.validators import DEFAULT_MOVE_PIPELINE, MoveContext


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MoveOutcome:
    state: GameState
    notification: NotificationStatus


def _now() -> datetime:
    return datetime.now(tz=UTC)


def place_mark(*, state: GameState, actor: Actor, position: int) -> GameState:
    """Apply an already-validated move to `state` in place.

    Writes the mark, records history, hands the turn over, then evaluates the
    board and, on a terminal result, bumps the matching stat once.
    """

    now = _now()
    fsm = GameFSM(state)

    state.board[position] = mark_for(actor).value
    state.move_history.append(MoveRecord(actor=actor, position=position, timestamp=now))
    state.current_turn = other_actor(actor)
    state.last_move_at = now

    result = evaluate_board(state.board)
    fsm.conclude(result)
    fsm.sync_status_to_model()

    if result == GameStatus.alex_won:
        state.stats.alex_wins += 1
    elif result == GameStatus.world_won:
        state.stats.world_wins += 1
    elif result == GameStatus.draw:
        state.stats.draws += 1

    return state


def _notify(*, notifier: Notifier, actor: Actor, position: int) -> NotificationStatus:
    try:
        notifier.send(move_notification_text(actor=actor, position=position))
    except Exception as e:
        # The move is already saved; report and move on.
        logger.warning(
            "move notification failed (actor=%s position=%s): %s", actor.value, position, e, exc_info=True
        )
        return NotificationStatus.failed
    return NotificationStatus.sent


def apply_move(*, r: StateStore, notifier: Notifier, actor: Actor, position: int) -> MoveOutcome:
    """Entry point for web + Slack moves.

    Applies a move by:
    - loading game state (creating it on first use)
    - validating via the move pipeline
    - mutating state and evaluating the board
    - persisting state
    - notifying the other side if the game goes on

    Notes:
    - There's no lock around load/save; two concurrent moves race and the
      last write wins.
    """

    state = get_or_create_game(r=r)
    ctx = MoveContext(actor=actor, position=position)

    try:
        DEFAULT_MOVE_PIPELINE.validate(ctx=ctx, state=state)
    except MoveRejected as e:
        logger.info("move rejected (actor=%s position=%r): %s", actor.value, position, e)
        raise

    place_mark(state=state, actor=actor, position=position)
    save_game(r=r, state=state)
    logger.info("move applied (actor=%s position=%s status=%s)", actor.value, position, state.status.value)

    if state.status != GameStatus.active:
        return MoveOutcome(state=state, notification=NotificationStatus.skipped)

    return MoveOutcome(state=state, notification=_notify(notifier=notifier, actor=actor, position=position))
