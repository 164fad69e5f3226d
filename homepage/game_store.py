from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import ValidationError
from redis.exceptions import RedisError

from homepage.api.models import GameState, GameStats
from homepage.errors import PersistenceFailure
from homepage.fsm import GameFSM


logger = logging.getLogger(__name__)

# Single global match.
GAME_KEY = "tictactoe:current_game"


class StateStore(Protocol):
    """Key/value capability the game is persisted through.

    `redis.Redis` satisfies this; tests use fakeredis.
    """

    def get(self, name: str) -> Any: ...

    def set(self, name: str, value: str) -> Any: ...


def _now() -> datetime:
    return datetime.now(tz=UTC)


def new_game(*, stats: GameStats | None = None) -> GameState:
    return GameState(last_move_at=_now(), stats=stats or GameStats())


def save_game(*, r: StateStore, state: GameState) -> None:
    try:
        r.set(GAME_KEY, state.model_dump_json(by_alias=True))
    except RedisError as e:
        logger.error("failed to write %s: %s", GAME_KEY, e)
        raise PersistenceFailure(f"Failed to save game: {e}") from e


def get_game(*, r: StateStore) -> GameState | None:
    try:
        raw = r.get(GAME_KEY)
    except RedisError as e:
        logger.error("failed to read %s: %s", GAME_KEY, e)
        raise PersistenceFailure(f"Failed to load game: {e}") from e

    if not raw:
        return None

    try:
        return GameState.model_validate_json(raw)
    except ValidationError as e:
        logger.error("stored game under %s is unreadable: %s", GAME_KEY, e)
        raise PersistenceFailure("Stored game is corrupt") from e


def get_or_create_game(*, r: StateStore) -> GameState:
    """Return the persisted game, creating and saving a fresh one on first read."""

    state = get_game(r=r)
    if state is None:
        state = new_game()
        save_game(r=r, state=state)
        logger.info("initialized new game")
    return state


def reset_game(*, r: StateStore) -> GameState:
    """Start a fresh board, carrying the running stats forward."""

    old = get_game(r=r)
    if old is None:
        state = new_game()
    else:
        GameFSM(old).restart()
        state = new_game(stats=old.stats)

    save_game(r=r, state=state)
    logger.info("game reset (stats=%s)", state.stats.model_dump(by_alias=True))
    return state
