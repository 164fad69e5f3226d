from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel


EMPTY_CELL = ""

Cell = Literal["", "X", "O"]


class Actor(StrEnum):
    alex = "alex"
    world = "world"


class Mark(StrEnum):
    x = "X"
    o = "O"


class GameStatus(StrEnum):
    active = "active"
    alex_won = "alexWon"
    world_won = "worldWon"
    draw = "draw"


class NotificationStatus(StrEnum):
    sent = "sent"
    failed = "failed"
    skipped = "skipped"


class _CamelModel(BaseModel):
    # Stored documents and API responses use camelCase keys.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MoveRecord(_CamelModel):
    actor: Actor
    position: int
    timestamp: datetime


class GameStats(_CamelModel):
    alex_wins: int = 0
    world_wins: int = 0
    draws: int = 0


def _empty_board() -> list[Cell]:
    return [EMPTY_CELL] * 9


class GameState(_CamelModel):
    board: list[Cell] = Field(default_factory=_empty_board, min_length=9, max_length=9)

    # The world moves first in a fresh game.
    current_turn: Actor = Actor.world
    status: GameStatus = GameStatus.active
    last_move_at: datetime

    move_history: list[MoveRecord] = Field(default_factory=list)

    # Survives resets.
    stats: GameStats = Field(default_factory=GameStats)


class MoveRequest(BaseModel):
    position: StrictInt


class ActivityCategory(StrEnum):
    run = "Run"
    gym = "Gym"
    other = "Other"


class Activity(BaseModel):
    """One entry from the activity feed.

    Timestamps are kept as the raw ISO strings the feed returned; the streak
    engine parses them leniently and skips anything it can't read.
    """

    id: str
    name: str | None = None
    type: str = ""
    distance_meters: float = 0.0
    duration_seconds: float = 0.0
    average_speed: float = 0.0
    average_heart_rate: float | None = None
    start_time_utc: str | None = None
    start_time_local: str | None = None
    polyline: str | None = None


class StreakReport(_CamelModel):
    total_streak_days: int = 0
    per_category_streak_days: dict[ActivityCategory, int] = Field(default_factory=dict)
    has_activity_today: bool = False
    total_distance_in_streak: float = 0.0
    total_time_in_streak: float = 0.0

    # Local calendar date the report is anchored to.
    today: str | None = None


class LatestActivityResponse(_CamelModel):
    id: str
    name: str | None = None
    distance: str
    pace: str
    heart_rate: float | str
    date: str | None = None
    polyline: str | None = None
    streak: int
    has_run_today: bool
    streak_report: StreakReport
