"""Data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .constants import (
    GRID_SIZE, INITIAL_SNAKE, INITIAL_DIRECTION,
    DIFFICULTY_LEVELS, DEFAULT_DIFFICULTY, FOOD_POINTS,
)

Coord = tuple[int, int]


class Phase(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    GAME_OVER = "game_over"


class FoodKind(Enum):
    REGULAR = "regular"
    BONUS = "bonus"
    SUPER = "super"

    @property
    def points(self) -> int:
        return FOOD_POINTS[self.value]


class CollisionReason(Enum):
    WALL = "wall"
    SELF = "self"
    OBSTACLE = "obstacle"


@dataclass(frozen=True)
class DifficultySetting:
    name: str
    tick_interval_ms: int
    obstacle_count: int


DIFFICULTIES = {
    name: DifficultySetting(name, interval, obstacles)
    for name, (interval, obstacles) in DIFFICULTY_LEVELS.items()
}


def get_difficulty(difficulty: Union[str, DifficultySetting, None]) -> DifficultySetting:
    """Resolve a difficulty by name (case-insensitive) or pass a setting through."""
    if difficulty is None:
        return DIFFICULTIES[DEFAULT_DIFFICULTY]
    if isinstance(difficulty, DifficultySetting):
        return difficulty
    for name, setting in DIFFICULTIES.items():
        if name.lower() == str(difficulty).lower():
            return setting
    raise ValueError(f"Unknown difficulty: {difficulty!r}")


@dataclass(frozen=True)
class Food:
    position: Coord
    kind: FoodKind
    display_tag: str

    @property
    def points(self) -> int:
        return self.kind.points


@dataclass(frozen=True)
class Quote:
    content: str
    author: str = "Unknown"


@dataclass(frozen=True)
class GameState:
    snake: tuple[Coord, ...] = INITIAL_SNAKE
    foods: tuple[Food, ...] = ()
    obstacles: tuple[Coord, ...] = ()
    direction: str = INITIAL_DIRECTION
    score: int = 0
    phase: Phase = Phase.IDLE
    grid_size: int = GRID_SIZE

    def head(self) -> Coord:
        return self.snake[0]


@dataclass(frozen=True)
class Continued:
    state: GameState


@dataclass(frozen=True)
class Collided:
    reason: CollisionReason


@dataclass(frozen=True)
class FoodConsumed:
    state: GameState
    food: Food


TickOutcome = Union[Continued, Collided, FoodConsumed]


@dataclass(order=True)
class ScoreEntry:
    score: int
    name: str = field(compare=False)
    difficulty: str = field(compare=False)
