"""Tick engine: advances a game state by one step without mutating it."""

import logging
import random
from dataclasses import replace
from typing import Iterable, Optional

from .constants import FALLBACK_TAG, GRID_SIZE
from .grid import is_in_bounds, next_head, occupies_any
from .models import (
    Coord, CollisionReason, Collided, Continued, Food, FoodConsumed,
    FoodKind, GameState, TickOutcome,
)
from .placement import GridExhausted, place_random

logger = logging.getLogger(__name__)


def flavor_text(quote_source, rng=None) -> str:
    """Fresh flavor string from the quote source, or the fixed fallback."""
    if quote_source is None:
        return FALLBACK_TAG
    try:
        content = quote_source.pick(rng)
    except Exception as e:
        logger.warning(f"Flavor text unavailable, using fallback: {e}")
        return FALLBACK_TAG
    return content or FALLBACK_TAG


def make_food(cell: Coord, quote_source=None, rng: Optional[random.Random] = None) -> Food:
    rng = rng or random
    kind = rng.choice(list(FoodKind))
    tag = f"{flavor_text(quote_source, rng)} ({kind.points} pts)"
    return Food(position=cell, kind=kind, display_tag=tag)


def spawn_food(
    exclude_sets: Iterable[Iterable],
    quote_source=None,
    rng: Optional[random.Random] = None,
    grid_size: int = GRID_SIZE,
) -> Food:
    cell = place_random(exclude_sets, rng, grid_size)
    return make_food(cell, quote_source, rng)


def detect_collision(state: GameState, candidate: Coord) -> Optional[CollisionReason]:
    if not is_in_bounds(candidate, state.grid_size):
        return CollisionReason.WALL
    # The tail vacates this tick, so it is a legal target
    if occupies_any(candidate, state.snake[:-1]):
        return CollisionReason.SELF
    if occupies_any(candidate, state.obstacles):
        return CollisionReason.OBSTACLE
    return None


def advance(state: GameState, quote_source=None, rng: Optional[random.Random] = None) -> TickOutcome:
    """
    Compute the outcome of one tick.

    The direction stored on the state is the one used; a collision returns
    Collided and leaves the state untouched so the caller can decide how to
    end the game.
    """
    rng = rng or random
    candidate = next_head(state.head(), state.direction)

    reason = detect_collision(state, candidate)
    if reason is not None:
        return Collided(reason)

    snake = (candidate,) + state.snake
    eaten = next((f for f in state.foods if f.position == candidate), None)
    if eaten is None:
        return Continued(replace(state, snake=snake[:-1]))

    foods = tuple(f for f in state.foods if f is not eaten)
    try:
        replacement = spawn_food([snake, foods, state.obstacles], quote_source, rng, state.grid_size)
    except GridExhausted as e:
        logger.warning(f"Skipping replacement food: {e}")
    else:
        foods += (replacement,)

    new_state = replace(state, snake=snake, foods=foods, score=state.score + eaten.points)
    return FoodConsumed(new_state, eaten)
