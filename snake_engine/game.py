"""Game lifecycle: owns the authoritative state and drives the tick engine."""

import logging
import random
from dataclasses import replace
from typing import Callable, Optional, Union

from .constants import DIRECTIONS, FOOD_COUNT, GRID_SIZE, INITIAL_DIRECTION
from .engine import advance, make_food
from .grid import is_opposite
from .models import (
    Collided, DifficultySetting, Food, FoodConsumed, GameState, Phase,
    TickOutcome, get_difficulty,
)
from .placement import GridExhausted, place_n
from .timer import TickTimer

logger = logging.getLogger(__name__)


class GameController:
    """
    Explicit state machine around a single snake game.

    Idle -> Running on start_game(); Running <-> Paused on pause/resume (and
    automatically after food when auto_pause_on_food is set); Running ->
    GameOver on a collision; any phase -> Idle on reset_game(). The tick timer
    only runs while the phase is Running.

    Callbacks:
        on_tick(state): after every applied tick and every reset/start
        on_food_consumed(food): when the snake eats
        on_game_over(score, difficulty): when a collision ends the game
    """

    def __init__(
        self,
        difficulty: Union[str, DifficultySetting, None] = None,
        quote_source=None,
        leaderboard=None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        grid_size: int = GRID_SIZE,
        auto_pause_on_food: bool = True,
        autotick: bool = True,
        player_name: str = "Player",
        on_tick: Optional[Callable[[GameState], None]] = None,
        on_food_consumed: Optional[Callable[[Food], None]] = None,
        on_game_over: Optional[Callable[[int, DifficultySetting], None]] = None,
    ):
        self.difficulty = get_difficulty(difficulty)
        self.quote_source = quote_source
        self.leaderboard = leaderboard
        self.rng = rng or random.Random(seed)
        self.grid_size = grid_size
        self.auto_pause_on_food = auto_pause_on_food
        self.autotick = autotick
        self.player_name = player_name
        self.on_tick = on_tick
        self.on_food_consumed = on_food_consumed
        self.on_game_over = on_game_over

        self.timer = TickTimer()
        self._state = self._initial_state()
        self.pending_direction = self._state.direction
        self.last_outcome: Optional[TickOutcome] = None

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    def _initial_state(self) -> GameState:
        return GameState(direction=INITIAL_DIRECTION, grid_size=self.grid_size)

    # ── Timer ──────────────────────────────────────────────────────

    def _start_timer(self):
        if self.autotick:
            self.timer.start(self.difficulty.tick_interval_ms, self.tick)

    def _stop_timer(self):
        self.timer.stop()

    # ── Commands ───────────────────────────────────────────────────

    def start_game(self, difficulty: Union[str, DifficultySetting, None] = None) -> bool:
        """
        Populate foods and obstacles and begin ticking.

        Raises:
            GridExhausted: the grid cannot hold the required entities. The
                controller stays Idle.
            RuntimeError: autotick is on and no event loop is running. The
                controller stays Idle.
        """
        if self.phase in (Phase.RUNNING, Phase.PAUSED):
            logger.debug(f"start_game ignored in phase {self.phase.value}")
            return False
        if difficulty is not None:
            self.difficulty = get_difficulty(difficulty)
        if self.phase == Phase.GAME_OVER:
            self.reset_game()

        state = self._state
        try:
            food_cells = place_n(FOOD_COUNT, [state.snake], self.rng, self.grid_size)
            obstacles = place_n(
                self.difficulty.obstacle_count, [state.snake, food_cells], self.rng, self.grid_size
            )
        except GridExhausted as e:
            logger.warning(f"Cannot start game on {self.difficulty.name}: {e}")
            raise

        foods = tuple(make_food(cell, self.quote_source, self.rng) for cell in food_cells)
        # Timer first: if it cannot start, the game stays Idle
        self._start_timer()
        self._state = replace(state, foods=foods, obstacles=tuple(obstacles), phase=Phase.RUNNING)
        logger.info(f"Game started on {self.difficulty.name}")
        self._emit_tick()
        return True

    def pause_game(self) -> bool:
        if self.phase != Phase.RUNNING:
            return False
        self._stop_timer()
        self._state = replace(self._state, phase=Phase.PAUSED)
        logger.info("Game paused")
        return True

    def resume_game(self) -> bool:
        if self.phase != Phase.PAUSED:
            return False
        self._start_timer()
        self._state = replace(self._state, phase=Phase.RUNNING)
        logger.info("Game resumed")
        return True

    def reset_game(self):
        self._stop_timer()
        self._state = self._initial_state()
        self.pending_direction = self._state.direction
        self.last_outcome = None
        if self.quote_source is not None:
            self.quote_source.schedule_refresh()
        logger.info("Game reset")
        self._emit_tick()

    def set_direction(self, direction: str) -> bool:
        """Buffer a direction for the next tick. Reversals and unknown names are ignored."""
        if direction not in DIRECTIONS:
            logger.debug(f"Ignoring unknown direction {direction!r}")
            return False
        if is_opposite(self._state.direction, direction):
            logger.debug(f"Ignoring reversal {self._state.direction} -> {direction}")
            return False
        self.pending_direction = direction
        return True

    def change_difficulty(self, difficulty: Union[str, DifficultySetting]):
        self.difficulty = get_difficulty(difficulty)
        logger.info(f"Difficulty set to {self.difficulty.name}")
        if self.phase in (Phase.RUNNING, Phase.PAUSED):
            self.reset_game()

    def shutdown(self):
        self._stop_timer()

    # ── Ticking ────────────────────────────────────────────────────

    def tick(self) -> Optional[TickOutcome]:
        if self.phase != Phase.RUNNING:
            return None

        if self.pending_direction != self._state.direction:
            self._state = replace(self._state, direction=self.pending_direction)

        outcome = advance(self._state, self.quote_source, self.rng)
        self.last_outcome = outcome

        if isinstance(outcome, Collided):
            self._game_over(outcome)
        elif isinstance(outcome, FoodConsumed):
            self._state = outcome.state
            logger.info(f"Ate {outcome.food.kind.value} food, score {self._state.score}")
            if self.auto_pause_on_food:
                self._stop_timer()
                self._state = replace(self._state, phase=Phase.PAUSED)
            if self.on_food_consumed:
                self.on_food_consumed(outcome.food)
        else:
            self._state = outcome.state

        self._emit_tick()
        return outcome

    def _game_over(self, outcome: Collided):
        self._stop_timer()
        self._state = replace(self._state, phase=Phase.GAME_OVER)
        score = self._state.score
        logger.info(f"Game over ({outcome.reason.value}), score {score} on {self.difficulty.name}")
        if self.leaderboard is not None:
            self.leaderboard.record(self.player_name, score, self.difficulty.name)
        if self.on_game_over:
            self.on_game_over(score, self.difficulty)

    def _emit_tick(self):
        if self.on_tick:
            self.on_tick(self._state)
