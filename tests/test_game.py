"""
Tests for the game lifecycle controller.

Most tests run with autotick=False and drive tick() by hand; the timer
tests run a real asyncio loop with a very short interval.
"""

import asyncio
import random
from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from snake_engine.constants import FOOD_COUNT
from snake_engine.game import GameController
from snake_engine.leaderboard import Leaderboard
from snake_engine.models import (
    CollisionReason, Collided, DifficultySetting, Food, FoodConsumed, FoodKind,
    GameState, Phase,
)
from snake_engine.placement import GridExhausted


def make_game(**kwargs) -> GameController:
    kwargs.setdefault("autotick", False)
    kwargs.setdefault("seed", 1234)
    return GameController(**kwargs)


def load(game: GameController, **fields):
    """Replace parts of the running state with a hand-built layout."""
    game._state = replace(game.state, **fields)
    game.pending_direction = game.state.direction


def assert_entities_disjoint(state: GameState):
    food_cells = [f.position for f in state.foods]
    assert len(set(food_cells)) == len(food_cells)
    assert len(set(state.obstacles)) == len(state.obstacles)
    assert not set(food_cells) & set(state.obstacles)
    assert not set(food_cells) & set(state.snake)
    assert not set(state.obstacles) & set(state.snake)


class TestInitialState:
    """A fresh controller is idle with an empty board."""

    def test_idle_with_initial_snake(self):
        game = make_game()
        assert game.phase == Phase.IDLE
        assert game.state.snake == ((5, 5),)
        assert game.state.direction == "right"
        assert game.state.foods == ()
        assert game.state.obstacles == ()
        assert game.state.score == 0
        assert game.difficulty.name == "Easy"

    def test_tick_while_idle_does_nothing(self):
        game = make_game()
        assert game.tick() is None
        assert game.state.snake == ((5, 5),)

    def test_unknown_difficulty_rejected(self):
        with pytest.raises(ValueError):
            make_game(difficulty="Impossible")


class TestStartGame:
    """Idle -> Running."""

    def test_start_populates_entities(self):
        game = make_game()
        assert game.start_game() is True
        assert game.phase == Phase.RUNNING
        assert len(game.state.foods) == FOOD_COUNT
        assert len(game.state.obstacles) == 3
        assert_entities_disjoint(game.state)

    def test_start_with_difficulty_name(self):
        game = make_game()
        game.start_game("hard")
        assert game.difficulty.name == "Hard"
        assert len(game.state.obstacles) == 8
        assert_entities_disjoint(game.state)

    def test_start_while_running_is_ignored(self):
        game = make_game()
        game.start_game()
        state = game.state
        assert game.start_game() is False
        assert game.state is state

    def test_start_emits_tick(self):
        on_tick = MagicMock()
        game = make_game(on_tick=on_tick)
        game.start_game()
        on_tick.assert_called_once_with(game.state)

    def test_grid_exhausted_leaves_game_idle(self):
        """A grid too small for the required entities keeps the game Idle."""
        game = make_game(grid_size=3, difficulty="Hard")
        with pytest.raises(GridExhausted):
            game.start_game()
        assert game.phase == Phase.IDLE
        assert game.state.foods == ()
        assert game.state.obstacles == ()

    def test_start_after_game_over_resets(self):
        game = make_game()
        game.start_game()
        load(game, snake=((0, 5),), direction="left", score=4)
        game.tick()
        assert game.phase == Phase.GAME_OVER

        assert game.start_game() is True
        assert game.phase == Phase.RUNNING
        assert game.state.score == 0
        assert game.state.snake == ((5, 5),)


class TestPauseResume:
    """Running <-> Paused."""

    def test_pause_twice_same_as_once(self):
        game = make_game()
        game.start_game()
        assert game.pause_game() is True
        paused = game.state
        assert game.pause_game() is False
        assert game.state == paused
        assert game.phase == Phase.PAUSED

    def test_tick_while_paused_does_nothing(self):
        game = make_game()
        game.start_game()
        game.pause_game()
        snake = game.state.snake
        assert game.tick() is None
        assert game.state.snake == snake

    def test_resume(self):
        game = make_game()
        game.start_game()
        game.pause_game()
        assert game.resume_game() is True
        assert game.phase == Phase.RUNNING
        assert game.resume_game() is False

    def test_pause_when_idle_is_ignored(self):
        game = make_game()
        assert game.pause_game() is False
        assert game.phase == Phase.IDLE


class TestDirection:
    """Buffered direction changes."""

    def test_reversal_rejected(self):
        """Requesting DOWN while heading UP is ignored."""
        game = make_game()
        game.start_game()
        load(game, direction="up")
        assert game.set_direction("down") is False
        assert game.state.direction == "up"
        assert game.pending_direction == "up"

    def test_turn_applies_on_next_tick(self):
        game = make_game()
        game.start_game()
        load(game, snake=((5, 5),), foods=(), obstacles=(), direction="right")
        assert game.set_direction("up") is True
        assert game.state.direction == "right"
        game.tick()
        assert game.state.direction == "up"
        assert game.state.snake == ((5, 4),)

    def test_no_reversal_through_two_requests(self):
        """Reversals are checked against the committed direction, not the queued one."""
        game = make_game()
        game.start_game()
        load(game, snake=((5, 5),), foods=(), obstacles=(), direction="up")
        assert game.set_direction("left") is True
        assert game.set_direction("down") is False
        game.tick()
        assert game.state.direction == "left"

    def test_unknown_direction_ignored(self):
        game = make_game()
        assert game.set_direction("diagonal") is False
        assert game.set_direction(None) is False
        assert game.pending_direction == "right"


class TestTickOutcomes:
    """Outcomes applied by the controller."""

    def test_wall_collision_ends_game(self):
        leaderboard = Leaderboard()
        on_game_over = MagicMock()
        game = make_game(leaderboard=leaderboard, on_game_over=on_game_over, player_name="Ana")
        game.start_game()
        load(game, snake=((0, 5),), direction="left", score=6)

        outcome = game.tick()

        assert outcome == Collided(CollisionReason.WALL)
        assert game.phase == Phase.GAME_OVER
        assert game.state.snake == ((0, 5),)
        on_game_over.assert_called_once_with(6, game.difficulty)
        assert [(e.name, e.score, e.difficulty) for e in leaderboard.top()] == [("Ana", 6, "Easy")]

    def test_tick_after_game_over_does_nothing(self):
        game = make_game()
        game.start_game()
        load(game, snake=((0, 5),), direction="left")
        game.tick()
        assert game.tick() is None

    def test_food_auto_pauses(self):
        on_food = MagicMock()
        game = make_game(on_food_consumed=on_food)
        game.start_game()
        food = Food((6, 5), FoodKind.BONUS, "tag")
        load(game, snake=((5, 5),), foods=(food,), obstacles=(), direction="right")

        outcome = game.tick()

        assert isinstance(outcome, FoodConsumed)
        assert game.phase == Phase.PAUSED
        assert game.state.score == 3
        assert game.state.snake == ((6, 5), (5, 5))
        on_food.assert_called_once_with(food)

        assert game.resume_game() is True
        assert game.phase == Phase.RUNNING

    def test_food_without_auto_pause(self):
        game = make_game(auto_pause_on_food=False)
        game.start_game()
        load(game, snake=((5, 5),), foods=(Food((6, 5), FoodKind.REGULAR, "tag"),),
             obstacles=(), direction="right")
        game.tick()
        assert game.phase == Phase.RUNNING
        assert game.state.score == 1

    def test_on_tick_receives_new_state(self):
        on_tick = MagicMock()
        game = make_game(on_tick=on_tick)
        game.start_game()
        load(game, snake=((5, 5),), foods=(), obstacles=(), direction="right")
        game.tick()
        on_tick.assert_called_with(game.state)
        assert game.state.snake == ((6, 5),)


class TestResetAndDifficulty:
    """Reset and difficulty changes."""

    def test_reset_clears_state(self):
        game = make_game()
        game.start_game()
        load(game, score=9)
        game.reset_game()
        assert game.phase == Phase.IDLE
        assert game.state == GameState()

    def test_reset_refreshes_quotes(self):
        quotes = MagicMock()
        quotes.pick.return_value = "Quote"
        game = make_game(quote_source=quotes)
        game.start_game()
        game.reset_game()
        quotes.schedule_refresh.assert_called_once_with()

    def test_difficulty_change_while_running_resets(self):
        game = make_game()
        game.start_game()
        load(game, score=5, snake=((7, 7), (6, 7)))
        game.change_difficulty("Hard")
        assert game.phase == Phase.IDLE
        assert game.difficulty.name == "Hard"
        assert game.state.snake == ((5, 5),)
        assert game.state.score == 0
        assert game.state.foods == ()
        assert game.state.obstacles == ()

    def test_difficulty_change_while_paused_resets(self):
        game = make_game()
        game.start_game()
        game.pause_game()
        game.change_difficulty("Medium")
        assert game.phase == Phase.IDLE

    def test_difficulty_change_while_idle_keeps_phase(self):
        game = make_game()
        game.change_difficulty("Medium")
        assert game.phase == Phase.IDLE
        game.start_game()
        assert len(game.state.obstacles) == 5

    def test_difficulty_change_unknown_name(self):
        game = make_game()
        with pytest.raises(ValueError):
            game.change_difficulty("Nightmare")
        assert game.difficulty.name == "Easy"


def play(seed: int, ticks: int = 300):
    """Play a seeded game with pseudo-random turns; return outcomes and states."""
    game = make_game(seed=seed)
    script = random.Random(seed + 1)
    game.start_game()
    outcomes, states = [], [game.state]
    for _ in range(ticks):
        game.set_direction(script.choice(["up", "down", "left", "right"]))
        outcome = game.tick()
        if outcome is None:
            break
        outcomes.append(outcome)
        states.append(game.state)
        if game.phase == Phase.PAUSED:
            game.resume_game()
    return outcomes, states


class TestProperties:
    """Properties over whole seeded games."""

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_entities_never_overlap(self, seed):
        _, states = play(seed)
        for state in states:
            assert_entities_disjoint(state)

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_length_grows_once_per_food(self, seed):
        outcomes, states = play(seed)
        for outcome, before, after in zip(outcomes, states, states[1:]):
            if isinstance(outcome, FoodConsumed):
                assert len(after.snake) == len(before.snake) + 1
            else:
                assert len(after.snake) == len(before.snake)

    def test_same_seed_same_outcomes(self):
        assert play(42)[0] == play(42)[0]


class TestTimer:
    """The tick timer only runs while the game is Running."""

    FAST = DifficultySetting("Fast", 5, 0)

    def test_timer_ticks_and_stops_on_pause(self):
        async def scenario():
            ticks = []
            game = GameController(difficulty=self.FAST, seed=3, auto_pause_on_food=False,
                                  on_tick=ticks.append)
            game.start_game()
            load(game, foods=())
            assert game.timer.running
            await asyncio.sleep(0.03)
            game.pause_game()
            assert not game.timer.running
            count = len(ticks)
            await asyncio.sleep(0.03)
            assert len(ticks) == count
            return count

        assert asyncio.run(scenario()) > 1

    def test_game_over_stops_timer(self):
        async def scenario():
            game = GameController(difficulty=self.FAST, seed=3)
            game.start_game()
            load(game, snake=((13, 0),), foods=(), direction="right")
            await asyncio.sleep(0.05)
            return game

        game = asyncio.run(scenario())
        assert game.phase == Phase.GAME_OVER
        assert not game.timer.running

    def test_reset_stops_timer(self):
        async def scenario():
            game = GameController(difficulty=self.FAST, seed=3)
            game.start_game()
            game.reset_game()
            return game.timer.running

        assert asyncio.run(scenario()) is False

    def test_resume_restarts_timer(self):
        async def scenario():
            ticks = []
            game = GameController(difficulty=self.FAST, seed=3, on_tick=ticks.append)
            game.start_game()
            load(game, snake=((1, 5),), foods=(), obstacles=(), direction="right")
            await asyncio.sleep(0.02)
            game.pause_game()
            paused_at = len(ticks)
            assert game.resume_game() is True
            assert game.timer.running
            await asyncio.sleep(0.02)
            game.pause_game()
            return paused_at, len(ticks)

        paused_at, total = asyncio.run(scenario())
        assert total > paused_at

    def test_food_auto_pause_stops_timer(self):
        async def scenario():
            game = GameController(difficulty=self.FAST, seed=3)
            game.start_game()
            load(game, snake=((5, 5),), foods=(Food((6, 5), FoodKind.REGULAR, "tag"),),
                 obstacles=(), direction="right")
            await asyncio.sleep(0.03)
            return game

        game = asyncio.run(scenario())
        assert game.phase == Phase.PAUSED
        assert game.state.score == 1
        assert not game.timer.running

    def test_failing_tick_consumer_does_not_stop_timer(self):
        """An on_tick consumer that raises is logged and ticking continues."""
        calls = []

        def flaky(state):
            calls.append(state)
            if len(calls) == 2:
                raise RuntimeError("renderer crashed")

        async def scenario():
            game = GameController(difficulty=self.FAST, seed=3, on_tick=flaky)
            game.start_game()
            load(game, snake=((1, 5),), foods=(), obstacles=(), direction="right")
            await asyncio.sleep(0.03)
            running = game.timer.running
            game.pause_game()
            return running

        assert asyncio.run(scenario()) is True
        assert len(calls) > 2


class TestStartWithoutLoop:
    """With autotick on, commands need a running event loop."""

    def test_start_without_loop_stays_idle(self):
        game = GameController(seed=1)
        with pytest.raises(RuntimeError):
            game.start_game()
        assert game.phase == Phase.IDLE
        assert game.state.foods == ()
        assert game.state.obstacles == ()
        assert not game.timer.running

    def test_resume_without_loop_stays_paused(self):
        async def started():
            game = GameController(seed=1)
            game.start_game()
            game.pause_game()
            return game

        game = asyncio.run(started())
        assert game.phase == Phase.PAUSED
        with pytest.raises(RuntimeError):
            game.resume_game()
        assert game.phase == Phase.PAUSED
        assert not game.timer.running


class TestDirectionBeforeStart:
    """A direction chosen while Idle is used by the first tick."""

    def test_idle_direction_survives_start(self):
        game = make_game()
        assert game.set_direction("down") is True
        game.start_game()
        assert game.pending_direction == "down"
        game._state = replace(game.state, foods=(), obstacles=())
        game.tick()
        assert game.state.direction == "down"
        assert game.state.snake == ((5, 6),)
