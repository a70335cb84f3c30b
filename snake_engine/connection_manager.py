"""WebSocket connection management and state serialization."""

import json
import logging

from fastapi import WebSocket, WebSocketDisconnect

from .game import GameController
from .models import DifficultySetting, Food, GameState

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        self.connections: dict[WebSocket, str] = {}

    async def connect(self, ws: WebSocket, player_id: str):
        await ws.accept()
        self.connections[ws] = player_id

    def disconnect(self, ws: WebSocket):
        self.connections.pop(ws, None)

    async def broadcast(self, message: str):
        disconnected = []
        for ws in list(self.connections):
            try:
                await ws.send_text(message)
            except (RuntimeError, OSError, WebSocketDisconnect) as e:
                logger.warning(f"Dropping connection {self.connections.get(ws)}: {e}")
                disconnected.append(ws)
        for ws in disconnected:
            self.connections.pop(ws, None)

    async def send_personal(self, ws: WebSocket, message: str):
        logger.debug(f"-> {self.connections.get(ws, 'unknown')}: {message[:80]}")
        await ws.send_text(message)


def coords_to_list(coords) -> list[list[int]]:
    return [[x, y] for x, y in coords]


def food_to_dict(food: Food) -> dict:
    return {
        "x": food.position[0],
        "y": food.position[1],
        "type": food.kind.value,
        "points": food.points,
        "quote": food.display_tag,
    }


def difficulty_to_dict(difficulty: DifficultySetting) -> dict:
    return {
        "level": difficulty.name,
        "speed": difficulty.tick_interval_ms,
        "obstacle_count": difficulty.obstacle_count,
    }


def state_to_dict(state: GameState) -> dict:
    return {
        "snake": coords_to_list(state.snake),
        "foods": [food_to_dict(f) for f in state.foods],
        "obstacles": coords_to_list(state.obstacles),
        "direction": state.direction,
        "score": state.score,
        "phase": state.phase.value,
        "grid": state.grid_size,
    }


def build_state_msg(game: GameController) -> str:
    data = state_to_dict(game.state)
    data["type"] = "state"
    data["difficulty"] = difficulty_to_dict(game.difficulty)
    return json.dumps(data)


def build_food_msg(food: Food) -> str:
    return json.dumps({"type": "food_consumed", "food": food_to_dict(food)})


def build_game_over_msg(score: int, difficulty: DifficultySetting) -> str:
    return json.dumps({
        "type": "game_over",
        "score": score,
        "difficulty": difficulty.name,
    })


def build_error_msg(message: str) -> str:
    return json.dumps({"type": "error", "message": message})
