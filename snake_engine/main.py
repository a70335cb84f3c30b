"""FastAPI application: HTTP routes, WebSocket endpoint, state broadcast."""

import asyncio
import json
import logging

from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from .config import load_settings
from .connection_manager import (
    ConnectionManager, build_error_msg, build_food_msg, build_game_over_msg,
    build_state_msg, difficulty_to_dict,
)
from .game import GameController
from .leaderboard import Leaderboard
from .models import DIFFICULTIES
from .placement import GridExhausted
from .quotes import QuoteSource

logger = logging.getLogger(__name__)

settings = load_settings()
manager = ConnectionManager()
leaderboard = Leaderboard()
quote_source = QuoteSource(settings.quotes_url, settings.quotes_timeout)
background_tasks: set[asyncio.Task] = set()


def schedule(coro):
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        # No loop means no connected clients to broadcast to
        coro.close()
        return
    task = loop.create_task(coro)
    background_tasks.add(task)
    task.add_done_callback(background_tasks.discard)


def broadcast_state(_state):
    schedule(manager.broadcast(build_state_msg(game)))


def broadcast_food(food):
    schedule(manager.broadcast(build_food_msg(food)))


def broadcast_game_over(score, difficulty):
    schedule(manager.broadcast(build_game_over_msg(score, difficulty)))


game = GameController(
    quote_source=quote_source,
    leaderboard=leaderboard,
    auto_pause_on_food=settings.auto_pause_on_food,
    player_name=settings.player_name,
    on_tick=broadcast_state,
    on_food_consumed=broadcast_food,
    on_game_over=broadcast_game_over,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await quote_source.refresh()
    yield
    game.shutdown()


app = FastAPI(lifespan=lifespan)


@app.get("/state")
async def get_state():
    return json.loads(build_state_msg(game))


@app.get("/difficulties")
async def get_difficulties():
    return [difficulty_to_dict(d) for d in DIFFICULTIES.values()]


@app.get("/highscores")
async def get_highscores(limit: int = 5):
    return leaderboard.to_list(limit)


@app.post("/quotes/refresh")
async def refresh_quotes():
    quotes = await quote_source.refresh()
    return {"count": len(quotes), "error": quote_source.error}


def handle_command(msg: dict) -> None:
    """Apply one client command to the game. Raises on bad difficulty or a full grid."""
    kind = msg.get("type")
    if kind == "start":
        game.start_game(msg.get("difficulty"))
    elif kind == "pause":
        game.pause_game()
    elif kind in ("resume", "continue"):
        game.resume_game()
    elif kind == "reset":
        game.reset_game()
    elif kind == "input":
        game.set_direction(msg.get("direction"))
    elif kind == "difficulty":
        game.change_difficulty(msg.get("difficulty") or "")
    else:
        logger.debug(f"Ignoring unknown message type {kind!r}")


@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    player_id = f"p{id(ws)}"
    await manager.connect(ws, player_id)
    try:
        while True:
            try:
                raw = await ws.receive_text()
            except KeyError:
                logger.warning(f"Ignoring non-text frame from {player_id}")
                continue
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning(f"Malformed message from {player_id}: {raw[:80]!r}")
                continue
            if not isinstance(msg, dict):
                continue

            if msg.get("type") == "join":
                game.player_name = str(msg.get("name") or settings.player_name)[:16]
                await manager.send_personal(ws, json.dumps({
                    "type": "welcome",
                    "player_id": player_id,
                }))
                await manager.send_personal(ws, build_state_msg(game))
                continue

            try:
                handle_command(msg)
            except (ValueError, GridExhausted) as e:
                await manager.send_personal(ws, build_error_msg(str(e)))
                continue
            if msg.get("type") in ("pause", "resume", "continue"):
                await manager.broadcast(build_state_msg(game))
    except WebSocketDisconnect:
        logger.info(f"{player_id} disconnected")
    finally:
        manager.disconnect(ws)


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print(f"Snake server starting on http://localhost:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
