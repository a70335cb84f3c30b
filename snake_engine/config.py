"""Runtime settings read from the environment (and a .env file, if present)."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .constants import QUOTES_URL


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 8765
    quotes_url: str = QUOTES_URL
    quotes_timeout: float = 10.0
    auto_pause_on_food: bool = True
    player_name: str = "Player"
    log_level: str = "INFO"


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        host=os.getenv("SNAKE_HOST", "0.0.0.0"),
        port=int(os.getenv("SNAKE_PORT", "8765")),
        quotes_url=os.getenv("SNAKE_QUOTES_URL", QUOTES_URL),
        quotes_timeout=float(os.getenv("SNAKE_QUOTES_TIMEOUT", "10")),
        auto_pause_on_food=_env_bool("SNAKE_AUTO_PAUSE_ON_FOOD", True),
        player_name=os.getenv("SNAKE_PLAYER_NAME", "Player")[:16],
        log_level=os.getenv("SNAKE_LOG_LEVEL", "INFO").upper(),
    )
