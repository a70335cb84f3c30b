"""In-memory high score sink."""

import logging

from .models import ScoreEntry

logger = logging.getLogger(__name__)


class Leaderboard:
    def __init__(self):
        self.entries: list[ScoreEntry] = []

    def record(self, name: str, score: int, difficulty_name: str) -> ScoreEntry:
        entry = ScoreEntry(score=score, name=name, difficulty=difficulty_name)
        self.entries.append(entry)
        logger.info(f"Recorded score {score} for {name} ({difficulty_name})")
        return entry

    def top(self, limit: int = 5) -> list[ScoreEntry]:
        # sorted() is stable, so equal scores keep insertion order
        return sorted(self.entries, reverse=True)[:limit]

    def to_list(self, limit: int = 5) -> list[dict]:
        return [
            {"rank": i, "name": e.name, "score": e.score, "level": e.difficulty}
            for i, e in enumerate(self.top(limit), start=1)
        ]
