"""
Flavor-text source for food items.

Quotes are fetched from the Quotable API in a worker thread so that ticks
never wait on the network. Until a fetch completes, pick() returns None and
the tick engine falls back to its fixed tag.
"""

import asyncio
import logging
import random
from typing import Optional

import requests

from .constants import FALLBACK_QUOTES, QUOTES_URL
from .models import Quote

logger = logging.getLogger(__name__)


class QuoteSource:
    def __init__(self, url: str = QUOTES_URL, timeout: float = 10):
        self.url = url
        self.timeout = timeout
        self.quotes: list[Quote] = []
        self.error: Optional[str] = None
        self.loading = False
        self._task: Optional[asyncio.Task] = None

    def fetch(self) -> list[Quote]:
        """Blocking fetch of a batch of quotes."""
        response = requests.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        return [
            Quote(content=item["content"], author=item.get("author") or "Unknown")
            for item in response.json()
            if item.get("content")
        ]

    async def refresh(self) -> list[Quote]:
        self.loading = True
        try:
            quotes = await asyncio.to_thread(self.fetch)
            self.error = None
        except (requests.exceptions.RequestException, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Error fetching quotes from {self.url}: {e}")
            self.error = "Failed to fetch food power descriptions."
            quotes = []
        finally:
            self.loading = False

        if not quotes:
            quotes = [Quote(content, author) for content, author in FALLBACK_QUOTES]
        self.quotes = quotes
        logger.info(f"Loaded {len(quotes)} quotes")
        return quotes

    def schedule_refresh(self) -> Optional[asyncio.Task]:
        """Start a background refresh if an event loop is running."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, quote refresh skipped")
            return None
        if self._task is not None and not self._task.done():
            return self._task
        self._task = loop.create_task(self.refresh())
        return self._task

    def pick(self, rng: Optional[random.Random] = None) -> Optional[str]:
        if not self.quotes:
            return None
        return (rng or random).choice(self.quotes).content
