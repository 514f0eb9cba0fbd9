# core/mock_jester.py
"""Offline stand-in for the LLM jester, for development without an API key."""

from __future__ import annotations

import asyncio
import random

import structlog

from models import Joke, Prediction, Rating

logger = structlog.get_logger(__name__)

MOCK_PUNCHLINES = [
    "Because they can't handle the byte!",
    "It was too mainstream!",
    "They wanted to see sharp clearly!",
    "Because it had no body!",
    "It couldn't find its class!",
    "They lost their inheritance!",
    "It kept throwing exceptions!",
    "The algorithm was too complex!",
]


class MockJester:
    """Return canned punchlines and random ratings after a short delay."""

    def __init__(
        self,
        rng: random.Random | None = None,
        min_delay: float = 0.2,
        max_delay: float = 0.8,
    ) -> None:
        self._rng = rng or random.Random()
        self.min_delay = min_delay
        self.max_delay = max_delay

    async def predict(self, setup: str) -> Prediction:
        await asyncio.sleep(self._rng.uniform(self.min_delay, self.max_delay))
        punchline = self._rng.choice(MOCK_PUNCHLINES)
        logger.info("[MOCK] Jester predicted a punchline", punchline=punchline)
        return Prediction(text=punchline, finish_reason="stop")

    async def rate(self, joke: Joke) -> Rating:
        await asyncio.sleep(self._rng.uniform(self.min_delay / 2, self.max_delay / 2))
        return Rating(
            cleverness=self._rng.randint(1, 10),
            rudeness=self._rng.randint(1, 4),
            complexity=self._rng.randint(1, 10),
            difficulty=self._rng.randint(1, 10),
            commentary="A jest of reasonable mirth!",
        )
