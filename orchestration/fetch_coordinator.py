# orchestration/fetch_coordinator.py
"""Fetch jokes while steering clear of recently seen ones."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from config import settings
from core.joke_source import JokeSource
from models import Joke

logger = structlog.get_logger(__name__)


class FetchRetryCoordinator:
    """Re-fetch when the source hands back an excluded joke.

    After ``max_retries`` excluded results one unconstrained fetch is
    returned as-is, so a small joke pool can still repeat. Transport
    errors from the source propagate untouched.
    """

    def __init__(
        self, source: JokeSource, max_retries: int = settings.FETCH_MAX_RETRIES
    ) -> None:
        self.source = source
        self.max_retries = max_retries

    async def fetch(
        self, safe_mode: bool, exclude_ids: Iterable[int] | None = None
    ) -> Joke:
        exclude_set = set(exclude_ids or ())
        logger.info("Fetching joke", safe_mode=safe_mode, excluded=len(exclude_set))

        for attempt in range(1, self.max_retries + 1):
            joke = await self.source.fetch(safe_mode, exclude_set or None)
            if not exclude_set or joke.id not in exclude_set:
                logger.info("Fetched joke", joke_id=joke.id, category=joke.category)
                return joke
            logger.debug(
                "Joke is excluded, retrying",
                joke_id=joke.id,
                attempt=attempt,
                max_retries=self.max_retries,
            )

        logger.warning(
            "Could not find a non-excluded joke, accepting a repeat",
            max_retries=self.max_retries,
        )
        joke = await self.source.fetch(safe_mode, None)
        logger.info("Returning fallback joke", joke_id=joke.id)
        return joke
