# orchestration/effects.py
"""Best-effort narration and sound cues."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Protocol

import structlog

from models import EffectKind

logger = structlog.get_logger(__name__)


class Narrator(Protocol):
    async def speak(self, text: str, rate: float = 1.0, pitch: float = 1.0) -> None: ...

    async def stop(self) -> None: ...


class EffectPlayer(Protocol):
    async def play(
        self, effect: EffectKind, duration: float | None = None, volume: float = 0.5
    ) -> None: ...


class LogNarrator:
    """Narrator that writes what it would say to the log."""

    def __init__(self) -> None:
        self.spoken: list[str] = []

    async def speak(self, text: str, rate: float = 1.0, pitch: float = 1.0) -> None:
        self.spoken.append(text)
        logger.info("Narrating", text=text, rate=rate, pitch=pitch)

    async def stop(self) -> None:
        logger.debug("Narration halted")


class LogEffectPlayer:
    """Effect player that writes the cue it would play to the log."""

    def __init__(self) -> None:
        self.played: list[EffectKind] = []

    async def play(
        self, effect: EffectKind, duration: float | None = None, volume: float = 0.5
    ) -> None:
        self.played.append(effect)
        logger.info(
            "Playing effect", effect=effect.value, duration=duration, volume=volume
        )


class EffectDispatcher:
    """Run side effects as background tasks whose failures are only logged."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, name: str, effect: Awaitable[None]) -> asyncio.Task:
        task = asyncio.ensure_future(self._guarded(name, effect))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guarded(self, name: str, effect: Awaitable[None]) -> None:
        try:
            await effect
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Side effect failed", effect=name, error=str(exc))

    async def cancel_all(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
