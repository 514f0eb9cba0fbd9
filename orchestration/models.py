# orchestration/models.py
"""Shared dataclasses for orchestration services."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from config import settings
from models import PerformanceState


def _new_session_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class PerformanceTimings:
    """Dwell and backoff durations, in seconds."""

    setup_dwell: float = 3.0
    guess_hold: float = 2.0
    drumroll: float = 2.0
    reveal_dwell: float = 3.0
    punchline_narration_delay: float = 0.5
    transition_pause: float = 1.0
    error_backoff: float = 3.0
    network_retry_delay: float = 1.0
    network_auto_retry: float | None = None
    stop_grace: float | None = 2.0

    @classmethod
    def from_settings(cls) -> PerformanceTimings:
        return cls(
            setup_dwell=settings.SETUP_DWELL_SECONDS,
            guess_hold=settings.GUESS_HOLD_SECONDS,
            drumroll=settings.DRUMROLL_SECONDS,
            reveal_dwell=settings.REVEAL_DWELL_SECONDS,
            punchline_narration_delay=settings.PUNCHLINE_NARRATION_DELAY_SECONDS,
            transition_pause=settings.TRANSITION_PAUSE_SECONDS,
            error_backoff=settings.ERROR_BACKOFF_SECONDS,
            network_retry_delay=settings.NETWORK_RETRY_DELAY_SECONDS,
            network_auto_retry=settings.NETWORK_AUTO_RETRY_SECONDS,
            stop_grace=settings.STOP_GRACE_SECONDS,
        )


@dataclass
class PerformanceSession:
    """Per-run bookkeeping owned by a single orchestrator."""

    session_id: str = field(default_factory=_new_session_id)
    seen_joke_ids: list[int] = field(default_factory=list)
    triumphs: int = 0
    defeats: int = 0
    state: PerformanceState = PerformanceState.IDLE
    lookback: int = settings.SEEN_JOKE_LOOKBACK

    @property
    def performances(self) -> int:
        return self.triumphs + self.defeats

    def record_joke(self, joke_id: int) -> None:
        """Remember ``joke_id`` as the most recent, keeping only the lookback window."""
        if joke_id in self.seen_joke_ids:
            self.seen_joke_ids.remove(joke_id)
        self.seen_joke_ids.append(joke_id)
        if len(self.seen_joke_ids) > self.lookback:
            del self.seen_joke_ids[: len(self.seen_joke_ids) - self.lookback]

    def exclusion_ids(self) -> set[int]:
        return set(self.seen_joke_ids[-self.lookback :])

    def record_outcome(self, triumph: bool) -> None:
        if triumph:
            self.triumphs += 1
        else:
            self.defeats += 1

    def reset(self) -> None:
        self.session_id = _new_session_id()
        self.seen_joke_ids.clear()
        self.triumphs = 0
        self.defeats = 0
        self.state = PerformanceState.IDLE
