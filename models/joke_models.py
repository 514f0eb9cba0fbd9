# models/joke_models.py
"""Pydantic models shared by the joke source, jester and orchestrator."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from utils.similarity import is_triumph as _is_triumph

MAX_PART_LENGTH = 1000
MAX_SINGLE_LENGTH = 2000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PerformanceState(str, Enum):
    """The five acts of a performance, plus the resting state."""

    IDLE = "Idle"
    FETCHING = "Fetching"
    SHOWING_SETUP = "ShowingSetup"
    SHOWING_AI_GUESS = "ShowingAiGuess"
    REVEALING_PUNCHLINE = "RevealingPunchline"
    TRANSITIONING = "Transitioning"


class EffectKind(str, Enum):
    DRUMROLL = "drumroll"
    FANFARE = "fanfare"
    TROMBONE = "trombone"


class JokeFlags(BaseModel):
    """Content flags reported by the joke source."""

    model_config = ConfigDict(frozen=True)

    nsfw: bool = False
    religious: bool = False
    political: bool = False
    racist: bool = False
    sexist: bool = False
    explicit: bool = False

    @property
    def any_flagged(self) -> bool:
        return any(
            (
                self.nsfw,
                self.religious,
                self.political,
                self.racist,
                self.sexist,
                self.explicit,
            )
        )


class Joke(BaseModel):
    """A joke as delivered by the source.

    Single-form jokes keep their whole text in ``setup`` and leave
    ``punchline`` empty; the whole text then stands in for both parts.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0)
    category: str = Field(min_length=1)
    kind: Literal["twopart", "single"] = "twopart"
    setup: str = ""
    punchline: str = ""
    flags: JokeFlags = Field(default_factory=JokeFlags)
    safe_mode: bool = True

    @model_validator(mode="after")
    def check_parts(self) -> Joke:
        if self.kind == "twopart":
            if not self.setup.strip():
                raise ValueError("Setup is required for two-part jokes")
            if not self.punchline.strip():
                raise ValueError("Punchline is required for two-part jokes")
            if len(self.setup) > MAX_PART_LENGTH or len(self.punchline) > MAX_PART_LENGTH:
                raise ValueError(
                    f"Setup and punchline must not exceed {MAX_PART_LENGTH} characters"
                )
        else:
            if not self.setup.strip():
                raise ValueError("Joke text is required for single jokes")
            if len(self.setup) > MAX_SINGLE_LENGTH:
                raise ValueError(
                    f"Joke text must not exceed {MAX_SINGLE_LENGTH} characters"
                )
        return self

    @property
    def display_text(self) -> str:
        return self.setup

    @property
    def answer_text(self) -> str:
        """Text the predicted punchline is compared against."""
        return self.punchline if self.kind == "twopart" else self.setup

    @property
    def full_text(self) -> str:
        if self.kind == "twopart":
            return f"{self.setup}\n{self.punchline}"
        return self.setup


class Prediction(BaseModel):
    """Raw output of a punchline predictor."""

    text: str
    is_content_filtered: bool = False
    finish_reason: str | None = "stop"

    @property
    def confidence(self) -> float:
        return 0.9 if self.finish_reason == "stop" else 0.5


class Rating(BaseModel):
    """Jester rating of a joke on four 1-10 dimensions."""

    cleverness: int = Field(ge=1, le=10)
    rudeness: int = Field(ge=1, le=10)
    complexity: int = Field(ge=1, le=10)
    difficulty: int = Field(ge=1, le=10)
    commentary: str = ""

    @property
    def average(self) -> float:
        return (self.cleverness + self.rudeness + self.complexity + self.difficulty) / 4.0


class AnalysisResult(BaseModel):
    """Outcome of the jester guessing a punchline."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    joke: Joke
    predicted_punchline: str
    confidence: float = Field(ge=0.0, le=1.0)
    similarity: float = Field(ge=0.0, le=1.0)
    is_content_filtered: bool = False
    latency_ms: int = Field(default=0, ge=0)
    analyzed_at: datetime = Field(default_factory=_utcnow)
    rating: Rating | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_triumph(self) -> bool:
        return _is_triumph(self.similarity, self.is_content_filtered)


class PerformanceRecord(BaseModel):
    """A completed fetch + analysis cycle, as handed to the store."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    session_id: str
    sequence_number: int = Field(default=1, ge=1)
    joke: Joke
    analysis: AnalysisResult
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_triumph(self) -> bool:
        return self.analysis.is_triumph

    @property
    def duration_ms(self) -> int:
        return int((self.completed_at - self.started_at).total_seconds() * 1000)


class SessionStats(BaseModel):
    session_id: str
    total_jokes: int = 0
    triumphs: int = 0
    average_confidence: float = 0.0
    average_similarity: float = 0.0
    average_latency_ms: float = 0.0
    started_at: datetime | None = None

    @property
    def triumph_rate(self) -> float:
        if self.total_jokes <= 0:
            return 0.0
        return round(self.triumphs / self.total_jokes * 100, 1)


class LeaderboardEntry(BaseModel):
    rank: int = 0
    session_id: str
    total_jokes: int = 0
    triumphs: int = 0
    triumph_rate: float = 0.0
    score: float = 0.0
    completed_at: datetime | None = None
    is_current_session: bool = False
