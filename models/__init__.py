"""Central package for Digital Jester data models."""

from .joke_models import (
    AnalysisResult,
    EffectKind,
    Joke,
    JokeFlags,
    LeaderboardEntry,
    PerformanceRecord,
    PerformanceState,
    Prediction,
    Rating,
    SessionStats,
)

__all__ = [
    "AnalysisResult",
    "EffectKind",
    "Joke",
    "JokeFlags",
    "LeaderboardEntry",
    "PerformanceRecord",
    "PerformanceState",
    "Prediction",
    "Rating",
    "SessionStats",
]
