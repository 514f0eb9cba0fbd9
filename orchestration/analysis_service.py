# orchestration/analysis_service.py
"""Turn a joke into an AnalysisResult: predict, score, rate, record."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone

import structlog

from core.llm_interface import JokeRater, PunchlinePredictor
from models import AnalysisResult, Joke, PerformanceRecord, Prediction, Rating
from storage.performance_store import PerformanceStore
from utils.similarity import score_similarity

logger = structlog.get_logger(__name__)


class AnalysisService:
    def __init__(
        self,
        predictor: PunchlinePredictor,
        rater: JokeRater | None = None,
        store: PerformanceStore | None = None,
    ) -> None:
        self.predictor = predictor
        self.rater = rater
        self.store = store

    async def _timed_predict(self, joke: Joke) -> tuple[Prediction, int]:
        start = time.perf_counter()
        prediction = await self.predictor.predict(joke.display_text)
        latency_ms = int((time.perf_counter() - start) * 1000)
        return prediction, max(latency_ms, 0)

    async def _safe_rate(self, joke: Joke) -> Rating | None:
        if self.rater is None:
            return None
        try:
            return await self.rater.rate(joke)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Rating failed; continuing without it", joke_id=joke.id, error=str(exc))
            return None

    async def analyze(
        self,
        joke: Joke,
        session_id: str,
        sequence_number: int = 1,
        started_at: datetime | None = None,
    ) -> AnalysisResult:
        """Have the jester guess ``joke``'s punchline and score the guess.

        ``ContentPolicyError`` from the predictor propagates; rating and
        storage failures are logged and do not affect the result.
        """
        started_at = started_at or datetime.now(timezone.utc)
        logger.info("Analyzing joke", joke_id=joke.id, session_id=session_id)

        (prediction, latency_ms), rating = await asyncio.gather(
            self._timed_predict(joke), self._safe_rate(joke)
        )
        score = score_similarity(joke.answer_text, prediction.text)
        result = AnalysisResult(
            joke=joke,
            predicted_punchline=prediction.text,
            confidence=prediction.confidence,
            similarity=score.similarity,
            is_content_filtered=prediction.is_content_filtered,
            latency_ms=latency_ms,
            rating=rating,
        )

        if self.store is not None:
            record = PerformanceRecord(
                session_id=session_id,
                sequence_number=sequence_number,
                joke=joke,
                analysis=result,
                started_at=started_at,
            )
            try:
                await self.store.save(record)
            except Exception as exc:
                logger.warning(
                    "Failed to save performance; leaderboard may be incomplete",
                    performance_id=str(record.id),
                    error=str(exc),
                )

        logger.info(
            "Analysis complete",
            joke_id=joke.id,
            is_triumph=result.is_triumph,
            similarity=round(result.similarity, 3),
            confidence=result.confidence,
            latency_ms=result.latency_ms,
            average_rating=rating.average if rating else None,
        )
        return result
