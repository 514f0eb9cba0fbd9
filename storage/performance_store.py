# storage/performance_store.py
"""Durable record of performances, with session stats and a leaderboard."""

from __future__ import annotations

import asyncio
import os
from typing import Protocol

import numpy as np
import structlog
from pydantic import ValidationError

from config import settings
from models import LeaderboardEntry, PerformanceRecord, SessionStats

logger = structlog.get_logger(__name__)


class PerformanceStore(Protocol):
    async def save(self, record: PerformanceRecord) -> None: ...


def leaderboard_score(triumphs: int, triumph_rate: float) -> float:
    return triumphs * 100 + triumph_rate * 10


def compute_session_stats(
    session_id: str, records: list[PerformanceRecord]
) -> SessionStats | None:
    if not records:
        return None
    return SessionStats(
        session_id=session_id,
        total_jokes=len(records),
        triumphs=sum(1 for r in records if r.is_triumph),
        average_confidence=float(np.mean([r.analysis.confidence for r in records])),
        average_similarity=float(np.mean([r.analysis.similarity for r in records])),
        average_latency_ms=float(np.mean([r.analysis.latency_ms for r in records])),
        started_at=min(r.started_at for r in records),
    )


def compute_leaderboard(
    records: list[PerformanceRecord],
    top: int = 10,
    current_session_id: str | None = None,
) -> list[LeaderboardEntry]:
    """Rank sessions by ``triumphs * 100 + triumph_rate * 10``."""
    by_session: dict[str, list[PerformanceRecord]] = {}
    for record in records:
        by_session.setdefault(record.session_id, []).append(record)

    entries = []
    for session_id, session_records in by_session.items():
        stats = compute_session_stats(session_id, session_records)
        if stats is None:
            continue
        entries.append(
            LeaderboardEntry(
                session_id=session_id,
                total_jokes=stats.total_jokes,
                triumphs=stats.triumphs,
                triumph_rate=stats.triumph_rate,
                score=leaderboard_score(stats.triumphs, stats.triumph_rate),
                completed_at=max(r.completed_at for r in session_records),
                is_current_session=session_id == current_session_id,
            )
        )

    entries.sort(key=lambda e: e.score, reverse=True)
    ranked = entries[: max(top, 0)]
    for index, entry in enumerate(ranked, start=1):
        entry.rank = index
    return ranked


class JsonlPerformanceStore:
    """Append performance records to a JSON-lines file."""

    def __init__(self, file_path: str | None = None) -> None:
        self.file_path = file_path or os.path.join(
            settings.STORAGE_DIR, settings.PERFORMANCES_FILE
        )
        directory = os.path.dirname(self.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._lock = asyncio.Lock()

    async def save(self, record: PerformanceRecord) -> None:
        async with self._lock:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._append_sync, record.model_dump_json())
        logger.debug(
            "Saved performance",
            performance_id=str(record.id),
            session_id=record.session_id,
        )

    def _append_sync(self, line: str) -> None:
        with open(self.file_path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def _load_sync(self) -> list[PerformanceRecord]:
        if not os.path.exists(self.file_path):
            return []
        records = []
        with open(self.file_path, encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    records.append(PerformanceRecord.model_validate_json(line))
                except ValidationError as e:
                    logger.warning(
                        "Skipping unreadable performance record",
                        file_path=self.file_path,
                        line_number=line_number,
                        error=str(e),
                    )
        return records

    async def load_all(self) -> list[PerformanceRecord]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._load_sync)

    async def session_performances(self, session_id: str) -> list[PerformanceRecord]:
        return [r for r in await self.load_all() if r.session_id == session_id]

    async def session_stats(self, session_id: str) -> SessionStats | None:
        return compute_session_stats(
            session_id, await self.session_performances(session_id)
        )

    async def leaderboard(
        self, top: int = 10, current_session_id: str | None = None
    ) -> list[LeaderboardEntry]:
        return compute_leaderboard(await self.load_all(), top, current_session_id)
