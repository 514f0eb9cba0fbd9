# tests/test_performance_store.py
from datetime import datetime, timedelta, timezone

import pytest

from models import AnalysisResult, Joke, PerformanceRecord
from storage.performance_store import (
    JsonlPerformanceStore,
    compute_leaderboard,
    compute_session_stats,
    leaderboard_score,
)

JOKE = Joke(id=1, category="Misc", setup="Setup?", punchline="Punchline.")


def _record(session_id: str, similarity: float, latency_ms: int = 100) -> PerformanceRecord:
    analysis = AnalysisResult(
        joke=JOKE,
        predicted_punchline="guess",
        confidence=0.9,
        similarity=similarity,
        latency_ms=latency_ms,
    )
    return PerformanceRecord(session_id=session_id, joke=JOKE, analysis=analysis)


def test_leaderboard_score_formula():
    assert leaderboard_score(3, 50.0) == 800.0


def test_session_stats_average_fields():
    stats = compute_session_stats(
        "s1", [_record("s1", 0.9, 100), _record("s1", 0.1, 300)]
    )
    assert stats.total_jokes == 2
    assert stats.triumphs == 1
    assert stats.triumph_rate == 50.0
    assert stats.average_similarity == pytest.approx(0.5)
    assert stats.average_latency_ms == pytest.approx(200)


def test_session_stats_empty_is_none():
    assert compute_session_stats("s1", []) is None


def test_leaderboard_ranks_by_score():
    records = [
        _record("a", 0.9),
        _record("b", 0.9),
        _record("b", 0.9),
        _record("c", 0.1),
    ]
    board = compute_leaderboard(records, top=2, current_session_id="a")
    assert [entry.session_id for entry in board] == ["b", "a"]
    assert [entry.rank for entry in board] == [1, 2]
    assert board[1].is_current_session
    assert board[0].score == 2 * 100 + 100.0 * 10


@pytest.mark.asyncio
async def test_store_appends_and_reloads(tmp_path):
    store = JsonlPerformanceStore(str(tmp_path / "out" / "perf.jsonl"))
    await store.save(_record("s1", 0.9))
    await store.save(_record("s2", 0.2))

    records = await store.load_all()
    assert len(records) == 2
    assert [r.session_id for r in await store.session_performances("s1")] == ["s1"]
    stats = await store.session_stats("s2")
    assert stats.triumphs == 0
    board = await store.leaderboard()
    assert board[0].session_id == "s1"


@pytest.mark.asyncio
async def test_store_skips_corrupt_lines(tmp_path):
    path = tmp_path / "perf.jsonl"
    store = JsonlPerformanceStore(str(path))
    await store.save(_record("s1", 0.9))
    with open(path, "a", encoding="utf-8") as f:
        f.write("{not json}\n\n")
    assert len(await store.load_all()) == 1


@pytest.mark.asyncio
async def test_missing_file_loads_empty(tmp_path):
    store = JsonlPerformanceStore(str(tmp_path / "none.jsonl"))
    assert await store.load_all() == []
    assert await store.session_stats("nobody") is None


def test_duration_uses_timestamps():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    record = _record("s1", 0.5)
    record = record.model_copy(
        update={"started_at": start, "completed_at": start + timedelta(seconds=2)}
    )
    assert record.duration_ms == 2000
