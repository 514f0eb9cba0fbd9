# tests/orchestration/test_fetch_coordinator.py
import pytest

from core.exceptions import JokeSourceUnavailableError
from models import Joke
from orchestration.fetch_coordinator import FetchRetryCoordinator


def _joke(joke_id: int) -> Joke:
    return Joke(id=joke_id, category="Misc", setup=f"Setup {joke_id}?", punchline="P.")


class ScriptedSource:
    def __init__(self, ids):
        self.ids = list(ids)
        self.calls: list[tuple[bool, set | None]] = []

    async def fetch(self, safe_mode, exclude_ids=None):
        self.calls.append((safe_mode, set(exclude_ids) if exclude_ids else None))
        return _joke(self.ids.pop(0))


@pytest.mark.asyncio
async def test_returns_first_joke_without_exclusions():
    source = ScriptedSource([7])
    joke = await FetchRetryCoordinator(source).fetch(True)
    assert joke.id == 7
    assert source.calls == [(True, None)]


@pytest.mark.asyncio
async def test_skips_excluded_jokes():
    source = ScriptedSource([1, 2, 3])
    joke = await FetchRetryCoordinator(source).fetch(False, [1, 2])
    assert joke.id == 3
    assert len(source.calls) == 3
    assert all(call == (False, {1, 2}) for call in source.calls)


@pytest.mark.asyncio
async def test_falls_back_to_unconstrained_fetch():
    source = ScriptedSource([1] * 6)
    joke = await FetchRetryCoordinator(source, max_retries=5).fetch(True, {1})
    assert joke.id == 1
    assert len(source.calls) == 6
    assert all(call == (True, {1}) for call in source.calls[:5])
    assert source.calls[-1] == (True, None)


@pytest.mark.asyncio
async def test_zero_retries_goes_straight_to_fallback():
    source = ScriptedSource([5])
    joke = await FetchRetryCoordinator(source, max_retries=0).fetch(True, {5})
    assert joke.id == 5
    assert source.calls == [(True, None)]


@pytest.mark.asyncio
async def test_transport_errors_propagate():
    class DownSource:
        async def fetch(self, safe_mode, exclude_ids=None):
            raise JokeSourceUnavailableError("offline")

    with pytest.raises(JokeSourceUnavailableError):
        await FetchRetryCoordinator(DownSource()).fetch(True)
