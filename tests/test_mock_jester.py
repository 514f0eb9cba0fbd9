# tests/test_mock_jester.py
import random

import pytest

from core.mock_jester import MOCK_PUNCHLINES, MockJester
from models import Joke


@pytest.mark.asyncio
async def test_mock_prediction_is_canned():
    jester = MockJester(rng=random.Random(1), min_delay=0, max_delay=0)
    prediction = await jester.predict("Why did the chicken cross the road?")
    assert prediction.text in MOCK_PUNCHLINES
    assert not prediction.is_content_filtered
    assert prediction.confidence == 0.9


@pytest.mark.asyncio
async def test_mock_rating_is_in_range():
    jester = MockJester(rng=random.Random(2), min_delay=0, max_delay=0)
    joke = Joke(id=1, category="Misc", setup="Setup?", punchline="Punchline.")
    rating = await jester.rate(joke)
    for value in (rating.cleverness, rating.complexity, rating.difficulty):
        assert 1 <= value <= 10
    assert 1 <= rating.rudeness <= 4
