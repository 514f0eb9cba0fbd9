# tests/test_llm_interface.py
import json

import httpx
import pytest

from core.exceptions import ContentPolicyError, PredictorError
from core.llm_interface import (
    CONTENT_FILTER_FALLBACK,
    OpenAIJester,
    clean_model_response,
    extract_score,
)
from models import Joke


def _completion(content: str, finish_reason: str = "stop") -> dict:
    return {
        "choices": [
            {
                "message": {"role": "assistant", "content": content},
                "finish_reason": finish_reason,
            }
        ]
    }


def _jester(handler) -> OpenAIJester:
    return OpenAIJester(
        api_base="https://llm.test/v1",
        api_key="test-key",
        model="test-model",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


JOKE = Joke(
    id=9,
    category="Programming",
    setup="Why do programmers prefer dark mode?",
    punchline="Because light attracts bugs.",
)


@pytest.mark.asyncio
async def test_predict_returns_cleaned_text():
    requests: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(200, json=_completion('"Because light attracts bugs!"'))

    jester = _jester(handler)
    prediction = await jester.predict(JOKE.setup)
    await jester.aclose()

    assert prediction.text == "Because light attracts bugs!"
    assert not prediction.is_content_filtered
    assert prediction.confidence == 0.9
    assert requests[0]["model"] == "test-model"
    assert "max_tokens" in requests[0]


@pytest.mark.asyncio
async def test_filtered_finish_reason_returns_fallback():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion("", "content_filter"))

    prediction = await _jester(handler).predict(JOKE.setup)
    assert prediction.is_content_filtered
    assert prediction.text == CONTENT_FILTER_FALLBACK
    assert prediction.confidence == 0.5


@pytest.mark.asyncio
async def test_content_filter_error_raises_policy_error():
    body = {
        "error": {
            "code": "content_filter",
            "message": "filtered",
            "innererror": {
                "content_filter_result": {
                    "hate": {"filtered": False, "severity": "safe"},
                    "violence": {"filtered": True, "severity": "medium"},
                }
            },
        }
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json=body)

    with pytest.raises(ContentPolicyError) as excinfo:
        await _jester(handler).predict(JOKE.setup, joke_id=9)
    assert excinfo.value.category == "violence"
    assert excinfo.value.severity == "medium"
    assert excinfo.value.joke_id == 9
    assert "violence" in str(excinfo.value)


@pytest.mark.asyncio
async def test_other_http_errors_raise_predictor_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(PredictorError):
        await _jester(handler).predict(JOKE.setup)


@pytest.mark.asyncio
async def test_empty_setup_is_rejected():
    jester = _jester(lambda request: httpx.Response(200, json=_completion("x")))
    with pytest.raises(PredictorError):
        await jester.predict("   ")


@pytest.mark.asyncio
async def test_rate_parses_scores():
    reply = "originality: 0.8\ncleverness: 0.6\nhumor: 0.3"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion(reply))

    rating = await _jester(handler).rate(JOKE)
    assert rating.cleverness == 6
    assert rating.complexity == 8
    assert rating.difficulty == 3
    assert rating.rudeness == 1


@pytest.mark.asyncio
async def test_rate_defaults_missing_scores():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion("I cannot rate this."))

    rating = await _jester(handler).rate(JOKE)
    assert (rating.cleverness, rating.complexity, rating.difficulty) == (5, 5, 5)


def test_clean_model_response_strips_think_blocks():
    assert clean_model_response("<think>hmm</think> 'Bugs!'") == "Bugs!"


def test_extract_score_clamps():
    assert extract_score("Humor: 1.7", "humor") == 1.0
    assert extract_score("humor: lots", "humor") is None
