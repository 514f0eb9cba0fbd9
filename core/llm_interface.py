# core/llm_interface.py
"""
Handles all direct interactions with the punchline-predicting LLM.
Talks to an OpenAI-compatible chat completions endpoint, turns content
filter outcomes into fallbacks or typed errors, and parses joke ratings.
"""

import json
import re
from collections.abc import Iterable
from typing import Any, Protocol

import httpx
import structlog

from config import settings
from core.exceptions import ContentPolicyError, PredictorError
from models import Joke, Prediction, Rating

logger = structlog.get_logger(__name__)

JESTER_SYSTEM_PROMPT = (
    "You are a Digital Jester - an AI that tries to predict punchlines to jokes.\n"
    "Given a joke setup, you must predict what the punchline will be.\n"
    "Be creative and funny, but try to guess the actual punchline.\n"
    "Respond with ONLY the punchline, nothing else. No explanations, "
    'no "I think", just the punchline itself.\n'
    "Keep your response short and punchy."
)

RATING_SYSTEM_PROMPT = (
    "Rate this joke on a scale of 0.0 to 1.0 for:\n"
    "- Originality: How unique and creative is it?\n"
    "- Cleverness: How smart or witty is the wordplay?\n"
    "- Humor: How funny is it overall?\n\n"
    "Respond in this exact format (just numbers, no text):\n"
    "originality: 0.X\n"
    "cleverness: 0.X\n"
    "humor: 0.X"
)

CONTENT_FILTER_FALLBACK = (
    "[The Jester shrugs and delivers a safe, court-approved punchline.]"
)
RATING_COMMENTARY = "Rated by the Digital Jester's discerning wit."

_THINK_BLOCK_RE = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)


class PunchlinePredictor(Protocol):
    async def predict(self, setup: str) -> Prediction: ...


class JokeRater(Protocol):
    async def rate(self, joke: Joke) -> Rating: ...


def _completion_token_param(api_base: str) -> str:
    """Return the token count parameter expected by the provider."""
    if "api.openai.com" in api_base:
        return "max_completion_tokens"
    return "max_tokens"


def clean_model_response(text: str) -> str:
    """Strip reasoning blocks and wrapping quotes from a model reply."""
    cleaned = _THINK_BLOCK_RE.sub("", text or "").strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "\"'":
        cleaned = cleaned[1:-1].strip()
    return cleaned


def extract_score(text: str, key: str) -> float | None:
    """Find ``key: value`` in a rating reply and clamp the value to [0, 1]."""
    for line in text.splitlines():
        if key in line.lower():
            parts = line.split(":", 1)
            if len(parts) > 1:
                try:
                    return min(max(float(parts[1].strip()), 0.0), 1.0)
                except ValueError:
                    continue
    return None


def _to_ten_scale(value: float | None) -> int:
    scaled = round((0.5 if value is None else value) * 10)
    return min(max(scaled, 1), 10)


def _content_filter_category(error_body: dict[str, Any]) -> tuple[str | None, str | None]:
    """Pick the first filtered category (and its severity) from an error body."""
    results = (
        error_body.get("innererror", {}).get("content_filter_result")
        or error_body.get("content_filter_result")
        or {}
    )
    for category, detail in results.items():
        if isinstance(detail, dict) and detail.get("filtered"):
            return category, detail.get("severity")
    return None, None


class OpenAIJester:
    """Punchline predictor and joke rater backed by a chat completions API."""

    def __init__(
        self,
        api_base: str = settings.OPENAI_API_BASE,
        api_key: str = settings.OPENAI_API_KEY,
        model: str = settings.JESTER_MODEL,
        timeout: float = settings.PREDICTOR_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.api_key = api_key
        self.model = model
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self.request_count = 0
        logger.info(f"OpenAIJester initialized for model '{self.model}'.")

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _chat(
        self, messages: Iterable[dict[str, str]], joke_id: int | None = None
    ) -> tuple[str, str | None]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": list(messages),
            "temperature": settings.JESTER_TEMPERATURE,
            _completion_token_param(self.api_base): settings.JESTER_MAX_TOKENS,
            "stream": False,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        self.request_count += 1
        try:
            response = await self._client.post(
                f"{self.api_base}/chat/completions", json=payload, headers=headers
            )
        except httpx.RequestError as e_req:
            raise PredictorError(f"Chat completion request failed: {e_req}") from e_req

        if response.status_code >= 400:
            self._raise_for_error(response, joke_id)

        try:
            data = response.json()
        except json.JSONDecodeError as e_json:
            raise PredictorError(f"Chat completion returned invalid JSON: {e_json}") from e_json

        choices = data.get("choices") or []
        if not choices:
            raise PredictorError(f"Chat completion response missing choices: {data}")
        choice = choices[0]
        content = (choice.get("message") or {}).get("content") or ""
        return content, choice.get("finish_reason")

    def _raise_for_error(self, response: httpx.Response, joke_id: int | None) -> None:
        try:
            error_body = response.json().get("error") or {}
        except (json.JSONDecodeError, AttributeError):
            error_body = {}
        if error_body.get("code") == "content_filter":
            category, severity = _content_filter_category(error_body)
            logger.warning(
                "Content filter blocked the jester",
                joke_id=joke_id,
                category=category,
                severity=severity,
            )
            raise ContentPolicyError.from_content_filter(category, severity, joke_id)
        raise PredictorError(
            f"Chat completion failed with HTTP {response.status_code}: {response.text[:200]}"
        )

    async def predict(self, setup: str, joke_id: int | None = None) -> Prediction:
        if not setup or not setup.strip():
            raise PredictorError("Cannot predict a punchline for an empty setup.")
        messages = [
            {"role": "system", "content": JESTER_SYSTEM_PROMPT},
            {"role": "user", "content": f'Joke setup: "{setup}"'},
        ]
        text, finish_reason = await self._chat(messages, joke_id)
        if finish_reason == "content_filter":
            logger.warning(
                "Content filter triggered, returning fallback punchline.",
                joke_id=joke_id,
            )
            return Prediction(
                text=CONTENT_FILTER_FALLBACK,
                is_content_filtered=True,
                finish_reason=finish_reason,
            )
        return Prediction(text=clean_model_response(text), finish_reason=finish_reason)

    async def rate(self, joke: Joke) -> Rating:
        messages = [
            {"role": "system", "content": RATING_SYSTEM_PROMPT},
            {"role": "user", "content": f'Joke: "{joke.setup}" -> "{joke.punchline}"'},
        ]
        text, finish_reason = await self._chat(messages, joke.id)
        if finish_reason == "content_filter":
            logger.warning(
                "Content filter triggered while rating, returning neutral scores.",
                joke_id=joke.id,
            )
            return Rating(
                cleverness=5,
                rudeness=1,
                complexity=5,
                difficulty=5,
                commentary=f"{RATING_COMMENTARY} (Filtered)",
            )
        return Rating(
            cleverness=_to_ten_scale(extract_score(text, "cleverness")),
            rudeness=1,
            complexity=_to_ten_scale(extract_score(text, "originality")),
            difficulty=_to_ten_scale(extract_score(text, "humor")),
            commentary=RATING_COMMENTARY,
        )

