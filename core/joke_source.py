# core/joke_source.py
"""Joke source contract and the JokeAPI v2 client that implements it."""

from __future__ import annotations

import asyncio
import json
import random
from collections.abc import Iterable
from typing import Any, Protocol

import httpx
import structlog
from pydantic import ValidationError

from config import settings
from core.exceptions import JokeSourceError, JokeSourceUnavailableError
from models import Joke, JokeFlags

logger = structlog.get_logger(__name__)


class JokeSource(Protocol):
    async def fetch(
        self, safe_mode: bool, exclude_ids: Iterable[int] | None = None
    ) -> Joke: ...


def _is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code == 429


class JokeApiClient:
    """Fetch jokes from JokeAPI.

    JokeAPI cannot exclude specific ids server-side, so ``exclude_ids`` is
    accepted for the contract and filtered by the caller.
    """

    def __init__(
        self,
        base_url: str = settings.JOKE_API_BASE,
        timeout: float = settings.JOKE_API_TIMEOUT,
        retry_attempts: int = settings.JOKE_SOURCE_RETRY_ATTEMPTS,
        retry_delay: float = settings.JOKE_SOURCE_RETRY_DELAY_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self.request_count = 0

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _backoff_delay(self, attempt: int) -> None:
        delay = self.retry_delay * (2**attempt)
        jitter = random.uniform(0, delay / 2) if delay else 0.0
        await asyncio.sleep(delay + jitter)

    def build_params(self, safe_mode: bool) -> dict[str, str]:
        params = {"type": "twopart"}
        if safe_mode:
            params["safe-mode"] = ""
        return params

    async def fetch(
        self, safe_mode: bool, exclude_ids: Iterable[int] | None = None
    ) -> Joke:
        url = f"{self.base_url}/Any"
        params = self.build_params(safe_mode)
        logger.debug("Fetching joke", url=url, safe_mode=safe_mode)

        last_exception: Exception | None = None
        for attempt in range(self.retry_attempts):
            try:
                self.request_count += 1
                response = await self._client.get(url, params=params)
                response.raise_for_status()
                data = response.json()
                return self.parse_joke(data, safe_mode)
            except httpx.TimeoutException as e_timeout:
                last_exception = e_timeout
                logger.warning(
                    f"JokeAPI (Attempt {attempt + 1}/{self.retry_attempts}): Request timed out: {e_timeout}"
                )
            except httpx.HTTPStatusError as e_status:
                last_exception = e_status
                status_code = e_status.response.status_code
                logger.warning(
                    f"JokeAPI (Attempt {attempt + 1}/{self.retry_attempts}): HTTP status {status_code}"
                )
                if not _is_retryable_status(status_code):
                    raise JokeSourceError(
                        f"JokeAPI rejected the request with status {status_code}"
                    ) from e_status
            except httpx.RequestError as e_req:
                last_exception = e_req
                logger.warning(
                    f"JokeAPI (Attempt {attempt + 1}/{self.retry_attempts}): Request error: {e_req}"
                )
            except json.JSONDecodeError as e_json:
                raise JokeSourceError(f"JokeAPI returned invalid JSON: {e_json}") from e_json

            if attempt < self.retry_attempts - 1:
                await self._backoff_delay(attempt)

        logger.error(
            f"JokeAPI: All {self.retry_attempts} attempts failed. Last error: {last_exception}"
        )
        raise JokeSourceUnavailableError(
            f"JokeAPI unreachable: {last_exception}"
        ) from last_exception

    @staticmethod
    def parse_joke(data: dict[str, Any], safe_mode: bool) -> Joke:
        """Convert a JokeAPI payload into a :class:`Joke`."""
        if not isinstance(data, dict) or data.get("error"):
            message = data.get("message") if isinstance(data, dict) else None
            raise JokeSourceError(f"JokeAPI returned error: {message or 'Unknown error'}")

        raw_flags = data.get("flags") or {}
        kind = data.get("type") or "twopart"
        try:
            return Joke(
                id=data.get("id", 0),
                category=data.get("category") or "Unknown",
                kind=kind,
                setup=(data.get("setup") if kind == "twopart" else data.get("joke")) or "",
                punchline=(data.get("delivery") if kind == "twopart" else "") or "",
                flags=JokeFlags(
                    **{
                        key: bool(raw_flags.get(key, False))
                        for key in JokeFlags.model_fields
                    }
                ),
                safe_mode=safe_mode,
            )
        except ValidationError as e:
            raise JokeSourceError(f"JokeAPI returned a malformed joke: {e}") from e
