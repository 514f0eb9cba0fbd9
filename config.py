# config.py
"""Configuration settings for the Digital Jester performance loop.
Uses Pydantic BaseSettings for automatic environment variable loading.
"""

from __future__ import annotations

import structlog
from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = structlog.get_logger()


class JesterSettings(BaseSettings):
    """Full configuration for the Digital Jester."""

    # Joke source (JokeAPI v2)
    JOKE_API_BASE: str = "https://v2.jokeapi.dev/joke"
    JOKE_API_TIMEOUT: float = 10.0
    JOKE_SOURCE_RETRY_ATTEMPTS: int = 3
    JOKE_SOURCE_RETRY_DELAY_SECONDS: float = 1.0

    # Punchline predictor (OpenAI-compatible chat completions)
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_API_KEY: str = ""
    JESTER_MODEL: str = "gpt-4.1-nano"
    JESTER_TEMPERATURE: float = 0.7
    JESTER_MAX_TOKENS: int = 60
    PREDICTOR_TIMEOUT: float = 15.0
    USE_MOCK_JESTER: bool = False

    # Performance behaviour
    SAFE_MODE: bool = True
    AUDIO_ENABLED: bool = True
    SEEN_JOKE_LOOKBACK: int = 50
    FETCH_MAX_RETRIES: int = 5

    # Dwell and backoff timings (seconds)
    SETUP_DWELL_SECONDS: float = 3.0
    GUESS_HOLD_SECONDS: float = 2.0
    DRUMROLL_SECONDS: float = 2.0
    REVEAL_DWELL_SECONDS: float = 3.0
    PUNCHLINE_NARRATION_DELAY_SECONDS: float = 0.5
    TRANSITION_PAUSE_SECONDS: float = 1.0
    ERROR_BACKOFF_SECONDS: float = 3.0
    NETWORK_RETRY_DELAY_SECONDS: float = 1.0
    # When set, the network overlay clears itself after this many seconds.
    NETWORK_AUTO_RETRY_SECONDS: float | None = None
    # How long stop() waits for an in-flight act before cancelling the loop.
    STOP_GRACE_SECONDS: float | None = 2.0

    # Narration
    SETUP_SPEECH_RATE: float = 0.9
    SETUP_SPEECH_PITCH: float = 1.1
    GUESS_SPEECH_RATE: float = 0.9
    PUNCHLINE_SPEECH_RATE: float = 0.85
    DEFAULT_SPEECH_PITCH: float = 1.0

    # Storage
    STORAGE_DIR: str = "jester_output"
    PERFORMANCES_FILE: str = "performances.jsonl"
    ENABLE_PERFORMANCE_STORE: bool = True

    # Logging & UI
    LOG_LEVEL_STR: str = Field("INFO", alias="JESTER_LOG_LEVEL")
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    LOG_FILE: str | None = "jester_run.log"
    ENABLE_RICH_PROGRESS: bool = True

    @model_validator(mode="after")
    def validate_ranges(self) -> JesterSettings:
        for name in (
            "SETUP_SPEECH_RATE",
            "SETUP_SPEECH_PITCH",
            "GUESS_SPEECH_RATE",
            "PUNCHLINE_SPEECH_RATE",
            "DEFAULT_SPEECH_PITCH",
        ):
            value = getattr(self, name)
            if not 0.5 <= value <= 2.0:
                raise ValueError(f"{name} must be between 0.5 and 2.0, got {value}")
        if self.SEEN_JOKE_LOOKBACK < 1:
            raise ValueError("SEEN_JOKE_LOOKBACK must be at least 1")
        if self.FETCH_MAX_RETRIES < 0:
            raise ValueError("FETCH_MAX_RETRIES must not be negative")
        if not self.USE_MOCK_JESTER and not self.OPENAI_API_KEY:
            logger.warning(
                "OPENAI_API_KEY is empty; set USE_MOCK_JESTER=true to run offline."
            )
        return self

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", populate_by_name=True, extra="ignore"
    )


settings = JesterSettings()
