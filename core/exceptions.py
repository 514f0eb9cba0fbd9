# core/exceptions.py
"""Error taxonomy for the Digital Jester."""

from __future__ import annotations

_CONTENT_FILTER_MESSAGES = {
    "hate": "The Court forbids such hateful speech! The Jester must hold his tongue.",
    "violence": "The Court forbids tales of violence! The Jester retreats in silence.",
    "sexual": "The Court deems this too bawdy! The Jester blushes and falls silent.",
    "self_harm": "The Court protects all in the realm! The Jester chooses kinder words.",
}
_DEFAULT_CONTENT_FILTER_MESSAGE = (
    "The Court forbids this tongue! The Jester has been silenced by royal decree."
)


class JesterError(Exception):
    """Base class for all Digital Jester errors."""


class TransportError(JesterError):
    """The joke source or network could not be reached."""


class JokeSourceUnavailableError(TransportError):
    """JokeAPI stayed unreachable after the client exhausted its retries."""


class JokeSourceError(JesterError):
    """The joke source answered, but with an error or an unusable joke."""


class PredictorError(JesterError):
    """The punchline predictor failed for a reason other than content policy."""


class ContentPolicyError(JesterError):
    """The predictor refused to answer because of content filtering."""

    def __init__(
        self,
        message: str = "The Court forbids this tongue! The Jester has been silenced.",
        category: str | None = None,
        severity: str | None = None,
        joke_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.joke_id = joke_id

    @classmethod
    def from_content_filter(
        cls,
        category: str | None = None,
        severity: str | None = None,
        joke_id: int | None = None,
    ) -> ContentPolicyError:
        message = _CONTENT_FILTER_MESSAGES.get(
            category or "", _DEFAULT_CONTENT_FILTER_MESSAGE
        )
        return cls(message, category=category, severity=severity, joke_id=joke_id)
