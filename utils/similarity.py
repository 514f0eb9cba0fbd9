"""Punchline similarity scoring.

Combines a character-level edit similarity with word-level Jaccard overlap so
that close paraphrases score well while partial word agreement still counts.
"""

from __future__ import annotations

import re
from typing import NamedTuple

import structlog
from rapidfuzz.distance import Levenshtein

logger = structlog.get_logger(__name__)

EDIT_WEIGHT = 0.55
TOKEN_WEIGHT = 0.45
TRIUMPH_THRESHOLD = 0.55

_TOKEN_SPLIT_RE = re.compile(r"[\s.!?,]+")


class SimilarityScore(NamedTuple):
    similarity: float
    is_exact_match: bool


def tokenize(text: str) -> list[str]:
    """Lower-case ``text`` and split it on whitespace and ``. ! ? ,``."""
    return [tok for tok in _TOKEN_SPLIT_RE.split(text.lower()) if tok]


def edit_similarity(a: str, b: str) -> float:
    """Return ``1 - levenshtein(a, b) / max(len(a), len(b))``."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - Levenshtein.distance(a, b) / max_len


def token_overlap_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the token sets of ``a`` and ``b``."""
    tokens_a = set(tokenize(a))
    tokens_b = set(tokenize(b))
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def score_similarity(actual: str | None, predicted: str | None) -> SimilarityScore:
    """Score how close ``predicted`` is to ``actual`` on a 0..1 scale."""
    if not actual or not actual.strip() or not predicted or not predicted.strip():
        return SimilarityScore(0.0, False)

    actual_lower = actual.lower()
    predicted_lower = predicted.lower()
    if actual_lower == predicted_lower or tokenize(actual_lower) == tokenize(
        predicted_lower
    ):
        return SimilarityScore(1.0, True)

    edit = edit_similarity(actual_lower, predicted_lower)
    overlap = token_overlap_similarity(actual_lower, predicted_lower)
    similarity = EDIT_WEIGHT * edit + TOKEN_WEIGHT * overlap
    logger.debug(
        "Scored punchline similarity",
        edit_similarity=round(edit, 4),
        token_overlap=round(overlap, 4),
        similarity=round(similarity, 4),
    )
    return SimilarityScore(min(max(similarity, 0.0), 1.0), False)


def is_triumph(similarity: float, content_filtered: bool = False) -> bool:
    """A guess triumphs when it is close enough and was not a filter fallback."""
    return similarity >= TRIUMPH_THRESHOLD and not content_filtered
