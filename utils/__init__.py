# utils/__init__.py
"""General utility functions for the Digital Jester."""

from .similarity import (
    TRIUMPH_THRESHOLD,
    SimilarityScore,
    edit_similarity,
    is_triumph,
    score_similarity,
    token_overlap_similarity,
    tokenize,
)

__all__ = [
    "TRIUMPH_THRESHOLD",
    "SimilarityScore",
    "edit_similarity",
    "is_triumph",
    "score_similarity",
    "token_overlap_similarity",
    "tokenize",
]
