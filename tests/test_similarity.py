# tests/test_similarity.py
import pytest

from utils.similarity import (
    TRIUMPH_THRESHOLD,
    edit_similarity,
    is_triumph,
    score_similarity,
    token_overlap_similarity,
    tokenize,
)


def test_identical_strings_score_one():
    result = score_similarity("Because light attracts bugs", "Because light attracts bugs")
    assert result.similarity == 1.0
    assert result.is_exact_match


def test_score_is_case_insensitive():
    result = score_similarity("Because LIGHT attracts BUGS", "because light attracts bugs")
    assert result.similarity == 1.0


def test_score_ignores_punctuation():
    result = score_similarity("Because, light attracts bugs!", "Because light attracts bugs")
    assert result.similarity == 1.0
    assert result.is_exact_match


@pytest.mark.parametrize(
    "actual, predicted",
    [("", "test"), ("test", ""), ("   ", "test"), ("test", " \t"), (None, "test")],
)
def test_empty_input_scores_zero(actual, predicted):
    result = score_similarity(actual, predicted)
    assert result.similarity == 0.0
    assert not result.is_exact_match


def test_token_overlap_is_jaccard():
    assert token_overlap_similarity("the cat sat", "the dog sat") == pytest.approx(0.5)


def test_token_overlap_empty_token_set_is_zero():
    assert token_overlap_similarity("...", "the dog") == 0.0


def test_tokenize_splits_on_whitespace_and_punctuation():
    assert tokenize("Hello, World!  Why?so.") == ["hello", "world", "why", "so"]


def test_edit_similarity_uses_levenshtein():
    # kitten -> sitting needs three edits over seven characters
    assert edit_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)


def test_combined_score_weights_both_measures():
    result = score_similarity("the cat sat", "the dog sat")
    expected = 0.55 * (1 - 3 / 11) + 0.45 * 0.5
    assert result.similarity == pytest.approx(expected)
    assert not result.is_exact_match


def test_completely_different_strings_score_low():
    result = score_similarity("Because light attracts bugs", "Hello world")
    assert result.similarity < 0.3


def test_partial_overlap_scores_moderately():
    result = score_similarity("Because light attracts bugs", "Because bugs attract light")
    assert 0.3 < result.similarity < 1.0


def test_score_is_symmetric_for_equal_length_inputs():
    a, b = "the cat sat", "the dog sat"
    assert score_similarity(a, b).similarity == pytest.approx(
        score_similarity(b, a).similarity, abs=1e-9
    )


def test_score_stays_within_bounds():
    result = score_similarity("a", "completely unrelated and much longer text")
    assert 0.0 <= result.similarity <= 1.0


def test_triumph_threshold_boundary():
    assert TRIUMPH_THRESHOLD == 0.55
    assert is_triumph(0.55)
    assert not is_triumph(0.549)


def test_content_filtered_never_triumphs():
    assert not is_triumph(1.0, content_filtered=True)
