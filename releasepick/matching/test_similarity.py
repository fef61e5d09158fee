from __future__ import annotations

import pytest

from releasepick.matching.similarity import (
    levenshtein_distance,
    normalize_title,
    similarity,
    title_match_score,
)


def test_levenshtein_distance_counts_unit_edits() -> None:
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_similarity_is_one_for_two_empty_strings() -> None:
    assert similarity("", "") == 1.0


def test_similarity_scales_distance_by_longer_length() -> None:
    assert similarity("jade harper", "jada harper") == pytest.approx(10 / 11)
    assert similarity("abc", "") == 0.0
    assert similarity("abc", "xyz") == 0.0


def test_similarity_is_symmetric() -> None:
    assert similarity("scene a", "scene abc") == similarity("scene abc", "scene a")


def test_normalize_title_strips_punctuation_and_collapses_whitespace() -> None:
    assert normalize_title("  The Scene:  Part 1! ") == "the scene part 1"


def test_title_match_score_is_a_bounded_integer() -> None:
    assert title_match_score("Scene A!", "scene a") == 100
    assert title_match_score("abc", "xyz") == 0
    score = title_match_score("Scene Alpha", "Scene Alpine")
    assert isinstance(score, int)
    assert 0 < score < 100
