from __future__ import annotations

import pytest

from releasepick.matching import penalties
from releasepick.matching.penalties import (
    apply_penalty,
    combine_penalties,
    evaluate_penalties,
    title_penalty,
)
from releasepick.matching.types import Candidate, MatchQuery


def test_title_penalty_only_applies_below_similarity_floor() -> None:
    assert title_penalty("Scene A", "Scene A") == 0.0
    assert title_penalty("Scene Alpha", "Scene Alpine") == 0.0
    assert title_penalty("abc", "xyz") == pytest.approx(0.5)


def test_title_penalty_ignores_missing_titles() -> None:
    assert title_penalty("", "Scene A") == 0.0
    assert title_penalty("Scene A", "") == 0.0


def test_combine_penalties_takes_maximum_not_sum() -> None:
    assert combine_penalties([0.2, 0.5]) == 0.5
    assert combine_penalties([0.3, 0.3]) == 0.3
    assert combine_penalties([]) == 0.0


def test_apply_penalty_scales_by_combined_penalty() -> None:
    assert apply_penalty(0.8, {"performer": 0.5, "title": 0.25}) == pytest.approx(0.4)
    assert apply_penalty(0.8, {}) == pytest.approx(0.8)


def test_contributors_are_named_and_ordered() -> None:
    assert [c.name for c in penalties.PAIR_CONTRIBUTORS] == ["performer"]
    assert [c.name for c in penalties.BATCH_CONTRIBUTORS] == ["performer", "title"]


def test_penalties_skip_pairs_without_performer_information() -> None:
    with_performer = MatchQuery(title="Scene A", performer="Jade Harper")
    without_performer = MatchQuery(title="Scene A")
    bare = Candidate(id="1", title="Other")
    cast = Candidate(id="2", title="Other", performers=("Jada Harper",))

    assert evaluate_penalties(without_performer, cast, penalties.BATCH_CONTRIBUTORS) == {}
    assert evaluate_penalties(with_performer, bare, penalties.BATCH_CONTRIBUTORS) == {}


def test_evaluate_penalties_reports_each_contributor() -> None:
    query = MatchQuery(title="abc", performer="Jade Harper")
    candidate = Candidate(id="1", title="xyz", performers=("Jade Harper",))

    result = evaluate_penalties(query, candidate, penalties.BATCH_CONTRIBUTORS)

    assert result == {"performer": 0.0, "title": pytest.approx(0.5)}
    assert combine_penalties(result.values()) == pytest.approx(0.5)
