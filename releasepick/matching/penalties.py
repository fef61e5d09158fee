"""Heuristic penalty contributors and the reducer that combines them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Sequence

from releasepick.matching.name_match import performer_penalty
from releasepick.matching.similarity import similarity
from releasepick.matching.types import Candidate, MatchQuery

TITLE_SIMILARITY_FLOOR = 0.3
TITLE_PENALTY_WEIGHT = 0.5


@dataclass(frozen=True)
class PenaltyContributor:
    """Named heuristic returning a penalty in [0, 1] for one query/candidate pair."""

    name: str
    compute: Callable[[MatchQuery, Candidate], float]

    def __call__(self, query: MatchQuery, candidate: Candidate) -> float:
        return self.compute(query, candidate)


def title_penalty(query_title: str, candidate_title: str) -> float:
    """0.5 * (1 - similarity) when the raw titles are less than 30% similar, else 0."""
    if not query_title or not candidate_title:
        return 0.0
    ratio = similarity(query_title, candidate_title)
    if ratio < TITLE_SIMILARITY_FLOOR:
        return TITLE_PENALTY_WEIGHT * (1 - ratio)
    return 0.0


def _performer(query: MatchQuery, candidate: Candidate) -> float:
    return performer_penalty(query.performer or "", candidate.performers)


def _title(query: MatchQuery, candidate: Candidate) -> float:
    return title_penalty(query.title, candidate.title)


PERFORMER = PenaltyContributor("performer", _performer)
TITLE = PenaltyContributor("title", _title)

PAIR_CONTRIBUTORS: tuple[PenaltyContributor, ...] = (PERFORMER,)
BATCH_CONTRIBUTORS: tuple[PenaltyContributor, ...] = (PERFORMER, TITLE)


def combine_penalties(penalties: Iterable[float]) -> float:
    """Reduce contributor penalties by taking the maximum; 0 for none."""
    return max(penalties, default=0.0)


def penalties_apply(query: MatchQuery, candidate: Candidate) -> bool:
    """Penalties only run when both sides carry performer information."""
    return bool(query.performer) and bool(candidate.performers)


def evaluate_penalties(
    query: MatchQuery,
    candidate: Candidate,
    contributors: Sequence[PenaltyContributor],
) -> dict[str, float]:
    if not penalties_apply(query, candidate):
        return {}
    return {contributor.name: contributor(query, candidate) for contributor in contributors}


def apply_penalty(score: float, penalties: Mapping[str, float]) -> float:
    return score * (1 - combine_penalties(penalties.values()))
