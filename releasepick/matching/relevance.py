"""Relevance scoring: semantic logit, logistic normalization, heuristic penalties."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from scipy.special import expit

from releasepick import logger
from releasepick.config import MatchingConfig
from releasepick.matching.batching import DEFAULT_PAIR_LIMIT, match_in_chunks, pick_best
from releasepick.matching.penalties import (
    BATCH_CONTRIBUTORS,
    PAIR_CONTRIBUTORS,
    PenaltyContributor,
    apply_penalty,
    combine_penalties,
    evaluate_penalties,
)
from releasepick.matching.semantic import ScorerUnavailableError, SemanticScorer
from releasepick.matching.similarity import normalize_title, similarity
from releasepick.matching.types import Candidate, MatchClass, MatchQuery, MatchResult

DEFAULT_THRESHOLD = 0.7
MATCHED_THRESHOLD = 0.65
UNKNOWN_THRESHOLD = 0.35


def classify(
    score: float,
    matched_threshold: float = MATCHED_THRESHOLD,
    unknown_threshold: float = UNKNOWN_THRESHOLD,
) -> MatchClass:
    if score >= matched_threshold:
        return "matched"
    if score >= unknown_threshold:
        return "uncertain"
    return "unknown"


def _top_matches(scores: Sequence[float], candidates: Sequence[Candidate], limit: int = 3) -> list[tuple[str, float]]:
    order = sorted(range(len(scores)), key=lambda i: scores[i], reverse=True)[:limit]
    return [(candidates[i].title, float(scores[i])) for i in order]


class RelevanceScorer:
    """
    Combines the semantic pair score with name and title heuristics.

    Single-pair scoring applies the performer penalty only; batch scoring
    also applies the title penalty, reduced with the performer penalty by max.
    """

    def __init__(
        self,
        semantic: SemanticScorer,
        *,
        fallback_to_string_similarity: bool = False,
        pair_limit: int = DEFAULT_PAIR_LIMIT,
        threshold: float = DEFAULT_THRESHOLD,
    ):
        if pair_limit < 1:
            raise ValueError("pair_limit must be >= 1")
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be within [0, 1]")
        self.semantic = semantic
        self.fallback_to_string_similarity = fallback_to_string_similarity
        self.pair_limit = pair_limit
        self.threshold = threshold

    @classmethod
    def from_config(cls, semantic: SemanticScorer, matching: MatchingConfig) -> "RelevanceScorer":
        return cls(
            semantic,
            fallback_to_string_similarity=matching.fallback_to_string_similarity,
            pair_limit=matching.batch_pair_limit,
            threshold=matching.threshold,
        )

    def string_similarity_score(
        self,
        query: MatchQuery,
        candidate: Candidate,
        contributors: Sequence[PenaltyContributor] = BATCH_CONTRIBUTORS,
    ) -> float:
        """Score used when the semantic model is unavailable."""
        base = similarity(normalize_title(query.title), normalize_title(candidate.title))
        return apply_penalty(base, evaluate_penalties(query, candidate, contributors))

    def _penalized(
        self,
        query: MatchQuery,
        candidate: Candidate,
        score: float,
        contributors: Sequence[PenaltyContributor],
    ) -> float:
        penalties = evaluate_penalties(query, candidate, contributors)
        combined = combine_penalties(penalties.values())
        if combined <= 0:
            return score
        final = score * (1 - combined)
        logger.get_logger().penalty_applied(
            query_title=query.title,
            candidate_title=candidate.title,
            original_score=score,
            final_score=final,
            penalties=penalties,
            combined=combined,
        )
        return final

    async def _normalized_scores(self, pairs: list[tuple[str, str]]) -> Optional[np.ndarray]:
        """Sigmoid of the model logits, or None when falling back to string similarity."""
        try:
            logits = await self.semantic.logits(pairs)
        except ScorerUnavailableError as exc:
            if not self.fallback_to_string_similarity:
                raise
            logger.get_logger().event("scorer_fallback", "warning", model=self.semantic.name, reason=str(exc))
            return None
        return expit(logits)

    async def score_pair(self, query: MatchQuery, candidate: Candidate) -> float:
        normalized = await self._normalized_scores([(query.describe(), candidate.describe())])
        if normalized is None:
            return self.string_similarity_score(query, candidate, PAIR_CONTRIBUTORS)
        return self._penalized(query, candidate, float(normalized[0]), PAIR_CONTRIBUTORS)

    async def score_batch(self, queries: Sequence[MatchQuery], candidates: Sequence[Candidate]) -> list[list[float]]:
        """Score matrix indexed [query][candidate], in input order."""
        if not queries or not candidates:
            return [[] for _ in queries]

        candidate_texts = [candidate.describe() for candidate in candidates]
        pairs = [(query.describe(), text) for query in queries for text in candidate_texts]
        normalized = await self._normalized_scores(pairs)

        if normalized is None:
            return [
                [self.string_similarity_score(query, candidate, BATCH_CONTRIBUTORS) for candidate in candidates]
                for query in queries
            ]

        matrix = normalized.reshape(len(queries), len(candidates))
        return [
            [
                self._penalized(query, candidate, float(matrix[i, j]), BATCH_CONTRIBUTORS)
                for j, candidate in enumerate(candidates)
            ]
            for i, query in enumerate(queries)
        ]

    async def find_best_match(
        self,
        query: MatchQuery,
        candidates: Sequence[Candidate],
        threshold: Optional[float] = None,
    ) -> Optional[MatchResult]:
        if not candidates:
            return None
        if threshold is None:
            threshold = self.threshold
        scores = (await self.score_batch([query], candidates))[0]
        result = pick_best(scores, candidates, threshold)
        top = _top_matches(scores, candidates)
        log = logger.get_logger()
        if result is None:
            log.no_match(query.title, max(scores), threshold, top)
        else:
            log.match_found(query.title, result.candidate.title, result.score, threshold, top)
        return result

    async def find_best_match_batch(
        self,
        queries: Sequence[MatchQuery],
        candidates: Sequence[Candidate],
        threshold: Optional[float] = None,
    ) -> list[Optional[MatchResult]]:
        if threshold is None:
            threshold = self.threshold
        return await match_in_chunks(self.score_batch, queries, candidates, threshold, self.pair_limit)
