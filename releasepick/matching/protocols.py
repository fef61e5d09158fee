"""Protocol definitions for the external pairwise relevance model."""

from __future__ import annotations

from typing import Callable, Protocol, Sequence, runtime_checkable

ProgressCallback = Callable[[float], None]


@runtime_checkable
class PairScorer(Protocol):
    """Scores two free-text documents jointly; returns an unbounded logit."""

    def score(self, text_a: str, text_b: str) -> float:
        ...


@runtime_checkable
class BatchPairScorer(Protocol):
    """Pair scorer that can evaluate many pairs in one inference call."""

    def score(self, text_a: str, text_b: str) -> float:
        ...

    def score_pairs(self, pairs: Sequence[tuple[str, str]]) -> Sequence[float]:
        ...


class ScorerFactory(Protocol):
    """Builds a pair scorer; may report load progress as a 0-1 fraction."""

    def __call__(self, progress: ProgressCallback) -> PairScorer:
        ...
