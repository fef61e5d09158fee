"""Best-match selection over score matrices, with pair-count chunking."""

from __future__ import annotations

from typing import Awaitable, Callable, Iterator, Optional, Sequence, TypeVar

import numpy as np

from releasepick import logger
from releasepick.matching.types import Candidate, MatchResult

DEFAULT_PAIR_LIMIT = 5000

_Q = TypeVar("_Q")

ScoreBatch = Callable[[Sequence[_Q], Sequence[Candidate]], Awaitable[list[list[float]]]]


def pick_best(scores: Sequence[float], candidates: Sequence[Candidate], threshold: float) -> Optional[MatchResult]:
    """Highest score wins, earliest index on ties; None below threshold."""
    if not candidates or len(scores) == 0:
        return None
    row = np.asarray(scores, dtype=float)
    index = int(np.argmax(row))
    best = float(row[index])
    if best < threshold:
        return None
    return MatchResult(candidate=candidates[index], score=best, index=index)


def queries_per_chunk(candidate_count: int, pair_limit: int = DEFAULT_PAIR_LIMIT) -> int:
    if pair_limit < 1:
        raise ValueError("pair_limit must be >= 1")
    if candidate_count < 1:
        return pair_limit
    return max(1, pair_limit // candidate_count)


def iter_chunks(items: Sequence[_Q], size: int) -> Iterator[Sequence[_Q]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


async def match_in_chunks(
    score_batch: ScoreBatch,
    queries: Sequence[_Q],
    candidates: Sequence[Candidate],
    threshold: float,
    pair_limit: int = DEFAULT_PAIR_LIMIT,
) -> list[Optional[MatchResult]]:
    """
    Best match per query, scoring at most pair_limit pairs per call.

    Chunks run sequentially and results keep the original query order.
    A single query against more than pair_limit candidates is still scored
    in one call, since a query row cannot be split.
    """
    if not queries or not candidates:
        return [None] * len(queries)

    total_pairs = len(queries) * len(candidates)
    if total_pairs <= pair_limit:
        matrix = await score_batch(queries, candidates)
        return [pick_best(row, candidates, threshold) for row in matrix]

    size = queries_per_chunk(len(candidates), pair_limit)
    logger.get_logger().event(
        "batch_chunked",
        "debug",
        queries=len(queries),
        candidates=len(candidates),
        pairs=total_pairs,
        chunk_size=size,
    )

    results: list[Optional[MatchResult]] = []
    for chunk in iter_chunks(queries, size):
        matrix = await score_batch(chunk, candidates)
        results.extend(pick_best(row, candidates, threshold) for row in matrix)
    return results
