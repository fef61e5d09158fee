"""Strict first-name matching of performer names.

Distinct performers sharing a surname are common, so a first-name mismatch
caps similarity hard and surname or alias overlap cannot rescue it.

The "main name" of a query is its first two tokens longer than two
characters, which assumes a given-name-first naming order.
"""

from __future__ import annotations

import re
from typing import Iterable

from releasepick.matching.similarity import similarity

_AKA_SUFFIX = re.compile(r"\s+(aka|aka\.|also known as)\s.*$", re.IGNORECASE)
_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")

FULL_TRUST_SCORE = 0.7
PARTIAL_MATCH_FLOOR = 0.3
REJECT_PENALTY = 0.95


def normalize_performer_name(name: str) -> str:
    text = _AKA_SUFFIX.sub("", name.lower().strip())
    text = _NON_WORD.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def main_query_name(normalized: str) -> str:
    words = [word for word in normalized.split(" ") if len(word) > 2]
    main = " ".join(words[:2])
    if len(main) < 3:
        main = words[0] if words else normalized
    return main


def performer_similarity(name1: str, name2: str) -> float:
    """Similarity of two normalized names in [0, 1]; first tokens must agree."""
    if name1 == name2:
        return 1.0

    words1 = [word for word in name1.split(" ") if word]
    words2 = [word for word in name2.split(" ") if word]
    if not words1 or not words2:
        return similarity(name1, name2)

    first1 = words1[0].lower()
    first2 = words2[0].lower()
    if first1 != first2:
        full = similarity(name1, name2)
        if len(first1) > 3 and len(first2) > 3 and similarity(first1, first2) > 0.9:
            return full * 0.5
        return full * 0.2

    if name1 in name2 or name2 in name1:
        longer = name1 if len(name1) > len(name2) else name2
        if len(longer) <= 15:
            return 0.9

    # The shared first name counts as one matching token.
    matching = 1
    for word in words1[1:]:
        if any(word.lower() == other.lower() for other in words2[1:]):
            matching += 1
    overlap = matching / max(len(words1), len(words2))
    return overlap * 0.6 + similarity(name1, name2) * 0.4


def best_performer_match(query_performer: str, candidate_performers: Iterable[str]) -> float:
    main = main_query_name(normalize_performer_name(query_performer))
    best = 0.0
    for performer in candidate_performers:
        best = max(best, performer_similarity(main, normalize_performer_name(performer)))
    return best


def penalty_for_match(best_match_score: float) -> float:
    if best_match_score >= FULL_TRUST_SCORE:
        return 0.0
    if best_match_score >= PARTIAL_MATCH_FLOOR:
        return 0.6 * (1 - best_match_score)
    return REJECT_PENALTY


def performer_penalty(query_performer: str, candidate_performers: Iterable[str]) -> float:
    """Penalty in [0, 1] for how poorly the roster supports the expected performer."""
    return penalty_for_match(best_performer_match(query_performer, candidate_performers))
