"""Relevance matching between subscription queries and candidate releases."""

from .relevance import RelevanceScorer, classify
from .semantic import ScorerUnavailableError, SemanticScorer
from .types import Candidate, MatchQuery, MatchResult

__all__ = [
    "Candidate",
    "MatchQuery",
    "MatchResult",
    "RelevanceScorer",
    "ScorerUnavailableError",
    "SemanticScorer",
    "classify",
]
