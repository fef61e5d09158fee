"""Shared data structures for relevance matching."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Tuple

MatchClass = Literal["matched", "uncertain", "unknown"]


@dataclass(frozen=True)
class MatchQuery:
    """Expected identity of a subscription, built per search."""

    title: str
    performer: Optional[str] = None
    studio: Optional[str] = None
    date: Optional[str] = None

    def describe(self) -> str:
        items: list[str] = []
        if self.performer:
            items.append(f"Performer: {self.performer}")
        if self.studio:
            items.append(f"Studio: {self.studio}")
        if self.date:
            items.append(f"Date: {self.date}")
        items.append(f"Title: {self.title}")
        return " | ".join(items)


@dataclass(frozen=True)
class Candidate:
    """Release or scene being evaluated against a query."""

    id: str
    title: str
    date: Optional[str] = None
    studio: Optional[str] = None
    performers: Tuple[str, ...] = ()

    def describe(self) -> str:
        items: list[str] = []
        if self.performers:
            items.append(f"Performer: {', '.join(self.performers)}")
        if self.studio:
            items.append(f"Studio: {self.studio}")
        if self.date:
            items.append(f"Date: {self.date}")
        items.append(f"Title: {self.title}")
        return " | ".join(items)


@dataclass(frozen=True)
class MatchResult:
    """Scored candidate; score is recomputed per search and never stored."""

    candidate: Candidate
    score: float
    index: int
