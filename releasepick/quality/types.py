"""Shared data structures for quality parsing, filtering and selection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple, Union

QUALITIES: Tuple[str, ...] = ("2160p", "1080p", "720p", "480p", "any")
SOURCES: Tuple[str, ...] = ("bluray", "webdl", "webrip", "hdtv", "dvd", "any")

BYTES_PER_MB = 1024 * 1024
BYTES_PER_GB = 1024 * 1024 * 1024

MinSeeders = Union[int, Literal["any"]]


@dataclass(frozen=True)
class ParsedTorrent:
    """Indexer result annotated with quality, source and match score."""

    title: str
    size: int
    seeders: int
    leechers: int
    indexer_id: str
    indexer_name: str
    quality: str = "any"
    source: str = "any"
    match_score: int = 0
    download_url: str = ""
    info_hash: Optional[str] = None
    category: Optional[str] = None
    publish_date: Optional[str] = None
    indexer_count: int = 1

    def __post_init__(self) -> None:
        if not 0 <= self.match_score <= 100:
            raise ValueError(f"match_score must be within [0, 100], got {self.match_score}")

    @property
    def size_gb(self) -> float:
        return self.size / BYTES_PER_GB

    @property
    def size_mb(self) -> float:
        return self.size / BYTES_PER_MB


@dataclass(frozen=True)
class QualityProfileItem:
    """One preference row of a quality profile."""

    quality: str = "any"
    source: str = "any"
    min_seeders: MinSeeders = "any"
    max_size: float = 0  # GB; 0 disables the check

    def matches(self, torrent: ParsedTorrent) -> bool:
        return (self.quality == "any" or self.quality == torrent.quality) and (
            self.source == "any" or self.source == torrent.source
        )

    def admits(self, torrent: ParsedTorrent) -> bool:
        if self.min_seeders != "any" and torrent.seeders < self.min_seeders:
            return False
        if self.max_size > 0 and torrent.size_gb > self.max_size:
            return False
        return True


@dataclass(frozen=True)
class QualityProfile:
    """Named, ordered preference policy. Earlier items are preferred."""

    id: str
    name: str
    items: Tuple[QualityProfileItem, ...] = field(default_factory=tuple)
