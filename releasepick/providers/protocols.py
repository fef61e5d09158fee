"""Protocol definitions for indexer, metadata and torrent-client backends."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from releasepick.providers.types import RawResult


class Indexer(Protocol):
    """Minimal indexer API used by the search fan-out."""

    name: str

    async def search(self, term: str, categories: Sequence[int] | None = None) -> Sequence[RawResult]:
        ...


class MetadataProvider(Protocol):
    """Metadata catalog backend. The registry does not interpret its calls."""

    name: str

    async def search_scenes(self, query: str) -> Sequence[Any]:
        ...


class TorrentClient(Protocol):
    """Torrent client backend. The registry does not interpret its calls."""

    name: str

    async def add_torrent(self, url: str, *, category: str | None = None, save_path: str | None = None) -> bool:
        ...
