"""Data structures exchanged with backend providers."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class RawResult:
    """Unparsed indexer search hit."""

    title: str
    size: int
    seeders: int
    leechers: int
    indexer_id: str
    indexer_name: str
    download_url: str = ""
    info_hash: Optional[str] = None
    category: Optional[str] = None
    publish_date: Optional[str] = None
    indexers: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def indexer_count(self) -> int:
        return max(1, len(self.indexers))

