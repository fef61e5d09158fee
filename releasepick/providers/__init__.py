"""Provider registries and the boundary types exchanged with backend providers."""

from .registry import (
    FailureState,
    IndexerRegistry,
    MetadataProviderRegistry,
    ProviderEntry,
    ProviderRegistry,
    TorrentClientRegistry,
)
from .types import RawResult

__all__ = [
    "FailureState",
    "IndexerRegistry",
    "MetadataProviderRegistry",
    "ProviderEntry",
    "ProviderRegistry",
    "RawResult",
    "TorrentClientRegistry",
]
