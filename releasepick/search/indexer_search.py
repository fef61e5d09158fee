"""Fan a search term out across every available indexer."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from releasepick import logger
from releasepick.providers.registry import IndexerRegistry, ProviderEntry
from releasepick.providers.protocols import Indexer
from releasepick.providers.resilience import call_provider
from releasepick.providers.types import RawResult

INDEXER_SEARCH_MAX_ATTEMPTS = 2


def _tag_provenance(result: RawResult, entry: ProviderEntry[Indexer]) -> RawResult:
    if result.indexer_id and result.indexer_name:
        return result
    return replace(
        result,
        indexer_id=result.indexer_id or entry.id,
        indexer_name=result.indexer_name or getattr(entry.provider, "name", entry.id),
    )


async def search_indexers(
    registry: IndexerRegistry,
    term: str,
    categories: Optional[Sequence[str]] = None,
    max_attempts: int = INDEXER_SEARCH_MAX_ATTEMPTS,
) -> list[RawResult]:
    """
    Query available indexers in registration order and concatenate their hits.

    Each outcome is reported to the registry. A failing indexer is logged and
    skipped; it never aborts the remaining searches.
    """
    available = registry.get_available()
    if not available:
        logger.warning(f"No indexers available for '{term}'; search skipped")
        return []

    collected: list[RawResult] = []
    for entry in available:
        try:
            results = await call_provider(
                registry,
                entry,
                lambda: entry.provider.search(term, categories),
                max_attempts=max_attempts,
            )
        except Exception:
            continue  # recorded and logged by call_provider
        logger.get_logger().debug(f"{entry.id}: {len(results)} results for '{term}'")
        collected.extend(_tag_provenance(result, entry) for result in results)
    return collected
