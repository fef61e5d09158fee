"""Filters applied to search results before and after quality parsing."""

import re
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

from releasepick import logger
from releasepick.providers.types import RawResult
from releasepick.quality.parser import extract_scene_title
from releasepick.quality.types import BYTES_PER_GB, BYTES_PER_MB, ParsedTorrent, QualityProfileItem

DEFAULT_MIN_MATCH_SCORE = 60
DEFAULT_MIN_SIZE_MB = 100
DEFAULT_MAX_SIZE_GB = 50

_T = TypeVar("_T", RawResult, ParsedTorrent)


def governing_item(torrent: ParsedTorrent, items: Sequence[QualityProfileItem]) -> Optional[int]:
    """Index of the first profile item whose quality and source match, if any."""
    for index, item in enumerate(items):
        if item.matches(torrent):
            return index
    return None


def filter_by_profile(torrents: Iterable[ParsedTorrent], items: Sequence[QualityProfileItem]) -> List[ParsedTorrent]:
    """Keep torrents admitted by the first profile item they match."""
    kept: List[ParsedTorrent] = []
    for torrent in torrents:
        index = governing_item(torrent, items)
        if index is not None and items[index].admits(torrent):
            kept.append(torrent)
    return kept


def apply_size_filters(
    torrents: Iterable[ParsedTorrent],
    min_size_mb: float = DEFAULT_MIN_SIZE_MB,
    max_size_gb: float = DEFAULT_MAX_SIZE_GB,
) -> List[ParsedTorrent]:
    min_bytes = min_size_mb * BYTES_PER_MB
    max_bytes = max_size_gb * BYTES_PER_GB
    return [t for t in torrents if min_bytes <= t.size <= max_bytes]


def apply_score_filter(torrents: Iterable[ParsedTorrent], min_match_score: int = DEFAULT_MIN_MATCH_SCORE) -> List[ParsedTorrent]:
    return [t for t in torrents if t.match_score >= min_match_score]


def apply_hard_filters(
    torrents: Sequence[ParsedTorrent],
    min_match_score: int = DEFAULT_MIN_MATCH_SCORE,
    min_size_mb: float = DEFAULT_MIN_SIZE_MB,
    max_size_gb: float = DEFAULT_MAX_SIZE_GB,
) -> List[ParsedTorrent]:
    """Drop weak matches, likely samples (too small) and collection packs (too big)."""
    kept = apply_size_filters(apply_score_filter(torrents, min_match_score), min_size_mb, max_size_gb)
    if len(kept) < len(torrents):
        logger.get_logger().hard_filter_eliminated(len(torrents), len(kept))
    return kept


def deduplicate_by_info_hash(results: Iterable[RawResult]) -> List[RawResult]:
    """
    Merge the same torrent reported by several indexers.

    Results without an info hash are keyed by title and size, and only the
    first of those is kept. For hashed results the indexer names accumulate
    and the copy with the most seeders supplies seeders, leechers and the
    download link. First-seen order is preserved.
    """
    merged: Dict[str, RawResult] = {}
    for result in results:
        if not result.info_hash:
            key = f"{result.title}-{result.size}"
            if key not in merged:
                merged[key] = replace(result, indexers=(result.indexer_name,))
            continue

        existing = merged.get(result.info_hash)
        if existing is None:
            merged[result.info_hash] = replace(result, indexers=(result.indexer_name,))
            continue

        indexers = existing.indexers
        if result.indexer_name not in indexers:
            indexers = indexers + (result.indexer_name,)
        if result.seeders > existing.seeders:
            existing = replace(
                existing,
                seeders=result.seeders,
                leechers=result.leechers,
                download_url=result.download_url,
            )
        merged[result.info_hash] = replace(existing, indexers=indexers)
    return list(merged.values())


SCENE_GROUPING_RATIO = 0.7
_MIN_GROUPABLE_TITLE = 15
_MIN_SHARED_PREFIX = 30


@dataclass
class SceneGroup:
    """Results that name the same scene; scene_title is the extracted title they share."""

    scene_title: str
    results: List[RawResult] = field(default_factory=list)


def _truncation_of(title: str, existing: str) -> Optional[str]:
    """The longer of two titles when one is a long enough truncation of the other."""
    shorter, longer = (title, existing) if len(title) < len(existing) else (existing, title)
    if len(shorter) < _MIN_SHARED_PREFIX or not longer.startswith(shorter):
        return None
    if len(shorter) / len(longer) < SCENE_GROUPING_RATIO:
        return None
    return longer


def group_by_scene(results: Iterable[RawResult]) -> List[SceneGroup]:
    """
    Group results by extracted scene title.

    Titles shorter than 15 characters only group on an exact match. Longer
    titles also group when one is a prefix of the other, the prefix is at
    least 30 characters and covers at least 70% of the longer title. A group
    that absorbs a longer title is renamed to it.
    """
    groups: Dict[str, SceneGroup] = {}
    for result in results:
        title = extract_scene_title(result.title)
        key = title
        if title not in groups and len(title) >= _MIN_GROUPABLE_TITLE:
            for existing in list(groups):
                if len(existing) < _MIN_GROUPABLE_TITLE:
                    continue
                longer = _truncation_of(title, existing)
                if longer is None:
                    continue
                if longer != existing:
                    group = groups.pop(existing)
                    group.scene_title = longer
                    groups[longer] = group
                key = longer
                break
        groups.setdefault(key, SceneGroup(key)).results.append(result)
    return list(groups.values())


def _name_pattern(name: str) -> re.Pattern:
    words = [re.escape(word) for word in name.split()]
    # Multi-word names may have up to two words between each part.
    body = r"(\s+\w+){0,2}\s+".join(words)
    return re.compile(rf"\b{body}\b", re.IGNORECASE)


def filter_by_entity_name(results: Sequence[_T], name: str, aliases: Iterable[str] = ()) -> List[_T]:
    """Keep results whose title names the entity or one of its aliases."""
    names = [candidate.lower().strip() for candidate in [name, *aliases] if candidate and candidate.strip()]
    patterns = [_name_pattern(candidate) for candidate in names]
    kept = [result for result in results if any(p.search(result.title) for p in patterns)]
    if len(kept) < len(results):
        logger.get_logger().hard_filter_eliminated(len(results), len(kept), reason=f"entity_name:{name}")
    return kept
