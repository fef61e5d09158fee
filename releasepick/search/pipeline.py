"""End-to-end release selection: search, dedupe, score, filter, rank."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from releasepick import logger
from releasepick.config import HardFilterConfig, MatchingConfig
from releasepick.matching.relevance import RelevanceScorer, classify
from releasepick.matching.types import Candidate, MatchClass, MatchQuery
from releasepick.providers.registry import IndexerRegistry
from releasepick.providers.types import RawResult
from releasepick.quality.filters import SceneGroup, apply_hard_filters, deduplicate_by_info_hash, group_by_scene
from releasepick.quality.parser import parse_torrent, strip_performer
from releasepick.quality.selector import QualitySelector
from releasepick.quality.types import ParsedTorrent
from releasepick.search.indexer_search import search_indexers


@dataclass(frozen=True)
class SelectionOutcome:
    """Result of one selection run; considered holds the hard-filter survivors."""

    selected: Optional[ParsedTorrent]
    considered: list[ParsedTorrent] = field(default_factory=list)
    classification: Optional[MatchClass] = None


def default_search_term(query: MatchQuery) -> str:
    return " ".join(part for part in (query.performer, query.title) if part).strip()


def title_only_query(query: MatchQuery) -> MatchQuery:
    """Drop the performer from a query, removing their name from its title as well."""
    if not query.performer:
        return query
    return replace(query, performer=None, title=strip_performer(query.title, query.performer))


def to_match_score(score: float) -> int:
    return max(0, min(100, round(score * 100)))


class ReleaseSearch:
    """
    Picks one release for a subscription query.

    Collaborators are injected; nothing here is a module-level singleton.
    """

    def __init__(
        self,
        indexers: IndexerRegistry,
        scorer: RelevanceScorer,
        selector: QualitySelector,
        *,
        matching: Optional[MatchingConfig] = None,
        hard_filters: Optional[HardFilterConfig] = None,
    ):
        self.indexers = indexers
        self.scorer = scorer
        self.selector = selector
        self.matching = matching or MatchingConfig()
        self.hard_filters = hard_filters or HardFilterConfig()

    async def score_scene_groups(self, query: MatchQuery, groups: Sequence[SceneGroup]) -> list[int]:
        """
        Match score in [0, 100] for each scene group.

        Matching is on titles only: the query's performer is removed from both
        the query title and each group's scene title, and is not scored.
        """
        if not groups:
            return []
        title_query = title_only_query(query)
        candidates = [
            Candidate(id=str(index), title=strip_performer(group.scene_title, query.performer))
            for index, group in enumerate(groups)
        ]
        if not self.matching.use_semantic_scorer:
            return [to_match_score(self.scorer.string_similarity_score(title_query, c)) for c in candidates]
        row = (await self.scorer.score_batch([title_query], candidates))[0]
        return [to_match_score(score) for score in row]

    async def select_from_results(
        self,
        query: MatchQuery,
        results: Sequence[RawResult],
        profile_id: str,
    ) -> SelectionOutcome:
        self.selector.get_profile(profile_id)

        unique = deduplicate_by_info_hash(results)
        if len(unique) < len(results):
            logger.get_logger().debug(f"Merged {len(results) - len(unique)} duplicate results by info hash")

        groups = group_by_scene(unique)
        logger.get_logger().debug(f"Grouped {len(unique)} results into {len(groups)} scene groups")
        scores = await self.score_scene_groups(query, groups)
        parsed = [
            parse_torrent(result, score)
            for group, score in zip(groups, scores)
            for result in group.results
        ]
        considered = apply_hard_filters(
            parsed,
            min_match_score=self.hard_filters.min_match_score,
            min_size_mb=self.hard_filters.min_size_mb,
            max_size_gb=self.hard_filters.max_size_gb,
        )

        selected = self.selector.select_best(considered, profile_id)
        if selected is None:
            logger.info(f"No release qualifies for '{query.title}' under profile '{profile_id}'")
            return SelectionOutcome(selected=None, considered=considered)

        classification = classify(
            selected.match_score / 100,
            self.matching.matched_threshold,
            self.matching.unknown_threshold,
        )
        logger.info(
            f"Selected '{selected.title}' ({selected.quality}/{selected.source}, "
            f"{selected.seeders} seeders, score {selected.match_score}, {classification})"
        )
        return SelectionOutcome(selected=selected, considered=considered, classification=classification)

    async def select(
        self,
        query: MatchQuery,
        profile_id: str,
        search_term: Optional[str] = None,
        categories: Optional[Sequence[str]] = None,
    ) -> SelectionOutcome:
        self.selector.get_profile(profile_id)
        term = search_term or default_search_term(query)
        results = await search_indexers(self.indexers, term, categories)
        return await self.select_from_results(query, results, profile_id)
