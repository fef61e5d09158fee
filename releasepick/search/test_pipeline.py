from __future__ import annotations

import pytest

from releasepick import logger
from releasepick.config import HardFilterConfig, MatchingConfig
from releasepick.matching.relevance import RelevanceScorer
from releasepick.matching.semantic import SemanticScorer
from releasepick.matching.types import MatchQuery
from releasepick.providers.registry import IndexerRegistry
from releasepick.providers.types import RawResult
from releasepick.quality.selector import ProfileNotFoundError, QualitySelector
from releasepick.quality.types import BYTES_PER_GB, QualityProfile, QualityProfileItem
from releasepick.search.pipeline import ReleaseSearch, default_search_term, title_only_query, to_match_score

GB = BYTES_PER_GB

PROFILES = {
    "hd": QualityProfile(
        id="hd",
        name="HD",
        items=(
            QualityProfileItem(quality="1080p", source="webdl", min_seeders=5),
            QualityProfileItem(quality="720p", source="any", min_seeders=5),
        ),
    )
}


class _QuietLogger:
    def __init__(self) -> None:
        self.infos: list[str] = []

    def info(self, msg: str) -> None:
        self.infos.append(msg)

    def __getattr__(self, name: str):
        return lambda *args, **kwargs: None


class _TitleBackend:
    """Logit +4 when the candidate title mentions the query title, else -4."""

    def score(self, text_a: str, text_b: str) -> float:
        query_title = text_a.split("Title: ")[-1].lower()
        candidate_title = text_b.split("Title: ")[-1].lower()
        return 4.0 if query_title in candidate_title else -4.0


class _CountingBackend(_TitleBackend):
    def __init__(self) -> None:
        self.pairs: list[tuple[str, str]] = []

    def score(self, text_a: str, text_b: str) -> float:
        self.pairs.append((text_a, text_b))
        return super().score(text_a, text_b)


class _FakeIndexer:
    def __init__(self, name: str, results: list[RawResult]) -> None:
        self.name = name
        self.results = results
        self.terms: list[str] = []

    async def search(self, term: str, categories=None):
        self.terms.append(term)
        return self.results


@pytest.fixture(autouse=True)
def quiet(monkeypatch: pytest.MonkeyPatch) -> _QuietLogger:
    log = _QuietLogger()
    monkeypatch.setattr(logger, "get_logger", lambda: log)
    return log


def _raw(title: str, indexer: str = "Indexer One", **overrides) -> RawResult:
    fields = dict(
        title=title,
        size=2 * GB,
        seeders=20,
        leechers=1,
        indexer_id=indexer.lower().replace(" ", "-"),
        indexer_name=indexer,
    )
    fields.update(overrides)
    return RawResult(**fields)


def _search(
    indexers: IndexerRegistry | None = None,
    *,
    semantic: SemanticScorer | None = None,
    use_semantic: bool = True,
) -> ReleaseSearch:
    scorer = RelevanceScorer(semantic or SemanticScorer.from_backend(_TitleBackend()), fallback_to_string_similarity=True)
    return ReleaseSearch(
        indexers or IndexerRegistry(),
        scorer,
        QualitySelector(PROFILES),
        matching=MatchingConfig(use_semantic_scorer=use_semantic),
        hard_filters=HardFilterConfig(),
    )


QUERY = MatchQuery(title="Scene A", performer="Jade Harper")


def test_default_search_term_joins_performer_and_title() -> None:
    assert default_search_term(QUERY) == "Jade Harper Scene A"
    assert default_search_term(MatchQuery(title="Scene A")) == "Scene A"


def test_to_match_score_rounds_and_clamps() -> None:
    assert to_match_score(0.876) == 88
    assert to_match_score(1.2) == 100
    assert to_match_score(-0.1) == 0


@pytest.mark.asyncio
async def test_select_runs_search_dedupe_score_filter_and_rank(quiet: _QuietLogger) -> None:
    one = _FakeIndexer(
        "Indexer One",
        [
            _raw("Jade Harper - Scene A 1080p WEB-DL", info_hash="aaa", seeders=10),
            _raw("Jade Harper - Scene A 720p HDTV", info_hash="bbb", seeders=90),
            _raw("Unrelated Clip 1080p WEB-DL", info_hash="ccc", seeders=500),
            _raw("Jade Harper - Scene A sample 1080p WEB-DL", info_hash="ddd", size=10 * 1024 * 1024),
        ],
    )
    two = _FakeIndexer(
        "Indexer Two",
        [_raw("Jade Harper - Scene A 1080p WEB-DL", indexer="Indexer Two", info_hash="aaa", seeders=30)],
    )
    registry = IndexerRegistry()
    registry.register("one", one)
    registry.register("two", two)

    outcome = await _search(registry).select(QUERY, "hd")

    assert one.terms == ["Jade Harper Scene A"]
    assert outcome.selected is not None
    assert outcome.selected.title == "Jade Harper - Scene A 1080p WEB-DL"
    assert outcome.selected.seeders == 30
    assert outcome.selected.indexer_count == 2
    assert outcome.selected.match_score == 98
    assert outcome.classification == "matched"
    assert sorted(t.title for t in outcome.considered) == [
        "Jade Harper - Scene A 1080p WEB-DL",
        "Jade Harper - Scene A 720p HDTV",
    ]


@pytest.mark.asyncio
async def test_select_uses_explicit_search_term() -> None:
    indexer = _FakeIndexer("Indexer One", [])
    registry = IndexerRegistry()
    registry.register("one", indexer)

    outcome = await _search(registry).select(QUERY, "hd", search_term="jade harper")

    assert indexer.terms == ["jade harper"]
    assert outcome.selected is None
    assert outcome.classification is None


@pytest.mark.asyncio
async def test_nothing_qualifies_returns_empty_outcome(quiet: _QuietLogger) -> None:
    results = [_raw("Jade Harper - Scene A 1080p WEB-DL", seeders=2)]

    outcome = await _search().select_from_results(QUERY, results, "hd")

    assert outcome.selected is None
    assert len(outcome.considered) == 1
    assert any("No release qualifies" in msg for msg in quiet.infos)


@pytest.mark.asyncio
async def test_unknown_profile_fails_before_searching() -> None:
    indexer = _FakeIndexer("Indexer One", [_raw("Scene A 1080p WEB-DL")])
    registry = IndexerRegistry()
    registry.register("one", indexer)

    with pytest.raises(ProfileNotFoundError):
        await _search(registry).select(QUERY, "uhd")
    assert indexer.terms == []


@pytest.mark.asyncio
async def test_string_similarity_scoring_when_semantic_scorer_disabled() -> None:
    results = [_raw("Scene A 1080p WEB-DL"), _raw("Something Else Entirely 1080p WEB-DL")]

    outcome = await _search(use_semantic=False).select_from_results(MatchQuery(title="Scene A"), results, "hd")

    assert outcome.selected is not None
    assert outcome.selected.title == "Scene A 1080p WEB-DL"
    assert outcome.selected.match_score == 100
    assert [t.title for t in outcome.considered] == ["Scene A 1080p WEB-DL"]


def test_title_only_query_strips_the_performer() -> None:
    assert title_only_query(QUERY) == MatchQuery(title="Scene A")
    assert title_only_query(MatchQuery(title="Jade Harper: Scene A", performer="Jade Harper")).title == "Scene A"
    assert title_only_query(MatchQuery(title="Scene A")) == MatchQuery(title="Scene A")


@pytest.mark.asyncio
async def test_performer_named_release_survives_string_similarity_scoring() -> None:
    results = [
        _raw("Jade Harper - Scene A 1080p WEB-DL", info_hash="aaa"),
        _raw("Jade.Harper.Scene.A.720p.HDTV", info_hash="bbb"),
    ]

    outcome = await _search(use_semantic=False).select_from_results(QUERY, results, "hd")

    assert outcome.selected is not None
    assert outcome.selected.title == "Jade Harper - Scene A 1080p WEB-DL"
    assert outcome.selected.match_score == 100
    assert outcome.classification == "matched"
    assert len(outcome.considered) == 2


@pytest.mark.asyncio
async def test_scene_groups_are_scored_once_per_group() -> None:
    backend = _CountingBackend()
    results = [
        _raw("Jade Harper - Scene A 1080p WEB-DL", info_hash="aaa"),
        _raw("Jade Harper - Scene A 720p HDTV", info_hash="bbb"),
        _raw("Other Scene Entirely 1080p WEB-DL", info_hash="ccc"),
    ]

    outcome = await _search(semantic=SemanticScorer.from_backend(backend)).select_from_results(QUERY, results, "hd")

    assert backend.pairs == [("Title: Scene A", "Title: Scene A"), ("Title: Scene A", "Title: Other Scene Entirely")]
    assert {t.title: t.match_score for t in outcome.considered} == {
        "Jade Harper - Scene A 1080p WEB-DL": 98,
        "Jade Harper - Scene A 720p HDTV": 98,
    }


@pytest.mark.asyncio
async def test_unavailable_model_falls_back_to_string_similarity() -> None:
    results = [_raw("Scene A 720p WEBRip")]

    outcome = await _search(semantic=SemanticScorer(None)).select_from_results(
        MatchQuery(title="Scene A"), results, "hd"
    )

    assert outcome.selected is not None
    assert outcome.selected.match_score == 100
    assert outcome.classification == "matched"
