from __future__ import annotations

from pathlib import Path

import pytest
from rich.text import Text

import releasepick.logger as rp_logger
from releasepick.matching.relevance import RelevanceScorer
from releasepick.matching.semantic import SemanticScorer
from releasepick.matching.types import Candidate, MatchQuery
from releasepick.providers.registry import IndexerRegistry


def _capture(log: rp_logger.ReleasePickLogger, monkeypatch) -> list[tuple[str, str]]:
    captured: list[tuple[str, str]] = []
    monkeypatch.setattr(log, "log", lambda msg, prefix="": captured.append((prefix, msg)))
    return captured


def test_format_event_renders_fields_in_order():
    line = rp_logger.format_event(
        "penalty_applied",
        {"query": "Scene A", "original": 0.88079, "skip": None, "ok": True, "top3": ["a=0.9000", "b"]},
    )

    assert line == 'penalty_applied query="Scene A" original=0.8808 ok=true top3=[a=0.9000, b]'


def test_debug_events_drop_when_debug_disabled(monkeypatch):
    log = rp_logger.ReleasePickLogger(debug=False)
    captured = _capture(log, monkeypatch)

    log.provider_registered("indexer", "idx-1")

    assert captured == []


def test_debug_events_emit_with_timestamp_when_enabled(monkeypatch):
    log = rp_logger.ReleasePickLogger(debug=True)
    captured = _capture(log, monkeypatch)

    log.provider_registered("indexer", "idx-1")

    assert len(captured) == 1
    prefix, msg = captured[0]
    assert "[DEBUG]" in prefix
    assert msg == "provider_registered category=indexer provider=idx-1"


def test_provider_cooldown_is_a_warning(monkeypatch):
    log = rp_logger.ReleasePickLogger(debug=False)
    captured = _capture(log, monkeypatch)

    log.provider_cooldown("indexer", "idx-1", 3, 3600.0)

    assert captured == [
        ("[WARNING] ", "provider_cooldown category=indexer provider=idx-1 failures=3 cooldown_s=3600.0000"),
    ]


def test_provider_retry_and_failure_are_warnings(monkeypatch):
    log = rp_logger.ReleasePickLogger(debug=False)
    captured = _capture(log, monkeypatch)

    log.provider_retry("indexer", "idx-1", 1, 2, 2, ConnectionResetError("reset"))
    log.provider_failure("indexer", "idx-1", ValueError("bad row"), kind="malformed")

    assert captured == [
        ("[WARNING] ", "Transient indexer failure (idx-1); retrying in 2s (attempt 1/2): reset"),
        ("[WARNING] ", 'provider_failure category=indexer provider=idx-1 kind=malformed error="ValueError: bad row"'),
    ]


def test_penalty_applied_lists_each_contributor(monkeypatch):
    log = rp_logger.ReleasePickLogger(debug=False)
    captured = _capture(log, monkeypatch)

    log.penalty_applied(
        query_title="Scene A",
        candidate_title="Scene A",
        original_score=0.8808,
        final_score=0.04404,
        penalties={"performer": 0.95, "title": 0.0},
        combined=0.95,
    )

    (prefix, msg), = captured
    assert prefix == ""
    assert "performer_penalty=0.9500" in msg
    assert "title_penalty=0.0000" in msg
    assert msg.endswith("combined=0.9500 final=0.0440")


def test_scorer_load_failure_is_an_error(monkeypatch):
    log = rp_logger.ReleasePickLogger(debug=False)
    captured = _capture(log, monkeypatch)

    log.scorer_load("initiate", model="cross-encoder")
    log.scorer_load("progress", model="cross-encoder", percent=50.0)
    log.scorer_load("failed", model="cross-encoder", error="timeout")

    assert captured == [
        ("", "scorer_initiate model=cross-encoder"),
        ("[ERROR] ", "scorer_failed model=cross-encoder error=timeout"),
    ]


def test_match_events_include_near_misses(monkeypatch):
    log = rp_logger.ReleasePickLogger(debug=False)
    captured = _capture(log, monkeypatch)

    log.no_match("Scene A", 0.5, 0.7, [("Scene B", 0.5), ("Scene C", 0.25)])

    assert captured == [("", "no_match query=\"Scene A\" best=0.5000 threshold=0.7000 top3=[\"Scene B=0.5000\", \"Scene C=0.2500\"]")]


def test_screen_text_styles_prefixes_and_event_names(monkeypatch):
    log = rp_logger.ReleasePickLogger(debug=False)
    monkeypatch.setattr(log._console, "print", lambda *_args, **_kwargs: None)

    warning = log._screen_text("[WARNING] provider_cooldown category=indexer provider=idx-1")
    plain = log._screen_text("Selected 'Scene A' [matched]")

    assert isinstance(warning, Text)
    assert any(span.style == "yellow" for span in warning.spans)
    assert any(span.style == "bold" for span in warning.spans)
    assert plain.plain == "Selected 'Scene A' [matched]"
    assert plain.spans == []


def test_log_writes_plain_text_to_file(tmp_path, monkeypatch):
    out = tmp_path / "releasepick.log"
    log = rp_logger.ReleasePickLogger(log_file=out, debug=False)
    monkeypatch.setattr(log._console, "print", lambda *_args, **_kwargs: None)

    log.warning("[INFO] literal bracketed message")
    log.close()

    text = out.read_text(encoding="utf-8")
    assert "[WARNING] [INFO] literal bracketed message" in text
    assert "Ended session" in text


def test_get_logger_creates_default_instance(monkeypatch):
    monkeypatch.setattr(rp_logger, "_logger", None)

    first = rp_logger.get_logger()

    assert isinstance(first, rp_logger.ReleasePickLogger)
    assert rp_logger.get_logger() is first

    replacement = rp_logger.ReleasePickLogger()
    rp_logger.set_logger(replacement)
    assert rp_logger.get_logger() is replacement


class _Logit:
    def __init__(self, value: float) -> None:
        self.value = value

    def score(self, text_a: str, text_b: str) -> float:
        return self.value


class _FullDisk:
    def write(self, text):
        raise OSError(28, "No space left on device")

    def flush(self):
        pass

    def fileno(self):
        return -1

    def close(self):
        pass


@pytest.fixture
def full_disk_logger(monkeypatch):
    screen: list[str] = []
    log = rp_logger.ReleasePickLogger(debug=False)
    monkeypatch.setattr(log._console, "print", lambda text, *_args, **_kwargs: screen.append(getattr(text, "plain", text)))
    log.log_file = Path("releasepick.log")
    log._file_handle = _FullDisk()
    monkeypatch.setattr(rp_logger, "_logger", log)
    return screen


def test_failing_log_file_falls_back_to_console(full_disk_logger):
    rp_logger.warning("first")
    rp_logger.warning("second")

    assert rp_logger.get_logger()._file_handle is None
    assert full_disk_logger[0] == "[WARNING] first"
    assert "Log file releasepick.log disabled" in full_disk_logger[1]
    assert full_disk_logger[2] == "[WARNING] second"


def test_failing_log_file_does_not_break_registry_updates(full_disk_logger):
    registry = IndexerRegistry(failure_threshold=1)

    state = registry.record_failure("idx-1")

    assert state.failure_count == 1
    assert not registry.is_available("idx-1")


@pytest.mark.asyncio
async def test_failing_log_file_does_not_break_scoring(full_disk_logger):
    scorer = RelevanceScorer(SemanticScorer.from_backend(_Logit(2.0)))

    score = await scorer.score_pair(
        MatchQuery(title="Scene A", performer="Jade Harper"),
        Candidate(id="1", title="Scene A", performers=("Jada Harper",)),
    )

    assert score == pytest.approx(0.8808 * 0.05, abs=1e-4)
    assert any(line.startswith("penalty_applied") for line in full_disk_logger)
