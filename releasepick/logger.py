"""
Console and log-file output for releasepick, plus the structured events the core emits.
Structured events are rendered as `name key=value ...` lines.
"""
from __future__ import annotations

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from rich.console import Console
from rich.text import Text

_PREFIX_STYLES: dict[str, str] = {
    "[WARNING]": "yellow",
    "[ERROR]": "red",
    "[INFO]": "cyan",
    "[DEBUG]": "grey50",
}
_PREFIX_PATTERN = re.compile(r"\[(?:WARNING|ERROR|INFO|DEBUG)\]")
_EVENT_PATTERN = re.compile(r"^(?:\[[^\]]*\]\s*)*([a-z_]+)(?= |$)")


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:.4f}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_format_value(item) for item in value) + "]"
    text = str(value)
    if not text or any(ch.isspace() for ch in text):
        return f'"{text}"'
    return text


def format_event(name: str, fields: dict[str, Any]) -> str:
    """Render an event name and its fields as a single log line."""
    parts = [name]
    for key, value in fields.items():
        if value is None:
            continue
        parts.append(f"{key}={_format_value(value)}")
    return " ".join(parts)


def _near_misses(top: Iterable[tuple[str, float]]) -> list[str]:
    return [f"{title}={score:.4f}" for title, score in top]


class ReleasePickLogger:
    """Writes plain lines to the console and an optional log file; debug lines are gated."""

    def __init__(self, log_file: Optional[Path] = None, debug: bool = False, console: Console | None = None):
        self.log_file = log_file
        self._file_handle = None
        self._start_time = datetime.now()
        self.debug_mode = debug
        self._console = console or Console(highlight=False)

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(log_file, "w", buffering=1, encoding="utf-8")

        from releasepick.__version__ import __version__

        self.log(f"({self._start_time.strftime('%H:%M:%S')}  Started releasepick {__version__})")

    def _screen_text(self, output: str) -> Text:
        text = Text(output)
        for match in _PREFIX_PATTERN.finditer(output):
            text.stylize(_PREFIX_STYLES[match.group(0)], match.start(), match.end())
        event = _EVENT_PATTERN.match(output)
        if event and "=" in output:
            text.stylize("bold", event.start(1), event.end(1))
        return text

    def log(self, msg: str, prefix: str = ""):
        """Emit one line to the console and, when configured, the log file"""
        output = f"{prefix}{msg}" if prefix else msg

        self._console.print(self._screen_text(output))

        if self._file_handle:
            try:
                self._file_handle.write(output + "\n")
                self._file_handle.flush()
                os.fsync(self._file_handle.fileno())
            except OSError as e:
                self._drop_file_mirror(e)

    def _drop_file_mirror(self, error: OSError):
        """Stop mirroring to the log file and carry on console-only."""
        handle, self._file_handle = self._file_handle, None
        try:
            handle.close()
        except OSError:
            pass  # reported below
        self._console.print(self._screen_text(f"[WARNING] Log file {self.log_file} disabled: {error}"))

    def info(self, msg: str):
        """Info message"""
        self.log(msg)

    def warning(self, msg: str):
        """Warning message"""
        self.log(msg, "[WARNING] ")

    def error(self, msg: str):
        """Error message"""
        self.log(msg, "[ERROR] ")

    def debug(self, msg: str):
        """Timestamped line, dropped unless debug is on"""
        if self.debug_mode:
            timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
            self.log(msg, f"[{timestamp}] [DEBUG] ")

    def event(self, name: str, level: str = "info", **fields: Any):
        """Emit a structured event at the given level."""
        line = format_event(name, fields)
        if level == "debug":
            self.debug(line)
        elif level == "warning":
            self.warning(line)
        elif level == "error":
            self.error(line)
        else:
            self.info(line)

    def provider_registered(self, category: str, provider_id: str):
        self.event("provider_registered", "debug", category=category, provider=provider_id)

    def provider_unregistered(self, category: str, provider_id: str):
        self.event("provider_unregistered", "debug", category=category, provider=provider_id)

    def provider_cooldown(self, category: str, provider_id: str, failure_count: int, cooldown_seconds: float):
        """Provider tripped the circuit breaker."""
        self.event(
            "provider_cooldown",
            "warning",
            category=category,
            provider=provider_id,
            failures=failure_count,
            cooldown_s=cooldown_seconds,
        )

    def provider_retry(
        self, category: str, provider_id: str, attempt: int, max_attempts: int, delay: float, error: BaseException
    ):
        self.warning(
            f"Transient {category} failure ({provider_id}); "
            f"retrying in {delay}s (attempt {attempt}/{max_attempts}): {error}"
        )

    def provider_failure(self, category: str, provider_id: str, error: BaseException, kind: str = "error"):
        self.event(
            "provider_failure",
            "warning",
            category=category,
            provider=provider_id,
            kind=kind,
            error=f"{type(error).__name__}: {error}",
        )

    def penalty_applied(
        self,
        *,
        query_title: str,
        candidate_title: str,
        original_score: float,
        final_score: float,
        penalties: dict[str, float],
        combined: float,
    ):
        """Heuristic penalty lowered a semantic score."""
        self.event(
            "penalty_applied",
            query=query_title,
            candidate=candidate_title,
            original=original_score,
            **{f"{name}_penalty": value for name, value in penalties.items()},
            combined=combined,
            final=final_score,
        )

    def hard_filter_eliminated(self, before: int, after: int, reason: str = "hard_filters"):
        self.event("hard_filter_eliminated", reason=reason, before=before, after=after, eliminated=before - after)

    def scorer_load(self, stage: str, **fields: Any):
        """Scorer load lifecycle: initiate, progress, loaded, failed."""
        level = {"failed": "error", "progress": "debug"}.get(stage, "info")
        self.event(f"scorer_{stage}", level, **fields)

    def match_found(self, query_title: str, matched_title: str, score: float, threshold: float, top: Iterable[tuple[str, float]]):
        self.event(
            "match_found",
            query=query_title,
            matched=matched_title,
            score=score,
            threshold=threshold,
            top3=_near_misses(top),
        )

    def no_match(self, query_title: str, best_score: float | None, threshold: float, top: Iterable[tuple[str, float]]):
        self.event(
            "no_match",
            query=query_title,
            best=best_score,
            threshold=threshold,
            top3=_near_misses(top),
        )

    def close(self):
        """Write the session footer and release the log file"""
        if self._file_handle:
            end_time = datetime.now()
            elapsed = end_time - self._start_time
            self.log(f"({end_time.strftime('%H:%M:%S')}  Ended session, elapsed {elapsed.total_seconds():.1f}s)")
            if self._file_handle:
                self._file_handle.close()
                self._file_handle = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


# Global instance (set by the CLI or the embedding application)
_logger: Optional[ReleasePickLogger] = None


def set_logger(logger: ReleasePickLogger):
    """Install the process-wide logger"""
    global _logger
    _logger = logger


def get_logger() -> ReleasePickLogger:
    """Return the process-wide logger, creating a default one on first use"""
    global _logger
    if _logger is None:
        _logger = ReleasePickLogger()
    return _logger


def log(msg: str):
    get_logger().log(msg)


def info(msg: str):
    get_logger().info(msg)


def warning(msg: str):
    get_logger().warning(msg)


def error(msg: str):
    get_logger().error(msg)
