#!/usr/bin/env python3
"""
cli.py - Entry point for releasepick
Inspect quality profiles, parse release titles, and pick the best release from saved indexer results.
"""

try:
    import asyncio
    import sys
    import argparse
    import json
    from pathlib import Path
    from rich.console import Console
    from rich.table import Table
    from typing import Optional, Sequence
    import releasepick as pkg
    from .config import ReleasePickConfig, load_config
    from .logger import ReleasePickLogger, set_logger
    from .matching.relevance import RelevanceScorer
    from .matching.semantic import SemanticScorer
    from .matching.types import MatchQuery
    from .providers.parsers import raw_results_from_payload
    from .providers.registry import IndexerRegistry
    from .quality.parser import format_bytes, parse_extended
    from .quality.selector import ProfileNotFoundError, QualitySelector
    from .quality.types import ParsedTorrent
    from .search.pipeline import ReleaseSearch, SelectionOutcome
except ImportError as e:
    print(f"Error: Missing required dependency: {e}")
    print("Please install required dependencies: pip install -e .")
    sys.exit(1)

console = Console()

EXIT_SELECTED = 0
EXIT_CONFIG_ERROR = 1
EXIT_NOTHING_QUALIFIES = 2


def _ui_info(message: str) -> None:
    console.print(f"[cyan][INFO][/cyan] {message}")


def _ui_warn(message: str) -> None:
    console.print(f"[yellow][WARNING][/yellow] {message}")


def _ui_error(message: str) -> None:
    console.print(f"[red][ERROR][/red] {message}")


def resolve_config_path(args_config: Optional[str]) -> Path:
    if args_config:
        p = Path(args_config).expanduser()
        if p.is_dir():
            p = p / "config.toml"
        return p
    return Path.cwd() / "config.toml"


def display_profiles(config: ReleasePickConfig) -> None:
    """Print configured quality profiles and their preference rows."""
    profiles = config.profiles()
    if not profiles:
        _ui_warn(f"No quality profiles configured in \"{config.config_path}\"")
        return

    table = Table(title="Quality profiles")
    table.add_column("Profile", style="cyan")
    table.add_column("#", justify="right")
    table.add_column("Quality")
    table.add_column("Source")
    table.add_column("Min seeders", justify="right")
    table.add_column("Max size", justify="right")
    for profile in profiles.values():
        label = f"{profile.id} ({profile.name})"
        if not profile.items:
            table.add_row(label, "-", "-", "-", "-", "-")
        for index, item in enumerate(profile.items):
            table.add_row(
                label if index == 0 else "",
                str(index + 1),
                item.quality,
                item.source,
                str(item.min_seeders),
                f"{item.max_size:g} GB" if item.max_size > 0 else "no limit",
            )
    console.print(table)


def display_parsed_titles(titles: Sequence[str]) -> None:
    table = Table(title="Parsed titles")
    table.add_column("Title", style="cyan")
    table.add_column("Quality")
    table.add_column("Source")
    table.add_column("Codec")
    table.add_column("Audio")
    for title in titles:
        tags = parse_extended(title)
        table.add_row(title, tags.quality, tags.source, tags.codec or "-", tags.audio or "-")
    console.print(table)


def display_ranking(ranked: Sequence[ParsedTorrent], selected: Optional[ParsedTorrent]) -> None:
    table = Table(title="Ranked candidates")
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Quality")
    table.add_column("Source")
    table.add_column("Size", justify="right")
    table.add_column("Seeders", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Indexers", justify="right")
    for index, torrent in enumerate(ranked, 1):
        marker = "[green]✓[/green] " if torrent is selected else ""
        table.add_row(
            f"{marker}{index}",
            torrent.title,
            torrent.quality,
            torrent.source,
            format_bytes(torrent.size),
            str(torrent.seeders),
            str(torrent.match_score),
            str(torrent.indexer_count),
        )
    console.print(table)


def build_release_search(config: ReleasePickConfig) -> ReleaseSearch:
    """Pipeline wired for offline use: string-similarity scoring, no indexers."""
    matching = config.matching.model_copy(update={"use_semantic_scorer": False})
    scorer = RelevanceScorer.from_config(
        SemanticScorer(None, load_timeout_seconds=matching.load_timeout_seconds),
        matching,
    )
    registry = IndexerRegistry(
        failure_threshold=config.circuit_breaker.failure_threshold,
        cooldown_seconds=config.circuit_breaker.cooldown_seconds,
    )
    return ReleaseSearch(
        registry,
        scorer,
        QualitySelector(config.profiles()),
        matching=matching,
        hard_filters=config.hard_filters,
    )


def run_select(config: ReleasePickConfig, args: argparse.Namespace) -> int:
    results_path = Path(args.results).expanduser()
    try:
        payload = json.loads(results_path.read_text(encoding="utf-8"))
        results = raw_results_from_payload(payload, context=str(results_path))
    except (OSError, ValueError) as exc:
        _ui_error(f"Could not read results from {results_path}: {exc}")
        return EXIT_CONFIG_ERROR

    query = MatchQuery(title=args.title, performer=args.performer, studio=args.studio, date=args.date)
    search = build_release_search(config)
    try:
        outcome: SelectionOutcome = asyncio.run(search.select_from_results(query, results, args.profile))
    except ProfileNotFoundError as exc:
        _ui_error(str(exc))
        _ui_info(f"Configured profiles: {', '.join(search.selector.profile_ids) or 'none'}")
        return EXIT_CONFIG_ERROR

    _ui_info(f"{len(results)} results loaded, {len(outcome.considered)} passed hard filters")
    ranked = search.selector.rank(outcome.considered, args.profile)
    if ranked:
        display_ranking(ranked, outcome.selected)

    if outcome.selected is None:
        _ui_warn(f"No release qualifies under profile '{args.profile}'")
        return EXIT_NOTHING_QUALIFIES

    selected = outcome.selected
    _ui_info(f"Selected: {selected.title} [{outcome.classification}]")
    if selected.download_url:
        _ui_info(f"Download: {selected.download_url}")
    return EXIT_SELECTED


def show_help(parser: argparse.ArgumentParser) -> None:
    print(f"RELEASEPICK v{getattr(pkg, '__version__', '0.0.0')} - Pick the best release for a subscription")
    print()
    parser.print_help()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="releasepick", add_help=False)
    for args, kwargs in (
        (("-h", "--help"), {"action": "store_true", "help": "Show help"}),
        (("-c", "--config"), {"metavar": "PATH", "help": "Path to config.toml (file or directory)"}),
        (("-d", "--debug"), {"action": "store_true", "help": "Debug mode with timestamps and scoring events"}),
        (("-o", "--output"), {"metavar": "LOGFILE", "help": "Mirror all output to this log file"}),
    ):
        parser.add_argument(*args, **kwargs)

    commands = parser.add_subparsers(dest="command")
    commands.add_parser("profiles", help="List configured quality profiles")

    select = commands.add_parser("select", help="Pick the best release from saved indexer results")
    select.add_argument("--results", required=True, metavar="FILE", help="JSON file with raw indexer results")
    select.add_argument("--title", required=True, help="Expected scene title")
    select.add_argument("--performer", help="Expected performer")
    select.add_argument("--studio", help="Expected studio")
    select.add_argument("--date", help="Expected release date")
    select.add_argument("--profile", required=True, help="Quality profile id")

    parse = commands.add_parser("parse", help="Show quality/source/codec/audio parsed from titles")
    parse.add_argument("titles", nargs="+", metavar="TITLE")
    return parser


def main(argv: Optional[Sequence[str]] = None):
    """Entry point"""
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
        if args.help or not args.command:
            show_help(parser)
            sys.exit(0)

        log_file = Path(args.output).expanduser() if args.output else None
        set_logger(ReleasePickLogger(log_file=log_file, debug=args.debug))

        if args.command == "parse":
            display_parsed_titles(args.titles)
            sys.exit(0)

        config = load_config(resolve_config_path(args.config))
        if args.command == "profiles":
            display_profiles(config)
            sys.exit(0)

        sys.exit(run_select(config, args))
    except KeyboardInterrupt:
        _ui_info("Goodbye!")
        sys.exit(0)
    except Exception as e:
        _ui_error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
