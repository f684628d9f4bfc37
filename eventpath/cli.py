"""
Command-line interface for the EventPath history matcher.

Provides argument parsing and orchestration for matching a history
pattern against event histories supplied as CSV files.
"""

from __future__ import annotations

import argparse
import io
import sys
from pathlib import Path
from typing import Dict, List

import eventpath
from eventpath.core.event import Attribute, Event
from eventpath.core.matcher import HistoryMatcher, MatchReport
from eventpath.parser.pattern import load_pattern, simplify
from eventpath.utils.history_reader import HistoryReader
from eventpath.utils.logger import LogLevel, MatcherLogger
from eventpath.utils.visualization import HistoryVisualizer, PatternVisualizer


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the EventPath CLI."""
    parser = argparse.ArgumentParser(
        prog="eventpath",
        description=(
            "EventPath - match declarative event patterns "
            "against customer event histories"
        ),
    )

    required = parser.add_argument_group("required arguments")
    required.add_argument(
        "-p",
        "--pattern",
        type=Path,
        required=True,
        help="Path to pattern file (.pat)",
    )
    required.add_argument(
        "-H",
        "--history",
        type=Path,
        required=True,
        help="Path to history file (.csv)",
    )

    parser.add_argument(
        "-g",
        "--group-by",
        choices=[a.value for a in Attribute],
        default=None,
        metavar="ATTRIBUTE",
        help="Match each per-ATTRIBUTE history separately (e.g. user_name)",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=["silent", "normal", "verbose"],
        default="normal",
        help="Output level (default: normal)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        type=int,
        choices=[0, 1, 2, 3],
        default=0,
        help="Debug level 0-3 (default: 0)",
    )
    parser.add_argument(
        "--simplify",
        action="store_true",
        help="Simplify the pattern before matching",
    )
    parser.add_argument(
        "--visualize",
        nargs="?",
        const="__stdout__",
        default=None,
        metavar="FILE",
        help="Generate pattern tree visualization (optionally to FILE)",
    )
    parser.add_argument(
        "--visualize-ascii",
        action="store_true",
        help="Print ASCII pattern tree and history timeline to terminal",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print statistics after matching",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"eventpath {eventpath.__version__}",
    )

    return parser


def _resolve_log_level(output: str, debug: int) -> LogLevel:
    """Determine the effective log level from output and debug settings."""
    if debug >= 3:
        return LogLevel.DEBUG
    if output == "verbose" or debug >= 1:
        return LogLevel.VERBOSE
    if output == "silent":
        return LogLevel.SILENT
    return LogLevel.NORMAL


def main() -> None:
    """Entry point for the ``eventpath`` CLI command."""
    parser = _build_parser()
    args = parser.parse_args()

    try:
        _run(args)
    except SystemExit:
        raise
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)


def _run(args: argparse.Namespace) -> None:
    """Execute the matching pipeline."""
    if not args.pattern.exists():
        print(f"Error: Pattern file not found: {args.pattern}", file=sys.stderr)
        sys.exit(2)

    if not args.history.exists():
        print(f"Error: History file not found: {args.history}", file=sys.stderr)
        sys.exit(2)

    log_level = _resolve_log_level(args.output, args.debug)
    stream = sys.stdout if args.output != "silent" else io.StringIO()
    logger = MatcherLogger(level=log_level, stream=stream)

    pattern = load_pattern(args.pattern)
    if args.simplify:
        pattern = simplify(pattern)
        logger.info(f"Simplified pattern: {pattern}")

    reader = HistoryReader(args.history)
    histories: Dict[str, List[Event]]
    if args.group_by is not None:
        histories = reader.read_grouped(Attribute.from_name(args.group_by))
    else:
        data = reader.read_all()
        histories = {data.metadata.label or args.history.stem: data.events}

    matcher = HistoryMatcher(pattern=pattern, logger=logger)
    reports = matcher.match_all(histories)

    if args.visualize_ascii:
        print()
        print(PatternVisualizer(pattern).to_ascii())
        for key, events in histories.items():
            report = reports[key]
            print()
            print(f"--- {key} ---")
            print(HistoryVisualizer(events, report.result).render())

    if args.visualize is not None:
        viz = PatternVisualizer(pattern)
        if args.visualize == "__stdout__":
            print(viz.to_dot())
        else:
            filepath = Path(args.visualize)
            suffix = filepath.suffix.lower()
            if suffix in (".png", ".pdf", ".svg"):
                try:
                    viz.save_png(filepath)
                except RuntimeError as e:
                    print(f"Warning: {e}", file=sys.stderr)
                    viz.save_dot(filepath.with_suffix(".dot"))
            else:
                viz.save_dot(filepath)

    # Statistics (skip if verbose already printed them)
    if args.stats and log_level.value < LogLevel.VERBOSE.value:
        _print_statistics(reports)

    if reports and all(r.matched for r in reports.values()):
        sys.exit(0)
    else:
        sys.exit(1)


def _print_statistics(reports: Dict[str, MatchReport]) -> None:
    """Print per-history statistics."""
    for key, report in reports.items():
        print()
        print(f"=== Statistics ({key}) ===")
        for name, value in report.statistics.items():
            label = name.replace("_", " ").title()
            print(f"  {label}: {value}")
