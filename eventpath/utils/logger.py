"""
Structured logging for the history matcher.

Provides configurable log levels (silent, normal, verbose, debug)
with consistent formatting for progress updates, verdicts,
per-event summaries, interpreter steps and matching statistics.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any, Dict, TextIO

from eventpath.core.event import Event


class LogLevel(Enum):
    """
    Logging levels for the matcher.

    SILENT:  No output at all.
    NORMAL:  Final verdict only.
    VERBOSE: Progress information, events and statistics.
    DEBUG:   Every interpreter step.
    """

    SILENT = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


class MatcherLogger:
    """
    Structured logger for the history matcher.

    Output is filtered by the configured log level.

    Attributes:
        level: The minimum log level to display.
        stream: The output stream (defaults to stdout).
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.NORMAL,
        stream: TextIO = sys.stdout,
    ) -> None:
        """
        Initialize logger with level and output stream.

        Args:
            level: Minimum log level to display.
            stream: Output stream (default: sys.stdout).
        """
        self.level: LogLevel = level
        self.stream: TextIO = stream

    def enabled(self, level: LogLevel) -> bool:
        """True if messages at ``level`` are written."""
        return self.level.value >= level.value

    def debug(self, message: str, **kwargs: Any) -> None:
        """
        Log a debug message (only shown at DEBUG level).

        Args:
            message: The message to log.
            **kwargs: Additional key-value pairs to include.
        """
        if self.enabled(LogLevel.DEBUG):
            self._write(f"[DEBUG] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def info(self, message: str, **kwargs: Any) -> None:
        """
        Log an info message (shown at VERBOSE and DEBUG levels).

        Args:
            message: The message to log.
            **kwargs: Additional key-value pairs to include.
        """
        if self.enabled(LogLevel.VERBOSE):
            self._write(f"[INFO] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def verdict_matched(self, label: str, consumed: int) -> None:
        """Log a MATCHED verdict (shown at NORMAL level and above)."""
        if self.enabled(LogLevel.NORMAL):
            self._write(
                f"MATCHED: Pattern matches {label} ({consumed} events consumed)"
            )

    def verdict_unmatched(self, label: str) -> None:
        """Log a NOT MATCHED verdict (shown at NORMAL level and above)."""
        if self.enabled(LogLevel.NORMAL):
            self._write(f"NOT MATCHED: Pattern does not match {label}")

    def statistics(self, stats: Dict[str, Any]) -> None:
        """
        Log matching statistics (shown at VERBOSE level and above).

        Args:
            stats: Dictionary of statistic names to values.
        """
        if self.enabled(LogLevel.VERBOSE):
            self._write("=== Statistics ===")
            for key, value in stats.items():
                label = key.replace("_", " ").title()
                self._write(f"  {label}: {value}")

    def event_info(self, index: int, event: Event, consumed: bool) -> None:
        """
        Log one history event at VERBOSE level.

        Args:
            index: Position of the event in the history.
            event: The event.
            consumed: Whether the match consumed this event.
        """
        if self.enabled(LogLevel.VERBOSE):
            fields = ", ".join(
                f"{attr.value}={value.text}" for attr, value in event.items()
            ) or "(none)"
            marker = "consumed" if consumed else "remaining"
            self._write(f"[EVENT] #{index} ({marker}) {fields}")

    def step(self, pattern: str, start: int, end: int, matched: bool) -> None:
        """
        Log one interpreter step (shown at DEBUG level).

        Args:
            pattern: The evaluated pattern node.
            start: History position the node started at.
            end: History position the node stopped at.
            matched: Whether the node matched.
        """
        if self.enabled(LogLevel.DEBUG):
            outcome = "ok" if matched else "fail"
            self._write(f"[STEP] {pattern} @ {start}..{end}: {outcome}")

    def _write(self, message: str) -> None:
        """Write a line to the output stream."""
        self.stream.write(message + "\n")
