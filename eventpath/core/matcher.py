"""
Interpreter for history patterns.

``consume`` runs a pattern against a history and reports how much of
the history it consumed and whether it matched; ``matches`` keeps only
the verdict. Both are pure: no logging, no shared state, no exceptions
for a non-match.

``HistoryMatcher`` wraps the interpreter for application use, adding
logging, statistics, file loading and batch matching over many
independent histories.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from eventpath.core.event import Event, History
from eventpath.core.history_pattern import (
    EventMatch,
    HistoryPattern,
    MatchesAny,
    Repeat,
)
from eventpath.core.history_pattern import Sequence as SequencePattern
from eventpath.parser.pattern import load_pattern
from eventpath.utils.history_reader import HistoryReader
from eventpath.utils.logger import LogLevel, MatcherLogger

StepCallback = Callable[[HistoryPattern, int, int, bool], None]


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of consuming a history with a pattern.

    Attributes:
        remaining: The suffix of the history left unconsumed.
        matched: Whether the pattern matched.
        consumed: Number of events taken from the head of the history.
    """

    remaining: History
    matched: bool
    consumed: int = 0


class _Interpreter:
    """
    Recursive evaluator over a fixed history.

    Positions are indexes into ``events``; a position stands for the
    suffix starting there.
    """

    def __init__(
        self, events: History, on_step: Optional[StepCallback] = None,
    ) -> None:
        self.events = events
        self.steps = 0
        self._on_step = on_step

    def consume(self, pattern: HistoryPattern, pos: int) -> Tuple[int, bool]:
        self.steps += 1

        if isinstance(pattern, EventMatch):
            if pos >= len(self.events):
                result = (pos, False)
            else:
                result = (pos + 1, pattern.event_pattern.matches(self.events[pos]))
        elif isinstance(pattern, MatchesAny):
            result = (pos, True)
        elif isinstance(pattern, SequencePattern):
            result = self._sequence(pattern, pos)
        elif isinstance(pattern, Repeat):
            result = self._repeat(pattern, pos)
        else:
            raise TypeError(f"Unknown history pattern node: {pattern!r}")

        if self._on_step is not None:
            self._on_step(pattern, pos, result[0], result[1])
        return result

    def _sequence(self, root: SequencePattern, pos: int) -> Tuple[int, bool]:
        """
        Evaluate a tree of nested sequences with an explicit stack.

        Nested ``Sequence`` nodes on either side are entered without
        recursing, so chains of any length stay within the interpreter's
        call depth. Step counts and step callbacks are the same as
        evaluating each nested sequence through ``consume``.
        """
        # Each frame: [sequence node, start position, first half done]
        frames: List[list] = []
        node: HistoryPattern = root
        at = pos
        while True:
            if isinstance(node, SequencePattern):
                if node is not root:
                    self.steps += 1
                frames.append([node, at, False])
                node = node.first
                continue

            result = self.consume(node, at)
            while frames:
                frame = frames[-1]
                seq, start, first_done = frame
                if not first_done and result[1]:
                    frame[2] = True
                    node, at = seq.second, result[0]
                    break
                frames.pop()
                if seq is not root and self._on_step is not None:
                    self._on_step(seq, start, result[0], result[1])
            else:
                return result

    def _repeat(self, node: Repeat, pos: int) -> Tuple[int, bool]:
        # Mandatory phase: every failure fails the repeat.
        for _ in range(node.min_count):
            nxt, ok = self.consume(node.pattern, pos)
            if not ok:
                return nxt, False
            if nxt == pos:
                # Zero-width success; every further iteration is identical.
                return pos, True
            pos = nxt

        # Optional phase: a failure stops the loop and is absorbed.
        available = len(self.events) - pos
        if node.max_count is None:
            budget = available
        else:
            budget = min(node.max_count - node.min_count, available)

        for _ in range(budget):
            nxt, ok = self.consume(node.pattern, pos)
            if not ok or nxt == pos:
                break
            pos = nxt

        return pos, True


def consume(history: Sequence[Event], pattern: HistoryPattern) -> MatchResult:
    """
    Consume a prefix of ``history`` with ``pattern``.

    Args:
        history: Chronological sequence of events.
        pattern: The pattern to apply.

    Returns:
        MatchResult with the unconsumed suffix and the verdict.
    """
    events = tuple(history)
    pos, matched = _Interpreter(events).consume(pattern, 0)
    return MatchResult(remaining=events[pos:], matched=matched, consumed=pos)


def matches(history: Sequence[Event], pattern: HistoryPattern) -> bool:
    """Return True if ``pattern`` matches a prefix of ``history``."""
    return consume(history, pattern).matched


# --------------------------------------------------------------------------- #
# Application-level matcher
# --------------------------------------------------------------------------- #


@dataclass
class MatchReport:
    """
    Result of running a HistoryMatcher over one history.

    Attributes:
        matched: Whether the pattern matched.
        verdict: Human-readable verdict string.
        consumed: Events consumed from the head of the history.
        remaining: Events left unconsumed.
        statistics: Dictionary of matching statistics.
    """

    matched: bool
    verdict: str
    consumed: History
    remaining: History
    statistics: Dict[str, Any]

    @property
    def result(self) -> MatchResult:
        """The report as a plain MatchResult."""
        return MatchResult(
            remaining=self.remaining,
            matched=self.matched,
            consumed=len(self.consumed),
        )


class HistoryMatcher:
    """
    Runs one history pattern against event histories.

    Attributes:
        pattern: The pattern to match.
        logger: Logger for progress and verdict output.
    """

    def __init__(
        self,
        pattern: HistoryPattern,
        logger: Optional[MatcherLogger] = None,
    ) -> None:
        """
        Initialize the matcher.

        Args:
            pattern: The pattern to match.
            logger: Optional logger (silent by default).
        """
        self.pattern: HistoryPattern = pattern
        self.logger: MatcherLogger = logger or MatcherLogger(LogLevel.SILENT)

        # Set by from_files
        self._loaded_history: Optional[History] = None
        self._loaded_label: Optional[str] = None

    def run(self, history: Sequence[Event], label: Optional[str] = None) -> MatchReport:
        """
        Match the pattern against a history.

        Args:
            history: Chronological sequence of events.
            label: Optional name of the history, used in log output.

        Returns:
            MatchReport with verdict, consumed prefix and statistics.
        """
        events = tuple(history)
        name = label or "history"
        self.logger.info(f"Loaded {len(events)} events for {name}")
        self.logger.info(f"Matching pattern: {self.pattern}")

        tracing = self.logger.level.value >= LogLevel.DEBUG.value
        interpreter = _Interpreter(
            events, on_step=self._trace_step if tracing else None,
        )
        pos, matched = interpreter.consume(self.pattern, 0)

        for index, ev in enumerate(events):
            self.logger.event_info(index, ev, consumed=index < pos)

        stats: Dict[str, Any] = {
            "events_total": len(events),
            "events_consumed": pos,
            "events_remaining": len(events) - pos,
            "pattern_nodes": sum(1 for _ in self.pattern.walk()),
            "steps": interpreter.steps,
        }

        if matched:
            verdict = f"MATCHED: Pattern matches {name} ({pos} events consumed)"
            self.logger.verdict_matched(name, pos)
        else:
            verdict = f"NOT MATCHED: Pattern does not match {name}"
            self.logger.verdict_unmatched(name)

        self.logger.statistics(stats)

        return MatchReport(
            matched=matched,
            verdict=verdict,
            consumed=events[:pos],
            remaining=events[pos:],
            statistics=stats,
        )

    def match_all(
        self, histories: Mapping[str, Sequence[Event]],
    ) -> Dict[str, MatchReport]:
        """
        Match the pattern against several independent histories.

        Args:
            histories: Mapping from history key (e.g. user name) to events.

        Returns:
            Mapping from the same keys to their reports, in input order.
        """
        return {key: self.run(events, label=key) for key, events in histories.items()}

    @classmethod
    def from_files(
        cls,
        pattern_file: Path,
        history_file: Path,
        logger: Optional[MatcherLogger] = None,
    ) -> "HistoryMatcher":
        """
        Create a matcher from a pattern file and a history CSV.

        Args:
            pattern_file: Path to the pattern file.
            history_file: Path to the history CSV file.
            logger: Optional logger.

        Returns:
            Configured HistoryMatcher ready to run.
        """
        pattern = load_pattern(Path(pattern_file))
        data = HistoryReader(history_file).read_all()

        matcher = cls(pattern=pattern, logger=logger)
        matcher._loaded_history = tuple(data.events)
        matcher._loaded_label = data.metadata.label
        return matcher

    def run_from_history(self) -> MatchReport:
        """
        Run the matcher on the history loaded by from_files.

        Raises:
            RuntimeError: If no history was loaded.
        """
        if self._loaded_history is None:
            raise RuntimeError(
                "No history loaded. Use from_files() to create matcher."
            )
        return self.run(self._loaded_history, label=self._loaded_label)

    def _trace_step(
        self, pattern: HistoryPattern, start: int, end: int, matched: bool,
    ) -> None:
        self.logger.step(str(pattern), start, end, matched)
