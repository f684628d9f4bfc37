"""
Pattern utilities.

Provides convenience functions for parsing, loading, inspecting and
simplifying history patterns: leaf predicate extraction, attribute
listing, node counting, canonical string conversion, and
match-preserving simplification.
"""

from __future__ import annotations

from pathlib import Path
from typing import FrozenSet

from eventpath.core.event import Attribute
from eventpath.core.event_pattern import EventPattern, HasAttributeValue
from eventpath.core.history_pattern import (
    EventMatch,
    HistoryPattern,
    MatchesAny,
    Repeat,
    Sequence,
)
from eventpath.parser.grammar import ParseError, PatternParser


_parser = PatternParser()


def parse_pattern(text: str) -> HistoryPattern:
    """
    Parse a pattern string into a HistoryPattern.

    Raises:
        LexerError: If the text contains an invalid character.
        ParseError: If the pattern is invalid.
    """
    return _parser.parse(text)


def load_pattern(path: Path) -> HistoryPattern:
    """
    Read and parse a pattern file.

    Lines whose first non-blank character is ``#`` are ignored; the
    remaining lines are joined with spaces.

    Raises:
        FileNotFoundError: If the file does not exist.
        ParseError: If the file holds no pattern or an invalid one.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pattern file not found: {path}")
    lines = [
        line for line in path.read_text().splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    if not lines:
        raise ParseError(f"Pattern file is empty: {path}")
    return parse_pattern(" ".join(lines))


def to_string(pattern: HistoryPattern) -> str:
    """Convert a pattern to its canonical, re-parseable string form."""
    return str(pattern)


def size(pattern: HistoryPattern) -> int:
    """Return the number of nodes in the pattern tree."""
    return sum(1 for _ in pattern.walk())


def event_patterns(pattern: HistoryPattern) -> FrozenSet[EventPattern]:
    """Return every single-event predicate used by the pattern."""
    return frozenset(
        node.event_pattern for node in pattern.walk() if isinstance(node, EventMatch)
    )


def attributes(pattern: HistoryPattern) -> FrozenSet[Attribute]:
    """Return every attribute the pattern inspects."""
    return frozenset(
        ep.attribute for ep in event_patterns(pattern) if isinstance(ep, HasAttributeValue)
    )


def simplify(pattern: HistoryPattern) -> HistoryPattern:
    """
    Apply match-preserving simplifications, bottom-up.

    Rules:
        - any >> p       → p
        - p >> any       → p
        - p{0}           → any       (zero repetitions consume nothing)
        - any{...}       → any
        - p{1}           → p

    The simplified pattern matches exactly the histories the input
    matches and consumes the same prefix on success.
    """
    return _simplify(pattern)


def _simplify(p: HistoryPattern) -> HistoryPattern:
    if isinstance(p, (MatchesAny, EventMatch)):
        return p

    if isinstance(p, Sequence):
        first = _simplify(p.first)
        second = _simplify(p.second)
        if isinstance(first, MatchesAny):
            return second
        if isinstance(second, MatchesAny):
            return first
        return Sequence(first, second)

    if isinstance(p, Repeat):
        inner = _simplify(p.pattern)
        if p.max_count == 0 or isinstance(inner, MatchesAny):
            return MatchesAny()
        if p.min_count == 1 and p.max_count == 1:
            return inner
        return Repeat(inner, p.min, p.max)

    return p  # pragma: no cover
