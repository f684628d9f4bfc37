"""
Declarative patterns over event histories.

A history pattern describes how a prefix of a history is consumed and
whether it matches. Patterns are immutable trees built from four node
types (``MatchesAny``, ``EventMatch``, ``Sequence``, ``Repeat``) with
the constructors and combinators defined at the bottom of this module.
Combinators always build new nodes; existing trees are never modified.

Interpretation lives in :mod:`eventpath.core.matcher`.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Iterator, Optional, Tuple, Union

from eventpath.core.event import Attribute, Value, quote
from eventpath.core.event_pattern import AnyEvent, EventPattern, HasAttributeValue

# Words the pattern language reserves; event types spelled like these are quoted.
KEYWORDS = frozenset({"any", "then"})

_BARE_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


class HistoryPattern(ABC):
    """
    Base class for all history pattern nodes.

    All nodes are immutable and support equality comparison and
    hashing. ``a >> b`` is shorthand for ``a.then(b)``.
    """

    def then(self, that: HistoryPattern) -> HistoryPattern:
        """Match this pattern, then ``that`` on the remaining history."""
        return Sequence(self, that)

    def __rshift__(self, that: object) -> HistoryPattern:
        if not isinstance(that, HistoryPattern):
            return NotImplemented
        return self.then(that)

    def at_least(self, n: int) -> HistoryPattern:
        """Repeat this pattern ``n`` or more times."""
        return self.repeat(n, None)

    def at_most(self, n: int) -> HistoryPattern:
        """Repeat this pattern up to ``n`` times."""
        return self.repeat(None, n)

    def between(self, min: int, max: int) -> HistoryPattern:
        """Repeat this pattern between ``min`` and ``max`` times."""
        return self.repeat(min, max)

    def repeat(
        self, min: Optional[int] = None, max: Optional[int] = None,
    ) -> HistoryPattern:
        """Repeat this pattern; ``None`` bounds mean 0 and unbounded."""
        return Repeat(self, min, max)

    @abstractmethod
    def children(self) -> Tuple[HistoryPattern, ...]:
        """Return the direct sub-patterns of this node."""

    def walk(self) -> Iterator[HistoryPattern]:
        """Yield this node and all sub-patterns in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children()))

    @abstractmethod
    def __str__(self) -> str:
        """Return the pattern-language representation."""

    @abstractmethod
    def __eq__(self, other: object) -> bool:
        """Check equality with another pattern."""

    @abstractmethod
    def __hash__(self) -> int:
        """Return hash for use in sets and dicts."""

    def __repr__(self) -> str:
        return str(self)


# === Leaves ===


class MatchesAny(HistoryPattern):
    """Consumes nothing and always matches."""

    def children(self) -> Tuple[HistoryPattern, ...]:
        return ()

    def __str__(self) -> str:
        return "any"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MatchesAny):
            return NotImplemented
        return True

    def __hash__(self) -> int:
        return hash(("MatchesAny",))


class EventMatch(HistoryPattern):
    """
    Consumes exactly one event and matches iff it satisfies a predicate.

    On an exhausted history nothing is consumed and the match fails.

    Attributes:
        event_pattern: The predicate applied to the head event.
    """

    __slots__ = ("event_pattern",)

    def __init__(self, event_pattern: EventPattern) -> None:
        self.event_pattern = event_pattern

    def children(self) -> Tuple[HistoryPattern, ...]:
        return ()

    def __str__(self) -> str:
        ep = self.event_pattern
        if (
            isinstance(ep, HasAttributeValue)
            and ep.attribute is Attribute.EVENT_TYPE
            and type(ep.value) is Attribute.EVENT_TYPE.natural_variant
        ):
            name = ep.value.text
            if _BARE_NAME.match(name) and name not in KEYWORDS:
                return name
            return quote(name)
        return str(ep)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EventMatch):
            return NotImplemented
        return self.event_pattern == other.event_pattern

    def __hash__(self) -> int:
        return hash(("EventMatch", self.event_pattern))


# === Composites ===


class Sequence(HistoryPattern):
    """
    Matches ``first`` and then ``second`` on what ``first`` left over.

    Attributes:
        first: Pattern applied to the history.
        second: Pattern applied to the remainder after ``first``.
    """

    __slots__ = ("first", "second")

    def __init__(self, first: HistoryPattern, second: HistoryPattern) -> None:
        self.first = first
        self.second = second

    def children(self) -> Tuple[HistoryPattern, ...]:
        return (self.first, self.second)

    def __str__(self) -> str:
        # Rendered from a stack; sequence chains may be arbitrarily deep.
        parts = []
        stack: list = [self]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, Sequence):
                stack.extend((")", item.second, " >> ", item.first, "("))
            else:
                parts.append(str(item))
        return "".join(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sequence):
            return NotImplemented
        return self.first == other.first and self.second == other.second

    def __hash__(self) -> int:
        return hash(("Sequence", self.first, self.second))


class Repeat(HistoryPattern):
    """
    Applies ``pattern`` repeatedly.

    The first ``min`` applications are mandatory; up to ``max - min``
    further applications are attempted and a failure among them ends
    the repetition without failing it.

    Attributes:
        pattern: The repeated pattern.
        min: Lower bound as given (``None`` means 0).
        max: Upper bound as given (``None`` means unbounded).
    """

    __slots__ = ("pattern", "min", "max")

    def __init__(
        self,
        pattern: HistoryPattern,
        min: Optional[int] = None,
        max: Optional[int] = None,
    ) -> None:
        if min is not None and min < 0:
            raise ValueError(f"Repeat lower bound must be >= 0, got {min}")
        if max is not None and max < 0:
            raise ValueError(f"Repeat upper bound must be >= 0, got {max}")
        if min is not None and max is not None and min > max:
            raise ValueError(
                f"Repeat lower bound {min} exceeds upper bound {max}"
            )
        self.pattern = pattern
        self.min = min
        self.max = max

    @property
    def min_count(self) -> int:
        """Number of mandatory repetitions."""
        return self.min if self.min is not None else 0

    @property
    def max_count(self) -> Optional[int]:
        """Maximum number of repetitions, or None when unbounded."""
        return self.max

    def children(self) -> Tuple[HistoryPattern, ...]:
        return (self.pattern,)

    def __str__(self) -> str:
        return f"{self.pattern}{self._suffix()}"

    def _suffix(self) -> str:
        lo, hi = self.min, self.max
        if lo is None and hi is None:
            return "*"
        if lo is None:
            return "?" if hi == 1 else f"{{,{hi}}}"
        if hi is None:
            return "+" if lo == 1 else f"{{{lo},}}"
        if lo == hi:
            return f"{{{lo}}}"
        return f"{{{lo},{hi}}}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Repeat):
            return NotImplemented
        return (
            self.pattern == other.pattern
            and self.min == other.min
            and self.max == other.max
        )

    def __hash__(self) -> int:
        return hash(("Repeat", self.pattern, self.min, self.max))


# === Constructors and combinators ===


def matches_any() -> HistoryPattern:
    """Pattern that consumes nothing and always matches."""
    return MatchesAny()


def event(event_pattern: EventPattern) -> HistoryPattern:
    """Pattern matching one event against ``event_pattern``."""
    return EventMatch(event_pattern)


def any_event() -> HistoryPattern:
    """Pattern matching exactly one event, whatever it is."""
    return EventMatch(AnyEvent())


def event_pattern(attribute: Attribute, value: Union[str, Value]) -> HistoryPattern:
    """
    Pattern matching one event binding ``attribute`` to ``value``.

    Plain strings are coerced to the attribute's natural value variant.
    """
    return EventMatch(HasAttributeValue(attribute, value))


def event_type(name: str) -> HistoryPattern:
    """Pattern matching one event whose ``event_type`` is ``name``."""
    return event_pattern(Attribute.EVENT_TYPE, name)


def sequence(first: HistoryPattern, second: HistoryPattern) -> HistoryPattern:
    return first.then(second)


def at_least(pattern: HistoryPattern, n: int) -> HistoryPattern:
    return pattern.at_least(n)


def at_most(pattern: HistoryPattern, n: int) -> HistoryPattern:
    return pattern.at_most(n)


def between(pattern: HistoryPattern, min: int, max: int) -> HistoryPattern:
    return pattern.between(min, max)


def repeat(
    pattern: HistoryPattern,
    min: Optional[int] = None,
    max: Optional[int] = None,
) -> HistoryPattern:
    return pattern.repeat(min, max)
