"""
Predicates over single events.

The closed set of event predicates: ``AnyEvent`` accepts every event,
``HasAttributeValue`` accepts events binding an attribute to an equal
value. An absent attribute is a non-match, never an error.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Union

from eventpath.core.event import Attribute, Event, Value


class EventPattern(ABC):
    """
    Base class for single-event predicates.

    Patterns are immutable and support equality and hashing.
    """

    @abstractmethod
    def matches(self, event: Event) -> bool:
        """Return True if the event satisfies this predicate."""

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


class AnyEvent(EventPattern):
    """Satisfied by every event."""

    def matches(self, event: Event) -> bool:
        return True

    def __str__(self) -> str:
        return "[*]"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnyEvent):
            return NotImplemented
        return True

    def __hash__(self) -> int:
        return hash(("AnyEvent",))


class HasAttributeValue(EventPattern):
    """
    Satisfied iff the event binds ``attribute`` to a value equal to ``value``.

    Attributes:
        attribute: The attribute to inspect.
        value: The expected value (same variant and payload).
    """

    __slots__ = ("attribute", "value")

    def __init__(self, attribute: Attribute, value: Union[str, Value]) -> None:
        self.attribute = attribute
        self.value = attribute.coerce(value)

    def matches(self, event: Event) -> bool:
        return event.get(self.attribute) == self.value

    def __str__(self) -> str:
        return f"[{self.attribute.value} = {self.attribute.format(self.value)}]"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HasAttributeValue):
            return NotImplemented
        return self.attribute is other.attribute and self.value == other.value

    def __hash__(self) -> int:
        return hash(("HasAttributeValue", self.attribute, self.value))
