"""
Event representation for customer event histories.

An event is one observed user action (adding an item to a cart,
abandoning a cart, ...) recorded as an immutable mapping from a closed
set of attributes to tagged values. A history is the chronological,
finite sequence of events observed for one user or session.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import ClassVar, Dict, Iterator, Optional, Sequence, Tuple, Type, Union

# Well-known values of the ``event_type`` attribute.
ADD_ITEM = "add_item"
REMOVE_ITEM = "remove_item"
ABANDON = "abandon"


# === Values ===


@dataclass(frozen=True)
class Value:
    """
    Base class for attribute values.

    Values form a closed tagged union. Two values are equal only when
    they are the same variant carrying the same payload, so
    ``Str("x") != Identifier("x")``.
    """

    tag: ClassVar[str] = ""

    @property
    def text(self) -> str:
        """Return the payload as plain text."""
        raise NotImplementedError

    @classmethod
    def from_text(cls, text: str) -> Value:
        """Build a value of this variant from its textual payload."""
        raise NotImplementedError

    def render(self) -> str:
        """Return the explicitly tagged form, e.g. ``id("c-17")``."""
        return f"{self.tag}({quote(self.text)})"


@dataclass(frozen=True)
class Str(Value):
    """A free-form string value."""

    value: str

    tag: ClassVar[str] = "str"

    @property
    def text(self) -> str:
        return self.value

    @classmethod
    def from_text(cls, text: str) -> Str:
        return cls(text)


@dataclass(frozen=True)
class Identifier(Value):
    """An opaque identifier (cart id, session id)."""

    value: str

    tag: ClassVar[str] = "id"

    @property
    def text(self) -> str:
        return self.value

    @classmethod
    def from_text(cls, text: str) -> Identifier:
        return cls(text)


@dataclass(frozen=True)
class EmailAddress(Value):
    """An email address."""

    value: str

    tag: ClassVar[str] = "email"

    @property
    def text(self) -> str:
        return self.value

    @classmethod
    def from_text(cls, text: str) -> EmailAddress:
        return cls(text)


@dataclass(frozen=True)
class DateTime(Value):
    """A point in time."""

    value: datetime

    tag: ClassVar[str] = "datetime"

    @property
    def text(self) -> str:
        return self.value.isoformat()

    @classmethod
    def from_text(cls, text: str) -> DateTime:
        """
        Parse an ISO-8601 date-time.

        A trailing ``Z`` is accepted as UTC.

        Raises:
            ValueError: If the text is not a valid ISO-8601 date-time.
        """
        raw = text.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            return cls(datetime.fromisoformat(raw))
        except ValueError:
            raise ValueError(f"Invalid date-time '{text}'") from None


VALUE_VARIANTS: Dict[str, Type[Value]] = {
    cls.tag: cls for cls in (Str, Identifier, EmailAddress, DateTime)
}


def quote(text: str) -> str:
    """Quote text as a double-quoted literal, escaping ``\\`` and ``"``."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


# === Attributes ===


class Attribute(Enum):
    """
    Closed set of field slots an event can carry.

    The enum value is the attribute's textual name as used in history
    files and in the pattern language.
    """

    EVENT_TYPE = "event_type"
    USER_NAME = "user_name"
    SHOPPING_CART_ID = "cart_id"
    EMAIL = "email"
    WEB_SESSION = "session_id"
    DATE_TIME = "timestamp"

    @classmethod
    def from_name(cls, name: str) -> Attribute:
        """
        Look up an attribute by its textual name.

        Raises:
            ValueError: If no attribute has that name.
        """
        try:
            return cls(name.strip())
        except ValueError:
            known = ", ".join(a.value for a in cls)
            raise ValueError(
                f"Unknown attribute '{name}' (expected one of: {known})"
            ) from None

    @property
    def natural_variant(self) -> Type[Value]:
        """The value variant plain literals are coerced to for this attribute."""
        return _NATURAL_VARIANTS[self]

    def coerce(self, raw: Union[str, Value]) -> Value:
        """
        Turn a plain literal into this attribute's natural value variant.

        Values that are already tagged are returned unchanged.
        """
        if isinstance(raw, Value):
            return raw
        return self.natural_variant.from_text(raw)

    def format(self, value: Value) -> str:
        """
        Render a value for this attribute in pattern-language syntax.

        Values of the natural variant are written as plain literals,
        others in their tagged form.
        """
        if type(value) is self.natural_variant:
            return quote(value.text)
        return value.render()


_NATURAL_VARIANTS: Dict[Attribute, Type[Value]] = {
    Attribute.EVENT_TYPE: Str,
    Attribute.USER_NAME: Str,
    Attribute.SHOPPING_CART_ID: Identifier,
    Attribute.EMAIL: EmailAddress,
    Attribute.WEB_SESSION: Identifier,
    Attribute.DATE_TIME: DateTime,
}

_TAGGED_CELL = re.compile(r"^(str|id|email|datetime):(.*)$", re.DOTALL)


def parse_value(attribute: Attribute, text: str) -> Value:
    """
    Parse a textual cell into a value for ``attribute``.

    A ``tag:`` prefix (``str:``, ``id:``, ``email:``, ``datetime:``)
    forces a variant; otherwise the attribute's natural variant is used.

    Raises:
        ValueError: If a date-time payload cannot be parsed.
    """
    m = _TAGGED_CELL.match(text)
    if m:
        return VALUE_VARIANTS[m.group(1)].from_text(m.group(2))
    return attribute.coerce(text)


# === Events ===


class Event(Mapping):
    """
    Immutable mapping from attributes to values describing one action.

    Supports the read-only mapping protocol (``event.get(attr)``,
    ``attr in event``, iteration) and is hashable.

    Example::

        Event.of(event_type="add_item", user_name="alice")
    """

    __slots__ = ("_bindings",)

    def __init__(self, bindings: Optional[Mapping] = None) -> None:
        checked: Dict[Attribute, Value] = {}
        for attr, value in (bindings or {}).items():
            if not isinstance(attr, Attribute):
                raise TypeError(f"Event keys must be Attribute, got {attr!r}")
            if not isinstance(value, Value):
                raise TypeError(f"Event values must be Value, got {value!r}")
            checked[attr] = value
        self._bindings = MappingProxyType(checked)

    @classmethod
    def of(cls, **fields: Union[str, Value]) -> Event:
        """
        Build an event from attribute names given as keywords.

        Plain strings are coerced to each attribute's natural variant.

        Raises:
            ValueError: If a keyword is not an attribute name.
        """
        bindings: Dict[Attribute, Value] = {}
        for name, raw in fields.items():
            attr = Attribute.from_name(name)
            bindings[attr] = attr.coerce(raw)
        return cls(bindings)

    @property
    def event_type(self) -> Optional[str]:
        """The event type payload, if bound."""
        value = self._bindings.get(Attribute.EVENT_TYPE)
        return value.text if value is not None else None

    def __getitem__(self, key: Attribute) -> Value:
        return self._bindings[key]

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __hash__(self) -> int:
        return hash(frozenset(self._bindings.items()))

    def __repr__(self) -> str:
        fields = ", ".join(
            f"{attr.value}={value.text!r}" for attr, value in self._bindings.items()
        )
        return f"Event({fields})"


History = Tuple[Event, ...]


def as_history(events: Sequence[Event]) -> History:
    """Freeze a sequence of events into a history tuple."""
    return tuple(events)
