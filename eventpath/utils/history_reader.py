"""
CSV history file parser.

Reads event histories in CSV format. The header row names attributes;
each data row is one event, in chronological order. Empty cells leave
the attribute unbound.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from eventpath.core.event import Attribute, Event, Value, parse_value


@dataclass
class HistoryMetadata:
    """
    Metadata extracted from a history file.

    Attributes:
        label: History name from the ``# history:`` directive, if any.
        attributes: Attributes named by the header row, in column order.
        event_count: Total number of events.
    """

    label: Optional[str]
    attributes: Tuple[Attribute, ...]
    event_count: int


@dataclass
class HistoryData:
    """
    Complete history loaded from a file.

    Attributes:
        events: All events in file order.
        metadata: History metadata.
    """

    events: List[Event]
    metadata: HistoryMetadata


class HistoryReader:
    """
    Parses CSV history files into Event objects.

    Expected CSV format::

        # Optional: history label directive
        # history: alice-2024-05-01

        event_type,user_name,cart_id,timestamp
        add_item,alice,c-1,2024-05-01T10:00:00
        abandon,alice,c-1,2024-05-01T10:30:00

    Cells are coerced to each attribute's natural value variant; a
    ``str:``, ``id:``, ``email:`` or ``datetime:`` prefix forces one.

    Attributes:
        filepath: Path to the history CSV file.
    """

    def __init__(self, filepath: Path) -> None:
        """
        Initialize reader with file path.

        Args:
            filepath: Path to the CSV history file.
        """
        self.filepath: Path = Path(filepath)

    def read_all(self) -> HistoryData:
        """
        Read all events together with the file's metadata.

        Returns:
            HistoryData with events and metadata.
        """
        directives = self._parse_directives()
        events = self.read_events()
        metadata = HistoryMetadata(
            label=directives.get("history"),
            attributes=self._header_attributes(),
            event_count=len(events),
        )
        return HistoryData(events=events, metadata=metadata)

    def read_events(self) -> List[Event]:
        """
        Read all events from the file.

        Returns:
            List of Event objects in file order.

        Raises:
            FileNotFoundError: If the history file does not exist.
            ValueError: If a header names an unknown attribute or a
                cell cannot be parsed.
        """
        if not self.filepath.exists():
            raise FileNotFoundError(f"History file not found: {self.filepath}")

        lines = self._read_data_lines()
        if not lines:
            return []

        rows = self._numbered_rows(lines)
        _, header = next(rows)
        columns = self.parse_header(header)

        events: List[Event] = []
        for line_number, row in rows:
            events.append(self._parse_row(row, columns, line_number))
        return events

    def read_grouped(self, attribute: Attribute) -> Dict[str, List[Event]]:
        """
        Split the file into per-key histories.

        Events are grouped by the text of their ``attribute`` value,
        keeping file order within each group and first-seen order
        between groups. Events without the attribute go under ``""``.

        Args:
            attribute: The attribute to group by (e.g. user name).

        Returns:
            Mapping from key to that key's history.
        """
        groups: Dict[str, List[Event]] = {}
        for ev in self.read_events():
            value = ev.get(attribute)
            key = value.text if value is not None else ""
            groups.setdefault(key, []).append(ev)
        return groups

    def validate(self) -> List[str]:
        """
        Validate the history file and return a list of error strings.

        Validates:
        - The file exists and has a header row
        - Every header names a known attribute
        - Every row has no more cells than the header
        - Every cell parses as a value

        Returns:
            List of error messages (empty if valid).
        """
        errors: List[str] = []

        if not self.filepath.exists():
            errors.append(f"File not found: {self.filepath}")
            return errors

        lines = self._read_data_lines()
        if not lines:
            errors.append("No header found in file")
            return errors

        rows = self._numbered_rows(lines)
        try:
            columns = self.parse_header(next(rows)[1])
        except ValueError as exc:
            errors.append(str(exc))
            return errors

        for line_number, row in rows:
            try:
                self._parse_row(row, columns, line_number)
            except ValueError as exc:
                errors.append(str(exc))

        return errors

    # ------------------------------------------------------------------ #
    # Static helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def parse_header(names: List[str]) -> List[Attribute]:
        """
        Map header names to attributes.

        Raises:
            ValueError: On an unknown or duplicated attribute name.
        """
        columns: List[Attribute] = []
        for name in names:
            attr = Attribute.from_name(name)
            if attr in columns:
                raise ValueError(f"Duplicate attribute column '{attr.value}'")
            columns.append(attr)
        return columns

    @staticmethod
    def parse_cell(attribute: Attribute, text: str) -> Optional[Value]:
        """
        Parse one cell; empty cells yield None.

        Raises:
            ValueError: If the cell cannot be parsed.
        """
        text = text.strip()
        if not text:
            return None
        return parse_value(attribute, text)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _parse_directives(self) -> dict:
        """Extract directives from comment lines."""
        directives: dict = {}
        if not self.filepath.exists():
            return directives

        with open(self.filepath) as f:
            for line in f:
                line = line.strip()
                if not line.startswith("#"):
                    continue
                content = line.lstrip("#").strip()
                if content.startswith("history:"):
                    directives["history"] = content.split(":", 1)[1].strip() or None
        return directives

    def _read_data_lines(self) -> List[Tuple[int, str]]:
        """Read non-comment, non-empty lines with their 1-based file line numbers."""
        if not self.filepath.exists():
            return []

        lines: List[Tuple[int, str]] = []
        with open(self.filepath) as f:
            for line_number, line in enumerate(f, start=1):
                stripped = line.strip()
                if stripped and not stripped.startswith("#"):
                    lines.append((line_number, stripped))
        return lines

    @staticmethod
    def _numbered_rows(
        lines: List[Tuple[int, str]],
    ) -> Iterator[Tuple[int, List[str]]]:
        """Split each data line into cells, keeping its file line number."""
        numbers = [number for number, _ in lines]
        return zip(numbers, csv.reader(text for _, text in lines))

    def _header_attributes(self) -> Tuple[Attribute, ...]:
        lines = self._read_data_lines()
        if not lines:
            return ()
        _, header = next(self._numbered_rows(lines))
        return tuple(self.parse_header(header))

    def _parse_row(
        self, row: List[str], columns: List[Attribute], line_number: int,
    ) -> Event:
        """Parse a single CSV row into an Event."""
        if len(row) > len(columns):
            raise ValueError(
                f"Line {line_number}: {len(row)} cells but only {len(columns)} columns"
            )
        bindings: Dict[Attribute, Value] = {}
        for attr, cell in zip(columns, row):
            try:
                value = self.parse_cell(attr, cell)
            except ValueError as exc:
                raise ValueError(f"Line {line_number}: {exc}") from None
            if value is not None:
                bindings[attr] = value
        return Event(bindings)
