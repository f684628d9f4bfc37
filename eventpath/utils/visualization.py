"""
Visualization utilities for history patterns.

Generates visual representations of pattern trees (DOT, ASCII, JSON)
and ASCII timelines of a history showing which events a match
consumed.
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from eventpath.core.event import Attribute, Event
from eventpath.core.history_pattern import (
    EventMatch,
    HistoryPattern,
    MatchesAny,
    Repeat,
)
from eventpath.core.history_pattern import Sequence as SequencePattern
from eventpath.core.matcher import MatchResult


def _node_label(node: HistoryPattern) -> str:
    """Short label for a single tree node."""
    if isinstance(node, SequencePattern):
        return "then"
    if isinstance(node, Repeat):
        lo = node.min_count
        hi = "inf" if node.max_count is None else str(node.max_count)
        return f"repeat {lo}..{hi}"
    if isinstance(node, (EventMatch, MatchesAny)):
        return str(node)
    return type(node).__name__  # pragma: no cover


class PatternVisualizer:
    """
    Visualizer for history pattern trees.

    Renders the tree (composites as inner nodes, event predicates and
    ``any`` as leaves) in DOT (Graphviz), ASCII and JSON formats.

    Attributes:
        pattern: The pattern to visualize.
    """

    def __init__(self, pattern: HistoryPattern) -> None:
        """
        Initialize with a pattern.

        Args:
            pattern: The HistoryPattern to visualize.
        """
        self.pattern = pattern

    def to_dot(self) -> str:
        """
        Generate DOT format string for Graphviz rendering.

        Returns:
            A DOT format string.
        """
        lines: List[str] = ["digraph HistoryPattern {"]
        lines.append("  rankdir=TB;")
        lines.append("  node [shape=box, style=filled, fillcolor=lightyellow];")

        counter = 0

        def visit(node: HistoryPattern) -> int:
            nonlocal counter
            nid = counter
            counter += 1
            label = _node_label(node).replace("\\", "\\\\").replace('"', '\\"')
            style = ""
            if not node.children():
                style = ", shape=ellipse, fillcolor=lightblue"
            lines.append(f'  n{nid} [label="{label}"{style}];')
            for index, child in enumerate(node.children()):
                cid = visit(child)
                edge = f' [label="{index + 1}"]' if isinstance(node, SequencePattern) else ""
                lines.append(f"  n{nid} -> n{cid}{edge};")
            return nid

        visit(self.pattern)
        lines.append("}")
        return "\n".join(lines)

    def to_ascii(self, max_width: int = 80) -> str:
        """
        Generate an indented ASCII tree of the pattern.

        Args:
            max_width: Maximum line width.

        Returns:
            ASCII art string.
        """
        lines: List[str] = ["=== History Pattern ==="]

        def visit(node: HistoryPattern, prefix: str, last: bool, root: bool) -> None:
            branch = "" if root else ("└── " if last else "├── ")
            line = f"{prefix}{branch}{_node_label(node)}"
            if len(line) > max_width:
                line = line[: max_width - 3] + "..."
            lines.append(line)
            children = node.children()
            child_prefix = prefix if root else prefix + ("    " if last else "│   ")
            for index, child in enumerate(children):
                visit(child, child_prefix, index == len(children) - 1, False)

        visit(self.pattern, "", True, True)
        return "\n".join(lines)

    def to_json(self) -> str:
        """
        Generate JSON representation of the pattern tree.

        Returns:
            A JSON string with one object per node.
        """
        return json.dumps(self._to_dict(self.pattern), indent=2)

    def _to_dict(self, node: HistoryPattern) -> Dict[str, Any]:
        data: Dict[str, Any] = {"node": type(node).__name__}
        if isinstance(node, EventMatch):
            data["event"] = str(node.event_pattern)
        elif isinstance(node, Repeat):
            data["min"] = node.min
            data["max"] = node.max
        children = node.children()
        if children:
            data["children"] = [self._to_dict(c) for c in children]
        return data

    def save_dot(self, filepath: Path) -> None:
        """
        Save DOT format to a file.

        Args:
            filepath: Path to write the DOT file.
        """
        filepath.write_text(self.to_dot())

    def save_png(self, filepath: Path) -> None:
        """
        Render the tree using Graphviz; the format follows the suffix.

        Args:
            filepath: Path to write the image file.

        Raises:
            RuntimeError: If Graphviz is missing or fails.
        """
        fmt = filepath.suffix.lstrip(".").lower() or "png"
        try:
            result = subprocess.run(
                ["dot", f"-T{fmt}", "-o", str(filepath)],
                input=self.to_dot(),
                capture_output=True,
                text=True,
                timeout=30,
            )
            if result.returncode != 0:
                raise RuntimeError(f"Graphviz error: {result.stderr}")
        except FileNotFoundError:
            raise RuntimeError(
                "Graphviz 'dot' command not found. " "Install Graphviz to render images."
            )


class HistoryVisualizer:
    """
    ASCII timeline of a history and the prefix a match consumed.

    Attributes:
        history: The events, in order.
        result: Optional match result; when given, consumed events are
            marked and the end of the match is drawn.
    """

    def __init__(
        self,
        history: Sequence[Event],
        result: Optional[MatchResult] = None,
    ) -> None:
        self.history = tuple(history)
        self.result = result

    def render(self, max_width: int = 100) -> str:
        """
        Generate the timeline string.

        Args:
            max_width: Maximum line width.

        Returns:
            Multi-line string ready for terminal output.
        """
        if not self.history:
            return "(no events)"

        matched = self.result is not None and self.result.matched
        consumed = self.result.consumed if self.result is not None else 0
        lines: List[str] = []
        for index, ev in enumerate(self.history):
            if matched and index == consumed:
                lines.append("  ── match ends here ──")
            marker = "✓" if matched and index < consumed else "·"
            kind = ev.event_type or "(untyped)"
            details = ", ".join(
                f"{attr.value}={value.text}"
                for attr, value in ev.items()
                if attr is not Attribute.EVENT_TYPE
            )
            line = f"{marker} #{index:<3} {kind}"
            if details:
                line += f"  {{{details}}}"
            if len(line) > max_width:
                line = line[: max_width - 3] + "..."
            lines.append(line)

        if matched:
            if consumed == len(self.history):
                lines.append("  ── match ends here ──")
            lines.append(f"(matched, {consumed} of {len(self.history)} events consumed)")
        elif self.result is not None:
            lines.append(f"(not matched, stopped after {consumed} of {len(self.history)} events)")

        return "\n".join(lines)
