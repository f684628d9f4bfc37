"""
Tests for pattern utility functions.

Tests cover parsing via the module-level helper, loading pattern files,
predicate and attribute extraction, node counting, and simplification
(including that simplification preserves match results).
"""

from pathlib import Path

import pytest

from eventpath.core.event import Attribute, Event
from eventpath.core.event_pattern import AnyEvent, HasAttributeValue
from eventpath.core.history_pattern import (
    MatchesAny,
    Repeat,
    Sequence,
    any_event,
    event_pattern,
    event_type,
)
from eventpath.core.matcher import consume
from eventpath.parser.grammar import ParseError
from eventpath.parser.pattern import (
    attributes,
    event_patterns,
    load_pattern,
    parse_pattern,
    simplify,
    size,
    to_string,
)

FIXTURES = Path(__file__).parent.parent / "fixtures"
PATTERNS = FIXTURES / "patterns"

A = event_type("a")
B = event_type("b")


class TestParseAndLoad:
    """Test parse_pattern and load_pattern."""

    def test_parse_pattern(self) -> None:
        assert parse_pattern("a >> b") == Sequence(A, B)

    def test_load_fixture(self) -> None:
        assert load_pattern(PATTERNS / "abandon.pat") == Sequence(
            Repeat(event_type("add_item"), 1, None), event_type("abandon")
        )

    def test_load_ignores_comment_lines(self, tmp_pattern_file: Path) -> None:
        tmp_pattern_file.write_text("# first\n\n  # indented comment\na\n>> b\n")
        assert load_pattern(tmp_pattern_file) == Sequence(A, B)

    def test_load_empty_file(self, tmp_pattern_file: Path) -> None:
        tmp_pattern_file.write_text("# only comments\n\n")
        with pytest.raises(ParseError, match="empty"):
            load_pattern(tmp_pattern_file)

    def test_load_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_pattern(tmp_path / "missing.pat")

    def test_load_invalid(self) -> None:
        with pytest.raises(ParseError):
            load_pattern(PATTERNS / "invalid.pat")


class TestInspection:
    """Test to_string, size, event_patterns and attributes."""

    def test_to_string(self) -> None:
        assert to_string(A.at_least(1) >> B) == "(a+ >> b)"

    def test_size(self) -> None:
        assert size(MatchesAny()) == 1
        assert size(A.at_least(1) >> B) == 4

    def test_event_patterns(self) -> None:
        p = A >> any_event() >> A.repeat()
        assert event_patterns(p) == frozenset(
            {HasAttributeValue(Attribute.EVENT_TYPE, "a"), AnyEvent()}
        )

    def test_event_patterns_none(self) -> None:
        assert event_patterns(MatchesAny()) == frozenset()

    def test_attributes(self) -> None:
        p = A >> event_pattern(Attribute.USER_NAME, "alice") >> any_event()
        assert attributes(p) == frozenset({Attribute.EVENT_TYPE, Attribute.USER_NAME})


class TestSimplify:
    """Test match-preserving simplification."""

    def test_any_left_identity(self) -> None:
        assert simplify(MatchesAny() >> A) == A

    def test_any_right_identity(self) -> None:
        assert simplify(A >> MatchesAny()) == A

    def test_zero_repeat(self) -> None:
        assert simplify(A.between(0, 0)) == MatchesAny()
        assert simplify(A.at_most(0)) == MatchesAny()

    def test_repeat_of_any(self) -> None:
        assert simplify(MatchesAny().at_least(3)) == MatchesAny()

    def test_single_repeat(self) -> None:
        assert simplify(A.between(1, 1)) == A

    def test_nested(self) -> None:
        p = (MatchesAny() >> A.between(1, 1)) >> (B >> MatchesAny().repeat())
        assert simplify(p) == Sequence(A, B)

    def test_leaves_untouched(self) -> None:
        p = A.at_least(2) >> B
        assert simplify(p) == p

    @pytest.mark.parametrize(
        "kinds",
        [(), ("a",), ("b",), ("a", "b"), ("a", "a", "b"), ("b", "a", "a")],
    )
    def test_preserves_results(self, kinds) -> None:
        history = [Event.of(event_type=k) for k in kinds]
        patterns = [
            MatchesAny() >> A,
            A >> MatchesAny(),
            A.between(0, 0) >> B,
            A.between(1, 1) >> B,
            MatchesAny().repeat() >> A.at_least(1),
            (MatchesAny() >> A).between(1, 1).at_most(2) >> B,
        ]
        for p in patterns:
            assert consume(history, simplify(p)) == consume(history, p)
