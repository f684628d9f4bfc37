"""
Parser for history patterns.

Implements a grammar with precedence rules to parse pattern strings
into immutable HistoryPattern trees.
"""

from __future__ import annotations

import sly

from eventpath.core.event import VALUE_VARIANTS, Attribute
from eventpath.core.event_pattern import AnyEvent, HasAttributeValue
from eventpath.core.history_pattern import (
    EventMatch,
    HistoryPattern,
    MatchesAny,
    Repeat,
    Sequence,
    event_type,
)
from eventpath.parser.lexer import PatternLexer


class ParseError(Exception):
    """Exception raised for parsing errors."""

    pass


class _SLYParser(sly.Parser):
    """
    SLY-based parser for history patterns.

    Precedence (lowest to highest):
        1. >>             (sequence, left-to-right)
        2. * + ? {n,m}    (postfix repetition)
    """

    tokens = PatternLexer.tokens

    precedence = (
        ("left", SEQ),
        ("left", STAR, PLUS, QUESTION, LBRACE),
    )

    # --- Sequencing ---

    @_("pattern SEQ pattern")
    def pattern(self, p):
        return Sequence(p.pattern0, p.pattern1)

    # --- Repetition ---

    @_("pattern STAR")
    def pattern(self, p):
        return Repeat(p.pattern, None, None)

    @_("pattern PLUS")
    def pattern(self, p):
        return Repeat(p.pattern, 1, None)

    @_("pattern QUESTION")
    def pattern(self, p):
        return Repeat(p.pattern, None, 1)

    @_("pattern LBRACE NUMBER RBRACE")
    def pattern(self, p):
        count = int(p.NUMBER)
        return Repeat(p.pattern, count, count)

    @_("pattern LBRACE NUMBER COMMA RBRACE")
    def pattern(self, p):
        return Repeat(p.pattern, int(p.NUMBER), None)

    @_("pattern LBRACE COMMA NUMBER RBRACE")
    def pattern(self, p):
        return Repeat(p.pattern, None, int(p.NUMBER))

    @_("pattern LBRACE NUMBER COMMA NUMBER RBRACE")
    def pattern(self, p):
        return Repeat(p.pattern, int(p.NUMBER0), int(p.NUMBER1))

    # --- Atoms ---

    @_("LPAREN pattern RPAREN")
    def pattern(self, p):
        return p.pattern

    @_("ANY")
    def pattern(self, p):
        return MatchesAny()

    @_("NAME")
    def pattern(self, p):
        return event_type(p.NAME)

    @_("STRING")
    def pattern(self, p):
        return event_type(p.STRING)

    @_("LBRACKET STAR RBRACKET")
    def pattern(self, p):
        return EventMatch(AnyEvent())

    @_("LBRACKET NAME EQ value RBRACKET")
    def pattern(self, p):
        try:
            attribute = Attribute.from_name(p.NAME)
            return EventMatch(HasAttributeValue(attribute, p.value))
        except ValueError as exc:
            raise ParseError(str(exc)) from None

    # --- Values ---

    @_("STRING", "NAME", "NUMBER")
    def value(self, p):
        return p[0]

    @_("NAME LPAREN STRING RPAREN")
    def value(self, p):
        variant = VALUE_VARIANTS.get(p.NAME)
        if variant is None:
            known = ", ".join(sorted(VALUE_VARIANTS))
            raise ParseError(
                f"Unknown value constructor '{p.NAME}' (expected one of: {known})"
            )
        try:
            return variant.from_text(p.STRING)
        except ValueError as exc:
            raise ParseError(str(exc)) from None

    def error(self, token):
        if token:
            raise ParseError(
                f"Syntax error at '{token.value}' (type: {token.type}, index: {token.index})"
            )
        raise ParseError("Syntax error: unexpected end of pattern")


class PatternParser:
    """
    Parser for history patterns.

    Wraps the SLY-based parser with a clean public interface.
    Converts pattern strings into HistoryPattern trees.
    """

    def __init__(self) -> None:
        self._lexer = PatternLexer()
        self._parser = _SLYParser()

    def parse(self, text: str) -> HistoryPattern:
        """
        Parse a pattern string into a HistoryPattern.

        Args:
            text: The pattern string to parse.

        Returns:
            The root node of the pattern tree.

        Raises:
            LexerError: If the text contains an invalid character.
            ParseError: If the pattern is syntactically or semantically invalid.
        """
        text = text.strip()
        if not text:
            raise ParseError("Syntax error: empty pattern")

        try:
            result = self._parser.parse(self._lexer.tokenize(text))
        except ValueError as exc:
            # Invalid repetition bounds.
            raise ParseError(str(exc)) from None
        if result is None:
            raise ParseError("Syntax error: could not parse pattern")
        return result
