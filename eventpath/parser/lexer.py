"""
Lexical analyzer for history patterns.

Tokenizes pattern strings into a stream of tokens (event type names,
string literals, counts, repetition and sequencing operators,
delimiters) that can be consumed by the parser.
"""

from __future__ import annotations

import re

import sly

_ESCAPE = re.compile(r"\\(.)")


class LexerError(Exception):
    """Exception raised for lexical analysis errors."""
    pass


class PatternLexer(sly.Lexer):
    """
    Lexical analyzer for history patterns.

    Token Types:
        NAME, STRING, NUMBER          - Names, quoted literals, counts
        ANY                           - The ``any`` pattern
        SEQ                           - Sequencing (``>>``, ``*>``, ``then``)
        STAR, PLUS, QUESTION          - Postfix repetition
        LBRACE, RBRACE, COMMA         - Bounded repetition ``{n,m}``
        LBRACKET, RBRACKET, EQ        - Event predicates ``[attr = value]``
        LPAREN, RPAREN                - Grouping and value constructors
    """

    tokens = {
        NAME, STRING, NUMBER,
        ANY,
        SEQ,
        STAR, PLUS, QUESTION,
        LBRACE, RBRACE, COMMA,
        LBRACKET, RBRACKET, EQ,
        LPAREN, RPAREN,
    }

    # Ignored characters
    ignore = " \t\r"

    # Ignore newlines
    @_(r"\n+")
    def ignore_newline(self, t):
        self.lineno += len(t.value)

    # Ignore comments (# to end of line)
    ignore_comment = r"\#[^\n]*"

    # *> must come before *, but not swallow the start of a following >>
    SEQ = r">>|\*>(?!>)"

    STAR = r"\*"
    PLUS = r"\+"
    QUESTION = r"\?"
    LBRACE = r"\{"
    RBRACE = r"\}"
    COMMA = r","
    LBRACKET = r"\["
    RBRACKET = r"\]"
    EQ = r"="
    LPAREN = r"\("
    RPAREN = r"\)"

    # Digits keep their text; repetition bounds convert them in the grammar.
    NUMBER = r"\d+"

    @_(r'"(?:[^"\\\n]|\\.)*"', r"'(?:[^'\\\n]|\\.)*'")
    def STRING(self, t):
        t.value = _ESCAPE.sub(r"\1", t.value[1:-1])
        return t

    # Keywords are matched as names and re-typed by exact value.
    @_(r"[A-Za-z_][A-Za-z0-9_]*")
    def NAME(self, t):
        keywords = {
            "any": "ANY",
            "then": "SEQ",
        }
        t.type = keywords.get(t.value, "NAME")
        return t

    def error(self, t):
        """Handle invalid characters."""
        raise LexerError(
            f"Invalid character '{t.value[0]}' at index {self.index}"
        )
