"""
Pattern language for EventPath.

Provides lexical analysis, parsing, and utilities for the textual
history pattern notation, including sequencing and the ``*``, ``+``,
``?`` and ``{n,m}`` repetition suffixes.
"""
