"""
EventPath: declarative pattern matching over customer event histories.

Patterns are immutable trees built from single-event predicates with
sequencing and bounded repetition; a backtracking-free interpreter
decides whether a pattern matches a prefix of a chronological history.
"""

__version__ = "0.1.0"
