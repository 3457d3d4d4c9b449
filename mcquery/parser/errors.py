"""
Error types raised while reading a query.

Every error records the character offset of the first point of failure
together with the matching 1-based line and column.
"""

from __future__ import annotations

from typing import Tuple


def position(text: str, index: int) -> Tuple[int, int]:
    """
    Convert a character offset into a (line, column) pair.

    Args:
        text: The full query text.
        index: Character offset into ``text``.

    Returns:
        The 1-based line and column of ``index``.
    """
    index = max(0, min(index, len(text)))
    line = text.count("\n", 0, index) + 1
    column = index - (text.rfind("\n", 0, index) + 1) + 1
    return line, column


class QueryError(Exception):
    """
    Base class for all query reading errors.

    Attributes:
        message: Human-readable description of what went wrong.
        index: Character offset of the failure.
        line: 1-based line of the failure.
        column: 1-based column of the failure.
    """

    def __init__(self, message: str, text: str = "", index: int = 0) -> None:
        self.message = message
        self.index = index
        self.line, self.column = position(text, index)
        super().__init__(f"{message} (line {self.line}, column {self.column})")


class LexerError(QueryError):
    """Exception raised for malformed tokens."""

    pass


class ParseError(QueryError):
    """Exception raised for grammar violations."""

    pass


class TrailingInputError(ParseError):
    """A complete query was read but input remains after it."""

    pass


class LiteralRangeError(QueryError, ValueError):
    """An integer literal does not fit the supported integer range."""

    pass
