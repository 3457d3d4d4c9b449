"""
Structured logging for the query checker.

Provides configurable log levels (silent, normal, verbose, debug)
with consistent formatting for per-query results, progress updates
and run statistics.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any, Dict, TextIO

from mcquery.parser.errors import QueryError


class LogLevel(Enum):
    """
    Logging levels for the query checker.

    SILENT:  No output at all.
    NORMAL:  One result line per query.
    VERBOSE: Progress information and statistics.
    DEBUG:   Token and tree level output.
    """

    SILENT = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


class QueryLogger:
    """
    Structured logger for the query checker.

    Provides consistent formatting for accepted and rejected queries,
    debug information, and statistics. Output is filtered by the
    configured log level.

    Attributes:
        level: The minimum log level to display.
        stream: The output stream (defaults to stdout).
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.NORMAL,
        stream: TextIO = sys.stdout,
    ) -> None:
        """
        Initialize logger with level and output stream.

        Args:
            level: Minimum log level to display.
            stream: Output stream (default: sys.stdout).
        """
        self.level: LogLevel = level
        self.stream: TextIO = stream

    def debug(self, message: str, **kwargs: Any) -> None:
        """
        Log a debug message (only shown at DEBUG level).

        Args:
            message: The message to log.
            **kwargs: Additional key-value pairs to include.
        """
        if self.level.value >= LogLevel.DEBUG.value:
            self._write(f"[DEBUG] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def info(self, message: str, **kwargs: Any) -> None:
        """
        Log an info message (shown at VERBOSE and DEBUG levels).

        Args:
            message: The message to log.
            **kwargs: Additional key-value pairs to include.
        """
        if self.level.value >= LogLevel.VERBOSE.value:
            self._write(f"[INFO] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def query_accepted(self, source: str, canonical: str) -> None:
        """
        Log a successfully parsed query (NORMAL level and above).

        Args:
            source: Where the query came from (argument or file:line).
            canonical: The canonical form of the parsed query.
        """
        if self.level.value >= LogLevel.NORMAL.value:
            self._write(f"OK: {source}: {canonical}")

    def query_rejected(self, source: str, error: QueryError) -> None:
        """
        Log a rejected query with its error position (NORMAL and above).

        Args:
            source: Where the query came from (argument or file:line).
            error: The error raised while reading the query.
        """
        if self.level.value >= LogLevel.NORMAL.value:
            self._write(f"ERROR: {source}: {type(error).__name__}: {error}")

    def statistics(self, stats: Dict[str, Any]) -> None:
        """
        Log run statistics (shown at VERBOSE level and above).

        Args:
            stats: Dictionary of statistic names to values.
        """
        if self.level.value >= LogLevel.VERBOSE.value:
            self._write("=== Statistics ===")
            for key, value in stats.items():
                label = key.replace("_", " ").title()
                self._write(f"  {label}: {value}")

    def _write(self, message: str) -> None:
        """Write a line to the output stream."""
        self.stream.write(message + "\n")
