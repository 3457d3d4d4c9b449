"""
Command-line interface for the MCQUERY query parser.

Provides argument parsing and orchestration for checking model-checking
queries given on the command line or in query files, printing their
canonical form, their syntax tree, or the position of the first error.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Tuple

import mcquery
from mcquery.parser.errors import QueryError
from mcquery.parser.lexer import QueryLexer
from mcquery.parser.query import parse_query, to_string
from mcquery.utils.logger import LogLevel, QueryLogger


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the MCQUERY CLI."""
    parser = argparse.ArgumentParser(
        prog="mcquery",
        description=(
            "MCQUERY: Model-Checking QUERY parser - "
            "Check model-checking queries and print their syntax trees"
        ),
    )

    parser.add_argument(
        "queries",
        nargs="*",
        metavar="QUERY",
        help="Query text, e.g. 'E F [t<=100] x > 5'",
    )
    parser.add_argument(
        "-f",
        "--file",
        type=Path,
        action="append",
        default=[],
        help="Path to a query file (.q), one query per line; may be repeated",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=["silent", "normal", "verbose"],
        default="normal",
        help="Output level (default: normal)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        type=int,
        choices=[0, 1, 2, 3],
        default=0,
        help="Debug level 0-3 (default: 0)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the syntax tree of each accepted query as JSON",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print statistics after checking",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"mcquery {mcquery.__version__}",
    )

    return parser


def _resolve_log_level(output: str, debug: int) -> LogLevel:
    """Determine the effective log level from output and debug settings."""
    if debug >= 3:
        return LogLevel.DEBUG
    if output == "verbose" or debug >= 1:
        return LogLevel.VERBOSE
    if output == "silent":
        return LogLevel.SILENT
    return LogLevel.NORMAL


def read_query_file(path: Path) -> List[Tuple[str, str]]:
    """
    Read the queries of a query file.

    Blank lines and lines starting with ``#`` are skipped.

    Args:
        path: The query file.

    Returns:
        ``(source, text)`` pairs where source is ``path:line``.
    """
    queries = []
    for lineno, line in enumerate(path.read_text().splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        queries.append((f"{path}:{lineno}", stripped))
    return queries


def main() -> None:
    """Entry point for the ``mcquery`` CLI command."""
    parser = _build_parser()
    args = parser.parse_args()

    try:
        _run(args)
    except SystemExit:
        raise
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)


def _run(args: argparse.Namespace) -> None:
    """Parse every query and report the results."""
    queries: List[Tuple[str, str]] = [
        (f"arg{i}", text) for i, text in enumerate(args.queries, start=1)
    ]
    for path in args.file:
        if not path.exists():
            print(f"Error: Query file not found: {path}", file=sys.stderr)
            sys.exit(2)
        queries.extend(read_query_file(path))

    if not queries:
        print("Error: No queries given", file=sys.stderr)
        sys.exit(2)

    log_level = _resolve_log_level(args.output, args.debug)
    logger = QueryLogger(level=log_level)
    logger.info(f"Checking {len(queries)} queries")

    accepted = 0
    rejected = 0
    names = set()
    for source, text in queries:
        logger.debug(f"Reading {source}", text=text)
        try:
            query = parse_query(text)
        except QueryError as exc:
            rejected += 1
            logger.query_rejected(source, exc)
            continue
        accepted += 1
        names |= query.names()
        logger.debug(
            "Tokens",
            types=" ".join(tok.type for tok in QueryLexer().tokenize(text)),
        )
        logger.query_accepted(source, to_string(query))
        if args.json:
            print(json.dumps(query.to_dict(), indent=2))

    stats = {
        "queries": len(queries),
        "accepted": accepted,
        "rejected": rejected,
        "distinct_names": len(names),
    }
    logger.statistics(stats)

    # Statistics (skip if verbose already printed them)
    if args.stats and log_level.value < LogLevel.VERBOSE.value:
        print()
        print("=== Statistics ===")
        for key, value in stats.items():
            label = key.replace("_", " ").title()
            print(f"  {label}: {value}")

    # Exit with appropriate code
    if rejected:
        sys.exit(1)
    sys.exit(0)
