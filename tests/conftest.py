"""
Shared pytest fixtures for the MCQUERY test suite.

Provides reusable fixtures for parser and lexer instances and for the
query files used across unit and integration tests.
"""

from pathlib import Path

import pytest

from mcquery.parser.grammar import QueryParser
from mcquery.parser.lexer import QueryLexer


@pytest.fixture
def parser() -> QueryParser:
    """Return a fresh parser instance."""
    return QueryParser()


@pytest.fixture
def lexer() -> QueryLexer:
    """Return a fresh lexer instance."""
    return QueryLexer()


@pytest.fixture
def tmp_query_file(tmp_path: Path) -> Path:
    """Path for a temporary query file."""
    return tmp_path / "queries.q"


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def queries_dir(fixtures_dir: Path) -> Path:
    """Path to the test query fixtures directory."""
    return fixtures_dir / "queries"
