"""
Lexical analyzer for model-checking queries.

Tokenizes query strings into a stream of tokens (identifiers, integer
literals, quantifier and modality keywords, connectives, comparison and
arithmetic operators, delimiters) that can be consumed by the parser.
"""

from __future__ import annotations

import sly

from mcquery.parser.errors import LexerError, LiteralRangeError

# Largest integer literal accepted; the engine evaluates on signed 32-bit values.
MAX_INT = 2**31 - 1

# Word keywords, matched after lowercasing the word.
_WORD_KEYWORDS = {
    "true": "TRUE",
    "false": "FALSE",
    "deadlock": "DEADLOCK",
    "and": "AND",
    "or": "OR",
    "not": "NOT",
    "next": "NEXT",
    "until": "UNTIL",
    "p": "PROBABILITY",
    "pr": "PROBABILITY",
}

# Single-letter prefixes, matched exactly.
_PREFIX_KEYWORDS = {
    "A": "ALWAYS",
    "E": "EXISTS",
    "F": "FINALLY",
    "G": "GLOBALLY",
}

_QUOTES = "\"'"

# Prefix keywords are also valid names inside a condition.
PREFIX_TYPES = frozenset({"ALWAYS", "EXISTS", "PROBABILITY", "FINALLY", "GLOBALLY"})


def keyword_type(word: str) -> str | None:
    """Return the keyword token type of ``word``, or None for a plain name."""
    if word in _PREFIX_KEYWORDS:
        return _PREFIX_KEYWORDS[word]
    return _WORD_KEYWORDS.get(word.lower())


class QueryLexer(sly.Lexer):
    """
    Lexical analyzer for model-checking queries.

    Converts a query string into a stream of tokens.

    Token Types:
        ALWAYS, EXISTS, PROBABILITY     - Quantifiers
        FINALLY, GLOBALLY               - Temporal modalities
        TRUE, FALSE, DEADLOCK           - Literal conditions
        NOT, NEXT                       - Unary condition operators
        AND, OR, UNTIL, IMPLIES         - Binary condition operators
        EQ, NE, LT, LE, GT, GE          - Relational operators
        PLUS, MINUS, TIMES, MOD, POW    - Arithmetic operators
        LPAREN, RPAREN, LBRACKET, RBRACKET, HASH - Delimiters
        INT, IDENT, QUOTED              - Literals and names
    """

    tokens = {
        ALWAYS, EXISTS, PROBABILITY,
        FINALLY, GLOBALLY,
        TRUE, FALSE, DEADLOCK,
        NOT, NEXT,
        AND, OR, UNTIL, IMPLIES,
        EQ, NE, LT, LE, GT, GE,
        PLUS, MINUS, TIMES, MOD, POW,
        LPAREN, RPAREN, LBRACKET, RBRACKET, HASH,
        INT, IDENT, QUOTED,
    }

    # Ignored characters
    ignore = " \t\r"

    # Ignore newlines
    @_(r"\n+")
    def ignore_newline(self, t):
        self.lineno += len(t.value)

    # Multi-character operators (order matters, longer patterns first)

    # => must come before = and ==
    IMPLIES = r"=>"
    EQ = r"==|="

    # != must come before !
    NE = r"!=|/="
    NOT = r"!"

    # <> must come before < and <=
    FINALLY = r"<>"
    LE = r"<="
    GE = r">="
    LT = r"<"
    GT = r">"

    AND = r"&&|&"
    OR = r"\|\||\|"

    # [] must come before [
    GLOBALLY = r"\[\]"
    LBRACKET = r"\["
    RBRACKET = r"\]"

    PLUS = r"\+"
    MINUS = r"-"
    TIMES = r"\*"
    MOD = r"%"
    POW = r"\^"
    LPAREN = r"\("
    RPAREN = r"\)"
    HASH = r"\#"

    # Quoted names never become keywords.
    @_(r'"[A-Za-z0-9.]+"', r"'[A-Za-z0-9.]+'")
    def QUOTED(self, t):
        t.value = t.value[1:-1]
        return t

    # Names, integer literals and keywords.
    # The longest run of letters, digits and dots is one word; the word
    # is then classified by its value.
    @_(r"[A-Za-z0-9.]+")
    def IDENT(self, t):
        if t.value.isdigit():
            t.type = "INT"
            value = int(t.value)
            if value > MAX_INT:
                raise LiteralRangeError(
                    f"Integer literal {t.value} exceeds {MAX_INT}",
                    self.text,
                    t.index,
                )
            t.value = value
            return t
        t.type = keyword_type(t.value) or "IDENT"
        return t

    def error(self, t):
        """Handle invalid characters and unterminated quotes."""
        char = t.value[0]
        if char in _QUOTES:
            closing = t.value.find(char, 1)
            if closing == -1:
                raise LexerError(
                    f"Unterminated quoted identifier starting with {char}",
                    self.text,
                    self.index,
                )
            raise LexerError(
                f"Invalid quoted identifier {t.value[:closing + 1]}",
                self.text,
                self.index,
            )
        raise LexerError(f"Invalid character '{char}'", self.text, self.index)
