"""
Parser for model-checking queries.

Implements the query grammar: optional quantifier, modality and run
bound prefixes in fixed order, followed by a condition built from flat,
left-associative operator chains.
"""

from __future__ import annotations

from typing import Iterator, List

import sly

from mcquery.parser.ast_nodes import (
    Addition,
    Comparison,
    Conjunction,
    Deadlock,
    Disjunction,
    FalseConstant,
    Implication,
    IntConstant,
    Modality,
    Modulo,
    Multiplication,
    Name,
    Negate,
    Negation,
    Next,
    ParenCondition,
    ParenExpr,
    Power,
    Quantifier,
    Query,
    RelOp,
    StepsBound,
    Subtraction,
    TimeBound,
    TrueConstant,
    Until,
)
from mcquery.parser.errors import ParseError, TrailingInputError
from mcquery.parser.lexer import QueryLexer

_TOKEN_NAMES = {
    "RPAREN": "')'",
    "RBRACKET": "']'",
    "LPAREN": "'('",
    "LBRACKET": "'['",
}


class _Incomplete(Exception):
    """Raised internally when a token prefix is not a complete query."""


class _SLYParser(sly.Parser):
    """
    SLY-based parser for model-checking queries.

    There is no operator precedence: arithmetic operators form one
    left-associative level, and so do the condition connectives.
    ``not``/``next`` take one primary condition and unary minus takes
    one primary expression.

    Quantifier and modality words are names inside a condition. At the
    start of a query they are read as the prefix, so ``A G = 1`` is
    rejected and the name has to be quoted there.

    ``( expr )`` at the start of a condition is read as a parenthesized
    expression, so ``(x) = 1`` compares ``(x)`` and ``(x = 1)`` groups a
    condition.
    """

    tokens = QueryLexer.tokens

    precedence = (
        ("nonassoc", ABSENT),
        ("nonassoc", ALWAYS, EXISTS, PROBABILITY, FINALLY, GLOBALLY),
        ("nonassoc", BARE),
        ("nonassoc", RPAREN),
    )

    def __init__(self, text: str = "", strict: bool = True) -> None:
        self.text = text
        self.strict = strict

    # --- Query ---

    @_("quantifier modality bound cond")
    def query(self, p):
        return Query(
            condition=p.cond,
            quantifier=p.quantifier,
            modality=p.modality,
            bound=p.bound,
        )

    @_("ALWAYS")
    def quantifier(self, p):
        return Quantifier.ALWAYS

    @_("EXISTS")
    def quantifier(self, p):
        return Quantifier.EXISTS

    @_("PROBABILITY")
    def quantifier(self, p):
        if p.PROBABILITY.lower() == "pr":
            return Quantifier.PROBABILITY_R
        return Quantifier.PROBABILITY

    @_("%prec ABSENT")
    def quantifier(self, p):
        return None

    @_("FINALLY")
    def modality(self, p):
        return Modality.FINALLY

    @_("GLOBALLY")
    def modality(self, p):
        return Modality.GLOBALLY

    @_("%prec ABSENT")
    def modality(self, p):
        return None

    # --- Run bound ---

    @_("LBRACKET IDENT LE INT RBRACKET")
    def bound(self, p):
        if p.IDENT != "t":
            raise ParseError(
                f"Expected 't' or '#' in run bound, found '{p.IDENT}'",
                self.text,
                p.index,
            )
        return TimeBound(p.INT)

    @_("LBRACKET HASH LE INT RBRACKET")
    def bound(self, p):
        return StepsBound(p.INT)

    @_("")
    def bound(self, p):
        return None

    # --- Conditions ---

    @_("cond AND atom_cond")
    def cond(self, p):
        return Conjunction(p.cond, p.atom_cond)

    @_("cond OR atom_cond")
    def cond(self, p):
        return Disjunction(p.cond, p.atom_cond)

    @_("cond UNTIL atom_cond")
    def cond(self, p):
        return Until(p.cond, p.atom_cond)

    @_("cond IMPLIES atom_cond")
    def cond(self, p):
        return Implication(p.cond, p.atom_cond)

    @_("atom_cond")
    def cond(self, p):
        return p.atom_cond

    @_("NOT primary_cond")
    def atom_cond(self, p):
        return Negation(p.primary_cond)

    @_("NEXT primary_cond")
    def atom_cond(self, p):
        return Next(p.primary_cond)

    @_("primary_cond")
    def atom_cond(self, p):
        return p.primary_cond

    @_("TRUE")
    def primary_cond(self, p):
        return TrueConstant()

    @_("FALSE")
    def primary_cond(self, p):
        return FalseConstant()

    @_("DEADLOCK")
    def primary_cond(self, p):
        return Deadlock()

    @_("prop")
    def primary_cond(self, p):
        return p.prop

    @_("LPAREN cond RPAREN")
    def primary_cond(self, p):
        return ParenCondition(p.cond)

    @_("expr %prec BARE")
    def prop(self, p):
        return Comparison(p.expr)

    @_("expr relop expr")
    def prop(self, p):
        return Comparison(p.expr0, p.relop, p.expr1)

    @_("EQ", "NE", "LT", "LE", "GT", "GE")
    def relop(self, p):
        return RelOp.from_symbol(p[0])

    # --- Expressions ---

    @_("expr PLUS atom")
    def expr(self, p):
        return Addition(p.expr, p.atom)

    @_("expr MINUS atom")
    def expr(self, p):
        return Subtraction(p.expr, p.atom)

    @_("expr TIMES atom")
    def expr(self, p):
        return Multiplication(p.expr, p.atom)

    @_("expr MOD atom")
    def expr(self, p):
        return Modulo(p.expr, p.atom)

    @_("expr POW atom")
    def expr(self, p):
        return Power(p.expr, p.atom)

    @_("atom")
    def expr(self, p):
        return p.atom

    @_("MINUS primary")
    def atom(self, p):
        return Negate(p.primary)

    @_("primary")
    def atom(self, p):
        return p.primary

    @_("INT")
    def primary(self, p):
        return IntConstant(p.INT)

    @_("IDENT", "QUOTED")
    def primary(self, p):
        return Name(p[0])

    @_("LPAREN expr RPAREN")
    def primary(self, p):
        return ParenExpr(p.expr)

    @_("ALWAYS", "EXISTS", "PROBABILITY", "FINALLY", "GLOBALLY")
    def primary(self, p):
        if not p[0].isalnum():
            raise ParseError(f"Syntax error at '{p[0]}'", self.text, p.index)
        return Name(p[0])

    def error(self, token):
        if not self.strict:
            raise _Incomplete()
        if token is None:
            opening = _open_paren(self.symstack)
            if opening is not None:
                raise ParseError(
                    "Syntax error: unexpected end of query, unmatched '('",
                    self.text,
                    opening.index,
                )
            raise ParseError("Syntax error: unexpected end of query", self.text, len(self.text))
        raise ParseError(
            f"Syntax error at {_describe(token)}",
            self.text,
            token.index,
        )


def _open_paren(symstack):
    """Return the innermost unclosed '(' token on the parser stack."""
    for sym in reversed(symstack):
        if sym.type == "LPAREN":
            return sym
    return None


def _describe(token) -> str:
    if token.type in _TOKEN_NAMES:
        return _TOKEN_NAMES[token.type]
    return f"'{token.value}' (type: {token.type})"


class QueryParser:
    """
    Parser for model-checking queries.

    Wraps the SLY-based parser with a clean public interface.
    Converts query strings into Query trees.
    """

    def parse(self, text: str) -> Query:
        """
        Parse a query string into an AST.

        The whole input must be consumed; the first error found stops
        the parse.

        Args:
            text: The query string to parse.

        Returns:
            The root Query node.

        Raises:
            LexerError: If the input holds a malformed token.
            LiteralRangeError: If an integer literal is out of range.
            ParseError: If the query is syntactically invalid.
        """
        if not text.strip():
            raise ParseError("Syntax error: empty query", text, len(text))

        consumed: List[sly.lex.Token] = []
        try:
            result = _SLYParser(text).parse(_record(QueryLexer().tokenize(text), consumed))
        except ParseError as exc:
            if consumed and not isinstance(exc, TrailingInputError):
                self._check_trailing(text, consumed, exc)
            raise
        if result is None:
            raise ParseError("Syntax error: could not parse query", text, len(text))
        return result

    def _check_trailing(
        self, text: str, consumed: List[sly.lex.Token], exc: ParseError
    ) -> None:
        """Raise TrailingInputError if the tokens before the failure form a query."""
        offending = consumed[-1]
        if offending.index != exc.index:
            return
        try:
            prefix = _SLYParser(text, strict=False).parse(iter(consumed[:-1]))
        except (_Incomplete, ParseError):
            return
        if prefix is None:
            return
        what = "unmatched ')'" if offending.type == "RPAREN" else _describe(offending)
        raise TrailingInputError(
            f"Unexpected trailing input after query: {what}",
            text,
            offending.index,
        ) from exc


def _record(
    tokens: Iterator[sly.lex.Token], consumed: List[sly.lex.Token]
) -> Iterator[sly.lex.Token]:
    for tok in tokens:
        consumed.append(tok)
        yield tok
