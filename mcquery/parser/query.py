"""
Query utilities.

Provides convenience functions for parsing, inspecting, and
transforming queries: identifier listing, subformula extraction, path
operator checks, canonical string conversion, negation, quantifier and
modality duals, and basic simplification.
"""

from __future__ import annotations

from typing import FrozenSet

from mcquery.parser.ast_nodes import (
    COND_NODES,
    PRIMARY_CONDITIONS,
    BinaryCondition,
    Condition,
    Conjunction,
    Disjunction,
    FalseConstant,
    Modality,
    Negation,
    Next,
    ParenCondition,
    Quantifier,
    Query,
    TrueConstant,
    Until,
)
from mcquery.parser.grammar import QueryParser


_parser = QueryParser()

_DUAL_QUANTIFIER = {
    Quantifier.ALWAYS: Quantifier.EXISTS,
    Quantifier.EXISTS: Quantifier.ALWAYS,
}

_DUAL_MODALITY = {
    Modality.FINALLY: Modality.GLOBALLY,
    Modality.GLOBALLY: Modality.FINALLY,
}


def parse_query(text: str) -> Query:
    """
    Parse a query string into an AST.

    Args:
        text: The query string.

    Returns:
        The root Query node.

    Raises:
        QueryError: If the query is malformed.
    """
    return _parser.parse(text)


def to_string(query: Query) -> str:
    """
    Convert a query to its canonical string representation.

    Parsing the result gives back an equal query.
    """
    return str(query)


def names(query: Query) -> FrozenSet[str]:
    """
    Return all identifiers referenced by the query.

    These are the names the engine must map onto variables or clocks.
    """
    return query.names()


def subformulas(condition: Condition) -> FrozenSet[Condition]:
    """Return all subformulas of the given condition, including itself."""
    return condition.subformulas()


def contains_until(condition: Condition) -> bool:
    """Return True if an ``until`` occurs anywhere in the condition."""
    return any(isinstance(sub, Until) for sub in condition.subformulas())


def is_pure(condition: Condition) -> bool:
    """
    Return True if the condition is a state formula.

    A pure condition has no ``next`` and no ``until``, so it can be
    decided on a single state.
    """
    return not any(isinstance(sub, (Next, Until)) for sub in condition.subformulas())


def negate(condition: Condition) -> Condition:
    """
    Return the negation of a condition.

    ``!`` only takes a primary condition, so compound conditions are
    parenthesized first and the result keeps a parseable surface form.
    """
    if isinstance(condition, PRIMARY_CONDITIONS):
        return Negation(condition)
    return Negation(ParenCondition(condition))


def as_modality(query: Query, modality: Modality) -> Query:
    """
    Express a query with the given modality.

    ``A F c`` becomes ``E G !c`` and vice versa; the result holds
    exactly when the given query fails.

    Raises:
        ValueError: If the query has no modality or its quantifier is
            not ``A`` or ``E``.
    """
    if query.modality is None:
        raise ValueError("Cannot convert a query without modality to F or G")
    if query.modality is modality:
        return query
    return _dual(query)


def as_quantifier(query: Query, quantifier: Quantifier) -> Query:
    """
    Express a query with the given quantifier.

    ``A G c`` becomes ``E F !c`` and vice versa; the result holds
    exactly when the given query fails.

    Raises:
        ValueError: If the quantifiers involved are not ``A`` or ``E``,
            or the query has no modality.
    """
    if quantifier not in _DUAL_QUANTIFIER:
        raise ValueError(f"Cannot convert to quantifier {quantifier.value}")
    if query.quantifier is quantifier:
        return query
    if query.modality is None:
        raise ValueError("Cannot convert a query without modality")
    return _dual(query)


def _dual(query: Query) -> Query:
    if query.quantifier not in _DUAL_QUANTIFIER:
        quantifier = "none" if query.quantifier is None else query.quantifier.value
        raise ValueError(f"Quantifier {quantifier} has no dual")
    return Query(
        condition=negate(query.condition),
        quantifier=_DUAL_QUANTIFIER[query.quantifier],
        modality=_DUAL_MODALITY[query.modality],
        bound=query.bound,
    )


def simplify(condition: Condition) -> Condition:
    """
    Apply basic simplifications to a condition.

    Simplification rules applied recursively (bottom-up):
        - !!c            -> c              (double negation elimination)
        - !true          -> false
        - !false         -> true
        - true & c       -> c              (conjunction identity)
        - c & true       -> c
        - false & c      -> false          (conjunction annihilation)
        - c & false      -> false
        - true | c       -> true           (disjunction annihilation)
        - c | true       -> true
        - false | c      -> c              (disjunction identity)
        - c | false      -> c
        - (a)            -> a              (a primary, negated or next condition)

    Args:
        condition: The condition to simplify.

    Returns:
        A simplified condition (may be the same object if no
        simplification applies).
    """
    return _simplify(condition)


def _simplify(c: Condition) -> Condition:
    """Recursively simplify a condition bottom-up."""
    if isinstance(c, ParenCondition):
        inner = _simplify(c.inner)
        # (a) -> a when a needs no grouping inside a chain
        if isinstance(inner, PRIMARY_CONDITIONS + (Negation, Next)):
            return inner
        return ParenCondition(inner)

    if isinstance(c, Negation):
        operand = _unwrap(_simplify(c.operand))
        # !true -> false
        if isinstance(operand, TrueConstant):
            return FalseConstant()
        # !false -> true
        if isinstance(operand, FalseConstant):
            return TrueConstant()
        # !!c -> c
        if isinstance(operand, Negation):
            return operand.operand
        return negate(operand)

    if isinstance(c, Next):
        operand = _simplify(c.operand)
        if not isinstance(operand, PRIMARY_CONDITIONS):
            operand = ParenCondition(operand)
        return Next(operand)

    if isinstance(c, Conjunction):
        left = _simplify(c.left)
        right = _simplify(c.right)
        # true & c -> c
        if isinstance(left, TrueConstant):
            return right
        # c & true -> c
        if isinstance(right, TrueConstant):
            return left
        # false & c, c & false -> false
        if isinstance(left, FalseConstant) or isinstance(right, FalseConstant):
            return FalseConstant()
        return _rebuild(Conjunction, left, right)

    if isinstance(c, Disjunction):
        left = _simplify(c.left)
        right = _simplify(c.right)
        # true | c, c | true -> true
        if isinstance(left, TrueConstant) or isinstance(right, TrueConstant):
            return TrueConstant()
        # false | c -> c
        if isinstance(left, FalseConstant):
            return right
        # c | false -> c
        if isinstance(right, FalseConstant):
            return left
        return _rebuild(Disjunction, left, right)

    if isinstance(c, BinaryCondition):
        return _rebuild(COND_NODES[c.op], _simplify(c.left), _simplify(c.right))

    return c


def _unwrap(c: Condition) -> Condition:
    while isinstance(c, ParenCondition):
        c = c.inner
    return c


def _rebuild(cls, left: Condition, right: Condition) -> Condition:
    # A chain only takes a compound right operand inside parentheses.
    if isinstance(right, BinaryCondition):
        right = ParenCondition(right)
    return cls(left, right)
