"""
Tests for the AST node definitions.

Tests cover creation and validation, immutability, equality and
hashing, canonical string rendering, name collection, subformula
computation and dictionary export for expression, condition, bound and
query nodes.
"""

import dataclasses

import pytest

from mcquery.parser.ast_nodes import (
    Addition,
    ArithOp,
    Comparison,
    CondOp,
    Conjunction,
    Deadlock,
    Disjunction,
    FalseConstant,
    Implication,
    IntConstant,
    Modality,
    Multiplication,
    Name,
    Negate,
    Negation,
    Next,
    ParenCondition,
    ParenExpr,
    Quantifier,
    Query,
    RelOp,
    StepsBound,
    Subtraction,
    TimeBound,
    TrueConstant,
    Until,
)
from mcquery.parser.lexer import MAX_INT


class TestExpressions:
    """Test expression nodes."""

    def test_int_constant(self) -> None:
        c = IntConstant(7)
        assert c.value == 7
        assert str(c) == "7"

    def test_int_constant_rejects_negative(self) -> None:
        with pytest.raises(ValueError):
            IntConstant(-1)

    def test_int_constant_rejects_overflow(self) -> None:
        with pytest.raises(ValueError):
            IntConstant(MAX_INT + 1)

    def test_int_constant_rejects_bool(self) -> None:
        with pytest.raises(TypeError):
            IntConstant(True)

    def test_name(self) -> None:
        n = Name("proc.count")
        assert n.identifier == "proc.count"
        assert str(n) == "proc.count"
        assert not n.needs_quotes

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError):
            Name("")

    @pytest.mark.parametrize("identifier", ["deadlock", "TRUE", "until", "42"])
    def test_name_quoted_when_ambiguous(self, identifier: str) -> None:
        n = Name(identifier)
        assert n.needs_quotes
        assert str(n) == f'"{identifier}"'

    @pytest.mark.parametrize("identifier", ["A", "E", "F", "G", "P", "Pr", "pR"])
    def test_prefix_letters_bare_in_conditions(self, identifier: str) -> None:
        n = Name(identifier)
        assert not n.needs_quotes
        assert str(n) == identifier

    def test_negate_str(self) -> None:
        assert str(Negate(Name("x"))) == "-x"
        assert str(Negate(Addition(Name("x"), IntConstant(1)))) == "-(x + 1)"

    def test_binary_str_flat(self) -> None:
        e = Multiplication(Addition(Name("x"), IntConstant(2)), IntConstant(3))
        assert str(e) == "x + 2 * 3"

    def test_binary_str_right_group(self) -> None:
        e = Subtraction(Name("x"), Subtraction(Name("y"), Name("z")))
        assert str(e) == "x - (y - z)"

    def test_binary_op_attribute(self) -> None:
        assert Addition(Name("a"), Name("b")).op is ArithOp.ADD
        assert Multiplication(Name("a"), Name("b")).op is ArithOp.MULTIPLY

    def test_binary_equality_by_type(self) -> None:
        a = Addition(Name("x"), Name("y"))
        assert a == Addition(Name("x"), Name("y"))
        assert a != Subtraction(Name("x"), Name("y"))

    def test_paren_not_equal_to_inner(self) -> None:
        assert ParenExpr(Name("x")) != Name("x")

    def test_names(self) -> None:
        e = Addition(Negate(Name("x")), ParenExpr(Multiplication(Name("y"), IntConstant(2))))
        assert e.names() == frozenset({"x", "y"})

    def test_subexpressions(self) -> None:
        e = Addition(Name("x"), IntConstant(1))
        assert e.subexpressions() == frozenset({e, Name("x"), IntConstant(1)})


class TestImmutability:
    """Test that nodes cannot be changed after construction."""

    def test_expression_immutable(self) -> None:
        n = Name("x")
        with pytest.raises(AttributeError):
            n.identifier = "y"

    def test_condition_immutable(self) -> None:
        c = Conjunction(TrueConstant(), FalseConstant())
        with pytest.raises(AttributeError):
            c.left = FalseConstant()

    def test_no_new_attributes(self) -> None:
        with pytest.raises(AttributeError):
            TrueConstant().extra = 1

    def test_query_frozen(self) -> None:
        q = Query(condition=TrueConstant())
        with pytest.raises(dataclasses.FrozenInstanceError):
            q.quantifier = Quantifier.ALWAYS


class TestComparison:
    """Test Comparison node."""

    def test_full_comparison(self) -> None:
        c = Comparison(Name("x"), RelOp.LE, IntConstant(3))
        assert str(c) == "x <= 3"
        assert not c.is_bare

    def test_bare_comparison(self) -> None:
        c = Comparison(Name("x"))
        assert c.is_bare
        assert str(c) == "x"

    def test_relop_without_right_rejected(self) -> None:
        with pytest.raises(ValueError):
            Comparison(Name("x"), RelOp.EQ)

    def test_right_without_relop_rejected(self) -> None:
        with pytest.raises(ValueError):
            Comparison(Name("x"), None, IntConstant(1))

    def test_relop_spellings(self) -> None:
        assert RelOp.from_symbol("==") is RelOp.EQ
        assert RelOp.from_symbol("/=") is RelOp.NE
        assert RelOp.from_symbol("!=") is RelOp.NE

    def test_names_both_sides(self) -> None:
        c = Comparison(Name("x"), RelOp.EQ, Name("y"))
        assert c.names() == frozenset({"x", "y"})


class TestConditions:
    """Test condition nodes."""

    def test_literal_str(self) -> None:
        assert str(TrueConstant()) == "true"
        assert str(FalseConstant()) == "false"
        assert str(Deadlock()) == "deadlock"

    def test_literal_equality(self) -> None:
        assert TrueConstant() == TrueConstant()
        assert TrueConstant() != FalseConstant()
        assert Deadlock() != TrueConstant()

    def test_literal_hash(self) -> None:
        assert hash(Deadlock()) == hash(Deadlock())

    def test_negation_str_primary(self) -> None:
        assert str(Negation(Deadlock())) == "!deadlock"

    def test_negation_str_compound(self) -> None:
        c = Negation(Conjunction(Comparison(Name("a")), Comparison(Name("b"))))
        assert str(c) == "!(a & b)"

    def test_next_str(self) -> None:
        assert str(Next(Comparison(Name("x"), RelOp.EQ, IntConstant(1)))) == "next x = 1"

    def test_unary_equality_by_type(self) -> None:
        assert Negation(TrueConstant()) != Next(TrueConstant())

    def test_binary_str(self) -> None:
        c = Disjunction(
            Conjunction(Comparison(Name("a")), Comparison(Name("b"))),
            Comparison(Name("c")),
        )
        assert str(c) == "a & b | c"

    def test_binary_str_right_group(self) -> None:
        c = Until(Comparison(Name("a")), Implication(TrueConstant(), Deadlock()))
        assert str(c) == "a until (true => deadlock)"

    def test_binary_op_attribute(self) -> None:
        assert Until(TrueConstant(), TrueConstant()).op is CondOp.UNTIL
        assert Implication(TrueConstant(), TrueConstant()).op is CondOp.IMPLIES

    def test_paren_condition_str(self) -> None:
        assert str(ParenCondition(Deadlock())) == "(deadlock)"

    def test_subformulas(self) -> None:
        a = Comparison(Name("a"))
        f = Negation(ParenCondition(Conjunction(a, Deadlock())))
        subs = f.subformulas()
        assert f in subs
        assert a in subs
        assert Deadlock() in subs
        assert len(subs) == 5

    def test_names(self) -> None:
        f = Until(
            Comparison(Name("x"), RelOp.LT, Name("y")),
            Negation(Comparison(Addition(Name("z"), IntConstant(1)))),
        )
        assert f.names() == frozenset({"x", "y", "z"})

    def test_names_of_literal(self) -> None:
        assert Deadlock().names() == frozenset()

    def test_usable_in_sets(self) -> None:
        s = {Conjunction(TrueConstant(), Deadlock()), Conjunction(TrueConstant(), Deadlock())}
        assert len(s) == 1


class TestBounds:
    """Test run bound values."""

    def test_time_bound(self) -> None:
        assert str(TimeBound(100)) == "[t<=100]"
        assert TimeBound(100) == TimeBound(100)
        assert TimeBound(5) != StepsBound(5)

    def test_steps_bound(self) -> None:
        assert str(StepsBound(50)) == "[#<=50]"

    def test_negative_bound_rejected(self) -> None:
        with pytest.raises(ValueError):
            TimeBound(-1)

    def test_bound_type_checked(self) -> None:
        with pytest.raises(TypeError):
            StepsBound("10")


class TestQuery:
    """Test the Query root."""

    def test_minimal_query(self) -> None:
        q = Query(condition=Deadlock())
        assert q.quantifier is None
        assert q.modality is None
        assert q.bound is None
        assert str(q) == "deadlock"

    def test_full_query_str(self) -> None:
        q = Query(
            condition=Comparison(Name("x"), RelOp.GT, IntConstant(5)),
            quantifier=Quantifier.EXISTS,
            modality=Modality.FINALLY,
            bound=TimeBound(100),
        )
        assert str(q) == "E F [t<=100] x > 5"

    def test_probability_spellings(self) -> None:
        assert str(Query(TrueConstant(), Quantifier.PROBABILITY_R)) == "Pr true"
        assert str(Query(TrueConstant(), Quantifier.PROBABILITY)) == "P true"
        assert Quantifier.PROBABILITY_R.has_explicit_r
        assert not Quantifier.ALWAYS.is_probabilistic

    def test_leading_prefix_letter_quoted(self) -> None:
        q = Query(condition=Comparison(Name("A"), RelOp.EQ, Name("F")))
        assert str(q) == '"A" = F'

    def test_leading_modality_letter_after_quantifier(self) -> None:
        cond = Conjunction(Comparison(Name("G"), RelOp.GT, IntConstant(0)), Comparison(Name("E")))
        assert str(Query(cond, Quantifier.EXISTS)) == 'E "G" > 0 & E'
        assert str(Query(cond, Quantifier.EXISTS, Modality.FINALLY)) == "E F G > 0 & E"

    def test_leading_quantifier_letter_after_quantifier(self) -> None:
        q = Query(Comparison(Addition(Name("pr"), IntConstant(1))), Quantifier.ALWAYS)
        assert str(q) == "A pr + 1"

    def test_leading_letter_after_bound(self) -> None:
        q = Query(Comparison(Name("P")), bound=StepsBound(3))
        assert str(q) == "[#<=3] P"

    def test_condition_required(self) -> None:
        with pytest.raises(TypeError):
            Query(condition=Name("x"))

    def test_bad_quantifier_rejected(self) -> None:
        with pytest.raises(TypeError):
            Query(condition=TrueConstant(), quantifier="A")

    def test_hashable(self) -> None:
        q1 = Query(TrueConstant(), Quantifier.ALWAYS, Modality.GLOBALLY)
        q2 = Query(TrueConstant(), Quantifier.ALWAYS, Modality.GLOBALLY)
        assert hash(q1) == hash(q2)
        assert q1 == q2

    def test_to_dict(self) -> None:
        q = Query(
            condition=Conjunction(
                Comparison(Name("x"), RelOp.EQ, IntConstant(1)), Deadlock()
            ),
            quantifier=Quantifier.ALWAYS,
            bound=StepsBound(3),
        )
        assert q.to_dict() == {
            "quantifier": "A",
            "modality": None,
            "bound": {"type": "StepsBound", "max": 3},
            "condition": {
                "type": "Conjunction",
                "op": "and",
                "left": {
                    "type": "Comparison",
                    "left": {"type": "Name", "identifier": "x"},
                    "relop": "=",
                    "right": {"type": "IntConstant", "value": 1},
                },
                "right": {"type": "Deadlock"},
            },
        }
