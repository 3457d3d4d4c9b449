"""
Abstract syntax tree node definitions for model-checking queries.

Defines immutable, hashable AST nodes for the arithmetic sub-language
(integer constants, names, negation, flat binary operators, grouping),
the condition sub-language (literals, deadlock, comparisons, negation,
next, flat binary connectives, grouping), and the root Query with its
optional quantifier, temporal modality and run bound.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Union

from mcquery.parser.lexer import MAX_INT, PREFIX_TYPES, keyword_type


class Node(ABC):
    """
    Base class for all expression and condition nodes.

    Nodes are immutable once built: attributes are assigned through
    ``_init`` and any later assignment raises AttributeError.
    """

    __slots__ = ()

    def _init(self, **fields: Any) -> None:
        for name, value in fields.items():
            object.__setattr__(self, name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} nodes are immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} nodes are immutable")

    @abstractmethod
    def names(self) -> FrozenSet[str]:
        """Return all identifiers referenced below this node."""

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-ready dictionary describing this node."""

    @abstractmethod
    def __str__(self) -> str:
        """Return the canonical surface form of this node."""

    @abstractmethod
    def __eq__(self, other: object) -> bool:
        """Check structural equality with another node."""

    @abstractmethod
    def __hash__(self) -> int:
        """Return hash for use in sets and dicts."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"


# === Operator enums ===


class ArithOp(Enum):
    """Binary arithmetic operators. All share one precedence level."""

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    MODULO = "%"
    POW = "^"


class CondOp(Enum):
    """Binary condition connectives. All share one precedence level."""

    AND = "&"
    OR = "|"
    UNTIL = "until"
    IMPLIES = "=>"


class RelOp(Enum):
    """Relational operators of a comparison."""

    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    @classmethod
    def from_symbol(cls, symbol: str) -> RelOp:
        """Map any surface spelling (``==``, ``/=``, ...) to its operator."""
        return _RELOP_SPELLINGS[symbol]


_RELOP_SPELLINGS = {
    "=": RelOp.EQ,
    "==": RelOp.EQ,
    "!=": RelOp.NE,
    "/=": RelOp.NE,
    "<": RelOp.LT,
    "<=": RelOp.LE,
    ">": RelOp.GT,
    ">=": RelOp.GE,
}


class Quantifier(Enum):
    """
    Path quantifier of a query.

    ``P`` and ``Pr`` are two spellings of the probability quantifier;
    both are kept so the surface form survives a round trip.
    """

    ALWAYS = "A"
    EXISTS = "E"
    PROBABILITY = "P"
    PROBABILITY_R = "Pr"

    @property
    def is_probabilistic(self) -> bool:
        return self in (Quantifier.PROBABILITY, Quantifier.PROBABILITY_R)

    @property
    def has_explicit_r(self) -> bool:
        return self is Quantifier.PROBABILITY_R


class Modality(Enum):
    """Temporal modality. ``<>`` and ``[]`` are read as F and G."""

    FINALLY = "F"
    GLOBALLY = "G"


# === Expressions ===


class Expr(Node):
    """Base class for arithmetic expression nodes."""

    __slots__ = ()

    @abstractmethod
    def subexpressions(self) -> FrozenSet[Expr]:
        """Return set of all subexpressions including self."""

    def names(self) -> FrozenSet[str]:
        return frozenset(
            sub.identifier for sub in self.subexpressions() if isinstance(sub, Name)
        )


class IntConstant(Expr):
    """
    Represents a non-negative integer literal.

    Attributes:
        value: The literal value, between 0 and MAX_INT.
    """

    __slots__ = ("value",)

    def __init__(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"IntConstant value must be an int, got {value!r}")
        if not 0 <= value <= MAX_INT:
            raise ValueError(f"IntConstant value must be in [0, {MAX_INT}], got {value}")
        self._init(value=value)

    def subexpressions(self) -> FrozenSet[Expr]:
        return frozenset({self})

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "IntConstant", "value": self.value}

    def __str__(self) -> str:
        return str(self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IntConstant):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(("IntConstant", self.value))


class Name(Expr):
    """
    Represents a reference to a model variable or clock.

    The identifier is stored without quotes. Dots are ordinary
    identifier characters (e.g. ``proc.count``).

    Attributes:
        identifier: The variable name.
    """

    __slots__ = ("identifier",)

    def __init__(self, identifier: str) -> None:
        if not identifier:
            raise ValueError("Name identifier must not be empty")
        self._init(identifier=identifier)

    @property
    def needs_quotes(self) -> bool:
        """
        True if the bare identifier can never be read back as a name.

        Quantifier and modality letters are names inside a condition and
        only clash at the start of a query; see ``Query.__str__``.
        """
        if self.identifier.isdigit():
            return True
        kind = keyword_type(self.identifier)
        return kind is not None and kind not in PREFIX_TYPES

    def subexpressions(self) -> FrozenSet[Expr]:
        return frozenset({self})

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "Name", "identifier": self.identifier}

    def __str__(self) -> str:
        if self.needs_quotes:
            return f'"{self.identifier}"'
        return self.identifier

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Name):
            return NotImplemented
        return self.identifier == other.identifier

    def __hash__(self) -> int:
        return hash(("Name", self.identifier))


class Negate(Expr):
    """
    Represents -e (unary minus).

    Attributes:
        operand: The negated expression.
    """

    __slots__ = ("operand",)

    def __init__(self, operand: Expr) -> None:
        self._init(operand=operand)

    def subexpressions(self) -> FrozenSet[Expr]:
        return frozenset({self}) | self.operand.subexpressions()

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "Negate", "operand": self.operand.to_dict()}

    def __str__(self) -> str:
        if isinstance(self.operand, (IntConstant, Name, ParenExpr)):
            return f"-{self.operand}"
        return f"-({self.operand})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Negate):
            return NotImplemented
        return self.operand == other.operand

    def __hash__(self) -> int:
        return hash(("Negate", self.operand))


class ParenExpr(Expr):
    """
    Represents (e). Grouping only; kept so the tree mirrors the text.

    Attributes:
        inner: The grouped expression.
    """

    __slots__ = ("inner",)

    def __init__(self, inner: Expr) -> None:
        self._init(inner=inner)

    def subexpressions(self) -> FrozenSet[Expr]:
        return frozenset({self}) | self.inner.subexpressions()

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "ParenExpr", "inner": self.inner.to_dict()}

    def __str__(self) -> str:
        return f"({self.inner})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParenExpr):
            return NotImplemented
        return self.inner == other.inner

    def __hash__(self) -> int:
        return hash(("ParenExpr", self.inner))


class BinaryOp(Expr):
    """
    Base class for binary arithmetic operators.

    Chains are flat and left-associative: ``a + b * c`` is
    ``Multiplication(Addition(a, b), c)``.

    Attributes:
        left: Left operand.
        right: Right operand.
    """

    __slots__ = ("left", "right")

    op: ArithOp

    def __init__(self, left: Expr, right: Expr) -> None:
        self._init(left=left, right=right)

    def subexpressions(self) -> FrozenSet[Expr]:
        return frozenset({self}) | self.left.subexpressions() | self.right.subexpressions()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "op": self.op.value,
            "left": self.left.to_dict(),
            "right": self.right.to_dict(),
        }

    def __str__(self) -> str:
        right = f"({self.right})" if isinstance(self.right, BinaryOp) else str(self.right)
        return f"{self.left} {self.op.value} {right}"

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.left == other.left and self.right == other.right

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.left, self.right))


class Addition(BinaryOp):
    """Represents a + b."""

    __slots__ = ()
    op = ArithOp.ADD


class Subtraction(BinaryOp):
    """Represents a - b."""

    __slots__ = ()
    op = ArithOp.SUBTRACT


class Multiplication(BinaryOp):
    """Represents a * b."""

    __slots__ = ()
    op = ArithOp.MULTIPLY


class Modulo(BinaryOp):
    """Represents a % b."""

    __slots__ = ()
    op = ArithOp.MODULO


class Power(BinaryOp):
    """Represents a ^ b."""

    __slots__ = ()
    op = ArithOp.POW


# === Conditions ===


class Condition(Node):
    """Base class for condition (state and path formula) nodes."""

    __slots__ = ()

    @abstractmethod
    def subformulas(self) -> FrozenSet[Condition]:
        """Return set of all subformulas including self."""

    def names(self) -> FrozenSet[str]:
        result: FrozenSet[str] = frozenset()
        for sub in self.subformulas():
            if isinstance(sub, Comparison):
                result |= sub.names()
        return result


class TrueConstant(Condition):
    """Represents the constant true."""

    __slots__ = ()

    def subformulas(self) -> FrozenSet[Condition]:
        return frozenset({self})

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "TrueConstant"}

    def __str__(self) -> str:
        return "true"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TrueConstant):
            return NotImplemented
        return True

    def __hash__(self) -> int:
        return hash(("TrueConstant",))


class FalseConstant(Condition):
    """Represents the constant false."""

    __slots__ = ()

    def subformulas(self) -> FrozenSet[Condition]:
        return frozenset({self})

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "FalseConstant"}

    def __str__(self) -> str:
        return "false"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FalseConstant):
            return NotImplemented
        return True

    def __hash__(self) -> int:
        return hash(("FalseConstant",))


class Deadlock(Condition):
    """Represents the deadlock predicate: the state has no outgoing transition."""

    __slots__ = ()

    def subformulas(self) -> FrozenSet[Condition]:
        return frozenset({self})

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "Deadlock"}

    def __str__(self) -> str:
        return "deadlock"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Deadlock):
            return NotImplemented
        return True

    def __hash__(self) -> int:
        return hash(("Deadlock",))


class Comparison(Condition):
    """
    Represents ``left relop right``, or a bare expression ``left``.

    A bare expression has neither ``relop`` nor ``right``. Its truth
    value is decided by the consuming engine, not here.

    Attributes:
        left: Left-hand expression.
        relop: The relational operator, or None for a bare expression.
        right: Right-hand expression, or None for a bare expression.
    """

    __slots__ = ("left", "relop", "right")

    def __init__(
        self,
        left: Expr,
        relop: Optional[RelOp] = None,
        right: Optional[Expr] = None,
    ) -> None:
        if (relop is None) != (right is None):
            raise ValueError("Comparison needs both relop and right, or neither")
        self._init(left=left, relop=relop, right=right)

    @property
    def is_bare(self) -> bool:
        return self.relop is None

    def subformulas(self) -> FrozenSet[Condition]:
        return frozenset({self})

    def names(self) -> FrozenSet[str]:
        if self.right is None:
            return self.left.names()
        return self.left.names() | self.right.names()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "Comparison",
            "left": self.left.to_dict(),
            "relop": None if self.relop is None else self.relop.value,
            "right": None if self.right is None else self.right.to_dict(),
        }

    def __str__(self) -> str:
        if self.relop is None:
            return str(self.left)
        return f"{self.left} {self.relop.value} {self.right}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Comparison):
            return NotImplemented
        return (
            self.left == other.left
            and self.relop == other.relop
            and self.right == other.right
        )

    def __hash__(self) -> int:
        return hash(("Comparison", self.left, self.relop, self.right))


# Conditions that a prefix operator may take without added parentheses.
_PRIMARY = (TrueConstant, FalseConstant, Deadlock, Comparison)


class _UnaryCondition(Condition):
    """Base class for prefix operators (not part of public API)."""

    __slots__ = ("operand",)

    _op_symbol: str = ""

    def __init__(self, operand: Condition) -> None:
        self._init(operand=operand)

    def subformulas(self) -> FrozenSet[Condition]:
        return frozenset({self}) | self.operand.subformulas()

    def to_dict(self) -> Dict[str, Any]:
        return {"type": type(self).__name__, "operand": self.operand.to_dict()}

    def __str__(self) -> str:
        if isinstance(self.operand, _PRIMARY + (ParenCondition,)):
            return f"{self._op_symbol}{self.operand}"
        return f"{self._op_symbol}({self.operand})"

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.operand == other.operand

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.operand))


class Negation(_UnaryCondition):
    """
    Represents !c (negation).

    Applies to exactly one primary condition; ``! x=1 & y=2`` is
    ``Conjunction(Negation(x=1), y=2)``.

    Attributes:
        operand: The condition being negated.
    """

    __slots__ = ()
    _op_symbol = "!"


class Next(_UnaryCondition):
    """
    Represents next c (c holds in the following state of the path).

    Attributes:
        operand: The condition to evaluate in the next state.
    """

    __slots__ = ()
    _op_symbol = "next "


class ParenCondition(Condition):
    """
    Represents (c). Grouping only; kept so the tree mirrors the text.

    Attributes:
        inner: The grouped condition.
    """

    __slots__ = ("inner",)

    def __init__(self, inner: Condition) -> None:
        self._init(inner=inner)

    def subformulas(self) -> FrozenSet[Condition]:
        return frozenset({self}) | self.inner.subformulas()

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "ParenCondition", "inner": self.inner.to_dict()}

    def __str__(self) -> str:
        return f"({self.inner})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParenCondition):
            return NotImplemented
        return self.inner == other.inner

    def __hash__(self) -> int:
        return hash(("ParenCondition", self.inner))


class BinaryCondition(Condition):
    """
    Base class for binary connectives.

    Chains are flat and left-associative with no precedence between
    connectives: ``a & b | c`` is ``Disjunction(Conjunction(a, b), c)``.

    Attributes:
        left: Left operand.
        right: Right operand.
    """

    __slots__ = ("left", "right")

    op: CondOp

    def __init__(self, left: Condition, right: Condition) -> None:
        self._init(left=left, right=right)

    def subformulas(self) -> FrozenSet[Condition]:
        return frozenset({self}) | self.left.subformulas() | self.right.subformulas()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "op": self.op.name.lower(),
            "left": self.left.to_dict(),
            "right": self.right.to_dict(),
        }

    def __str__(self) -> str:
        right = f"({self.right})" if isinstance(self.right, BinaryCondition) else str(self.right)
        return f"{self.left} {self.op.value} {right}"

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.left == other.left and self.right == other.right

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.left, self.right))


class Conjunction(BinaryCondition):
    """Represents c1 & c2."""

    __slots__ = ()
    op = CondOp.AND


class Disjunction(BinaryCondition):
    """Represents c1 | c2."""

    __slots__ = ()
    op = CondOp.OR


class Until(BinaryCondition):
    """
    Represents c1 until c2.

    c2 must eventually hold along the path, and c1 must hold in every
    state before that.
    """

    __slots__ = ()
    op = CondOp.UNTIL


class Implication(BinaryCondition):
    """
    Represents c1 => c2.

    Equivalent to: !c1 | c2
    """

    __slots__ = ()
    op = CondOp.IMPLIES


COND_NODES = {cls.op: cls for cls in (Conjunction, Disjunction, Until, Implication)}

PRIMARY_CONDITIONS = _PRIMARY + (ParenCondition,)


# === Run bounds ===


def _check_bound(kind: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{kind} max must be an int, got {value!r}")
    if not 0 <= value <= MAX_INT:
        raise ValueError(f"{kind} max must be in [0, {MAX_INT}], got {value}")


@dataclass(frozen=True)
class TimeBound:
    """
    Limit a run to ``max`` units of model time: ``[t<=max]``.

    Attributes:
        max: The largest time a run may reach.
    """

    max: int

    def __post_init__(self) -> None:
        _check_bound("TimeBound", self.max)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "TimeBound", "max": self.max}

    def __str__(self) -> str:
        return f"[t<={self.max}]"


@dataclass(frozen=True)
class StepsBound:
    """
    Limit a run to ``max`` discrete steps: ``[#<=max]``.

    Attributes:
        max: The largest number of steps a run may take.
    """

    max: int

    def __post_init__(self) -> None:
        _check_bound("StepsBound", self.max)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "StepsBound", "max": self.max}

    def __str__(self) -> str:
        return f"[#<={self.max}]"


RunBound = Union[TimeBound, StepsBound]


# === Query ===


@dataclass(frozen=True)
class Query:
    """
    Immutable root of a parsed query.

    Quantifier, modality and bound are independently optional; whether
    a given combination is meaningful is for the consuming engine to
    decide.

    Attributes:
        condition: The mandatory condition.
        quantifier: ``A``, ``E``, ``P`` or ``Pr``, if given.
        modality: ``F`` or ``G``, if given.
        bound: Time or step bound on runs, if given.
    """

    condition: Condition
    quantifier: Optional[Quantifier] = None
    modality: Optional[Modality] = None
    bound: Optional[RunBound] = None

    def __post_init__(self) -> None:
        """Validate field types."""
        if not isinstance(self.condition, Condition):
            raise TypeError(f"condition must be a Condition, got {self.condition!r}")
        if self.quantifier is not None and not isinstance(self.quantifier, Quantifier):
            raise TypeError(f"quantifier must be a Quantifier, got {self.quantifier!r}")
        if self.modality is not None and not isinstance(self.modality, Modality):
            raise TypeError(f"modality must be a Modality, got {self.modality!r}")
        if self.bound is not None and not isinstance(self.bound, (TimeBound, StepsBound)):
            raise TypeError(f"bound must be a TimeBound or StepsBound, got {self.bound!r}")

    def names(self) -> FrozenSet[str]:
        """Return all identifiers the engine has to resolve."""
        return self.condition.names()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quantifier": None if self.quantifier is None else self.quantifier.value,
            "modality": None if self.modality is None else self.modality.value,
            "bound": None if self.bound is None else self.bound.to_dict(),
            "condition": self.condition.to_dict(),
        }

    def __str__(self) -> str:
        parts = [
            part.value if isinstance(part, Enum) else str(part)
            for part in (self.quantifier, self.modality, self.bound)
            if part is not None
        ]
        condition = str(self.condition)
        name = _leading_name(self.condition)
        if name is not None and self._prefix_clash(name):
            # Only the first word of the condition can be taken for a prefix.
            condition = f'"{name.identifier}"' + condition[len(name.identifier):]
        parts.append(condition)
        return " ".join(parts)

    def _prefix_clash(self, name: Name) -> bool:
        """True if ``name`` printed bare would be read as part of the prefix."""
        kind = keyword_type(name.identifier)
        if kind not in PREFIX_TYPES:
            return False
        if self.modality is not None or self.bound is not None:
            return False
        if self.quantifier is not None:
            return kind in ("FINALLY", "GLOBALLY")
        return True


def _leading_name(condition: Condition) -> Optional[Name]:
    """Return the Name printed first in ``condition``, if it starts with one."""
    node: Node = condition
    while isinstance(node, (BinaryCondition, Comparison, BinaryOp)):
        node = node.left
    return node if isinstance(node, Name) else None
