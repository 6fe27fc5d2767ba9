"""Expression building surface and the nodes it produces.

The three traits below attach predication, arithmetic and boolean combinator
methods to any node that yields a value or a truth value. Non-node arguments are
wrapped in :class:`Literal` automatically.
"""

from collections.abc import Iterable, Sequence
from typing import Any, Optional

from mypy_extensions import trait

from sqlbee.nodes._base import Node
from sqlbee.nodes._enums import ComparisonOp, InfixOp, NullsOrder, OrderDirection, UnaryMathOp, UnaryOp

__all__ = (
    "Alias",
    "And",
    "Arithmetics",
    "Between",
    "BooleanExpression",
    "Combinable",
    "Comparison",
    "Expression",
    "Grouping",
    "In",
    "Infix",
    "Literal",
    "Not",
    "Or",
    "Ordering",
    "Predications",
    "Unary",
    "UnaryMath",
    "as_node",
    "chain_and",
    "group_or",
)


def as_node(value: Any) -> Node:
    """Wrap ``value`` in a :class:`Literal` unless it already is a node.

    Args:
        value: A node or a plain Python value.

    Returns:
        The node itself, or a new literal holding ``value``.
    """
    if isinstance(value, Node):
        return value
    return Literal(value)


def group_or(predicates: "Sequence[Node]") -> "Optional[Grouping]":
    """Chain ``predicates`` with OR and wrap the result in a :class:`Grouping`.

    A single predicate is still grouped.

    Args:
        predicates: Predicates to combine, left to right.

    Returns:
        The grouped disjunction, or ``None`` when ``predicates`` is empty.
    """
    if not predicates:
        return None
    result = predicates[0]
    for predicate in predicates[1:]:
        result = Or(result, predicate)
    return Grouping(result)


def chain_and(predicates: "Sequence[Node]") -> "Optional[Node]":
    """Chain ``predicates`` with AND, left to right.

    Args:
        predicates: Predicates to combine.

    Returns:
        The conjunction, the single predicate unchanged, or ``None`` when empty.
    """
    if not predicates:
        return None
    result = predicates[0]
    for predicate in predicates[1:]:
        result = And(result, predicate)
    return result


@trait
class Predications:
    """Comparison, membership, ordering and alias methods."""

    __slots__ = ()

    def _compare(self, op: ComparisonOp, value: Any) -> "Comparison":
        return Comparison(self, op, as_node(value))  # type: ignore[arg-type]

    def eq(self, value: Any) -> "Comparison":
        return self._compare(ComparisonOp.EQ, value)

    def neq(self, value: Any) -> "Comparison":
        return self._compare(ComparisonOp.NOT_EQ, value)

    def gt(self, value: Any) -> "Comparison":
        return self._compare(ComparisonOp.GT, value)

    def ge(self, value: Any) -> "Comparison":
        return self._compare(ComparisonOp.GT_EQ, value)

    def lt(self, value: Any) -> "Comparison":
        return self._compare(ComparisonOp.LT, value)

    def le(self, value: Any) -> "Comparison":
        return self._compare(ComparisonOp.LT_EQ, value)

    def like(self, pattern: Any) -> "Comparison":
        return self._compare(ComparisonOp.LIKE, pattern)

    def not_like(self, pattern: Any) -> "Comparison":
        return self._compare(ComparisonOp.NOT_LIKE, pattern)

    def matches_regexp(self, pattern: Any) -> "Comparison":
        return self._compare(ComparisonOp.REGEXP, pattern)

    def does_not_match_regexp(self, pattern: Any) -> "Comparison":
        return self._compare(ComparisonOp.NOT_REGEXP, pattern)

    def is_distinct_from(self, value: Any) -> "Comparison":
        return self._compare(ComparisonOp.DISTINCT_FROM, value)

    def is_not_distinct_from(self, value: Any) -> "Comparison":
        return self._compare(ComparisonOp.NOT_DISTINCT_FROM, value)

    def case_sensitive_eq(self, value: Any) -> "Comparison":
        return self._compare(ComparisonOp.CASE_SENSITIVE_EQ, value)

    def case_insensitive_eq(self, value: Any) -> "Comparison":
        return self._compare(ComparisonOp.CASE_INSENSITIVE_EQ, value)

    def contains(self, value: Any) -> "Comparison":
        """Array/range containment, ``self @> value``."""
        return self._compare(ComparisonOp.CONTAINS, value)

    def overlaps(self, value: Any) -> "Comparison":
        """Array/range overlap, ``self && value``."""
        return self._compare(ComparisonOp.OVERLAPS, value)

    def in_(self, *values: Any) -> "In":
        return In(self, [as_node(v) for v in values])  # type: ignore[arg-type]

    def not_in(self, *values: Any) -> "In":
        return In(self, [as_node(v) for v in values], negated=True)  # type: ignore[arg-type]

    def between(self, low: Any, high: Any) -> "Between":
        return Between(self, as_node(low), as_node(high))  # type: ignore[arg-type]

    def not_between(self, low: Any, high: Any) -> "Between":
        return Between(self, as_node(low), as_node(high), negated=True)  # type: ignore[arg-type]

    def is_null(self) -> "Unary":
        return Unary(self, UnaryOp.IS_NULL)  # type: ignore[arg-type]

    def is_not_null(self) -> "Unary":
        return Unary(self, UnaryOp.IS_NOT_NULL)  # type: ignore[arg-type]

    def eq_any(self, *values: Any) -> "Optional[Grouping]":
        """``(self = v1 OR self = v2 ...)``; ``None`` when no values are given."""
        return group_or([self._compare(ComparisonOp.EQ, v) for v in values])

    def eq_all(self, *values: Any) -> "Optional[Node]":
        return chain_and([self._compare(ComparisonOp.EQ, v) for v in values])

    def matches_any(self, *patterns: Any) -> "Optional[Grouping]":
        return group_or([self._compare(ComparisonOp.LIKE, p) for p in patterns])

    def matches_all(self, *patterns: Any) -> "Optional[Node]":
        return chain_and([self._compare(ComparisonOp.LIKE, p) for p in patterns])

    def in_any(self, *value_sets: "Iterable[Any]") -> "Optional[Grouping]":
        """``(self IN (set1) OR self IN (set2) ...)``; each argument is one IN list."""
        return group_or([self.in_(*values) for values in value_sets])

    def in_all(self, *value_sets: "Iterable[Any]") -> "Optional[Node]":
        return chain_and([self.in_(*values) for values in value_sets])

    def asc(self) -> "Ordering":
        return Ordering(self, OrderDirection.ASC)  # type: ignore[arg-type]

    def desc(self) -> "Ordering":
        return Ordering(self, OrderDirection.DESC)  # type: ignore[arg-type]

    def as_(self, name: str) -> "Alias":
        return Alias(self, name)  # type: ignore[arg-type]


@trait
class Arithmetics:
    """Arithmetic, bitwise and concatenation methods."""

    __slots__ = ()

    def _infix(self, op: InfixOp, value: Any) -> "Infix":
        return Infix(self, op, as_node(value))  # type: ignore[arg-type]

    def plus(self, value: Any) -> "Infix":
        return self._infix(InfixOp.PLUS, value)

    def minus(self, value: Any) -> "Infix":
        return self._infix(InfixOp.MINUS, value)

    def multiply(self, value: Any) -> "Infix":
        return self._infix(InfixOp.MULTIPLY, value)

    def divide(self, value: Any) -> "Infix":
        return self._infix(InfixOp.DIVIDE, value)

    def bitwise_and(self, value: Any) -> "Infix":
        return self._infix(InfixOp.BITWISE_AND, value)

    def bitwise_or(self, value: Any) -> "Infix":
        return self._infix(InfixOp.BITWISE_OR, value)

    def bitwise_xor(self, value: Any) -> "Infix":
        return self._infix(InfixOp.BITWISE_XOR, value)

    def shift_left(self, value: Any) -> "Infix":
        return self._infix(InfixOp.SHIFT_LEFT, value)

    def shift_right(self, value: Any) -> "Infix":
        return self._infix(InfixOp.SHIFT_RIGHT, value)

    def concat(self, value: Any) -> "Infix":
        return self._infix(InfixOp.CONCAT, value)

    def bitwise_not(self) -> "UnaryMath":
        return UnaryMath(self, UnaryMathOp.BITWISE_NOT)  # type: ignore[arg-type]

    def __add__(self, value: Any) -> "Infix":
        return self.plus(value)

    def __sub__(self, value: Any) -> "Infix":
        return self.minus(value)

    def __mul__(self, value: Any) -> "Infix":
        return self.multiply(value)

    def __truediv__(self, value: Any) -> "Infix":
        return self.divide(value)


@trait
class Combinable:
    """Boolean combinators. ``&``, ``|`` and ``~`` are shorthands for them."""

    __slots__ = ()

    def and_(self, other: Node) -> "And":
        return And(self, other)  # type: ignore[arg-type]

    def or_(self, other: Node) -> "Grouping":
        """OR is always grouped so it binds correctly inside an AND chain."""
        return Grouping(Or(self, other))  # type: ignore[arg-type]

    def not_(self) -> "Not":
        return Not(self)  # type: ignore[arg-type]

    def __and__(self, other: Node) -> "And":
        if not isinstance(other, Node):
            return NotImplemented
        return self.and_(other)

    def __or__(self, other: Node) -> "Grouping":
        if not isinstance(other, Node):
            return NotImplemented
        return self.or_(other)

    def __invert__(self) -> "Not":
        return self.not_()


class Expression(Node, Predications, Arithmetics, Combinable):
    """A node producing a value."""

    __slots__ = ()


class BooleanExpression(Node, Combinable):
    """A node producing a truth value."""

    __slots__ = ()


class Literal(Expression):
    """A plain Python value: ``None``, ``bool``, ``int``, ``float`` or ``str``."""

    __slots__ = ("value",)
    __visit_name__ = "literal"

    def __init__(self, value: Any) -> None:
        self.value = value


class Comparison(BooleanExpression):
    __slots__ = ("left", "op", "right")
    __visit_name__ = "comparison"

    def __init__(self, left: Node, op: ComparisonOp, right: Node) -> None:
        self.left = left
        self.op = op
        self.right = right


class Unary(BooleanExpression):
    """``expr IS NULL`` / ``expr IS NOT NULL``."""

    __slots__ = ("expr", "op")
    __visit_name__ = "unary"

    def __init__(self, expr: Node, op: UnaryOp) -> None:
        self.expr = expr
        self.op = op


class And(BooleanExpression):
    __slots__ = ("left", "right")
    __visit_name__ = "and"

    def __init__(self, left: Node, right: Node) -> None:
        self.left = left
        self.right = right


class Or(BooleanExpression):
    __slots__ = ("left", "right")
    __visit_name__ = "or"

    def __init__(self, left: Node, right: Node) -> None:
        self.left = left
        self.right = right


class Not(BooleanExpression):
    __slots__ = ("expr",)
    __visit_name__ = "not"

    def __init__(self, expr: Node) -> None:
        self.expr = expr


class Grouping(Expression):
    """Parenthesised sub-expression."""

    __slots__ = ("expr",)
    __visit_name__ = "grouping"

    def __init__(self, expr: Node) -> None:
        self.expr = expr


class In(BooleanExpression):
    __slots__ = ("expr", "negated", "values")
    __visit_name__ = "in"

    def __init__(self, expr: Node, values: "Sequence[Node]", negated: bool = False) -> None:
        self.expr = expr
        self.values = list(values)
        self.negated = negated


class Between(BooleanExpression):
    __slots__ = ("expr", "high", "low", "negated")
    __visit_name__ = "between"

    def __init__(self, expr: Node, low: Node, high: Node, negated: bool = False) -> None:
        self.expr = expr
        self.low = low
        self.high = high
        self.negated = negated


class Infix(Expression):
    """Binary arithmetic, bitwise or concatenation operator."""

    __slots__ = ("left", "op", "right")
    __visit_name__ = "infix"

    def __init__(self, left: Node, op: InfixOp, right: Node) -> None:
        self.left = left
        self.op = op
        self.right = right


class UnaryMath(Expression):
    __slots__ = ("expr", "op")
    __visit_name__ = "unary_math"

    def __init__(self, expr: Node, op: UnaryMathOp = UnaryMathOp.BITWISE_NOT) -> None:
        self.expr = expr
        self.op = op


class Ordering(Node):
    """``expr ASC|DESC [NULLS FIRST|LAST]``."""

    __slots__ = ("direction", "expr", "nulls")
    __visit_name__ = "ordering"

    def __init__(
        self, expr: Node, direction: OrderDirection = OrderDirection.ASC, nulls: NullsOrder = NullsOrder.DEFAULT
    ) -> None:
        self.expr = expr
        self.direction = direction
        self.nulls = nulls

    def nulls_first(self) -> "Ordering":
        return Ordering(self.expr, self.direction, NullsOrder.FIRST)

    def nulls_last(self) -> "Ordering":
        return Ordering(self.expr, self.direction, NullsOrder.LAST)


class Alias(Expression):
    """``expr AS "name"``."""

    __slots__ = ("expr", "name")
    __visit_name__ = "alias"

    def __init__(self, expr: Node, name: str) -> None:
        self.expr = expr
        self.name = name
