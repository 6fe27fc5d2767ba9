"""Function call nodes: named functions, aggregates, EXTRACT and window functions."""

from collections.abc import Sequence
from typing import Any, Optional, Union

from mypy_extensions import trait

from sqlbee.nodes._base import Node
from sqlbee.nodes._enums import AggregateFunc, ExtractField, WindowFunc
from sqlbee.nodes._expressions import Expression, as_node
from sqlbee.nodes._values import RawFragment
from sqlbee.nodes._windows import Over, WindowDefinition

__all__ = (
    "Aggregate",
    "Extract",
    "NamedFunction",
    "WindowFunction",
    "avg",
    "cast",
    "coalesce",
    "count",
    "count_distinct",
    "cume_dist",
    "dense_rank",
    "extract",
    "first_value",
    "lag",
    "last_value",
    "lead",
    "lower",
    "max_",
    "min_",
    "nth_value",
    "ntile",
    "percent_rank",
    "rank",
    "row_number",
    "substring",
    "sum_",
    "upper",
)


@trait
class Windowable:
    __slots__ = ()

    def over(self, window: "Union[WindowDefinition, str, None]" = None) -> Over:
        """Apply this function over a window.

        Args:
            window: An inline window definition, the name of a window declared in
                the WINDOW clause, or ``None`` for ``OVER ()``.

        Returns:
            The OVER expression.
        """
        if isinstance(window, str):
            return Over(self, window_name=window)  # type: ignore[arg-type]
        return Over(self, window=window)  # type: ignore[arg-type]


class NamedFunction(Expression, Windowable):
    """An arbitrary SQL function call, ``NAME([DISTINCT] arg, ...)``.

    ``name`` must consist of letters, digits and ``_``; the renderer rejects anything else.
    """

    __slots__ = ("args", "distinct", "name")
    __visit_name__ = "named_function"

    def __init__(self, name: str, args: "Optional[Sequence[Any]]" = None, distinct: bool = False) -> None:
        self.name = name
        self.args = [as_node(a) for a in args or ()]
        self.distinct = distinct


class Aggregate(Expression, Windowable):
    """``FUNC([DISTINCT] expr) [FILTER (WHERE ...)]``; ``expr=None`` means ``*``."""

    __slots__ = ("distinct", "expr", "filter", "func")
    __visit_name__ = "aggregate"

    def __init__(
        self,
        func: AggregateFunc,
        expr: Optional[Node] = None,
        distinct: bool = False,
        filter: Optional[Node] = None,  # noqa: A002
    ) -> None:
        self.func = func
        self.expr = expr
        self.distinct = distinct
        self.filter = filter

    def with_filter(self, condition: Node) -> "Aggregate":
        """Return a copy of this aggregate restricted by ``FILTER (WHERE condition)``."""
        return Aggregate(self.func, self.expr, self.distinct, condition)


class Extract(Expression):
    __slots__ = ("expr", "field")
    __visit_name__ = "extract"

    def __init__(self, field: ExtractField, expr: Node) -> None:
        self.field = field
        self.expr = expr


class WindowFunction(Node, Windowable):
    """A ranking or offset function; only meaningful with :meth:`over`."""

    __slots__ = ("args", "func")
    __visit_name__ = "window_function"

    def __init__(self, func: WindowFunc, args: "Optional[Sequence[Any]]" = None) -> None:
        self.func = func
        self.args = [as_node(a) for a in args or ()]


def count(expr: Optional[Node] = None) -> Aggregate:
    return Aggregate(AggregateFunc.COUNT, expr)


def count_distinct(expr: Node) -> Aggregate:
    return Aggregate(AggregateFunc.COUNT, expr, distinct=True)


def sum_(expr: Node) -> Aggregate:
    return Aggregate(AggregateFunc.SUM, expr)


def avg(expr: Node) -> Aggregate:
    return Aggregate(AggregateFunc.AVG, expr)


def min_(expr: Node) -> Aggregate:
    return Aggregate(AggregateFunc.MIN, expr)


def max_(expr: Node) -> Aggregate:
    return Aggregate(AggregateFunc.MAX, expr)


def extract(field: ExtractField, expr: Node) -> Extract:
    return Extract(field, expr)


def coalesce(*args: Any) -> NamedFunction:
    return NamedFunction("COALESCE", args)


def lower(expr: Node) -> NamedFunction:
    return NamedFunction("LOWER", [expr])


def upper(expr: Node) -> NamedFunction:
    return NamedFunction("UPPER", [expr])


def substring(expr: Node, start: Any, length: Any) -> NamedFunction:
    return NamedFunction("SUBSTRING", [expr, start, length])


def cast(expr: Any, type_name: str) -> NamedFunction:
    """``CAST(expr AS type_name)``; the type name is emitted verbatim."""
    return NamedFunction("CAST", [expr, RawFragment(type_name)])


def row_number() -> WindowFunction:
    return WindowFunction(WindowFunc.ROW_NUMBER)


def rank() -> WindowFunction:
    return WindowFunction(WindowFunc.RANK)


def dense_rank() -> WindowFunction:
    return WindowFunction(WindowFunc.DENSE_RANK)


def cume_dist() -> WindowFunction:
    return WindowFunction(WindowFunc.CUME_DIST)


def percent_rank() -> WindowFunction:
    return WindowFunction(WindowFunc.PERCENT_RANK)


def ntile(buckets: Any) -> WindowFunction:
    return WindowFunction(WindowFunc.NTILE, [buckets])


def first_value(expr: Node) -> WindowFunction:
    return WindowFunction(WindowFunc.FIRST_VALUE, [expr])


def last_value(expr: Node) -> WindowFunction:
    return WindowFunction(WindowFunc.LAST_VALUE, [expr])


def lag(*args: Any) -> WindowFunction:
    """``LAG(expr [, offset [, default]])``."""
    return WindowFunction(WindowFunc.LAG, args)


def lead(*args: Any) -> WindowFunction:
    """``LEAD(expr [, offset [, default]])``."""
    return WindowFunction(WindowFunc.LEAD, args)


def nth_value(expr: Node, n: Any) -> WindowFunction:
    return WindowFunction(WindowFunc.NTH_VALUE, [expr, n])
