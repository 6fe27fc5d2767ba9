"""Clause-level nodes: joins, set operations, CTEs, CASE, grouping sets and upsert support."""

from collections.abc import Sequence
from typing import Any, Optional

from sqlbee.nodes._base import Node
from sqlbee.nodes._enums import GroupingSetKind, JoinType, OnConflictAction, SetOperationType
from sqlbee.nodes._expressions import BooleanExpression, Expression, as_node
from sqlbee.nodes._relations import TableAlias

__all__ = (
    "CTE",
    "Assignment",
    "Case",
    "Exists",
    "GroupingSet",
    "Join",
    "OnConflict",
    "SetOperation",
    "cube",
    "exists",
    "grouping_sets",
    "not_exists",
    "rollup",
)


class Join(Node):
    """A join of ``right`` onto the statement's FROM source.

    For :attr:`JoinType.STRING` joins ``right`` is a raw fragment carrying the whole
    join text, keyword included.
    """

    __slots__ = ("lateral", "left", "on", "right", "type")
    __visit_name__ = "join"

    def __init__(
        self,
        left: Optional[Node],
        right: Node,
        type: JoinType = JoinType.INNER,  # noqa: A002
        on: Optional[Node] = None,
        lateral: bool = False,
    ) -> None:
        self.left = left
        self.right = right
        self.type = type
        self.on = on
        self.lateral = lateral


class Exists(BooleanExpression):
    __slots__ = ("negated", "subquery")
    __visit_name__ = "exists"

    def __init__(self, subquery: Node, negated: bool = False) -> None:
        self.subquery = subquery
        self.negated = negated


class SetOperation(Node):
    """``(left) UNION|INTERSECT|EXCEPT [ALL] (right)``.

    ``orders``, ``limit`` and ``offset`` apply to the combined result.
    """

    __slots__ = ("left", "limit_value", "offset_value", "orders", "right", "type")
    __visit_name__ = "set_operation"
    is_select = True

    def __init__(self, left: Node, type: SetOperationType, right: Node) -> None:  # noqa: A002
        self.left = left
        self.type = type
        self.right = right
        self.orders: list[Node] = []
        self.limit_value: Optional[Node] = None
        self.offset_value: Optional[Node] = None

    def order(self, *orderings: Node) -> "SetOperation":
        self.orders.extend(orderings)
        return self

    def limit(self, value: Any) -> "SetOperation":
        self.limit_value = as_node(value)
        return self

    def offset(self, value: Any) -> "SetOperation":
        self.offset_value = as_node(value)
        return self

    def as_(self, name: str) -> TableAlias:
        return TableAlias(self, name)


class CTE(Node):
    """A named query in the WITH clause."""

    __slots__ = ("columns", "name", "query", "recursive")
    __visit_name__ = "cte"

    def __init__(
        self, name: str, query: Node, columns: "Optional[Sequence[str]]" = None, recursive: bool = False
    ) -> None:
        self.name = name
        self.query = query
        self.columns = list(columns or [])
        self.recursive = recursive


class Case(Expression):
    """``CASE [operand] WHEN .. THEN .. [ELSE ..] END``.

    ``when`` and ``else_`` extend the node in place and return it for chaining.
    """

    __slots__ = ("default", "operand", "whens")
    __visit_name__ = "case"

    def __init__(self, operand: Optional[Any] = None) -> None:
        self.operand = as_node(operand) if operand is not None else None
        self.whens: list[tuple[Node, Node]] = []
        self.default: Optional[Node] = None

    def when(self, condition: Any, result: Any) -> "Case":
        self.whens.append((as_node(condition), as_node(result)))
        return self

    def else_(self, result: Any) -> "Case":
        self.default = as_node(result)
        return self


class GroupingSet(Node):
    """``CUBE(..)``, ``ROLLUP(..)`` or ``GROUPING SETS((..), (..))``."""

    __slots__ = ("columns", "kind", "sets")
    __visit_name__ = "grouping_set"

    def __init__(
        self,
        kind: GroupingSetKind,
        columns: "Optional[Sequence[Node]]" = None,
        sets: "Optional[Sequence[Sequence[Node]]]" = None,
    ) -> None:
        self.kind = kind
        self.columns = list(columns or [])
        self.sets = [list(s) for s in sets or []]


class Assignment(Node):
    """``column = value`` inside SET."""

    __slots__ = ("left", "right")
    __visit_name__ = "assignment"

    def __init__(self, left: Node, right: Any) -> None:
        self.left = left
        self.right = as_node(right)


class OnConflict(Node):
    """``ON CONFLICT [(cols)] DO NOTHING`` or ``DO UPDATE SET .. [WHERE ..]``."""

    __slots__ = ("action", "assignments", "columns", "wheres")
    __visit_name__ = "on_conflict"

    def __init__(
        self,
        columns: "Optional[Sequence[Node]]" = None,
        action: OnConflictAction = OnConflictAction.DO_NOTHING,
        assignments: "Optional[Sequence[Assignment]]" = None,
        wheres: "Optional[Sequence[Node]]" = None,
    ) -> None:
        self.columns = list(columns or [])
        self.action = action
        self.assignments = list(assignments or [])
        self.wheres = list(wheres or [])


def exists(subquery: Node) -> Exists:
    return Exists(subquery)


def not_exists(subquery: Node) -> Exists:
    return Exists(subquery, negated=True)


def cube(*columns: Node) -> GroupingSet:
    return GroupingSet(GroupingSetKind.CUBE, columns=columns)


def rollup(*columns: Node) -> GroupingSet:
    return GroupingSet(GroupingSetKind.ROLLUP, columns=columns)


def grouping_sets(*sets: "Sequence[Node]") -> GroupingSet:
    return GroupingSet(GroupingSetKind.GROUPING_SETS, sets=sets)
