"""SELECT statement builder."""

from typing import TYPE_CHECKING, Any, Optional, Union

from typing_extensions import Self

from sqlbee.builder._base import QueryBuilder
from sqlbee.nodes import (
    CTE,
    Join,
    JoinType,
    LockMode,
    Node,
    RawFragment,
    SelectCore,
    SetOperation,
    SetOperationType,
    TableAlias,
    as_node,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlbee.nodes import WindowDefinition
    from sqlbee.renderers import NodeVisitor

__all__ = ("JoinContext", "SelectQuery")


def _present(nodes: "Sequence[Optional[Node]]") -> list[Node]:
    """Drop ``None`` entries left by empty composite predicates such as ``eq_any()``."""
    return [node for node in nodes if node is not None]


class SelectQuery(QueryBuilder[SelectCore], Node):
    """Fluent builder for a :class:`~sqlbee.nodes.SelectCore`.

    A ``SelectQuery`` is itself a node: rendering it renders the underlying core,
    so it can be used directly as a join target, an ``EXISTS`` operand or a CTE body.

    Args:
        from_: The FROM source, usually a table.
    """

    is_select = True

    def __init__(self, from_: Optional[Node] = None) -> None:
        super().__init__()
        self.core = SelectCore(from_)

    @property
    def statement(self) -> SelectCore:
        return self.core

    def clone_statement(self) -> SelectCore:
        return self.core.clone()

    def clone_core(self) -> SelectCore:
        return self.core.clone()

    def render(self, renderer: "NodeVisitor") -> Any:
        return self.core.render(renderer)

    def __repr__(self) -> str:
        return f"SelectQuery(core={self.core!r}, transformers={self.transformers!r})"

    # Projections

    def select(self, *projections: Any) -> Self:
        """Replace the projection list."""
        self.core.projections = [as_node(p) for p in projections]
        return self

    def project(self, *projections: Any) -> Self:
        return self.select(*projections)

    def distinct(self, enabled: bool = True) -> Self:
        self.core.distinct = enabled
        return self

    def distinct_on(self, *columns: Node) -> Self:
        self.core.distinct_on = list(columns)
        return self

    # Sources

    def from_(self, source: Node) -> Self:
        self.core.from_ = source
        return self

    def join(self, source: Node, join_type: JoinType = JoinType.INNER) -> "JoinContext":
        """Add a join; the returned context must be completed with :meth:`JoinContext.on`."""
        join = Join(self.core.from_, source, join_type)
        self.core.joins.append(join)
        return JoinContext(self, join)

    def outer_join(self, source: Node) -> "JoinContext":
        return self.join(source, JoinType.LEFT_OUTER)

    def lateral_join(self, source: Node, join_type: JoinType = JoinType.INNER) -> "JoinContext":
        join = Join(self.core.from_, source, join_type, lateral=True)
        self.core.joins.append(join)
        return JoinContext(self, join)

    def cross_join(self, source: Node) -> Self:
        self.core.joins.append(Join(self.core.from_, source, JoinType.CROSS))
        return self

    def string_join(self, raw: str) -> Self:
        """Add a join given as raw SQL, keyword included.

        The text is emitted verbatim. Never pass user-controlled input.
        """
        self.core.joins.append(Join(self.core.from_, RawFragment(raw), JoinType.STRING))
        return self

    # Filtering and grouping

    def where(self, *conditions: Optional[Node]) -> Self:
        """Append conditions, combined with AND when rendered."""
        self.core.wheres.extend(_present(conditions))
        return self

    def group(self, *columns: Node) -> Self:
        self.core.groups.extend(columns)
        return self

    def having(self, *conditions: Optional[Node]) -> Self:
        self.core.havings.extend(_present(conditions))
        return self

    def window(self, *definitions: "WindowDefinition") -> Self:
        """Append named window definitions to the WINDOW clause."""
        self.core.windows.extend(definitions)
        return self

    def order(self, *orderings: Node) -> Self:
        self.core.orders.extend(orderings)
        return self

    def limit(self, value: Any) -> Self:
        self.core.limit = as_node(value)
        return self

    def offset(self, value: Any) -> Self:
        self.core.offset = as_node(value)
        return self

    def take(self, value: Any) -> Self:
        return self.limit(value)

    # Locking

    def _lock(self, mode: LockMode) -> Self:
        self.core.lock = mode
        return self

    def for_update(self) -> Self:
        return self._lock(LockMode.FOR_UPDATE)

    def for_share(self) -> Self:
        return self._lock(LockMode.FOR_SHARE)

    def for_no_key_update(self) -> Self:
        return self._lock(LockMode.FOR_NO_KEY_UPDATE)

    def for_key_share(self) -> Self:
        return self._lock(LockMode.FOR_KEY_SHARE)

    def skip_locked(self) -> Self:
        self.core.skip_locked = True
        return self

    # Annotations

    def comment(self, text: str) -> Self:
        """Set the leading ``/* .. */`` comment; ``*/`` inside ``text`` is neutralised."""
        self.core.comment = text
        return self

    def hint(self, hint: str) -> Self:
        """Append an optimizer hint, rendered as ``/*+ .. */`` after SELECT."""
        self.core.hints.append(hint)
        return self

    # Common table expressions

    def with_(self, name: str, query: Node, columns: "Optional[Sequence[str]]" = None) -> Self:
        self.core.ctes.append(CTE(name, query, columns))
        return self

    def with_recursive(self, name: str, query: Node, columns: "Optional[Sequence[str]]" = None) -> Self:
        self.core.ctes.append(CTE(name, query, columns, recursive=True))
        return self

    # Set operations

    def _set_operation(self, kind: SetOperationType, other: "Union[SelectQuery, Node]") -> SetOperation:
        right = other.core if isinstance(other, SelectQuery) else other
        return SetOperation(self.core, kind, right)

    def union(self, other: "Union[SelectQuery, Node]") -> SetOperation:
        return self._set_operation(SetOperationType.UNION, other)

    def union_all(self, other: "Union[SelectQuery, Node]") -> SetOperation:
        return self._set_operation(SetOperationType.UNION_ALL, other)

    def intersect(self, other: "Union[SelectQuery, Node]") -> SetOperation:
        return self._set_operation(SetOperationType.INTERSECT, other)

    def intersect_all(self, other: "Union[SelectQuery, Node]") -> SetOperation:
        return self._set_operation(SetOperationType.INTERSECT_ALL, other)

    def except_(self, other: "Union[SelectQuery, Node]") -> SetOperation:
        return self._set_operation(SetOperationType.EXCEPT, other)

    def except_all(self, other: "Union[SelectQuery, Node]") -> SetOperation:
        return self._set_operation(SetOperationType.EXCEPT_ALL, other)

    def as_(self, name: str) -> TableAlias:
        """Wrap the query as a named subquery for FROM or JOIN."""
        return TableAlias(self.core, name)


class JoinContext:
    """Pending join returned by :meth:`SelectQuery.join`."""

    __slots__ = ("_join", "_query")

    def __init__(self, query: SelectQuery, join: Join) -> None:
        self._query = query
        self._join = join

    def on(self, condition: Node) -> SelectQuery:
        """Set the join condition and return the query for further chaining."""
        self._join.on = condition
        return self._query
