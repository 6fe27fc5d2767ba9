"""INSERT statement builder."""

from typing import Any, Optional

from typing_extensions import Self

from sqlbee.builder._base import QueryBuilder
from sqlbee.nodes import Assignment, InsertStatement, Node, OnConflict, OnConflictAction, as_node

__all__ = ("ConflictContext", "ConflictUpdateContext", "InsertQuery")


class InsertQuery(QueryBuilder[InsertStatement]):
    """Fluent builder for an :class:`~sqlbee.nodes.InsertStatement`.

    Args:
        into: The target table.
    """

    def __init__(self, into: Node) -> None:
        super().__init__()
        self.stmt = InsertStatement(into)

    @property
    def statement(self) -> InsertStatement:
        return self.stmt

    def clone_statement(self) -> InsertStatement:
        return self.stmt.clone()

    def __repr__(self) -> str:
        return f"InsertQuery(stmt={self.stmt!r}, transformers={self.transformers!r})"

    def columns(self, *columns: Node) -> Self:
        self.stmt.columns = list(columns)
        return self

    def values(self, *values: Any) -> Self:
        """Append one row; plain Python values are wrapped as literals."""
        self.stmt.values.append([as_node(value) for value in values])
        return self

    def from_select(self, query: Node) -> Self:
        """Insert the rows produced by ``query``; VALUES rows are then ignored."""
        self.stmt.select = query
        return self

    def returning(self, *columns: Node) -> Self:
        self.stmt.returning = list(columns)
        return self

    def on_conflict(self, *columns: Node) -> "ConflictContext":
        """Start an ``ON CONFLICT`` clause targeting ``columns``."""
        conflict = OnConflict(list(columns))
        self.stmt.on_conflict = conflict
        return ConflictContext(self, conflict)


class ConflictContext:
    """Chooses the action of a pending ``ON CONFLICT`` clause."""

    __slots__ = ("_conflict", "_query")

    def __init__(self, query: InsertQuery, conflict: OnConflict) -> None:
        self._query = query
        self._conflict = conflict

    def do_nothing(self) -> InsertQuery:
        self._conflict.action = OnConflictAction.DO_NOTHING
        return self._query

    def do_update(self, *assignments: Assignment) -> "ConflictUpdateContext":
        self._conflict.action = OnConflictAction.DO_UPDATE
        self._conflict.assignments = list(assignments)
        return ConflictUpdateContext(self._query, self._conflict)


class ConflictUpdateContext:
    """Allows a WHERE on ``ON CONFLICT .. DO UPDATE``; usable as the builder otherwise."""

    __slots__ = ("_conflict", "_query")

    def __init__(self, query: InsertQuery, conflict: OnConflict) -> None:
        self._query = query
        self._conflict = conflict

    def where(self, *conditions: Optional[Node]) -> InsertQuery:
        self._conflict.wheres = [condition for condition in conditions if condition is not None]
        return self._query

    @property
    def query(self) -> InsertQuery:
        return self._query
