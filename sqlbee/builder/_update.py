"""UPDATE statement builder."""

from typing import Any, Optional

from typing_extensions import Self

from sqlbee.builder._base import QueryBuilder
from sqlbee.nodes import Assignment, Node, UpdateStatement

__all__ = ("UpdateQuery",)


class UpdateQuery(QueryBuilder[UpdateStatement]):
    """Fluent builder for an :class:`~sqlbee.nodes.UpdateStatement`."""

    def __init__(self, table: Node) -> None:
        super().__init__()
        self.stmt = UpdateStatement(table)

    @property
    def statement(self) -> UpdateStatement:
        return self.stmt

    def clone_statement(self) -> UpdateStatement:
        return self.stmt.clone()

    def __repr__(self) -> str:
        return f"UpdateQuery(stmt={self.stmt!r}, transformers={self.transformers!r})"

    def set(self, column: Node, value: Any) -> Self:
        """Append ``column = value`` to SET; plain values become literals."""
        self.stmt.assignments.append(Assignment(column, value))
        return self

    def where(self, *conditions: Optional[Node]) -> Self:
        self.stmt.wheres.extend(condition for condition in conditions if condition is not None)
        return self

    def returning(self, *columns: Node) -> Self:
        self.stmt.returning = list(columns)
        return self
