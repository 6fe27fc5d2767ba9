"""DELETE statement builder."""

from typing import Optional

from typing_extensions import Self

from sqlbee.builder._base import QueryBuilder
from sqlbee.nodes import DeleteStatement, Node

__all__ = ("DeleteQuery",)


class DeleteQuery(QueryBuilder[DeleteStatement]):
    """Fluent builder for a :class:`~sqlbee.nodes.DeleteStatement`."""

    def __init__(self, from_: Node) -> None:
        super().__init__()
        self.stmt = DeleteStatement(from_)

    @property
    def statement(self) -> DeleteStatement:
        return self.stmt

    def clone_statement(self) -> DeleteStatement:
        return self.stmt.clone()

    def __repr__(self) -> str:
        return f"DeleteQuery(stmt={self.stmt!r}, transformers={self.transformers!r})"

    def where(self, *conditions: Optional[Node]) -> Self:
        self.stmt.wheres.extend(condition for condition in conditions if condition is not None)
        return self

    def returning(self, *columns: Node) -> Self:
        self.stmt.returning = list(columns)
        return self
