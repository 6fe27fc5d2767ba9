"""Soft-delete row filtering.

Appends ``"<table>"."<column>" IS NULL`` for every table a SELECT reads from, and
for the target table of an UPDATE or DELETE::

    query = new_select(users).use(SoftDelete())
    # SELECT * FROM "users" WHERE "users"."deleted_at" IS NULL

Per-table column overrides restrict the transformer to the tables they name,
combined with any explicit ``tables`` whitelist.
"""

from typing import TYPE_CHECKING, Optional

from sqlbee.nodes import Attribute
from sqlbee.transformers._base import BaseTransformer
from sqlbee.transformers.tables import collect_tables, table_ref

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from sqlbee.nodes import DeleteStatement, Node, SelectCore, UpdateStatement
    from sqlbee.transformers.tables import TableRef

__all__ = ("SoftDelete",)


class SoftDelete(BaseTransformer):
    """Filter out soft-deleted rows.

    Args:
        column: Column checked for ``IS NULL`` when a table has no override.
        tables: Restrict the filter to these table names. ``None`` means every table.
        table_columns: Per-table column overrides; each named table is added to the whitelist.
    """

    def __init__(
        self,
        column: str = "deleted_at",
        tables: "Optional[Iterable[str]]" = None,
        table_columns: "Optional[Mapping[str, str]]" = None,
    ) -> None:
        self.column = column
        self.table_columns: dict[str, str] = dict(table_columns or {})
        self.tables: Optional[set[str]] = set(tables) if tables is not None else None
        if self.table_columns:
            self.tables = (self.tables or set()) | set(self.table_columns)

    def applies_to(self, table_name: str) -> bool:
        return self.tables is None or table_name in self.tables

    def column_for(self, table_name: str) -> str:
        return self.table_columns.get(table_name, self.column)

    def _condition(self, ref: "TableRef") -> "Node":
        return Attribute(ref.relation, self.column_for(ref.name)).is_null()

    def transform_select(self, core: "SelectCore") -> "SelectCore":
        for ref in collect_tables(core):
            if self.applies_to(ref.name):
                core.wheres.append(self._condition(ref))
        return core

    def transform_update(self, stmt: "UpdateStatement") -> "UpdateStatement":
        ref = table_ref(stmt.table)
        if ref is not None and self.applies_to(ref.name):
            stmt.wheres.append(self._condition(ref))
        return stmt

    def transform_delete(self, stmt: "DeleteStatement") -> "DeleteStatement":
        ref = table_ref(stmt.from_)
        if ref is not None and self.applies_to(ref.name):
            stmt.wheres.append(self._condition(ref))
        return stmt

    def __repr__(self) -> str:
        return f"SoftDelete(column={self.column!r}, tables={self.tables!r}, table_columns={self.table_columns!r})"
