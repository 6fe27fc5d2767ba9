"""Multi-tenant row scoping."""

from typing import TYPE_CHECKING, Any, Optional

from sqlbee.nodes import Attribute, as_node
from sqlbee.transformers._base import BaseTransformer
from sqlbee.transformers.tables import collect_tables, table_ref

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlbee.nodes import DeleteStatement, Node, SelectCore, UpdateStatement
    from sqlbee.transformers.tables import TableRef

__all__ = ("TenantScope",)


class TenantScope(BaseTransformer):
    """Restrict every referenced table to one tenant.

    Appends ``"<table>"."<column>" = <value>`` per table on SELECT and to the
    target table of UPDATE and DELETE. INSERT statements pass through unchanged.

    Args:
        value: The tenant identifier. Plain values become bind parameters.
        column: Tenant column name.
        tables: Restrict scoping to these table names. ``None`` means every table.
    """

    def __init__(self, value: Any, column: str = "tenant_id", tables: "Optional[Iterable[str]]" = None) -> None:
        self.value = value
        self.column = column
        self.tables: Optional[set[str]] = set(tables) if tables is not None else None

    def applies_to(self, table_name: str) -> bool:
        return self.tables is None or table_name in self.tables

    def _condition(self, ref: "TableRef") -> "Node":
        return Attribute(ref.relation, self.column).eq(as_node(self.value))

    def transform_select(self, core: "SelectCore") -> "SelectCore":
        core.wheres.extend(self._condition(ref) for ref in collect_tables(core) if self.applies_to(ref.name))
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
