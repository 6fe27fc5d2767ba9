"""Access-policy gating and column masking.

An :class:`AccessPolicy` asks a policy callable for the residual conditions that
apply to each table a statement touches and appends them to WHERE. The callable
refuses access by raising :class:`~sqlbee.exceptions.AccessDeniedError`, which
stops the pipeline before any SQL is produced.

Column masks replace selected columns by a constant of the same name::

    AccessPolicy(policy, masks={"users": {"ssn": "***"}})
    # SELECT '***' AS "ssn" FROM "users" WHERE ...

A star projection can only be masked once it is expanded into columns, which
needs a ``column_resolver`` returning the column names of a table.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from sqlbee.exceptions import ImproperConfigurationError
from sqlbee.nodes import Alias, Attribute, MaskedValue, Star, table_source_name
from sqlbee.transformers._base import BaseTransformer
from sqlbee.transformers.tables import collect_tables, table_ref
from sqlbee.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlbee.nodes import DeleteStatement, Node, SelectCore, UpdateStatement
    from sqlbee.transformers.tables import TableRef

__all__ = ("AccessPolicy", "ColumnResolver", "PolicyFunc", "masked_column")

logger = get_logger("transformers.policy")

PolicyFunc = Callable[[str], "Optional[Sequence[Node]]"]
ColumnResolver = Callable[[str], "Sequence[str]"]


def masked_column(value: Any, column: str) -> Alias:
    """The ``<value> AS <column>`` projection that replaces a masked column.

    The value is inlined and the alias quoted by whichever renderer the statement goes to.
    """
    return Alias(MaskedValue(value), column)


class AccessPolicy(BaseTransformer):
    """Append policy conditions per table and mask selected columns.

    Args:
        policy: Called with each table name; returns the predicates to append, or
            raises :class:`~sqlbee.exceptions.AccessDeniedError`.
        masks: ``{table: {column: replacement}}`` applied to SELECT projections.
        column_resolver: Returns the column names of a table, used to expand a star
            projection before masking.
    """

    def __init__(
        self,
        policy: PolicyFunc,
        masks: "Optional[Mapping[str, Mapping[str, Any]]]" = None,
        column_resolver: Optional[ColumnResolver] = None,
    ) -> None:
        self.policy = policy
        self.masks: dict[str, dict[str, Any]] = {table: dict(columns) for table, columns in (masks or {}).items()}
        self.column_resolver = column_resolver

    def _conditions(self, ref: "TableRef") -> "list[Node]":
        conditions = list(self.policy(ref.name) or [])
        log_with_context(logger, logging.DEBUG, "Policy evaluated", table=ref.name, conditions=len(conditions))
        return conditions

    def transform_select(self, core: "SelectCore") -> "SelectCore":
        refs = collect_tables(core)
        for ref in refs:
            core.wheres.extend(self._conditions(ref))
        if self.masks:
            self._apply_masks(core, refs)
        return core

    def transform_update(self, stmt: "UpdateStatement") -> "UpdateStatement":
        ref = table_ref(stmt.table)
        if ref is not None:
            stmt.wheres.extend(self._conditions(ref))
        return stmt

    def transform_delete(self, stmt: "DeleteStatement") -> "DeleteStatement":
        ref = table_ref(stmt.from_)
        if ref is not None:
            stmt.wheres.extend(self._conditions(ref))
        return stmt

    def _apply_masks(self, core: "SelectCore", refs: "Sequence[TableRef]") -> None:
        if not core.projections or any(isinstance(p, Star) for p in core.projections):
            core.projections = self._expand_star(refs)
            return
        for index, projection in enumerate(core.projections):
            if not isinstance(projection, Attribute):
                continue
            table_masks = self.masks.get(table_source_name(projection.relation))
            if table_masks and projection.name in table_masks:
                core.projections[index] = masked_column(table_masks[projection.name], projection.name)

    def _expand_star(self, refs: "Sequence[TableRef]") -> "list[Node]":
        if self.column_resolver is None:
            msg = "a column resolver is required to apply masks to a star projection"
            raise ImproperConfigurationError(msg)
        expanded: list[Node] = []
        for ref in refs:
            table_masks = self.masks.get(ref.name, {})
            for column in self.column_resolver(ref.name):
                if column in table_masks:
                    expanded.append(masked_column(table_masks[column], column))
                else:
                    expanded.append(Attribute(ref.relation, column))
        return expanded
