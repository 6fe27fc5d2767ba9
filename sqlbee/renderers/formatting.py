"""Multi-line SQL output.

:class:`FormattingRenderer` wraps a dialect renderer. The five statement-shaped
nodes are laid out one clause per line with leading-comma continuations; every
other node is rendered by the wrapped renderer, which also owns the parameter state.
"""

from typing import TYPE_CHECKING, Any, Optional

from sqlbee.nodes import LockMode, OnConflictAction
from sqlbee.renderers._base import NodeVisitor, Parameterizer, SQLRenderer, sanitize_comment
from sqlbee.renderers._tokens import SET_OPERATION_TOKENS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlbee.nodes import DeleteStatement, InsertStatement, Node, SelectCore, SetOperation, UpdateStatement

__all__ = ("FormattingRenderer",)

LIST_SEPARATOR = "\n\t,"
CONDITION_SEPARATOR = "\n\tAND "


class FormattingRenderer(NodeVisitor):
    """Pretty-printing wrapper around a dialect renderer.

    Args:
        inner: The renderer used for identifiers, literals and expressions.

    Raises:
        TypeError: If ``inner`` is ``None``.
    """

    def __init__(self, inner: SQLRenderer) -> None:
        if inner is None:
            msg = "FormattingRenderer requires an inner renderer"
            raise TypeError(msg)
        self._inner = inner

    @property
    def inner(self) -> SQLRenderer:
        return self._inner

    def __getattr__(self, name: str) -> Any:
        if name == "_inner":
            raise AttributeError(name)
        return getattr(self._inner, name)

    def params(self) -> Optional[list[Any]]:
        if isinstance(self._inner, Parameterizer):
            return self._inner.params()
        return None

    def reset(self) -> None:
        if isinstance(self._inner, Parameterizer):
            self._inner.reset()

    def _list(self, items: "Sequence[Node]") -> str:
        return LIST_SEPARATOR.join(item.render(self) for item in items)

    def _conditions(self, items: "Sequence[Node]") -> str:
        return CONDITION_SEPARATOR.join(item.render(self) for item in items)

    def visit_select_core(self, node: "SelectCore") -> str:
        inner = self._inner
        sql = ""
        if node.ctes:
            keyword = "WITH RECURSIVE " if any(cte.recursive for cte in node.ctes) else "WITH "
            sql += keyword + self._list(node.ctes) + "\n"
        if node.comment:
            sql += "/* " + sanitize_comment(node.comment) + " */\n"
        sql += "SELECT "
        if node.hints:
            sql += inner.render_hints(node.hints) + " "
        distinct = inner.render_distinct(node)
        if distinct:
            sql += distinct + " "
        sql += self._list(node.projections) if node.projections else "*"
        if node.from_ is not None:
            sql += "\nFROM " + node.from_.render(self)
        for join in node.joins:
            sql += "\n" + join.render(self)
        if node.wheres:
            sql += "\nWHERE " + self._conditions(node.wheres)
        if node.groups:
            sql += "\nGROUP BY " + self._list(node.groups)
        if node.havings:
            sql += "\nHAVING " + self._conditions(node.havings)
        if node.windows:
            sql += "\nWINDOW " + LIST_SEPARATOR.join(
                inner.quote_identifier(window.name) + " AS " + inner.render_window_definition(window)
                for window in node.windows
            )
        if node.orders:
            sql += "\nORDER BY " + self._list(node.orders)
        if node.limit is not None:
            sql += "\nLIMIT " + node.limit.render(self)
        if node.offset is not None:
            sql += "\nOFFSET " + node.offset.render(self)
        if node.lock is not LockMode.NONE:
            sql += "\n" + inner.render_lock(node)
        return sql

    def visit_set_operation(self, node: "SetOperation") -> str:
        sql = "(\n" + node.left.render(self) + "\n)\n" + SET_OPERATION_TOKENS[node.type]
        sql += "\n(\n" + node.right.render(self) + "\n)"
        if node.orders:
            sql += "\nORDER BY " + self._list(node.orders)
        if node.limit_value is not None:
            sql += "\nLIMIT " + node.limit_value.render(self)
        if node.offset_value is not None:
            sql += "\nOFFSET " + node.offset_value.render(self)
        return sql

    def visit_insert_statement(self, node: "InsertStatement") -> str:
        inner = self._inner
        sql = "INSERT INTO " + node.into.render(self)
        if node.columns:
            sql += " (" + ", ".join(inner.column_name(column) for column in node.columns) + ")"
        if node.select is not None:
            sql += "\n" + node.select.render(self)
        elif node.values:
            rows = ["(" + ", ".join(value.render(self) for value in row) + ")" for row in node.values]
            sql += "\nVALUES " + LIST_SEPARATOR.join(rows)
        if node.on_conflict is not None:
            sql += "\n" + self._on_conflict(node)
        if node.returning:
            sql += "\nRETURNING " + self._list(node.returning)
        return sql

    def _on_conflict(self, node: "InsertStatement") -> str:
        conflict = node.on_conflict
        assert conflict is not None
        sql = "ON CONFLICT"
        if conflict.columns:
            sql += " (" + ", ".join(self._inner.column_name(column) for column in conflict.columns) + ")"
        if conflict.action is OnConflictAction.DO_NOTHING:
            return sql + " DO NOTHING"
        sql += "\nDO UPDATE SET " + self._list(conflict.assignments)
        if conflict.wheres:
            sql += "\nWHERE " + self._conditions(conflict.wheres)
        return sql

    def visit_update_statement(self, node: "UpdateStatement") -> str:
        sql = "UPDATE " + node.table.render(self)
        if node.assignments:
            sql += "\nSET " + self._list(node.assignments)
        if node.wheres:
            sql += "\nWHERE " + self._conditions(node.wheres)
        if node.returning:
            sql += "\nRETURNING " + self._list(node.returning)
        return sql

    def visit_delete_statement(self, node: "DeleteStatement") -> str:
        sql = "DELETE FROM " + node.from_.render(self)
        if node.wheres:
            sql += "\nWHERE " + self._conditions(node.wheres)
        if node.returning:
            sql += "\nRETURNING " + self._list(node.returning)
        return sql
