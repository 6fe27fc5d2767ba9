from typing import TYPE_CHECKING

from sqlbee.nodes import ComparisonOp
from sqlbee.quoting import quote_double
from sqlbee.renderers._base import SQLRenderer

if TYPE_CHECKING:
    from sqlbee.nodes import Comparison

__all__ = ("SQLiteRenderer",)


class SQLiteRenderer(SQLRenderer):
    """SQLite: double-quoted identifiers and ``?`` placeholders.

    ``REGEXP`` requires the application to register a ``regexp()`` function on the
    connection; SQLite ships none by default.
    """

    dialect = "sqlite"

    def quote_identifier(self, name: str) -> str:
        return quote_double(name)

    def placeholder(self, index: int) -> str:
        return "?"

    def visit_comparison(self, node: "Comparison") -> str:
        if node.op is ComparisonOp.REGEXP:
            return node.left.render(self) + " REGEXP " + node.right.render(self)
        if node.op is ComparisonOp.NOT_REGEXP:
            return node.left.render(self) + " NOT REGEXP " + node.right.render(self)
        if node.op is ComparisonOp.CASE_SENSITIVE_EQ:
            return node.left.render(self) + " = " + node.right.render(self) + " COLLATE BINARY"
        if node.op is ComparisonOp.CASE_INSENSITIVE_EQ:
            return node.left.render(self) + " = " + node.right.render(self) + " COLLATE NOCASE"
        return super().visit_comparison(node)
