from typing import TYPE_CHECKING

from sqlbee.nodes import ComparisonOp
from sqlbee.quoting import quote_backtick
from sqlbee.renderers._base import SQLRenderer

if TYPE_CHECKING:
    from sqlbee.nodes import Comparison

__all__ = ("MySQLRenderer",)


class MySQLRenderer(SQLRenderer):
    """MySQL: backtick-quoted identifiers and ``?`` placeholders."""

    dialect = "mysql"

    def quote_identifier(self, name: str) -> str:
        return quote_backtick(name)

    def placeholder(self, index: int) -> str:
        return "?"

    def visit_comparison(self, node: "Comparison") -> str:
        if node.op is ComparisonOp.REGEXP:
            return node.left.render(self) + " REGEXP " + node.right.render(self)
        if node.op is ComparisonOp.NOT_REGEXP:
            return node.left.render(self) + " NOT REGEXP " + node.right.render(self)
        if node.op is ComparisonOp.CASE_SENSITIVE_EQ:
            return node.left.render(self) + " = BINARY " + node.right.render(self)
        if node.op is ComparisonOp.CASE_INSENSITIVE_EQ:
            # default collations compare case-insensitively
            return node.left.render(self) + " = " + node.right.render(self)
        return super().visit_comparison(node)
