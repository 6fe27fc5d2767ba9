"""Common SQL rendering.

:class:`SQLRenderer` renders every node kind. Dialects subclass it and override
:meth:`SQLRenderer.quote_identifier`, :meth:`SQLRenderer.placeholder` and, for the
few operators whose spelling differs, :meth:`SQLRenderer.visit_comparison`. Children
are always rendered through ``child.render(self)``, so an override is honoured at
any depth of the tree.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

from sqlbee.exceptions import InvalidIdentifierError, UnsupportedLiteralError
from sqlbee.nodes import (
    Attribute,
    ComparisonOp,
    FrameBound,
    FrameBoundType,
    Infix,
    LockMode,
    Node,
    NullsOrder,
    OnConflictAction,
    OrderDirection,
    Table,
    UnaryMath,
    UnaryOp,
    WindowDefinition,
    WindowFrame,
    relation_name,
)
from sqlbee.quoting import escape_string
from sqlbee.renderers._tokens import (
    AGGREGATE_TOKENS,
    COMPARISON_TOKENS,
    EXTRACT_TOKENS,
    FRAME_TOKENS,
    FUNCTION_NAME_PATTERN,
    GROUPING_SET_TOKENS,
    INFIX_TOKENS,
    JOIN_TOKENS,
    LOCK_TOKENS,
    SET_OPERATION_TOKENS,
    TYPE_NAME_PATTERN,
    WINDOW_FUNCTION_TOKENS,
)

if TYPE_CHECKING:
    from sqlbee.nodes import (
        CTE,
        Aggregate,
        Alias,
        And,
        Assignment,
        Between,
        BindParam,
        Case,
        Casted,
        Comparison,
        DeleteStatement,
        Exists,
        Extract,
        Grouping,
        GroupingSet,
        In,
        InsertStatement,
        Join,
        Literal,
        MaskedValue,
        NamedFunction,
        Not,
        OnConflict,
        Or,
        Ordering,
        Over,
        RawFragment,
        SelectCore,
        SetOperation,
        Star,
        TableAlias,
        Unary,
        UpdateStatement,
        WindowFunction,
    )

__all__ = (
    "NodeVisitor",
    "Parameterizer",
    "SQLRenderer",
    "format_float",
    "sanitize_comment",
    "validate_function_name",
    "validate_type_name",
)


@runtime_checkable
class Parameterizer(Protocol):
    """Implemented by renderers that collect bind parameters."""

    def params(self) -> Optional[list[Any]]: ...

    def reset(self) -> None: ...


class NodeVisitor:
    """Base for objects walking the AST through ``Node.render``."""

    def visit(self, node: Node) -> Any:
        return node.render(self)


def validate_function_name(name: str) -> None:
    """Reject function names with characters outside ``[A-Za-z0-9_]``.

    Raises:
        InvalidIdentifierError: If the name is empty or contains another character.
    """
    if not FUNCTION_NAME_PATTERN.fullmatch(name):
        raise InvalidIdentifierError("SQL function name", name)


def validate_type_name(name: str) -> None:
    """Reject type names with characters outside letters, digits, ``_``, space, ``(``, ``)`` and ``,``.

    Raises:
        InvalidIdentifierError: If the name contains another character.
    """
    if not TYPE_NAME_PATTERN.fullmatch(name):
        raise InvalidIdentifierError("SQL type name", name)


def sanitize_comment(text: str) -> str:
    """Rewrite ``*/`` so ``text`` cannot close the block comment it is placed in."""
    return text.replace("*/", "* /")


def format_float(value: float) -> str:
    """Format a float in ``%g`` style, falling back to ``repr`` where ``%g`` would round."""
    text = f"{value:g}"
    if float(text) != value:
        return repr(value)
    return text


class SQLRenderer(NodeVisitor, ABC):
    """Dialect independent SQL renderer.

    Dialects supply identifier quoting and placeholder syntax.

    Args:
        parameterize: Emit placeholders and collect values instead of inlining
            literals. Turning this off interpolates escaped values into the SQL
            text and disables SQL injection protection; only use it for debugging.
    """

    dialect: str = "ansi"

    def __init__(self, parameterize: bool = True) -> None:
        self.parameterize = parameterize
        self._params: list[Any] = []
        self._param_index = 0

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Quote a table, column or alias name for this dialect."""

    @abstractmethod
    def placeholder(self, index: int) -> str:
        """Placeholder for the 1-based parameter ``index``."""

    def params(self) -> Optional[list[Any]]:
        """Parameters collected since the last :meth:`reset`, in placeholder order.

        Returns:
            The collected values, or ``None`` when the renderer is not parameterising.
        """
        if not self.parameterize:
            return None
        return list(self._params)

    def reset(self) -> None:
        self._params = []
        self._param_index = 0

    def add_param(self, value: Any) -> str:
        """Record ``value`` and return the placeholder for its position."""
        self._param_index += 1
        self._params.append(value)
        return self.placeholder(self._param_index)

    def literal_to_sql(self, value: Any) -> str:
        if value is None:
            return "NULL"
        if self.parameterize:
            return self.add_param(value)
        return self.format_literal(value)

    def format_literal(self, value: Any) -> str:
        """Inline ``value`` as SQL text.

        Raises:
            UnsupportedLiteralError: If the value is not a str, bool, int or float.
        """
        if isinstance(value, str):
            return "'" + escape_string(value) + "'"
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return format_float(value)
        raise UnsupportedLiteralError(value)

    def join_rendered(self, items: "Sequence[Node]", separator: str = ", ") -> str:
        return separator.join(item.render(self) for item in items)

    def column_name(self, node: Node) -> str:
        """Unqualified column name, used by INSERT and ON CONFLICT column lists."""
        if isinstance(node, Attribute):
            return self.quote_identifier(node.name)
        return str(node.render(self))

    # Relations and leaves

    def visit_table(self, node: "Table") -> str:
        return self.quote_identifier(node.name)

    def visit_table_alias(self, node: "TableAlias") -> str:
        if isinstance(node.relation, Table):
            return self.quote_identifier(node.relation.name) + " AS " + self.quote_identifier(node.alias)
        return "(" + node.relation.render(self) + ") AS " + self.quote_identifier(node.alias)

    def visit_attribute(self, node: "Attribute") -> str:
        qualifier = relation_name(node.relation)
        if not qualifier:
            return self.quote_identifier(node.name)
        return self.quote_identifier(qualifier) + "." + self.quote_identifier(node.name)

    def visit_literal(self, node: "Literal") -> str:
        return self.literal_to_sql(node.value)

    def visit_star(self, node: "Star") -> str:
        if node.table is not None:
            return self.quote_identifier(node.table.name) + ".*"
        return "*"

    def visit_raw_fragment(self, node: "RawFragment") -> str:
        if self.parameterize and node.binds:
            self._params.extend(node.binds)
            self._param_index += len(node.binds)
        return node.raw

    def visit_masked_value(self, node: "MaskedValue") -> str:
        if node.value is None:
            return "NULL"
        return self.format_literal(node.value)

    def visit_bind_param(self, node: "BindParam") -> str:
        if node.value is None:
            return "NULL"
        if self.parameterize:
            return self.add_param(node.value)
        return self.format_literal(node.value)

    def visit_casted(self, node: "Casted") -> str:
        value_sql = self.literal_to_sql(node.value)
        if node.type_name:
            validate_type_name(node.type_name)
            return f"CAST({value_sql} AS {node.type_name})"
        return value_sql

    # Predicates

    def visit_comparison(self, node: "Comparison") -> str:
        left = node.left.render(self)
        right = node.right.render(self)
        if node.op is ComparisonOp.CASE_INSENSITIVE_EQ:
            return f"LOWER({left}) = LOWER({right})"
        return f"{left} {COMPARISON_TOKENS[node.op]} {right}"

    def visit_unary(self, node: "Unary") -> str:
        suffix = " IS NULL" if node.op is UnaryOp.IS_NULL else " IS NOT NULL"
        return node.expr.render(self) + suffix

    def visit_and(self, node: "And") -> str:
        return node.left.render(self) + " AND " + node.right.render(self)

    def visit_or(self, node: "Or") -> str:
        return node.left.render(self) + " OR " + node.right.render(self)

    def visit_not(self, node: "Not") -> str:
        return "NOT (" + node.expr.render(self) + ")"

    def visit_grouping(self, node: "Grouping") -> str:
        return "(" + node.expr.render(self) + ")"

    def visit_in(self, node: "In") -> str:
        keyword = " NOT IN (" if node.negated else " IN ("
        return node.expr.render(self) + keyword + self.join_rendered(node.values) + ")"

    def visit_between(self, node: "Between") -> str:
        keyword = " NOT BETWEEN " if node.negated else " BETWEEN "
        return node.expr.render(self) + keyword + node.low.render(self) + " AND " + node.high.render(self)

    def visit_exists(self, node: "Exists") -> str:
        prefix = "NOT EXISTS (" if node.negated else "EXISTS ("
        return prefix + node.subquery.render(self) + ")"

    def visit_ordering(self, node: "Ordering") -> str:
        sql = node.expr.render(self)
        sql += " ASC" if node.direction is OrderDirection.ASC else " DESC"
        if node.nulls is NullsOrder.FIRST:
            sql += " NULLS FIRST"
        elif node.nulls is NullsOrder.LAST:
            sql += " NULLS LAST"
        return sql

    # Arithmetic

    def _operand(self, node: Node) -> str:
        sql = node.render(self)
        if isinstance(node, (Infix, UnaryMath)):
            return "(" + sql + ")"
        return str(sql)

    def visit_infix(self, node: "Infix") -> str:
        return f"{self._operand(node.left)} {INFIX_TOKENS[node.op]} {self._operand(node.right)}"

    def visit_unary_math(self, node: "UnaryMath") -> str:
        return "~" + self._operand(node.expr)

    # Functions

    def visit_aggregate(self, node: "Aggregate") -> str:
        sql = AGGREGATE_TOKENS[node.func] + "("
        if node.distinct:
            sql += "DISTINCT "
        sql += node.expr.render(self) if node.expr is not None else "*"
        sql += ")"
        if node.filter is not None:
            sql += " FILTER (WHERE " + node.filter.render(self) + ")"
        return sql

    def visit_extract(self, node: "Extract") -> str:
        return f"EXTRACT({EXTRACT_TOKENS[node.field]} FROM {node.expr.render(self)})"

    def visit_window_function(self, node: "WindowFunction") -> str:
        return WINDOW_FUNCTION_TOKENS[node.func] + "(" + self.join_rendered(node.args) + ")"

    def visit_over(self, node: "Over") -> str:
        sql = node.expr.render(self) + " OVER "
        if node.window_name:
            return sql + self.quote_identifier(node.window_name)
        return sql + self.render_window_definition(node.window)

    def visit_named_function(self, node: "NamedFunction") -> str:
        validate_function_name(node.name)
        if node.name.upper() == "CAST" and len(node.args) == 2:  # noqa: PLR2004
            return f"CAST({node.args[0].render(self)} AS {node.args[1].render(self)})"
        sql = node.name + "("
        if node.distinct:
            sql += "DISTINCT "
        return sql + self.join_rendered(node.args) + ")"

    def visit_case(self, node: "Case") -> str:
        sql = "CASE"
        if node.operand is not None:
            sql += " " + node.operand.render(self)
        for condition, result in node.whens:
            sql += " WHEN " + condition.render(self) + " THEN " + result.render(self)
        if node.default is not None:
            sql += " ELSE " + node.default.render(self)
        return sql + " END"

    def visit_alias(self, node: "Alias") -> str:
        return node.expr.render(self) + " AS " + self.quote_identifier(node.name)

    def visit_grouping_set(self, node: "GroupingSet") -> str:
        keyword = GROUPING_SET_TOKENS[node.kind]
        if node.sets:
            sets = ", ".join("(" + self.join_rendered(columns) + ")" for columns in node.sets)
            return f"{keyword}({sets})"
        return f"{keyword}({self.join_rendered(node.columns)})"

    # Windows

    def render_window_definition(self, window: "Optional[WindowDefinition]") -> str:
        if window is None:
            return "()"
        parts: list[str] = []
        if window.partition_by:
            parts.append("PARTITION BY " + self.join_rendered(window.partition_by))
        if window.order_by:
            parts.append("ORDER BY " + self.join_rendered(window.order_by))
        if window.frame is not None:
            parts.append(self.render_frame(window.frame))
        return "(" + " ".join(parts) + ")"

    def render_frame(self, frame: "WindowFrame") -> str:
        keyword = FRAME_TOKENS[frame.type]
        if frame.end is not None:
            return f"{keyword} BETWEEN {self.render_bound(frame.start)} AND {self.render_bound(frame.end)}"
        return f"{keyword} {self.render_bound(frame.start)}"

    def render_bound(self, bound: "FrameBound") -> str:
        if bound.type is FrameBoundType.UNBOUNDED_PRECEDING:
            return "UNBOUNDED PRECEDING"
        if bound.type is FrameBoundType.CURRENT_ROW:
            return "CURRENT ROW"
        if bound.type is FrameBoundType.UNBOUNDED_FOLLOWING:
            return "UNBOUNDED FOLLOWING"
        offset = bound.offset.render(self) if bound.offset is not None else ""
        if bound.type is FrameBoundType.PRECEDING:
            return f"{offset} PRECEDING"
        return f"{offset} FOLLOWING"

    def render_window_clause(self, windows: "Sequence[WindowDefinition]") -> str:
        return ", ".join(
            self.quote_identifier(window.name) + " AS " + self.render_window_definition(window) for window in windows
        )

    # Clauses

    def visit_join(self, node: "Join") -> str:
        right = node.right.render(self)
        if not JOIN_TOKENS[node.type]:
            return str(right)
        if node.right.is_select:
            right = "(" + right + ")"
        sql = JOIN_TOKENS[node.type]
        if node.lateral:
            sql += " LATERAL"
        sql += " " + right
        if node.on is not None:
            sql += " ON " + node.on.render(self)
        return sql

    def visit_cte(self, node: "CTE") -> str:
        sql = self.quote_identifier(node.name)
        if node.columns:
            sql += " (" + ", ".join(self.quote_identifier(column) for column in node.columns) + ")"
        return sql + " AS (" + node.query.render(self) + ")"

    def render_with(self, ctes: "Sequence[CTE]") -> str:
        keyword = "WITH RECURSIVE " if any(cte.recursive for cte in ctes) else "WITH "
        return keyword + self.join_rendered(ctes)

    def render_hints(self, hints: "Sequence[str]") -> str:
        return "/*+ " + " ".join(sanitize_comment(hint) for hint in hints) + " */"

    def render_lock(self, node: "SelectCore") -> str:
        sql = LOCK_TOKENS[node.lock]
        if node.skip_locked:
            sql += " SKIP LOCKED"
        return sql

    def render_distinct(self, node: "SelectCore") -> str:
        if node.distinct_on:
            return "DISTINCT ON (" + self.join_rendered(node.distinct_on) + ")"
        if node.distinct:
            return "DISTINCT"
        return ""

    def visit_set_operation(self, node: "SetOperation") -> str:
        left = node.left.render(self)
        right = node.right.render(self)
        sql = f"({left}) {SET_OPERATION_TOKENS[node.type]} ({right})"
        if node.orders:
            sql += " ORDER BY " + self.join_rendered(node.orders)
        if node.limit_value is not None:
            sql += " LIMIT " + node.limit_value.render(self)
        if node.offset_value is not None:
            sql += " OFFSET " + node.offset_value.render(self)
        return sql

    def visit_assignment(self, node: "Assignment") -> str:
        return node.left.render(self) + " = " + node.right.render(self)

    def visit_on_conflict(self, node: "OnConflict") -> str:
        sql = "ON CONFLICT"
        if node.columns:
            sql += " (" + ", ".join(self.column_name(column) for column in node.columns) + ")"
        if node.action is OnConflictAction.DO_NOTHING:
            return sql + " DO NOTHING"
        sql += " DO UPDATE SET " + self.join_rendered(node.assignments)
        if node.wheres:
            sql += " WHERE " + self.join_rendered(node.wheres, " AND ")
        return sql

    # Statements

    def visit_select_core(self, node: "SelectCore") -> str:
        parts: list[str] = []
        if node.ctes:
            parts.append(self.render_with(node.ctes))
        if node.comment:
            parts.append("/* " + sanitize_comment(node.comment) + " */")
        parts.append("SELECT")
        if node.hints:
            parts.append(self.render_hints(node.hints))
        distinct = self.render_distinct(node)
        if distinct:
            parts.append(distinct)
        parts.append(self.join_rendered(node.projections) if node.projections else "*")
        if node.from_ is not None:
            parts.append("FROM " + node.from_.render(self))
        parts.extend(join.render(self) for join in node.joins)
        if node.wheres:
            parts.append("WHERE " + self.join_rendered(node.wheres, " AND "))
        if node.groups:
            parts.append("GROUP BY " + self.join_rendered(node.groups))
        if node.havings:
            parts.append("HAVING " + self.join_rendered(node.havings, " AND "))
        if node.windows:
            parts.append("WINDOW " + self.render_window_clause(node.windows))
        if node.orders:
            parts.append("ORDER BY " + self.join_rendered(node.orders))
        if node.limit is not None:
            parts.append("LIMIT " + node.limit.render(self))
        if node.offset is not None:
            parts.append("OFFSET " + node.offset.render(self))
        if node.lock is not LockMode.NONE:
            parts.append(self.render_lock(node))
        return " ".join(parts)

    def visit_insert_statement(self, node: "InsertStatement") -> str:
        sql = "INSERT INTO " + node.into.render(self)
        if node.columns:
            sql += " (" + ", ".join(self.column_name(column) for column in node.columns) + ")"
        if node.select is not None:
            sql += " " + node.select.render(self)
        elif node.values:
            sql += " VALUES " + ", ".join("(" + self.join_rendered(row) + ")" for row in node.values)
        if node.on_conflict is not None:
            sql += " " + node.on_conflict.render(self)
        if node.returning:
            sql += " RETURNING " + self.join_rendered(node.returning)
        return sql

    def visit_update_statement(self, node: "UpdateStatement") -> str:
        sql = "UPDATE " + node.table.render(self)
        if node.assignments:
            sql += " SET " + self.join_rendered(node.assignments)
        if node.wheres:
            sql += " WHERE " + self.join_rendered(node.wheres, " AND ")
        if node.returning:
            sql += " RETURNING " + self.join_rendered(node.returning)
        return sql

    def visit_delete_statement(self, node: "DeleteStatement") -> str:
        sql = "DELETE FROM " + node.from_.render(self)
        if node.wheres:
            sql += " WHERE " + self.join_rendered(node.wheres, " AND ")
        if node.returning:
            sql += " RETURNING " + self.join_rendered(node.returning)
        return sql
