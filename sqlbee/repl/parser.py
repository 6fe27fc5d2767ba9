"""Translate shell text into AST nodes.

Expressions are parsed with sqlglot in the session's dialect, and the resulting
``exp.*`` tree is translated into sqlbee nodes. Column references must name a table
or alias registered with the session.
"""

import re
from typing import TYPE_CHECKING, Any, Final, Optional

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError, TokenError
from sqlglot.tokens import TokenType

from sqlbee.exceptions import SQLParsingError
from sqlbee.nodes import (
    Aggregate,
    AggregateFunc,
    Alias,
    And,
    Attribute,
    Between,
    Case,
    Comparison,
    ComparisonOp,
    Extract,
    ExtractField,
    FrameBound,
    FrameBoundType,
    FrameType,
    Grouping,
    GroupingSet,
    GroupingSetKind,
    In,
    Infix,
    InfixOp,
    Literal,
    NamedFunction,
    Node,
    Not,
    NullsOrder,
    Or,
    OrderDirection,
    Ordering,
    Star,
    UnaryMath,
    WindowDefinition,
    WindowFrame,
    WindowFunc,
    WindowFunction,
    cast,
)
from sqlbee.renderers import validate_type_name

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlbee.nodes import Table, TableAlias

__all__ = ("ExpressionParser", "parse_value", "split_top_level_commas")

COMPARISONS: "Final[dict[type[exp.Expression], ComparisonOp]]" = {
    exp.EQ: ComparisonOp.EQ,
    exp.NEQ: ComparisonOp.NOT_EQ,
    exp.GT: ComparisonOp.GT,
    exp.GTE: ComparisonOp.GT_EQ,
    exp.LT: ComparisonOp.LT,
    exp.LTE: ComparisonOp.LT_EQ,
    exp.Like: ComparisonOp.LIKE,
    exp.RegexpLike: ComparisonOp.REGEXP,
    exp.ArrayContainsAll: ComparisonOp.CONTAINS,
    exp.ArrayOverlaps: ComparisonOp.OVERLAPS,
}

NEGATED_COMPARISONS: Final = {
    ComparisonOp.LIKE: ComparisonOp.NOT_LIKE,
    ComparisonOp.REGEXP: ComparisonOp.NOT_REGEXP,
}

ARITHMETIC: "Final[dict[type[exp.Expression], InfixOp]]" = {
    exp.Add: InfixOp.PLUS,
    exp.Sub: InfixOp.MINUS,
    exp.Mul: InfixOp.MULTIPLY,
    exp.Div: InfixOp.DIVIDE,
    exp.BitwiseAnd: InfixOp.BITWISE_AND,
    exp.BitwiseOr: InfixOp.BITWISE_OR,
    exp.BitwiseXor: InfixOp.BITWISE_XOR,
    exp.BitwiseLeftShift: InfixOp.SHIFT_LEFT,
    exp.BitwiseRightShift: InfixOp.SHIFT_RIGHT,
    exp.DPipe: InfixOp.CONCAT,
}

AGGREGATES: "Final[dict[type[exp.Expression], AggregateFunc]]" = {
    exp.Count: AggregateFunc.COUNT,
    exp.Sum: AggregateFunc.SUM,
    exp.Avg: AggregateFunc.AVG,
    exp.Min: AggregateFunc.MIN,
    exp.Max: AggregateFunc.MAX,
}

EXTRACT_FIELDS: Final[dict[str, ExtractField]] = {field.name: field for field in ExtractField}
WINDOW_FUNCTIONS: Final[dict[str, WindowFunc]] = {func.name: func for func in WindowFunc}
GROUPING_SETS: "Final[dict[type[exp.Expression], GroupingSetKind]]" = {
    exp.Cube: GroupingSetKind.CUBE,
    exp.Rollup: GroupingSetKind.ROLLUP,
}

OPENING_TOKENS: Final = frozenset({TokenType.L_PAREN, TokenType.L_BRACKET})
CLOSING_TOKENS: Final = frozenset({TokenType.R_PAREN, TokenType.R_BRACKET})

_NULLS_SUFFIX = re.compile(r"\s+nulls(?:\s+(\w+))?\s*$", re.IGNORECASE)
_DIRECTION_SUFFIX = re.compile(r"\s+(asc|desc)\s*$", re.IGNORECASE)
_IS_USAGE = "expected NULL, NOT NULL, DISTINCT FROM, or NOT DISTINCT FROM after IS"
_CONDITION_USAGE = "expected: <table.column> <operator> <value>"


def _describe(error: Exception) -> str:
    if isinstance(error, ParseError) and error.errors and error.errors[0].get("description"):
        return str(error.errors[0]["description"])
    return str(error).splitlines()[0]


def _parse(text: str, dialect: Optional[str], into: "Optional[type[exp.Expression]]" = None) -> "exp.Expression":
    try:
        return sqlglot.parse_one(text, read=dialect, into=into)
    except (ParseError, TokenError) as e:
        msg = f"cannot parse {text.strip()!r}: {_describe(e)}"
        raise SQLParsingError(msg) from e


def _number(text: str) -> Any:
    try:
        return int(text)
    except ValueError:
        return float(text)


def _literal_value(expression: "exp.Expression") -> Any:
    """Return the Python value of a literal tree, or raise ``ValueError`` if it is not one."""
    if isinstance(expression, exp.Literal):
        return expression.this if expression.is_string else _number(expression.this)
    if isinstance(expression, exp.Boolean):
        return expression.this
    if isinstance(expression, exp.Null):
        return None
    if isinstance(expression, exp.Neg) and isinstance(expression.this, exp.Literal) and not expression.this.is_string:
        return -_number(expression.this.this)
    msg = f"not a literal: {expression.sql()}"
    raise ValueError(msg)


def parse_value(text: str, dialect: Optional[str] = None) -> Any:
    """Convert a literal into a Python value.

    Args:
        text: ``true``, ``false``, ``null``, a quoted string or a (possibly negative) number.
        dialect: sqlglot dialect to read the literal in.

    Raises:
        SQLParsingError: If the text is not a single literal.

    Returns:
        The parsed value; ``null`` yields ``None``.
    """
    try:
        return _literal_value(sqlglot.parse_one(text, read=dialect))
    except (ParseError, TokenError, ValueError) as e:
        msg = f"cannot parse value: {text.strip()}"
        raise SQLParsingError(msg) from e


def split_top_level_commas(text: str, dialect: Optional[str] = None) -> "list[str]":
    """Split on commas outside parentheses and string literals.

    ``LAG(t.a, 1), t.b`` yields two parts, ``'a,b'`` stays whole.

    Raises:
        SQLParsingError: If the text cannot be tokenized, e.g. an unterminated string.
    """
    if not text.strip():
        return []
    try:
        tokens = sqlglot.tokenize(text, read=dialect)
    except TokenError as e:
        msg = f"cannot parse {text.strip()!r}: {_describe(e)}"
        raise SQLParsingError(msg) from e
    parts: list[str] = []
    depth = 0
    start = 0
    for token in tokens:
        if token.token_type in OPENING_TOKENS:
            depth += 1
        elif token.token_type in CLOSING_TOKENS:
            depth -= 1
        elif token.token_type == TokenType.COMMA and depth == 0:
            parts.append(text[start : token.start])
            start = token.end + 1
    parts.append(text[start:])
    return parts


def _is_condition(expression: "exp.Expression") -> bool:
    if isinstance(expression, exp.Paren):
        return _is_condition(expression.this)
    return isinstance(expression, (exp.Predicate, exp.Connector, exp.Not, exp.Boolean))


class ExpressionParser:
    """Parses textual expressions against the tables and aliases of a shell session.

    Args:
        tables: Registered tables by name. The mapping is read live, not copied.
        aliases: Registered aliases by alias name. Aliases win over tables.
        dialect: sqlglot dialect the text is read in.

    Attributes:
        columns: Column names resolved so far, by table or alias name.
    """

    def __init__(
        self, tables: "Mapping[str, Table]", aliases: "Mapping[str, TableAlias]", dialect: str = "postgres"
    ) -> None:
        self.tables = tables
        self.aliases = aliases
        self.dialect = dialect
        self.columns: dict[str, set[str]] = {}

    # Entry points

    def resolve_column(self, ref: str) -> Attribute:
        """Resolve ``table.column`` or ``alias.column``.

        Raises:
            SQLParsingError: If the reference is malformed or its relation is unknown.
        """
        if any(ch in ref for ch in ", \t"):
            msg = f"expected table.column, got {ref!r} (use commas to separate multiple columns)"
            raise SQLParsingError(msg)
        relation, dot, column = ref.partition(".")
        if not dot:
            msg = f"expected table.column, got {ref!r}"
            raise SQLParsingError(msg)
        return self._lookup(relation, column)

    def _lookup(self, relation: str, column: str) -> Attribute:
        if relation in self.aliases:
            attribute = self.aliases[relation].col(column)
        elif relation in self.tables:
            attribute = self.tables[relation].col(column)
        else:
            msg = f"unknown table or alias {relation!r} (register with 'table {relation}' first)"
            raise SQLParsingError(msg)
        self.columns.setdefault(relation, set()).add(column)
        return attribute

    def parse_expression(self, text: str) -> Node:
        """Parse a condition: comparisons and predicates joined by ``and`` / ``or`` / ``not``.

        Raises:
            SQLParsingError: If the text is empty, does not parse, or is not a condition.
        """
        if not text.strip():
            msg = "empty expression"
            raise SQLParsingError(msg)
        expression = _parse(text, self.dialect)
        if not _is_condition(expression):
            raise SQLParsingError(_CONDITION_USAGE)
        return self.translate(expression)

    def parse_projection(self, text: str) -> Node:
        """Parse one SELECT item: an expression with an optional alias."""
        expression = _parse(text, self.dialect)
        if isinstance(expression, exp.Alias):
            return Alias(self.translate(expression.this), expression.alias)
        return self.translate(expression)

    def parse_full_expression(self, text: str) -> Node:
        """Parse a single expression, arithmetic or boolean, without an alias."""
        if not text.strip():
            msg = "empty expression"
            raise SQLParsingError(msg)
        return self.translate(_parse(text, self.dialect))

    def parse_assignment(self, text: str) -> "tuple[Attribute, Node]":
        """Parse ``table.column = expr`` into the target column and its new value.

        Raises:
            SQLParsingError: If the text is not an equality with a column on the left.
        """
        expression = _parse(text, self.dialect)
        if not isinstance(expression, exp.EQ) or not isinstance(expression.this, exp.Column):
            msg = "expected: <table.column> = <expression>"
            raise SQLParsingError(msg)
        return self._column(expression.this), self.translate(expression.expression)

    def parse_ordering(self, text: str) -> Ordering:
        """Parse ``expr [asc|desc] [nulls first|last]``."""
        text = text.strip()
        nulls = NullsOrder.DEFAULT
        match = _NULLS_SUFFIX.search(text)
        if match is not None:
            keyword = (match.group(1) or "").lower()
            if keyword not in {"first", "last"}:
                msg = f"expected FIRST or LAST after NULLS, got {match.group(1)!r}"
                raise SQLParsingError(msg)
            nulls = NullsOrder.FIRST if keyword == "first" else NullsOrder.LAST
            text = text[: match.start()]
        direction = OrderDirection.ASC
        match = _DIRECTION_SUFFIX.search(text)
        if match is not None:
            if match.group(1).lower() == "desc":
                direction = OrderDirection.DESC
            text = text[: match.start()]
        return Ordering(self.parse_full_expression(text), direction, nulls)

    def parse_grouping_set(self, text: str) -> GroupingSet:
        """Parse ``cube(..)``, ``rollup(..)`` or ``grouping sets((..), ..)``."""
        group = _parse(f"GROUP BY {text}", self.dialect, into=exp.Group)
        items = group.expressions
        if len(items) != 1:
            msg = f"invalid grouping set: {text}"
            raise SQLParsingError(msg)
        item = items[0]
        kind = GROUPING_SETS.get(type(item))
        if kind is not None:
            return GroupingSet(kind, columns=[self.translate(column) for column in item.expressions])
        if isinstance(item, exp.GroupingSets):
            return GroupingSet(GroupingSetKind.GROUPING_SETS, sets=[self._grouping_set_members(s) for s in item.expressions])
        msg = f"unknown grouping set type: {text.split('(')[0].strip()}"
        raise SQLParsingError(msg)

    def _grouping_set_members(self, expression: "exp.Expression") -> "list[Node]":
        if isinstance(expression, exp.Tuple):
            return [self.translate(member) for member in expression.expressions]
        if isinstance(expression, exp.Paren):
            return [self.translate(expression.this)]
        return [self.translate(expression)]

    def parse_window_definition(self, text: str) -> WindowDefinition:
        """Parse a ``window`` command body: ``name [partition by ..] [order by ..] [rows|range ..]``."""
        name, _, spec = text.strip().partition(" ")
        if not name:
            msg = "usage: window <name> [partition by <cols>] [order by <cols> [asc|desc]] [rows|range ...]"
            raise SQLParsingError(msg)
        window = _parse(f"{name} AS ({spec})", self.dialect, into=exp.Window)
        definition = self._window_definition(window)
        definition.name = window.this.name
        return definition

    # Translation

    def translate(self, expression: "exp.Expression", windowed: bool = False) -> Node:  # noqa: C901, PLR0911, PLR0912
        """Translate a sqlglot tree into sqlbee nodes.

        Args:
            expression: The parsed tree.
            windowed: ``expression`` is the function of an OVER clause.

        Raises:
            SQLParsingError: If the tree uses a construct sqlbee cannot express.

        Returns:
            The equivalent node.
        """
        kind = type(expression)
        if kind in COMPARISONS:
            return Comparison(self.translate(expression.this), COMPARISONS[kind], self.translate(expression.expression))
        if kind in ARITHMETIC:
            return Infix(self.translate(expression.this), ARITHMETIC[kind], self.translate(expression.expression))
        if kind in AGGREGATES:
            return self._aggregate(expression, AGGREGATES[kind])
        if isinstance(expression, exp.Column):
            return self._column(expression)
        if isinstance(expression, (exp.Literal, exp.Boolean, exp.Null)):
            return Literal(_literal_value(expression))
        if isinstance(expression, exp.Neg):
            try:
                return Literal(_literal_value(expression))
            except ValueError:
                msg = f"unary minus is only supported before numbers: {expression.sql(dialect=self.dialect)}"
                raise SQLParsingError(msg) from None
        if isinstance(expression, exp.And):
            return And(self.translate(expression.this), self.translate(expression.expression))
        if isinstance(expression, exp.Or):
            return Grouping(Or(self.translate(expression.this), self.translate(expression.expression)))
        if isinstance(expression, exp.Not):
            return self._negate(expression.this)
        if isinstance(expression, exp.Paren):
            inner = self.translate(expression.this)
            return inner if isinstance(inner, Grouping) else Grouping(inner)
        if isinstance(expression, exp.Is):
            return self._is(expression)
        if isinstance(expression, (exp.NullSafeEQ, exp.NullSafeNEQ)):
            column = self._require_attribute(expression.this, "IS DISTINCT FROM")
            value = self.translate(expression.expression)
            if isinstance(expression, exp.NullSafeEQ):
                return column.is_not_distinct_from(value)
            return column.is_distinct_from(value)
        if isinstance(expression, exp.In):
            return self._in(expression, negated=False)
        if isinstance(expression, exp.Between):
            return self._between(expression, negated=False)
        if isinstance(expression, exp.BitwiseNot):
            return UnaryMath(self.translate(expression.this))
        if isinstance(expression, exp.Star):
            return Star()
        if isinstance(expression, exp.Case):
            return self._case(expression)
        if isinstance(expression, exp.Cast):
            type_name = expression.to.sql(dialect=self.dialect)
            validate_type_name(type_name)
            return cast(self.translate(expression.this), type_name)
        if isinstance(expression, exp.Extract):
            return self._extract(expression)
        if isinstance(expression, exp.Filter):
            return self._filter(expression, windowed)
        if isinstance(expression, exp.Window):
            return self._over(expression)
        if isinstance(expression, exp.Alias):
            msg = f"alias {expression.alias!r} is only allowed on a projection"
            raise SQLParsingError(msg)
        if isinstance(expression, exp.Func):
            return self._function(expression, windowed)
        msg = f"unsupported expression: {expression.sql(dialect=self.dialect)}"
        raise SQLParsingError(msg)

    def _column(self, column: "exp.Column") -> Attribute:
        if column.args.get("db") or column.args.get("catalog"):
            msg = f"expected table.column, got {column.sql(dialect=self.dialect)!r}"
            raise SQLParsingError(msg)
        if not column.table:
            msg = f"expected table.column, got {column.name!r}"
            raise SQLParsingError(msg)
        return self._lookup(column.table, column.name)

    def _require_attribute(self, expression: "exp.Expression", operator: str) -> Attribute:
        if isinstance(expression, exp.Column):
            return self._column(expression)
        msg = f"{operator} requires a simple column reference (table.column), not an expression"
        raise SQLParsingError(msg)

    def _negate(self, expression: "exp.Expression") -> Node:
        kind = type(expression)
        if COMPARISONS.get(kind) in NEGATED_COMPARISONS:
            op = NEGATED_COMPARISONS[COMPARISONS[kind]]
            return Comparison(self.translate(expression.this), op, self.translate(expression.expression))
        if isinstance(expression, exp.In):
            return self._in(expression, negated=True)
        if isinstance(expression, exp.Between):
            return self._between(expression, negated=True)
        if isinstance(expression, exp.Is) and isinstance(expression.expression, exp.Null):
            return self._require_attribute(expression.this, "IS").is_not_null()
        return Not(self.translate(expression))

    def _is(self, expression: "exp.Is") -> Node:
        if not isinstance(expression.expression, exp.Null):
            raise SQLParsingError(_IS_USAGE)
        column = self._require_attribute(expression.this, "IS")
        return column.is_not_null() if expression.args.get("negate") else column.is_null()

    def _in(self, expression: "exp.In", negated: bool) -> In:
        column = self._require_attribute(expression.this, "IN")
        if expression.args.get("query") or expression.args.get("unnest") or expression.args.get("field"):
            msg = "IN accepts a list of values only"
            raise SQLParsingError(msg)
        values = [self.translate(value) for value in expression.expressions]
        if not values:
            msg = "IN requires at least one value"
            raise SQLParsingError(msg)
        return column.not_in(*values) if negated else column.in_(*values)

    def _between(self, expression: "exp.Between", negated: bool) -> Between:
        column = self._require_attribute(expression.this, "BETWEEN")
        low, high = expression.args.get("low"), expression.args.get("high")
        if low is None or high is None:
            keyword = "NOT BETWEEN" if negated else "BETWEEN"
            msg = f"expected: {keyword} <low> AND <high>"
            raise SQLParsingError(msg)
        if negated:
            return column.not_between(self.translate(low), self.translate(high))
        return column.between(self.translate(low), self.translate(high))

    def _case(self, expression: "exp.Case") -> Case:
        operand = expression.this
        node = Case(self.translate(operand)) if operand is not None else Case()
        for branch in expression.args.get("ifs") or []:
            node.when(self.translate(branch.this), self.translate(branch.args["true"]))
        default = expression.args.get("default")
        if default is not None:
            node.else_(self.translate(default))
        return node

    def _extract(self, expression: "exp.Extract") -> Extract:
        name = expression.this.name.upper()
        field = EXTRACT_FIELDS.get(name)
        if field is None:
            expected = ", ".join(EXTRACT_FIELDS)
            msg = f"unknown EXTRACT field: {name} (expected {expected})"
            raise SQLParsingError(msg)
        return Extract(field, self.translate(expression.expression))

    def _arguments(self, expression: "exp.Expression") -> "tuple[list[Node], bool]":
        """Translate the argument expressions of a function call, in declaration order.

        Returns:
            The arguments and whether they were written as ``DISTINCT ...``.
        """
        values: list[exp.Expression] = []
        for key in expression.arg_types:
            value = expression.args.get(key)
            if isinstance(value, list):
                values.extend(value)
            elif isinstance(value, exp.Expression):
                values.append(value)
        if len(values) == 1 and isinstance(values[0], exp.Distinct):
            return [self.translate(value) for value in values[0].expressions], True
        return [self.translate(value) for value in values], False

    def _aggregate(self, expression: "exp.Expression", func: AggregateFunc) -> Node:
        args, distinct = self._arguments(expression)
        if not args or isinstance(args[0], Star):
            return Aggregate(func, None, distinct=distinct)
        if len(args) > 1:
            return NamedFunction(func.name, args, distinct=distinct)
        return Aggregate(func, args[0], distinct=distinct)

    def _function(self, expression: "exp.Func", windowed: bool) -> Node:
        name = expression.name if isinstance(expression, exp.Anonymous) else expression.sql_name()
        name = name.upper()
        args, distinct = self._arguments(expression)
        if name in WINDOW_FUNCTIONS:
            if not windowed:
                msg = f"window function {name} requires OVER clause"
                raise SQLParsingError(msg)
            return WindowFunction(WINDOW_FUNCTIONS[name], args)
        return NamedFunction(name, args, distinct=distinct)

    def _filter(self, expression: "exp.Filter", windowed: bool) -> Node:
        node = self.translate(expression.this, windowed)
        if not isinstance(node, Aggregate):
            msg = "FILTER requires an aggregate function"
            raise SQLParsingError(msg)
        where = expression.expression
        condition = where.this if isinstance(where, exp.Where) else where
        try:
            return node.with_filter(self.translate(condition))
        except SQLParsingError as e:
            msg = f"FILTER condition: {e}"
            raise SQLParsingError(msg) from e

    # Windows

    def _over(self, window: "exp.Window") -> Node:
        node = self.translate(window.this, windowed=True)
        if not isinstance(node, (Aggregate, NamedFunction, WindowFunction)):
            msg = f"OVER requires a function call, got {window.this.sql(dialect=self.dialect)}"
            raise SQLParsingError(msg)
        definition = self._window_definition(window)
        if window.alias:
            if not definition.is_empty():
                msg = f"cannot refine window {window.alias!r} inside OVER"
                raise SQLParsingError(msg)
            return node.over(window.alias)
        return node.over(definition)

    def _window_definition(self, window: "exp.Window") -> WindowDefinition:
        definition = WindowDefinition()
        definition.partition_by = [self.translate(column) for column in window.args.get("partition_by") or []]
        order = window.args.get("order")
        if order is not None:
            definition.order_by = [
                Ordering(self.translate(item.this), OrderDirection.DESC if item.args.get("desc") else OrderDirection.ASC)
                for item in order.expressions
            ]
        spec = window.args.get("spec")
        if spec is not None:
            definition.frame = self._frame(spec)
        return definition

    def _frame(self, spec: "exp.WindowSpec") -> WindowFrame:
        kind = str(spec.args.get("kind") or "").upper()
        if kind not in {"ROWS", "RANGE"}:
            msg = f"unsupported window frame: {kind}"
            raise SQLParsingError(msg)
        start = self._frame_bound(spec.args.get("start"), spec.args.get("start_side"))
        end = None
        if spec.args.get("end") is not None:
            end = self._frame_bound(spec.args.get("end"), spec.args.get("end_side"))
        return WindowFrame(FrameType[kind], start, end)

    def _frame_bound(self, value: Any, side: Any) -> FrameBound:
        side = str(side or "").upper()
        if isinstance(value, str) and value.upper() == "CURRENT ROW":
            return FrameBound(FrameBoundType.CURRENT_ROW)
        if side not in {"PRECEDING", "FOLLOWING"}:
            msg = "expected PRECEDING or FOLLOWING in window frame"
            raise SQLParsingError(msg)
        if isinstance(value, str) and value.upper() == "UNBOUNDED":
            return FrameBound(FrameBoundType[f"UNBOUNDED_{side}"])
        if not isinstance(value, exp.Expression):
            msg = "expected frame bound"
            raise SQLParsingError(msg)
        return FrameBound(FrameBoundType[side], self.translate(value))
