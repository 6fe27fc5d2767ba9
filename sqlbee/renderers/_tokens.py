"""SQL keyword tables, total over their enumerations."""

import re
from typing import Final

from sqlbee.nodes import (
    AggregateFunc,
    ComparisonOp,
    ExtractField,
    FrameType,
    GroupingSetKind,
    InfixOp,
    JoinType,
    LockMode,
    SetOperationType,
    WindowFunc,
)

__all__ = (
    "AGGREGATE_TOKENS",
    "COMPARISON_TOKENS",
    "EXTRACT_TOKENS",
    "FRAME_TOKENS",
    "FUNCTION_NAME_PATTERN",
    "GROUPING_SET_TOKENS",
    "INFIX_TOKENS",
    "JOIN_TOKENS",
    "LOCK_TOKENS",
    "SET_OPERATION_TOKENS",
    "TYPE_NAME_PATTERN",
    "WINDOW_FUNCTION_TOKENS",
)

COMPARISON_TOKENS: Final[dict[ComparisonOp, str]] = {
    ComparisonOp.EQ: "=",
    ComparisonOp.NOT_EQ: "!=",
    ComparisonOp.GT: ">",
    ComparisonOp.GT_EQ: ">=",
    ComparisonOp.LT: "<",
    ComparisonOp.LT_EQ: "<=",
    ComparisonOp.LIKE: "LIKE",
    ComparisonOp.NOT_LIKE: "NOT LIKE",
    ComparisonOp.REGEXP: "~",
    ComparisonOp.NOT_REGEXP: "!~",
    ComparisonOp.DISTINCT_FROM: "IS DISTINCT FROM",
    ComparisonOp.NOT_DISTINCT_FROM: "IS NOT DISTINCT FROM",
    ComparisonOp.CASE_SENSITIVE_EQ: "=",
    ComparisonOp.CASE_INSENSITIVE_EQ: "=",
    ComparisonOp.CONTAINS: "@>",
    ComparisonOp.OVERLAPS: "&&",
}

INFIX_TOKENS: Final[dict[InfixOp, str]] = {
    InfixOp.PLUS: "+",
    InfixOp.MINUS: "-",
    InfixOp.MULTIPLY: "*",
    InfixOp.DIVIDE: "/",
    InfixOp.BITWISE_AND: "&",
    InfixOp.BITWISE_OR: "|",
    InfixOp.BITWISE_XOR: "^",
    InfixOp.SHIFT_LEFT: "<<",
    InfixOp.SHIFT_RIGHT: ">>",
    InfixOp.CONCAT: "||",
}

JOIN_TOKENS: Final[dict[JoinType, str]] = {
    JoinType.INNER: "INNER JOIN",
    JoinType.LEFT_OUTER: "LEFT OUTER JOIN",
    JoinType.RIGHT_OUTER: "RIGHT OUTER JOIN",
    JoinType.FULL_OUTER: "FULL OUTER JOIN",
    JoinType.CROSS: "CROSS JOIN",
    JoinType.STRING: "",
}

LOCK_TOKENS: Final[dict[LockMode, str]] = {
    LockMode.NONE: "",
    LockMode.FOR_UPDATE: "FOR UPDATE",
    LockMode.FOR_SHARE: "FOR SHARE",
    LockMode.FOR_NO_KEY_UPDATE: "FOR NO KEY UPDATE",
    LockMode.FOR_KEY_SHARE: "FOR KEY SHARE",
}

SET_OPERATION_TOKENS: Final[dict[SetOperationType, str]] = {
    SetOperationType.UNION: "UNION",
    SetOperationType.UNION_ALL: "UNION ALL",
    SetOperationType.INTERSECT: "INTERSECT",
    SetOperationType.INTERSECT_ALL: "INTERSECT ALL",
    SetOperationType.EXCEPT: "EXCEPT",
    SetOperationType.EXCEPT_ALL: "EXCEPT ALL",
}

AGGREGATE_TOKENS: Final[dict[AggregateFunc, str]] = {
    AggregateFunc.COUNT: "COUNT",
    AggregateFunc.SUM: "SUM",
    AggregateFunc.AVG: "AVG",
    AggregateFunc.MIN: "MIN",
    AggregateFunc.MAX: "MAX",
}

EXTRACT_TOKENS: Final[dict[ExtractField, str]] = {field: field.name for field in ExtractField}

WINDOW_FUNCTION_TOKENS: Final[dict[WindowFunc, str]] = {func: func.name for func in WindowFunc}

FRAME_TOKENS: Final[dict[FrameType, str]] = {
    FrameType.ROWS: "ROWS",
    FrameType.RANGE: "RANGE",
}

GROUPING_SET_TOKENS: Final[dict[GroupingSetKind, str]] = {
    GroupingSetKind.CUBE: "CUBE",
    GroupingSetKind.ROLLUP: "ROLLUP",
    GroupingSetKind.GROUPING_SETS: "GROUPING SETS",
}

FUNCTION_NAME_PATTERN: Final = re.compile(r"[A-Za-z0-9_]+")
TYPE_NAME_PATTERN: Final = re.compile(r"[A-Za-z0-9_ (),]+")
