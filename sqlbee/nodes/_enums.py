"""Enumerations tagging the variants of operator-bearing nodes.

Members carry no SQL text; renderers own the token tables that map each
member to its dialect output.
"""

from enum import Enum, auto

__all__ = (
    "AggregateFunc",
    "ComparisonOp",
    "ExtractField",
    "FrameBoundType",
    "FrameType",
    "GroupingSetKind",
    "InfixOp",
    "JoinType",
    "LockMode",
    "NullsOrder",
    "OnConflictAction",
    "OrderDirection",
    "SetOperationType",
    "UnaryMathOp",
    "UnaryOp",
    "WindowFunc",
)


class ComparisonOp(Enum):
    EQ = auto()
    NOT_EQ = auto()
    GT = auto()
    GT_EQ = auto()
    LT = auto()
    LT_EQ = auto()
    LIKE = auto()
    NOT_LIKE = auto()
    REGEXP = auto()
    NOT_REGEXP = auto()
    DISTINCT_FROM = auto()
    NOT_DISTINCT_FROM = auto()
    CASE_SENSITIVE_EQ = auto()
    CASE_INSENSITIVE_EQ = auto()
    CONTAINS = auto()
    OVERLAPS = auto()


class UnaryOp(Enum):
    IS_NULL = auto()
    IS_NOT_NULL = auto()


class InfixOp(Enum):
    PLUS = auto()
    MINUS = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    BITWISE_AND = auto()
    BITWISE_OR = auto()
    BITWISE_XOR = auto()
    SHIFT_LEFT = auto()
    SHIFT_RIGHT = auto()
    CONCAT = auto()


class UnaryMathOp(Enum):
    BITWISE_NOT = auto()


class JoinType(Enum):
    INNER = auto()
    LEFT_OUTER = auto()
    RIGHT_OUTER = auto()
    FULL_OUTER = auto()
    CROSS = auto()
    STRING = auto()


class OrderDirection(Enum):
    ASC = auto()
    DESC = auto()


class NullsOrder(Enum):
    DEFAULT = auto()
    FIRST = auto()
    LAST = auto()


class LockMode(Enum):
    NONE = auto()
    FOR_UPDATE = auto()
    FOR_SHARE = auto()
    FOR_NO_KEY_UPDATE = auto()
    FOR_KEY_SHARE = auto()


class SetOperationType(Enum):
    UNION = auto()
    UNION_ALL = auto()
    INTERSECT = auto()
    INTERSECT_ALL = auto()
    EXCEPT = auto()
    EXCEPT_ALL = auto()


class AggregateFunc(Enum):
    COUNT = auto()
    SUM = auto()
    AVG = auto()
    MIN = auto()
    MAX = auto()


class ExtractField(Enum):
    YEAR = auto()
    MONTH = auto()
    DAY = auto()
    HOUR = auto()
    MINUTE = auto()
    SECOND = auto()
    DOW = auto()
    DOY = auto()
    EPOCH = auto()
    QUARTER = auto()
    WEEK = auto()


class WindowFunc(Enum):
    ROW_NUMBER = auto()
    RANK = auto()
    DENSE_RANK = auto()
    NTILE = auto()
    LAG = auto()
    LEAD = auto()
    FIRST_VALUE = auto()
    LAST_VALUE = auto()
    NTH_VALUE = auto()
    CUME_DIST = auto()
    PERCENT_RANK = auto()


class FrameType(Enum):
    ROWS = auto()
    RANGE = auto()


class FrameBoundType(Enum):
    UNBOUNDED_PRECEDING = auto()
    PRECEDING = auto()
    CURRENT_ROW = auto()
    FOLLOWING = auto()
    UNBOUNDED_FOLLOWING = auto()


class GroupingSetKind(Enum):
    CUBE = auto()
    ROLLUP = auto()
    GROUPING_SETS = auto()


class OnConflictAction(Enum):
    DO_NOTHING = auto()
    DO_UPDATE = auto()
