"""AST node model."""

from sqlbee.nodes._base import Node
from sqlbee.nodes._clauses import (
    CTE,
    Assignment,
    Case,
    Exists,
    GroupingSet,
    Join,
    OnConflict,
    SetOperation,
    cube,
    exists,
    grouping_sets,
    not_exists,
    rollup,
)
from sqlbee.nodes._enums import (
    AggregateFunc,
    ComparisonOp,
    ExtractField,
    FrameBoundType,
    FrameType,
    GroupingSetKind,
    InfixOp,
    JoinType,
    LockMode,
    NullsOrder,
    OnConflictAction,
    OrderDirection,
    SetOperationType,
    UnaryMathOp,
    UnaryOp,
    WindowFunc,
)
from sqlbee.nodes._expressions import (
    Alias,
    And,
    Arithmetics,
    Between,
    BooleanExpression,
    Combinable,
    Comparison,
    Expression,
    Grouping,
    In,
    Infix,
    Literal,
    Not,
    Or,
    Ordering,
    Predications,
    Unary,
    UnaryMath,
    as_node,
    chain_and,
    group_or,
)
from sqlbee.nodes._functions import (
    Aggregate,
    Extract,
    NamedFunction,
    WindowFunction,
    avg,
    cast,
    coalesce,
    count,
    count_distinct,
    cume_dist,
    dense_rank,
    extract,
    first_value,
    lag,
    last_value,
    lead,
    lower,
    max_,
    min_,
    nth_value,
    ntile,
    percent_rank,
    rank,
    row_number,
    substring,
    sum_,
    upper,
)
from sqlbee.nodes._relations import Attribute, Table, TableAlias, relation_name, table_source_name
from sqlbee.nodes._statements import DeleteStatement, InsertStatement, SelectCore, UpdateStatement
from sqlbee.nodes._values import BindParam, Casted, MaskedValue, RawFragment, Star
from sqlbee.nodes._windows import (
    FrameBound,
    Over,
    WindowDefinition,
    WindowFrame,
    current_row,
    following,
    preceding,
    unbounded_following,
    unbounded_preceding,
)

__all__ = (
    "CTE",
    "Aggregate",
    "AggregateFunc",
    "Alias",
    "And",
    "Arithmetics",
    "Assignment",
    "Attribute",
    "Between",
    "BindParam",
    "BooleanExpression",
    "Case",
    "Casted",
    "Combinable",
    "Comparison",
    "ComparisonOp",
    "DeleteStatement",
    "Exists",
    "Expression",
    "Extract",
    "ExtractField",
    "FrameBound",
    "FrameBoundType",
    "FrameType",
    "Grouping",
    "GroupingSet",
    "GroupingSetKind",
    "In",
    "Infix",
    "InfixOp",
    "InsertStatement",
    "Join",
    "JoinType",
    "Literal",
    "LockMode",
    "MaskedValue",
    "NamedFunction",
    "Node",
    "Not",
    "NullsOrder",
    "OnConflict",
    "OnConflictAction",
    "Or",
    "OrderDirection",
    "Ordering",
    "Over",
    "Predications",
    "RawFragment",
    "SelectCore",
    "SetOperation",
    "SetOperationType",
    "Star",
    "Table",
    "TableAlias",
    "Unary",
    "UnaryMath",
    "UnaryMathOp",
    "UnaryOp",
    "UpdateStatement",
    "WindowDefinition",
    "WindowFrame",
    "WindowFunc",
    "WindowFunction",
    "as_node",
    "avg",
    "cast",
    "chain_and",
    "coalesce",
    "count",
    "count_distinct",
    "cube",
    "cume_dist",
    "current_row",
    "dense_rank",
    "exists",
    "extract",
    "first_value",
    "following",
    "group_or",
    "grouping_sets",
    "lag",
    "last_value",
    "lead",
    "lower",
    "max_",
    "min_",
    "not_exists",
    "nth_value",
    "ntile",
    "percent_rank",
    "preceding",
    "rank",
    "relation_name",
    "rollup",
    "row_number",
    "substring",
    "sum_",
    "table_source_name",
    "unbounded_following",
    "unbounded_preceding",
    "upper",
)
