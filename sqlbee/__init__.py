"""sqlbee: a relational-algebra SQL query builder.

Build statements from nodes, optionally rewrite them with transformers, and render
them for PostgreSQL, MySQL or SQLite::

    from sqlbee import PostgresRenderer, Table, new_select

    users = Table("users")
    query = new_select(users).select(users["id"]).where(users["active"].eq(True))
    sql, params = query.to_sql(PostgresRenderer())
    # SELECT "users"."id" FROM "users" WHERE "users"."active" = $1   [True]
"""

from typing import Any, Optional

from sqlbee import exceptions
from sqlbee.builder import DeleteQuery, InsertQuery, SafeQuery, SelectQuery, UpdateQuery
from sqlbee.nodes import (
    Attribute,
    BindParam,
    Literal,
    Node,
    Star,
    Table,
    TableAlias,
    avg,
    count,
    count_distinct,
    max_,
    min_,
    sum_,
)
from sqlbee.renderers import (
    FormattingRenderer,
    GraphRenderer,
    MySQLRenderer,
    PluginProvenance,
    PostgresRenderer,
    SQLiteRenderer,
    get_renderer,
)

__all__ = (
    "Attribute",
    "DeleteQuery",
    "FormattingRenderer",
    "GraphRenderer",
    "InsertQuery",
    "MySQLRenderer",
    "PluginProvenance",
    "PostgresRenderer",
    "SQLiteRenderer",
    "SafeQuery",
    "SelectQuery",
    "Table",
    "TableAlias",
    "UpdateQuery",
    "avg",
    "bind_param",
    "count",
    "count_distinct",
    "exceptions",
    "get_renderer",
    "literal",
    "max_",
    "min_",
    "new_delete",
    "new_insert",
    "new_select",
    "new_update",
    "star",
    "sum_",
)

__version__ = "0.1.0"


def new_select(from_: Optional[Node] = None) -> SelectQuery:
    return SelectQuery(from_)


def new_insert(into: Node) -> InsertQuery:
    return InsertQuery(into)


def new_update(table: Node) -> UpdateQuery:
    return UpdateQuery(table)


def new_delete(from_: Node) -> DeleteQuery:
    return DeleteQuery(from_)


def literal(value: Any) -> Literal:
    """Wrap a Python value; rendered as a placeholder or inline depending on the renderer."""
    return Literal(value)


def bind_param(value: Any) -> BindParam:
    return BindParam(value)


def star(table: Optional[Table] = None) -> Star:
    """``*``, or ``"table".*`` when ``table`` is given."""
    return Star(table)
