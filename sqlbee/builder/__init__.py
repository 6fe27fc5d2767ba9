"""Fluent statement builders."""

from sqlbee.builder._base import QueryBuilder, SafeQuery
from sqlbee.builder._delete import DeleteQuery
from sqlbee.builder._insert import ConflictContext, ConflictUpdateContext, InsertQuery
from sqlbee.builder._select import JoinContext, SelectQuery
from sqlbee.builder._update import UpdateQuery

__all__ = (
    "ConflictContext",
    "ConflictUpdateContext",
    "DeleteQuery",
    "InsertQuery",
    "JoinContext",
    "QueryBuilder",
    "SafeQuery",
    "SelectQuery",
    "UpdateQuery",
)
