"""Statement roots.

Each root is a mutable container the builders append to. :meth:`clone` copies every
list so a transformer can append to the copy without touching the caller's tree; the
nodes inside the lists are shared.
"""

from collections.abc import Sequence
from typing import Optional

from sqlbee.nodes._base import Node
from sqlbee.nodes._clauses import CTE, Assignment, Join, OnConflict
from sqlbee.nodes._enums import LockMode
from sqlbee.nodes._windows import WindowDefinition

__all__ = ("DeleteStatement", "InsertStatement", "SelectCore", "UpdateStatement")


class SelectCore(Node):
    """A SELECT statement."""

    __slots__ = (
        "comment",
        "ctes",
        "distinct",
        "distinct_on",
        "from_",
        "groups",
        "havings",
        "hints",
        "joins",
        "limit",
        "lock",
        "offset",
        "orders",
        "projections",
        "skip_locked",
        "wheres",
        "windows",
    )
    __visit_name__ = "select_core"
    is_select = True

    def __init__(self, from_: Optional[Node] = None) -> None:
        self.from_ = from_
        self.projections: list[Node] = []
        self.wheres: list[Node] = []
        self.joins: list[Join] = []
        self.groups: list[Node] = []
        self.havings: list[Node] = []
        self.windows: list[WindowDefinition] = []
        self.orders: list[Node] = []
        self.limit: Optional[Node] = None
        self.offset: Optional[Node] = None
        self.distinct = False
        self.distinct_on: list[Node] = []
        self.lock = LockMode.NONE
        self.skip_locked = False
        self.comment = ""
        self.hints: list[str] = []
        self.ctes: list[CTE] = []

    def clone(self) -> "SelectCore":
        """Return a copy with fresh lists holding the same nodes."""
        core = SelectCore(self.from_)
        core.projections = list(self.projections)
        core.wheres = list(self.wheres)
        core.joins = list(self.joins)
        core.groups = list(self.groups)
        core.havings = list(self.havings)
        core.windows = list(self.windows)
        core.orders = list(self.orders)
        core.limit = self.limit
        core.offset = self.offset
        core.distinct = self.distinct
        core.distinct_on = list(self.distinct_on)
        core.lock = self.lock
        core.skip_locked = self.skip_locked
        core.comment = self.comment
        core.hints = list(self.hints)
        core.ctes = list(self.ctes)
        return core


class InsertStatement(Node):
    """``INSERT INTO .. (cols) VALUES .. | SELECT ..``."""

    __slots__ = ("columns", "into", "on_conflict", "returning", "select", "values")
    __visit_name__ = "insert_statement"

    def __init__(self, into: Node) -> None:
        self.into = into
        self.columns: list[Node] = []
        self.values: list[list[Node]] = []
        self.select: Optional[Node] = None
        self.returning: list[Node] = []
        self.on_conflict: Optional[OnConflict] = None

    def clone(self) -> "InsertStatement":
        stmt = InsertStatement(self.into)
        stmt.columns = list(self.columns)
        stmt.values = [list(row) for row in self.values]
        stmt.select = self.select
        stmt.returning = list(self.returning)
        stmt.on_conflict = self.on_conflict
        return stmt


class UpdateStatement(Node):
    __slots__ = ("assignments", "returning", "table", "wheres")
    __visit_name__ = "update_statement"

    def __init__(self, table: Node, assignments: "Optional[Sequence[Assignment]]" = None) -> None:
        self.table = table
        self.assignments: list[Assignment] = list(assignments or [])
        self.wheres: list[Node] = []
        self.returning: list[Node] = []

    def clone(self) -> "UpdateStatement":
        stmt = UpdateStatement(self.table, self.assignments)
        stmt.wheres = list(self.wheres)
        stmt.returning = list(self.returning)
        return stmt


class DeleteStatement(Node):
    __slots__ = ("from_", "returning", "wheres")
    __visit_name__ = "delete_statement"

    def __init__(self, from_: Node) -> None:
        self.from_ = from_
        self.wheres: list[Node] = []
        self.returning: list[Node] = []

    def clone(self) -> "DeleteStatement":
        stmt = DeleteStatement(self.from_)
        stmt.wheres = list(self.wheres)
        stmt.returning = list(self.returning)
        return stmt
