"""Table discovery for row-filtering transformers."""

from typing import TYPE_CHECKING, NamedTuple, Optional

from sqlbee.nodes import Table, TableAlias

if TYPE_CHECKING:
    from sqlbee.nodes import Node, SelectCore

__all__ = ("TableRef", "collect_tables", "table_ref")


class TableRef(NamedTuple):
    """A table referenced by a statement.

    ``relation`` is the node to qualify new column references with, so aliases are
    preserved; ``name`` is the underlying table name used for matching.
    """

    relation: "Node"
    name: str


def table_ref(node: "Optional[Node]") -> Optional[TableRef]:
    """Build a :class:`TableRef` for a table or an aliased table.

    Returns:
        ``None`` for subqueries and every other kind of node.
    """
    if isinstance(node, Table):
        return TableRef(node, node.name)
    if isinstance(node, TableAlias) and isinstance(node.relation, Table):
        return TableRef(node, node.relation.name)
    return None


def collect_tables(core: "SelectCore") -> list[TableRef]:
    """Return the FROM source followed by every JOIN target, skipping subqueries."""
    refs: list[TableRef] = []
    ref = table_ref(core.from_)
    if ref is not None:
        refs.append(ref)
    for join in core.joins:
        ref = table_ref(join.right)
        if ref is not None:
            refs.append(ref)
    return refs
