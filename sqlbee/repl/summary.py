"""Short human-readable labels for nodes, used by the ``ast`` command."""

from sqlbee.nodes import (
    Alias,
    Attribute,
    Case,
    GroupingSet,
    GroupingSetKind,
    Literal,
    MaskedValue,
    NamedFunction,
    Node,
    NullsOrder,
    OrderDirection,
    Ordering,
    RawFragment,
    SelectCore,
    Star,
    Table,
    TableAlias,
    relation_name,
)

__all__ = ("alias_source_name", "node_summary", "ordering_summary")

_GROUPING_SET_LABELS = {
    GroupingSetKind.CUBE: "CUBE(...)",
    GroupingSetKind.ROLLUP: "ROLLUP(...)",
    GroupingSetKind.GROUPING_SETS: "GROUPING SETS(...)",
}


def alias_source_name(alias: TableAlias) -> str:
    if isinstance(alias.relation, Table):
        return alias.relation.name
    return "(subquery)"


def node_summary(node: Node) -> str:
    """Return a concise label such as ``users.id`` or ``COUNT(...)``.

    Unknown node kinds are labelled with their class name.
    """
    if isinstance(node, Table):
        return node.name
    if isinstance(node, TableAlias):
        return f"{alias_source_name(node)} AS {node.alias}"
    if isinstance(node, Attribute):
        qualifier = relation_name(node.relation)
        return f"{qualifier}.{node.name}" if qualifier else node.name
    if isinstance(node, Star):
        return f"{node.table.name}.*" if node.table is not None else "*"
    if isinstance(node, (Literal, MaskedValue)):
        return str(node.value)
    if isinstance(node, RawFragment):
        return node.raw
    if isinstance(node, SelectCore):
        return "(subquery)"
    if isinstance(node, NamedFunction):
        return f"{node.name}(...)"
    if isinstance(node, Case):
        return "CASE...END"
    if isinstance(node, Alias):
        return f"{node_summary(node.expr)} AS {node.name}"
    if isinstance(node, GroupingSet):
        return _GROUPING_SET_LABELS[node.kind]
    return type(node).__name__


def ordering_summary(node: Node) -> str:
    if not isinstance(node, Ordering):
        return type(node).__name__
    label = "DESC" if node.direction is OrderDirection.DESC else "ASC"
    if node.nulls is NullsOrder.FIRST:
        label += " NULLS FIRST"
    elif node.nulls is NullsOrder.LAST:
        label += " NULLS LAST"
    return f"{node_summary(node.expr)} {label}"
