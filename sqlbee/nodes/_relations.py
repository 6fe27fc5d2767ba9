from typing import Any, Optional

from sqlbee.nodes._base import Node
from sqlbee.nodes._expressions import Expression, Literal
from sqlbee.nodes._values import Casted, Star

__all__ = ("Attribute", "Table", "TableAlias", "relation_name", "table_source_name")


class Table(Node):
    """A named table."""

    __slots__ = ("name",)
    __visit_name__ = "table"

    def __init__(self, name: str) -> None:
        self.name = name

    def col(self, name: str) -> "Attribute":
        """Return a column reference qualified by this table."""
        return Attribute(self, name)

    def __getitem__(self, name: str) -> "Attribute":
        return self.col(name)

    def alias(self, name: str) -> "TableAlias":
        return TableAlias(self, name)

    def star(self) -> Star:
        return Star(self)


class TableAlias(Node):
    """An aliased relation; ``relation`` is a :class:`Table` or a subquery."""

    __slots__ = ("alias", "relation")
    __visit_name__ = "table_alias"

    def __init__(self, relation: Node, alias: str) -> None:
        self.relation = relation
        self.alias = alias

    def col(self, name: str) -> "Attribute":
        return Attribute(self, name)

    def __getitem__(self, name: str) -> "Attribute":
        return self.col(name)


class Attribute(Expression):
    """A column bound to a relation.

    ``type_name`` is optional; when set, :meth:`coerce` wraps values in a
    :class:`~sqlbee.nodes.Casted` node of that type.
    """

    __slots__ = ("name", "relation", "type_name")
    __visit_name__ = "attribute"

    def __init__(self, relation: Node, name: str, type_name: Optional[str] = None) -> None:
        self.relation = relation
        self.name = name
        self.type_name = type_name

    def typed(self, type_name: str) -> "Attribute":
        """Return a copy of this attribute carrying ``type_name``."""
        return Attribute(self.relation, self.name, type_name)

    def coerce(self, value: Any) -> Node:
        """Wrap ``value`` for comparison against this column.

        Args:
            value: A plain Python value.

        Returns:
            A ``Casted`` node when the attribute is typed, otherwise a ``Literal``.
        """
        if self.type_name:
            return Casted(value, self.type_name)
        return Literal(value)


def relation_name(node: Optional[Node]) -> str:
    """Name used to qualify columns of ``node``: the alias if aliased, else the table name."""
    if isinstance(node, Table):
        return node.name
    if isinstance(node, TableAlias):
        return node.alias
    return ""


def table_source_name(node: Optional[Node]) -> str:
    """Underlying table name of ``node``, looking through aliases.

    An alias over a subquery yields the alias name.
    """
    if isinstance(node, Table):
        return node.name
    if isinstance(node, TableAlias):
        if isinstance(node.relation, Table):
            return node.relation.name
        return node.alias
    return ""
