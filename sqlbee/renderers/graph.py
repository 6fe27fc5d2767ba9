"""Graphviz rendering of the AST.

:class:`GraphRenderer` walks a tree the same way the SQL renderers do, but instead
of SQL it accumulates labelled, coloured boxes and labelled edges, emitted by
:meth:`GraphRenderer.to_dot` as a ``digraph``. A :class:`PluginProvenance` maps
WHERE and JOIN indexes to the transformer that added them; while walking, the
nodes created for an attributed item are moved into a dashed cluster named after
that transformer.
"""

from typing import TYPE_CHECKING, Final, NamedTuple, Optional

from sqlbee.nodes import (
    ComparisonOp,
    FrameType,
    JoinType,
    LockMode,
    NullsOrder,
    OnConflictAction,
    OrderDirection,
    UnaryOp,
    relation_name,
)
from sqlbee.renderers._base import NodeVisitor
from sqlbee.renderers._tokens import (
    AGGREGATE_TOKENS,
    COMPARISON_TOKENS,
    EXTRACT_TOKENS,
    GROUPING_SET_TOKENS,
    INFIX_TOKENS,
    LOCK_TOKENS,
    SET_OPERATION_TOKENS,
    WINDOW_FUNCTION_TOKENS,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlbee.nodes import (
        CTE,
        Aggregate,
        Alias,
        And,
        Assignment,
        Attribute,
        Between,
        BindParam,
        Case,
        Casted,
        Comparison,
        DeleteStatement,
        Exists,
        Extract,
        Grouping,
        GroupingSet,
        In,
        Infix,
        InsertStatement,
        Join,
        Literal,
        MaskedValue,
        NamedFunction,
        Node,
        Not,
        OnConflict,
        Or,
        Ordering,
        Over,
        RawFragment,
        SelectCore,
        SetOperation,
        Star,
        Table,
        TableAlias,
        Unary,
        UnaryMath,
        UpdateStatement,
        WindowDefinition,
        WindowFunction,
    )

__all__ = ("GraphEdge", "GraphNode", "GraphRenderer", "PluginCluster", "PluginProvenance")

COLOR_TABLE: Final = "#6CA6CD"
COLOR_ATTRIBUTE: Final = "#B0D4E8"
COLOR_COMPARISON: Final = "#FFB347"
COLOR_LOGICAL: Final = "#FFEB80"
COLOR_LITERAL: Final = "#D3D3D3"
COLOR_JOIN: Final = "#77DD77"
COLOR_ORDERING: Final = "#CDA0E0"
COLOR_ASSIGNMENT: Final = "#FF6961"
COLOR_ARITHMETIC: Final = "#98FB98"
COLOR_FUNCTION: Final = "#87CEEB"

JOIN_LABELS: Final[dict[JoinType, str]] = {
    JoinType.INNER: "INNER JOIN",
    JoinType.LEFT_OUTER: "LEFT OUTER JOIN",
    JoinType.RIGHT_OUTER: "RIGHT OUTER JOIN",
    JoinType.FULL_OUTER: "FULL OUTER JOIN",
    JoinType.CROSS: "CROSS JOIN",
    JoinType.STRING: "STRING JOIN",
}

COMPARISON_LABELS: Final[dict[ComparisonOp, str]] = {
    **COMPARISON_TOKENS,
    ComparisonOp.CASE_SENSITIVE_EQ: "CASE = (sensitive)",
    ComparisonOp.CASE_INSENSITIVE_EQ: "CASE = (insensitive)",
}

WHERE_CLAUSE: Final = "where"
JOIN_CLAUSE: Final = "join"


class GraphNode(NamedTuple):
    id: str
    label: str
    color: str


class GraphEdge(NamedTuple):
    source: str
    target: str
    label: str


class PluginCluster(NamedTuple):
    name: str
    color: str
    node_ids: "list[str]"


class _ProvenanceEntry(NamedTuple):
    plugin: str
    color: str
    index: int
    clause: str


class PluginProvenance:
    """Attribution of WHERE and JOIN items to the transformers that added them."""

    def __init__(self) -> None:
        self._entries: list[_ProvenanceEntry] = []

    def add_where(self, plugin: str, color: str, index: int) -> None:
        self._entries.append(_ProvenanceEntry(plugin, color, index, WHERE_CLAUSE))

    def add_join(self, plugin: str, color: str, index: int) -> None:
        self._entries.append(_ProvenanceEntry(plugin, color, index, JOIN_CLAUSE))

    def plugin_for(self, clause: str, index: int) -> Optional[tuple[str, str]]:
        """Return ``(plugin, color)`` for the first entry owning ``clause[index]``."""
        for entry in self._entries:
            if entry.clause == clause and entry.index == index:
                return entry.plugin, entry.color
        return None

    def __len__(self) -> int:
        return len(self._entries)


def escape_label(text: str) -> str:
    """Escape double quotes; ``\\n`` sequences are DOT line breaks and are kept."""
    return text.replace('"', '\\"')


class GraphRenderer(NodeVisitor):
    """Collects a Graphviz graph of the visited tree.

    Every ``visit_*`` method adds the node for its argument, connects it to the
    current parent with the current edge label and returns the new node id.

    Args:
        provenance: Optional attribution of WHERE and JOIN items to plugins.
    """

    def __init__(self, provenance: Optional[PluginProvenance] = None) -> None:
        self.provenance = provenance
        self.nodes: list[GraphNode] = []
        self.edges: list[GraphEdge] = []
        self.clusters: list[PluginCluster] = []
        self._next_id = 0
        self._parent_id = ""
        self._edge_label = ""

    def set_provenance(self, provenance: Optional[PluginProvenance]) -> None:
        self.provenance = provenance

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def node_ids_since(self, start: int) -> list[str]:
        """Ids of the nodes added at or after position ``start``."""
        return [node.id for node in self.nodes[start:]]

    def add_node(self, label: str, color: str) -> str:
        node_id = f"n{self._next_id}"
        self._next_id += 1
        self.nodes.append(GraphNode(node_id, label, color))
        return node_id

    def add_edge(self, source: str, target: str, label: str = "") -> None:
        self.edges.append(GraphEdge(source, target, label))

    def add_plugin_cluster(self, name: str, color: str, node_ids: "Sequence[str]") -> None:
        if node_ids:
            self.clusters.append(PluginCluster(name, color, list(node_ids)))

    def _node(self, label: str, color: str) -> str:
        node_id = self.add_node(label, color)
        if self._parent_id:
            self.add_edge(self._parent_id, node_id, self._edge_label)
        return node_id

    def _child(self, parent_id: str, label: str, child: "Node") -> str:
        saved_parent, saved_label = self._parent_id, self._edge_label
        self._parent_id, self._edge_label = parent_id, label
        try:
            return str(child.render(self))
        finally:
            self._parent_id, self._edge_label = saved_parent, saved_label

    def _children(self, parent_id: str, prefix: str, items: "Sequence[Node]") -> None:
        for index, item in enumerate(items):
            self._child(parent_id, f"{prefix}[{index}]", item)

    def _attributed(
        self,
        parent_id: str,
        prefix: str,
        clause: str,
        items: "Sequence[Node]",
        clusters: "dict[str, tuple[str, list[str]]]",
    ) -> None:
        for index, item in enumerate(items):
            snapshot = self.node_count
            self._child(parent_id, f"{prefix}[{index}]", item)
            if self.provenance is None:
                continue
            owner = self.provenance.plugin_for(clause, index)
            if owner is None:
                continue
            plugin, color = owner
            clusters.setdefault(plugin, (color, []))[1].extend(self.node_ids_since(snapshot))

    def _flush_clusters(self, clusters: "dict[str, tuple[str, list[str]]]") -> None:
        for name, (color, node_ids) in clusters.items():
            self.add_plugin_cluster(name, color, node_ids)

    def to_dot(self) -> str:
        """Return the accumulated graph as Graphviz ``digraph`` text."""
        lines = [
            "digraph AST {",
            "  rankdir=TB;",
            '  node [shape=box, style=filled, fontname="Helvetica"];',
            '  edge [fontname="Helvetica", fontsize=10];',
        ]
        clustered = {node_id for cluster in self.clusters for node_id in cluster.node_ids}
        by_id = {node.id: node for node in self.nodes}
        lines.extend(
            f'  {node.id} [label="{escape_label(node.label)}", fillcolor="{node.color}"];'
            for node in self.nodes
            if node.id not in clustered
        )
        for index, cluster in enumerate(self.clusters):
            name = escape_label(cluster.name)
            lines.append(f'  subgraph "cluster_{index}_{name}" {{')
            lines.append(f'    label="{name}";')
            lines.append("    style=dashed;")
            lines.append(f'    color="{cluster.color}";')
            lines.append('    fontname="Helvetica";')
            for node_id in cluster.node_ids:
                node = by_id.get(node_id)
                if node is not None:
                    lines.append(f'    {node.id} [label="{escape_label(node.label)}", fillcolor="{node.color}"];')
            lines.append("  }")
        for edge in self.edges:
            if edge.label:
                lines.append(f'  {edge.source} -> {edge.target} [label="{edge.label}"];')
            else:
                lines.append(f"  {edge.source} -> {edge.target};")
        lines.append("}")
        return "\n".join(lines) + "\n"

    # Relations and leaves

    def visit_table(self, node: "Table") -> str:
        return self._node("Table\\n" + node.name, COLOR_TABLE)

    def visit_table_alias(self, node: "TableAlias") -> str:
        node_id = self._node("TableAlias\\n" + node.alias, COLOR_TABLE)
        self._child(node_id, "RELATION", node.relation)
        return node_id

    def visit_attribute(self, node: "Attribute") -> str:
        qualifier = relation_name(node.relation)
        label = "Attribute\\n" + (qualifier + "." if qualifier else "") + node.name
        return self._node(label, COLOR_ATTRIBUTE)

    def visit_literal(self, node: "Literal") -> str:
        return self._node(f"Literal\\n{node.value}", COLOR_LITERAL)

    def visit_star(self, node: "Star") -> str:
        label = "Star\\n" + (node.table.name + ".*" if node.table is not None else "*")
        return self._node(label, COLOR_ATTRIBUTE)

    def visit_raw_fragment(self, node: "RawFragment") -> str:
        return self._node("SqlLiteral\\n" + node.raw, COLOR_LITERAL)

    def visit_masked_value(self, node: "MaskedValue") -> str:
        return self._node(f"MaskedValue\\n{node.value}", COLOR_LITERAL)

    def visit_bind_param(self, node: "BindParam") -> str:
        return self._node(f"BindParam\\n{node.value}", COLOR_LITERAL)

    def visit_casted(self, node: "Casted") -> str:
        return self._node(f"Casted\\n{node.value} ({node.type_name})", COLOR_LITERAL)

    # Predicates

    def visit_comparison(self, node: "Comparison") -> str:
        node_id = self._node("Comparison\\n" + COMPARISON_LABELS[node.op], COLOR_COMPARISON)
        self._child(node_id, "LEFT", node.left)
        self._child(node_id, "RIGHT", node.right)
        return node_id

    def visit_unary(self, node: "Unary") -> str:
        label = "Unary\\nIS NULL" if node.op is UnaryOp.IS_NULL else "Unary\\nIS NOT NULL"
        node_id = self._node(label, COLOR_COMPARISON)
        self._child(node_id, "EXPR", node.expr)
        return node_id

    def visit_and(self, node: "And") -> str:
        node_id = self._node("AND", COLOR_LOGICAL)
        self._child(node_id, "LEFT", node.left)
        self._child(node_id, "RIGHT", node.right)
        return node_id

    def visit_or(self, node: "Or") -> str:
        node_id = self._node("OR", COLOR_LOGICAL)
        self._child(node_id, "LEFT", node.left)
        self._child(node_id, "RIGHT", node.right)
        return node_id

    def visit_not(self, node: "Not") -> str:
        node_id = self._node("NOT", COLOR_LOGICAL)
        self._child(node_id, "EXPR", node.expr)
        return node_id

    def visit_grouping(self, node: "Grouping") -> str:
        node_id = self._node("Grouping\\n( )", COLOR_LOGICAL)
        self._child(node_id, "EXPR", node.expr)
        return node_id

    def visit_in(self, node: "In") -> str:
        node_id = self._node("NOT IN" if node.negated else "IN", COLOR_COMPARISON)
        self._child(node_id, "EXPR", node.expr)
        self._children(node_id, "VAL", node.values)
        return node_id

    def visit_between(self, node: "Between") -> str:
        node_id = self._node("NOT BETWEEN" if node.negated else "BETWEEN", COLOR_COMPARISON)
        self._child(node_id, "EXPR", node.expr)
        self._child(node_id, "LOW", node.low)
        self._child(node_id, "HIGH", node.high)
        return node_id

    def visit_exists(self, node: "Exists") -> str:
        node_id = self._node("NOT EXISTS" if node.negated else "EXISTS", COLOR_COMPARISON)
        self._child(node_id, "SUBQUERY", node.subquery)
        return node_id

    def visit_ordering(self, node: "Ordering") -> str:
        label = "ASC" if node.direction is OrderDirection.ASC else "DESC"
        if node.nulls is NullsOrder.FIRST:
            label += "\\nNULLS FIRST"
        elif node.nulls is NullsOrder.LAST:
            label += "\\nNULLS LAST"
        node_id = self._node("Order\\n" + label, COLOR_ORDERING)
        self._child(node_id, "EXPR", node.expr)
        return node_id

    # Arithmetic and functions

    def visit_infix(self, node: "Infix") -> str:
        node_id = self._node("Infix\\n" + INFIX_TOKENS[node.op], COLOR_ARITHMETIC)
        self._child(node_id, "LEFT", node.left)
        self._child(node_id, "RIGHT", node.right)
        return node_id

    def visit_unary_math(self, node: "UnaryMath") -> str:
        node_id = self._node("UnaryMath\\n~", COLOR_ARITHMETIC)
        self._child(node_id, "EXPR", node.expr)
        return node_id

    def visit_aggregate(self, node: "Aggregate") -> str:
        label = AGGREGATE_TOKENS[node.func] + ("\\nDISTINCT" if node.distinct else "")
        node_id = self._node(label, COLOR_FUNCTION)
        if node.expr is not None:
            self._child(node_id, "EXPR", node.expr)
        else:
            self.add_edge(node_id, self.add_node("*", COLOR_ATTRIBUTE), "EXPR")
        if node.filter is not None:
            self._child(node_id, "FILTER", node.filter)
        return node_id

    def visit_extract(self, node: "Extract") -> str:
        node_id = self._node("EXTRACT\\n" + EXTRACT_TOKENS[node.field], COLOR_FUNCTION)
        self._child(node_id, "FROM", node.expr)
        return node_id

    def visit_window_function(self, node: "WindowFunction") -> str:
        node_id = self._node(WINDOW_FUNCTION_TOKENS[node.func], COLOR_FUNCTION)
        self._children(node_id, "ARG", node.args)
        return node_id

    def _window_parts(self, node_id: str, window: "WindowDefinition") -> None:
        self._children(node_id, "PARTITION", window.partition_by)
        self._children(node_id, "ORDER", window.order_by)
        if window.frame is not None:
            label = "RANGE" if window.frame.type is FrameType.RANGE else "ROWS"
            self.add_edge(node_id, self.add_node("Frame\\n" + label, COLOR_FUNCTION), "FRAME")

    def visit_over(self, node: "Over") -> str:
        label = "OVER\\n" + node.window_name if node.window_name else "OVER"
        node_id = self._node(label, COLOR_FUNCTION)
        self._child(node_id, "EXPR", node.expr)
        if node.window is not None:
            self._window_parts(node_id, node.window)
        return node_id

    def visit_named_function(self, node: "NamedFunction") -> str:
        node_id = self._node(node.name + ("\\nDISTINCT" if node.distinct else ""), COLOR_FUNCTION)
        self._children(node_id, "ARG", node.args)
        return node_id

    def visit_case(self, node: "Case") -> str:
        node_id = self._node("CASE", COLOR_LOGICAL)
        if node.operand is not None:
            self._child(node_id, "OPERAND", node.operand)
        for index, (condition, result) in enumerate(node.whens):
            self._child(node_id, f"WHEN[{index}]", condition)
            self._child(node_id, f"THEN[{index}]", result)
        if node.default is not None:
            self._child(node_id, "ELSE", node.default)
        return node_id

    def visit_alias(self, node: "Alias") -> str:
        node_id = self._node("Alias\\n" + node.name, COLOR_ATTRIBUTE)
        self._child(node_id, "EXPR", node.expr)
        return node_id

    def visit_grouping_set(self, node: "GroupingSet") -> str:
        node_id = self._node(GROUPING_SET_TOKENS[node.kind], COLOR_FUNCTION)
        if node.sets:
            for set_index, columns in enumerate(node.sets):
                for column_index, column in enumerate(columns):
                    self._child(node_id, f"SET[{set_index}][{column_index}]", column)
        else:
            self._children(node_id, "COL", node.columns)
        return node_id

    # Clauses

    def visit_join(self, node: "Join") -> str:
        label = JOIN_LABELS[node.type] + ("\\nLATERAL" if node.lateral else "")
        node_id = self._node("Join\\n" + label, COLOR_JOIN)
        self._child(node_id, "RIGHT", node.right)
        if node.on is not None:
            self._child(node_id, "ON", node.on)
        return node_id

    def visit_cte(self, node: "CTE") -> str:
        label = "CTE\\n" + node.name + ("\\n(RECURSIVE)" if node.recursive else "")
        node_id = self._node(label, COLOR_TABLE)
        self._child(node_id, "QUERY", node.query)
        return node_id

    def visit_set_operation(self, node: "SetOperation") -> str:
        node_id = self._node(SET_OPERATION_TOKENS[node.type], COLOR_LOGICAL)
        self._child(node_id, "LEFT", node.left)
        self._child(node_id, "RIGHT", node.right)
        self._children(node_id, "ORDER", node.orders)
        if node.limit_value is not None:
            self._child(node_id, "LIMIT", node.limit_value)
        if node.offset_value is not None:
            self._child(node_id, "OFFSET", node.offset_value)
        return node_id

    def visit_assignment(self, node: "Assignment") -> str:
        node_id = self._node("Assignment\\n=", COLOR_ASSIGNMENT)
        self._child(node_id, "COLUMN", node.left)
        self._child(node_id, "VALUE", node.right)
        return node_id

    def visit_on_conflict(self, node: "OnConflict") -> str:
        action = "DO UPDATE" if node.action is OnConflictAction.DO_UPDATE else "DO NOTHING"
        node_id = self._node("OnConflict\\n" + action, COLOR_ASSIGNMENT)
        self._children(node_id, "TARGET", node.columns)
        self._children(node_id, "SET", node.assignments)
        self._children(node_id, "WHERE", node.wheres)
        return node_id

    # Statements

    def visit_select_core(self, node: "SelectCore") -> str:
        node_id = self._node("SelectCore", COLOR_TABLE)
        self._children(node_id, "CTE", node.ctes)
        if node.comment:
            self.add_edge(node_id, self.add_node("Comment\\n" + node.comment, COLOR_LITERAL), "COMMENT")
        for index, hint in enumerate(node.hints):
            self.add_edge(node_id, self.add_node("Hint\\n" + hint, COLOR_LITERAL), f"HINT[{index}]")
        if node.distinct_on:
            distinct_id = self.add_node("DISTINCT ON", COLOR_LOGICAL)
            self.add_edge(node_id, distinct_id, "DISTINCT ON")
            self._children(distinct_id, "COL", node.distinct_on)
        elif node.distinct:
            self.add_edge(node_id, self.add_node("DISTINCT", COLOR_LOGICAL), "DISTINCT")
        if node.from_ is not None:
            self._child(node_id, "FROM", node.from_)
        self._children(node_id, "SELECT", node.projections)
        clusters: dict[str, tuple[str, list[str]]] = {}
        self._attributed(node_id, "JOIN", JOIN_CLAUSE, node.joins, clusters)
        self._attributed(node_id, "WHERE", WHERE_CLAUSE, node.wheres, clusters)
        self._flush_clusters(clusters)
        self._children(node_id, "GROUP", node.groups)
        self._children(node_id, "HAVING", node.havings)
        for index, window in enumerate(node.windows):
            label = "WINDOW\\n" + window.name if window.name else "WINDOW"
            window_id = self.add_node(label, COLOR_FUNCTION)
            self.add_edge(node_id, window_id, f"WINDOW[{index}]")
            self._window_parts(window_id, window)
        self._children(node_id, "ORDER", node.orders)
        if node.limit is not None:
            self._child(node_id, "LIMIT", node.limit)
        if node.offset is not None:
            self._child(node_id, "OFFSET", node.offset)
        if node.lock is not LockMode.NONE:
            label = LOCK_TOKENS[node.lock] + ("\\nSKIP LOCKED" if node.skip_locked else "")
            self.add_edge(node_id, self.add_node(label, COLOR_LOGICAL), "LOCK")
        return node_id

    def visit_insert_statement(self, node: "InsertStatement") -> str:
        node_id = self._node("InsertStatement", COLOR_ASSIGNMENT)
        self._child(node_id, "INTO", node.into)
        self._children(node_id, "COLUMN", node.columns)
        for row_index, row in enumerate(node.values):
            for value_index, value in enumerate(row):
                self._child(node_id, f"VALUES[{row_index}][{value_index}]", value)
        if node.select is not None:
            self._child(node_id, "SELECT", node.select)
        self._children(node_id, "RETURNING", node.returning)
        if node.on_conflict is not None:
            self._child(node_id, "ON_CONFLICT", node.on_conflict)
        return node_id

    def visit_update_statement(self, node: "UpdateStatement") -> str:
        node_id = self._node("UpdateStatement", COLOR_ASSIGNMENT)
        self._child(node_id, "TABLE", node.table)
        self._children(node_id, "SET", node.assignments)
        clusters: dict[str, tuple[str, list[str]]] = {}
        self._attributed(node_id, "WHERE", WHERE_CLAUSE, node.wheres, clusters)
        self._flush_clusters(clusters)
        self._children(node_id, "RETURNING", node.returning)
        return node_id

    def visit_delete_statement(self, node: "DeleteStatement") -> str:
        node_id = self._node("DeleteStatement", COLOR_ASSIGNMENT)
        self._child(node_id, "FROM", node.from_)
        clusters: dict[str, tuple[str, list[str]]] = {}
        self._attributed(node_id, "WHERE", WHERE_CLAUSE, node.wheres, clusters)
        self._flush_clusters(clusters)
        self._children(node_id, "RETURNING", node.returning)
        return node_id
