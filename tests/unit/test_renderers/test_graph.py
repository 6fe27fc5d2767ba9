from sqlbee import new_select, new_update
from sqlbee.nodes import Table, WindowDefinition, count
from sqlbee.renderers import GraphRenderer, PluginProvenance
from sqlbee.renderers.graph import COLOR_COMPARISON, COLOR_TABLE, escape_label


def test_nodes_and_edges(users: Table) -> None:
    """Nodes are numbered in visit order and edges carry the clause label."""
    core = new_select(users).select(users["id"]).where(users["id"].eq(1)).transformed()
    graph = GraphRenderer()

    root = core.render(graph)

    assert root == "n0"
    assert [node.label for node in graph.nodes] == [
        "SelectCore",
        "Table\\nusers",
        "Attribute\\nusers.id",
        "Comparison\\n=",
        "Attribute\\nusers.id",
        "Literal\\n1",
    ]
    assert [(edge.source, edge.target, edge.label) for edge in graph.edges] == [
        ("n0", "n1", "FROM"),
        ("n0", "n2", "SELECT[0]"),
        ("n0", "n3", "WHERE[0]"),
        ("n3", "n4", "LEFT"),
        ("n3", "n5", "RIGHT"),
    ]
    assert graph.nodes[1].color == COLOR_TABLE
    assert graph.nodes[3].color == COLOR_COMPARISON


def test_to_dot_output(users: Table) -> None:
    graph = GraphRenderer()
    users.render(graph)

    dot = graph.to_dot()

    lines = dot.splitlines()
    assert lines[0] == "digraph AST {"
    assert lines[1] == "  rankdir=TB;"
    assert '  n0 [label="Table\\nusers", fillcolor="#6CA6CD"];' in lines
    assert lines[-1] == "}"
    assert dot.endswith("}\n")


def test_join_and_aggregate_labels(users: Table, posts: Table) -> None:
    core = (
        new_select(users)
        .select(count())
        .outer_join(posts)
        .on(posts["author_id"].eq(users["id"]))
        .transformed()
    )
    graph = GraphRenderer()
    core.render(graph)

    labels = [node.label for node in graph.nodes]
    assert "Join\\nLEFT OUTER JOIN" in labels
    assert "COUNT" in labels
    assert "*" in labels


def test_provenance_clusters_plugin_conditions(users: Table) -> None:
    """Nodes created for an attributed WHERE item are drawn inside a dashed cluster."""
    core = new_select(users).where(users["id"].eq(1), users["deleted_at"].is_null()).transformed()
    provenance = PluginProvenance()
    provenance.add_where("soft_delete", "#FF0000", 1)
    graph = GraphRenderer(provenance)

    core.render(graph)
    dot = graph.to_dot()

    assert len(graph.clusters) == 1
    cluster = graph.clusters[0]
    assert cluster.name == "soft_delete"
    assert cluster.node_ids == ["n5", "n6"]
    assert '  subgraph "cluster_0_soft_delete" {' in dot
    assert '    label="soft_delete";' in dot
    assert "    style=dashed;" in dot
    assert '    color="#FF0000";' in dot
    assert '    n5 [label="Unary\\nIS NULL", fillcolor="#FFB347"];' in dot
    assert '  n5 [label=' not in dot


def test_provenance_lookup() -> None:
    provenance = PluginProvenance()
    provenance.add_where("tenant", "#00FF00", 0)
    provenance.add_join("policy", "#0000FF", 0)

    assert len(provenance) == 2
    assert provenance.plugin_for("where", 0) == ("tenant", "#00FF00")
    assert provenance.plugin_for("join", 0) == ("policy", "#0000FF")
    assert provenance.plugin_for("where", 1) is None


def test_unattributed_render_has_no_clusters(users: Table) -> None:
    graph = GraphRenderer(PluginProvenance())
    new_update(users).set(users["a"], 1).where(users["id"].eq(2)).transformed().render(graph)
    assert graph.clusters == []
    assert graph.nodes[0].label == "UpdateStatement"


def test_escape_label() -> None:
    assert escape_label('say "hi"') == 'say \\"hi\\"'
    assert escape_label("a\\nb") == "a\\nb"


def test_builder_to_dot(users: Table) -> None:
    dot = new_select(users).where(users["name"].eq('x"y')).to_dot()
    assert dot.startswith("digraph AST {\n")
    assert 'label="Literal\\nx\\"y"' in dot
    assert '[label="WHERE[0]"]' in dot


def test_cluster_ids_are_quoted(users: Table) -> None:
    """Plugin names with spaces, dashes or quotes still give a valid subgraph id."""
    core = new_select(users).where(users["id"].eq(1)).transformed()
    provenance = PluginProvenance()
    provenance.add_where('row-level "policy"', "#0000FF", 0)
    graph = GraphRenderer(provenance)

    core.render(graph)
    dot = graph.to_dot()

    assert '  subgraph "cluster_0_row-level \\"policy\\"" {' in dot
    assert '    label="row-level \\"policy\\"";' in dot


def test_unnamed_window_definitions(users: Table) -> None:
    core = new_select(users).transformed()
    core.windows.append(WindowDefinition(order_by=[users["id"].asc()]))
    core.windows.append(WindowDefinition(name=None))  # type: ignore[arg-type]
    graph = GraphRenderer()

    core.render(graph)

    labels = [node.label for node in graph.nodes]
    assert labels.count("WINDOW") == 2
    assert '[label="WINDOW[1]"]' in graph.to_dot()
