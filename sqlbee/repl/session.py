"""Interactive query building session.

A :class:`Session` holds the registered tables, the statement under construction and
the enabled plugins. :meth:`Session.execute` runs one command line; output goes to
``out``, errors are raised as :class:`~sqlbee.exceptions.CommandError` or
:class:`~sqlbee.exceptions.SQLParsingError` for the caller to report.
"""

import logging
import sys
from enum import Enum
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Final, NamedTuple, Optional, TextIO, Union

from sqlbee.builder import DeleteQuery, InsertQuery, SelectQuery, UpdateQuery
from sqlbee.exceptions import CommandError, SQLParsingError
from sqlbee.nodes import (
    CTE,
    Assignment,
    JoinType,
    LockMode,
    Node,
    SetOperation,
    SetOperationType,
    Star,
    Table,
    TableAlias,
)
from sqlbee.renderers import DIALECTS, FormattingRenderer, GraphRenderer, PluginProvenance, get_renderer
from sqlbee.renderers._tokens import JOIN_TOKENS, LOCK_TOKENS, SET_OPERATION_TOKENS
from sqlbee.repl.parser import ExpressionParser, parse_value, split_top_level_commas
from sqlbee.repl.plugins import PluginEntry, PluginRegistry, configure_soft_delete, configure_tenant
from sqlbee.repl.summary import alias_source_name, node_summary, ordering_summary
from sqlbee.transformers import TransformerPipeline
from sqlbee.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from sqlbee.builder import QueryBuilder
    from sqlbee.nodes import Join, SelectCore, WindowDefinition
    from sqlbee.renderers import NodeVisitor, SQLRenderer

__all__ = (
    "EDIT_CLAUSES",
    "EDIT_LABELS",
    "HELP_TEXT",
    "NO_QUERY",
    "PLUGIN_CONFIGURERS",
    "Command",
    "EditEntry",
    "Mode",
    "Session",
)

logger = get_logger("repl")

NO_QUERY: Final = "no query defined (use 'from <table>' first)"

PLUGIN_CONFIGURERS: "Final[dict[str, Callable[[str], tuple[PluginEntry, str]]]]" = {
    "softdelete": configure_soft_delete,
    "tenant": configure_tenant,
}

EDIT_CLAUSES: Final = ("select", "where", "join", "order", "group", "having", "window")
EDIT_LABELS: Final = {
    "select": "SELECT",
    "where": "WHERE",
    "join": "JOIN",
    "order": "ORDER BY",
    "group": "GROUP BY",
    "having": "HAVING",
    "window": "WINDOW",
}
EDIT_USAGE: Final = "usage: edit [clause] | edit [clause] remove <n> | edit [clause] <n> <new value>"
REMOVE_VERBS: Final = frozenset({"remove", "rm", "delete", "del"})
GROUPING_SET_PREFIXES: Final = ("cube(", "rollup(", "grouping sets(")

HELP_TEXT: Final = """
  Query Building:
    from <table>              Start a new query (sets FROM)
    select <cols>             Set projections (table.col, *, table.*, expressions)
    project <cols>            Alias for select
    distinct                  Enable DISTINCT modifier
    distinct on <cols>        Enable DISTINCT ON (PostgreSQL, comma-separated)
    where <condition>         Add a WHERE condition (and / or / not supported)
    group <expr,...>          Add GROUP BY (comma-separated)
    group cube(col,...)       GROUP BY with CUBE
    group rollup(col,...)     GROUP BY with ROLLUP
    group grouping sets(...)  GROUP BY with GROUPING SETS
    having <condition>        Add a HAVING condition
    window <name> [partition by ..] [order by ..] [rows|range ..]  Define a named window
    order <expr> [asc|desc] [nulls first|last]  Add ORDER BY
    limit <n>                 Set LIMIT
    offset <n>                Set OFFSET
    take <n>                  Alias for limit
    comment <text>            Add a SQL comment (/* text */)
    hint <text>               Add an optimizer hint (/*+ text */)

  INSERT Builder:
    insert into <table>       Start an INSERT statement
    columns <col1>, <col2>    Set column list
    values <val1>, <val2>     Add a row of values (repeatable)
    on conflict (<cols>) do nothing    UPSERT: DO NOTHING
    on conflict (<cols>) do update set <col> = <val>, ...   UPSERT: DO UPDATE
    returning <cols>          Set RETURNING clause

  UPDATE Builder:
    update <table>            Start an UPDATE statement
    set <col> = <expr>        Add a SET assignment (repeatable)
    where <condition>         Add WHERE (shared with SELECT)
    returning <cols>          Set RETURNING clause

  DELETE Builder:
    delete from <table>       Start a DELETE statement
    where <condition>         Add WHERE (shared with SELECT)
    returning <cols>          Set RETURNING clause

  Joins:
    join <t> on <cond>        Add an INNER JOIN
    left join <t> on <cond>   Add a LEFT OUTER JOIN
    right join <t> on <cond>  Add a RIGHT OUTER JOIN
    full join <t> on <cond>   Add a FULL OUTER JOIN
    cross join <table>        Add a CROSS JOIN
    lateral join <t> on <c>   Add a LATERAL INNER JOIN (PostgreSQL)
    lateral left join <t> on <c>  Add a LATERAL LEFT JOIN (PostgreSQL)
    raw join <SQL>            Add a raw SQL join fragment

  Locking:
    for update                Add FOR UPDATE clause
    for share                 Add FOR SHARE clause
    for no key update         Add FOR NO KEY UPDATE clause
    for key share             Add FOR KEY SHARE clause
    skip locked               Add SKIP LOCKED modifier

  Set Operations:
    union                     Push current query, start UNION
    union all                 Push current query, start UNION ALL
    intersect                 Push current query, start INTERSECT
    intersect all             Push current query, start INTERSECT ALL
    except                    Push current query, start EXCEPT
    except all                Push current query, start EXCEPT ALL

  CTEs (Common Table Expressions):
    with <name>               Push current query as CTE, start new query
    with recursive <name>     Push current query as recursive CTE

  Tables:
    table <name>              Register a table
    alias <table> <name>      Create a table alias
    tables                    List registered tables

  Output:
    sql                       Generate and display SQL
    pretty                    Display SQL laid out over multiple lines
    ast                       Show AST summary
    dot <filepath>            Export AST as Graphviz DOT file
    expr <expression>         Evaluate a standalone expression

  Configuration:
    engine <name>             Switch dialect (postgres, mysql, sqlite)
    parameterize              Toggle parameterized queries (alias: params)

  Plugins:
    plugin softdelete [col]                Enable soft-delete (default: deleted_at)
    plugin softdelete <col> on <tables..>  Soft-delete for specific tables
    plugin softdelete <t.col, ...>         Per-table soft-delete columns
    plugin tenant <value> [col] [on <tables..>]  Scope rows to one tenant (default: tenant_id)
    plugins                   List available plugins and status
    plugin off [name]         Disable one or all plugins

  Session:
    reset                     Clear the current query
    edit [clause]             List the entries of each clause (select, where, join, order,
                              group, having, window)
    edit [clause] remove <n>  Remove entry <n>
    edit [clause] <n> <value> Replace entry <n>
    help                      Show this help
    exit / quit               Exit the shell
"""


class Mode(Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Command(NamedTuple):
    """A command prefix and its handler.

    A prefix ending in a space takes arguments: the handler receives the rest of the
    line. Any other prefix must match the whole line.
    """

    prefix: str
    handler: "Callable[[str], None]"
    hidden: bool = False


class EditEntry(NamedTuple):
    """One entry of a SELECT clause, as listed by ``edit``."""

    clause: str
    index: int
    display: str


class Session:
    """State of one interactive shell.

    Args:
        engine: Initial dialect, one of :data:`~sqlbee.renderers.DIALECTS`.
        parameterize: Render values as bind parameters instead of inline literals.
        out: Stream command output is written to. Defaults to standard output.
    """

    def __init__(self, engine: str = "postgres", parameterize: bool = False, out: Optional[TextIO] = None) -> None:
        self.out = out if out is not None else sys.stdout
        self.parameterize = parameterize
        self.engine = engine.lower()
        self.renderer: SQLRenderer = get_renderer(self.engine, parameterize)
        self.tables: dict[str, Table] = {}
        self.aliases: dict[str, TableAlias] = {}
        self.parser = ExpressionParser(self.tables, self.aliases, dialect=self.engine)
        self.plugins = PluginRegistry()
        self.mode = Mode.SELECT
        self.query: Optional[SelectQuery] = None
        self.insert_query: Optional[InsertQuery] = None
        self.update_query: Optional[UpdateQuery] = None
        self.delete_query: Optional[DeleteQuery] = None
        self.set_ops: list[tuple[SetOperationType, SelectQuery]] = []
        self.ctes: list[tuple[str, SelectQuery, bool]] = []
        self.commands = self._build_commands()

    def _build_commands(self) -> "list[Command]":
        commands = [
            # Output and session
            Command("sql", self.cmd_sql),
            Command("tosql", self.cmd_sql, hidden=True),
            Command("pretty", self.cmd_pretty),
            Command("ast", self.cmd_ast),
            Command("dot ", self.cmd_dot),
            Command("dot", self.cmd_dot, hidden=True),
            Command("expr ", self.cmd_expr),
            Command("reset", self.cmd_reset),
            Command("tables", self.cmd_tables),
            Command("help", self.cmd_help),
            Command("edit ", self.cmd_edit),
            Command("edit", self.cmd_edit),
            # Tables
            Command("table ", self.cmd_table),
            Command("t ", self.cmd_table, hidden=True),
            Command("alias ", self.cmd_alias),
            # SELECT clauses
            Command("from ", self.cmd_from),
            Command("select ", self.cmd_select),
            Command("project ", self.cmd_select),
            Command("distinct on ", self.cmd_distinct_on),
            Command("distinct", self.cmd_distinct),
            Command("where ", self.cmd_where),
            Command("group ", self.cmd_group),
            Command("having ", self.cmd_having),
            Command("window ", self.cmd_window),
            Command("order ", self.cmd_order),
            Command("limit ", self.cmd_limit),
            Command("offset ", self.cmd_offset),
            Command("take ", self.cmd_limit),
            Command("comment ", self.cmd_comment),
            Command("hint ", self.cmd_hint),
            # Joins
            Command("join ", partial(self.cmd_join, join_type=JoinType.INNER)),
            Command("left join ", partial(self.cmd_join, join_type=JoinType.LEFT_OUTER)),
            Command("outer join ", partial(self.cmd_join, join_type=JoinType.LEFT_OUTER), hidden=True),
            Command("right join ", partial(self.cmd_join, join_type=JoinType.RIGHT_OUTER)),
            Command("full join ", partial(self.cmd_join, join_type=JoinType.FULL_OUTER)),
            Command("cross join ", self.cmd_cross_join),
            Command("lateral join ", partial(self.cmd_join, join_type=JoinType.INNER, lateral=True)),
            Command("lateral left join ", partial(self.cmd_join, join_type=JoinType.LEFT_OUTER, lateral=True)),
            Command("raw join ", self.cmd_raw_join),
            # Locking
            Command("for update", partial(self.cmd_lock, mode=LockMode.FOR_UPDATE)),
            Command("for share", partial(self.cmd_lock, mode=LockMode.FOR_SHARE)),
            Command("for no key update", partial(self.cmd_lock, mode=LockMode.FOR_NO_KEY_UPDATE)),
            Command("for key share", partial(self.cmd_lock, mode=LockMode.FOR_KEY_SHARE)),
            Command("skip locked", self.cmd_skip_locked),
            # Set operations and CTEs
            Command("union", partial(self.cmd_set_operation, kind=SetOperationType.UNION)),
            Command("union all", partial(self.cmd_set_operation, kind=SetOperationType.UNION_ALL)),
            Command("intersect", partial(self.cmd_set_operation, kind=SetOperationType.INTERSECT)),
            Command("intersect all", partial(self.cmd_set_operation, kind=SetOperationType.INTERSECT_ALL)),
            Command("except", partial(self.cmd_set_operation, kind=SetOperationType.EXCEPT)),
            Command("except all", partial(self.cmd_set_operation, kind=SetOperationType.EXCEPT_ALL)),
            Command("with ", partial(self.cmd_with, recursive=False)),
            Command("with recursive ", partial(self.cmd_with, recursive=True)),
            # DML
            Command("insert into ", self.cmd_insert_into),
            Command("columns ", self.cmd_columns),
            Command("values ", self.cmd_values),
            Command("on conflict ", self.cmd_on_conflict),
            Command("update ", self.cmd_update),
            Command("set ", self.cmd_set),
            Command("delete from ", self.cmd_delete_from),
            Command("returning ", self.cmd_returning),
            # Configuration and plugins
            Command("engine ", self.cmd_engine),
            Command("set_engine ", self.cmd_engine, hidden=True),
            Command("parameterize", self.cmd_parameterize),
            Command("params", self.cmd_parameterize, hidden=True),
            Command("plugin ", self.cmd_plugin),
            Command("plugins", self.cmd_plugins),
        ]
        return sorted(commands, key=lambda command: len(command.prefix), reverse=True)

    # Dispatch

    def execute(self, line: str) -> None:
        """Run one command line. Blank lines are ignored.

        Raises:
            CommandError: If the command is unknown or not valid in the current state.
            SQLParsingError: If an expression in the command cannot be parsed.
        """
        line = line.strip()
        if not line:
            return
        lowered = line.lower()
        for command in self.commands:
            if command.prefix.endswith(" "):
                if lowered.startswith(command.prefix):
                    log_with_context(logger, logging.DEBUG, "Executing command", command=command.prefix.strip())
                    command.handler(line[len(command.prefix) :])
                    return
            elif lowered == command.prefix:
                log_with_context(logger, logging.DEBUG, "Executing command", command=command.prefix)
                command.handler("")
                return
        msg = f"unknown command: {line.split()[0]} (type 'help' for commands)"
        raise CommandError(msg)

    def print(self, text: str = "") -> None:
        self.out.write(f"  {text}\n")

    def command_names(self) -> "list[str]":
        """Names of the commands listed in help, sorted."""
        return sorted({command.prefix.strip() for command in self.commands if not command.hidden})

    # State helpers

    def ensure_table(self, name: str) -> Table:
        """Return the registered table called ``name``, registering it first if needed."""
        table = self.tables.get(name)
        if table is None:
            table = self.tables[name] = Table(name)
        return table

    def resolve_table(self, name: str) -> "Union[Table, TableAlias]":
        if name in self.aliases:
            return self.aliases[name]
        return self.ensure_table(name)

    def set_mode(self, mode: Mode) -> None:
        """Switch statement kind, discarding every statement under construction."""
        self.mode = mode
        self.query = None
        self.insert_query = None
        self.update_query = None
        self.delete_query = None

    def set_engine(self, engine: str) -> None:
        self.engine = engine
        self.renderer = get_renderer(engine, self.parameterize)
        self.parser.dialect = engine

    def require_query(self) -> SelectQuery:
        if self.query is None:
            raise CommandError(NO_QUERY)
        return self.query

    def _attach_plugins(self, builder: "QueryBuilder[Any]") -> None:
        builder.transformers = self.plugins.create_transformers()

    def _refresh_plugins(self) -> None:
        """Re-attach the enabled plugins to every statement the session holds."""
        builders: list[QueryBuilder[Any]] = [query for _, query in self.set_ops]
        builders.extend(query for _, query, _ in self.ctes)
        builders.extend(
            builder
            for builder in (self.query, self.insert_query, self.update_query, self.delete_query)
            if builder is not None
        )
        for builder in builders:
            self._attach_plugins(builder)

    def _split(self, text: str) -> "list[str]":
        return split_top_level_commas(text, self.engine)

    def _columns(self, text: str) -> "list[Node]":
        return [self.parser.resolve_column(part.strip()) for part in self._split(text) if part.strip()]

    # SQL generation

    def select_statement(self) -> Node:
        """Assemble the transformed SELECT, with pushed CTEs and set operations.

        CTEs attach to the current query. Set operations chain left to right, the
        current query being the rightmost operand.
        """
        core = self.require_query().transformed()
        for name, query, recursive in self.ctes:
            core.ctes.append(CTE(name, query.transformed(), recursive=recursive))
        if not self.set_ops:
            return core
        operands = [query.transformed() for _, query in self.set_ops[1:]]
        operands.append(core)
        node: Node = self.set_ops[0][1].transformed()
        for (kind, _), right in zip(self.set_ops, operands):
            node = SetOperation(node, kind, right)
        return node

    def current_builder(self) -> "QueryBuilder[Any]":
        if self.mode is Mode.INSERT:
            if self.insert_query is None:
                msg = "no INSERT query defined"
                raise CommandError(msg)
            return self.insert_query
        if self.mode is Mode.UPDATE:
            if self.update_query is None:
                msg = "no UPDATE query defined"
                raise CommandError(msg)
            return self.update_query
        if self.mode is Mode.DELETE:
            if self.delete_query is None:
                msg = "no DELETE query defined"
                raise CommandError(msg)
            return self.delete_query
        return self.require_query()

    def generate_sql(self, pretty: bool = False) -> "tuple[str, Optional[list[Any]]]":
        """Render the statement under construction with the session renderer.

        Args:
            pretty: Lay the statement out over multiple lines.

        Raises:
            CommandError: If no statement has been started.
            SQLTransformationError: If an enabled plugin fails.

        Returns:
            The SQL text and its parameters, ``None`` when not parameterizing.
        """
        renderer: NodeVisitor = FormattingRenderer(self.renderer) if pretty else self.renderer
        if self.mode is not Mode.SELECT:
            return self.current_builder().to_sql(renderer)
        statement = self.select_statement()
        self.renderer.reset()
        sql = str(statement.render(renderer))
        return sql, self.renderer.params()

    def _print_sql(self, sql: str, params: "Optional[list[Any]]", terminator: str = ";") -> None:
        self.print(sql + terminator)
        if params:
            self.print(f"Params: {params!r}")

    # Output commands

    def cmd_sql(self, _: str) -> None:
        sql, params = self.generate_sql()
        self._print_sql(sql, params)

    def cmd_pretty(self, _: str) -> None:
        sql, params = self.generate_sql(pretty=True)
        self._print_sql(sql.replace("\n", "\n  "), params)

    def cmd_expr(self, args: str) -> None:
        try:
            node = self.parser.parse_full_expression(args)
        except SQLParsingError as e:
            msg = f"expr: {e}"
            raise SQLParsingError(msg) from e
        self.renderer.reset()
        sql = str(node.render(self.renderer))
        self._print_sql(sql, self.renderer.params(), terminator="")

    def cmd_ast(self, _: str) -> None:
        if self.mode is Mode.INSERT:
            self._ast_insert()
        elif self.mode is Mode.UPDATE:
            self._ast_update()
        elif self.mode is Mode.DELETE:
            self._ast_delete()
        else:
            self._ast_select(self.require_query().core)

    def _summaries(self, nodes: "list[Node]") -> str:
        return ", ".join(node_summary(node) for node in nodes)

    def _ast_select(self, core: "SelectCore") -> None:
        self.print(f"Engine: {self.engine}")
        for name, _, recursive in self.ctes:
            self.print(f"{'WITH RECURSIVE' if recursive else 'WITH'} {name}")
        for index, (kind, query) in enumerate(self.set_ops):
            source = node_summary(query.core.from_) if query.core.from_ is not None else "(none)"
            self.print(f"QUERY[{index}]: FROM {source} {SET_OPERATION_TOKENS[kind]}")
        if core.comment:
            self.print(f"COMMENT: {core.comment}")
        if core.hints:
            self.print(f"HINTS: {', '.join(core.hints)}")
        if core.from_ is not None:
            self.print(f"FROM:   {node_summary(core.from_)}")
        if core.distinct_on:
            self.print(f"DISTINCT ON: {self._summaries(core.distinct_on)}")
        elif core.distinct:
            self.print("DISTINCT: true")
        self.print(f"SELECT: {self._summaries(core.projections) if core.projections else '*'}")
        for index, join in enumerate(core.joins):
            label = JOIN_TOKENS[join.type] or "STRING JOIN"
            if join.lateral:
                label = f"LATERAL {label}"
            self.print(f"JOIN[{index}]: {label} {node_summary(join.right)}")
        if core.wheres:
            self.print(f"WHERE:  {len(core.wheres)} condition(s)")
        if core.groups:
            self.print(f"GROUP:  {self._summaries(core.groups)}")
        if core.havings:
            self.print(f"HAVING: {len(core.havings)} condition(s)")
        if core.windows:
            self.print(f"WINDOW: {', '.join(window.name for window in core.windows)}")
        if core.orders:
            self.print(f"ORDER:  {', '.join(ordering_summary(order) for order in core.orders)}")
        if core.limit is not None:
            self.print(f"LIMIT:  {node_summary(core.limit)}")
        if core.offset is not None:
            self.print(f"OFFSET: {node_summary(core.offset)}")
        if core.lock is not LockMode.NONE:
            lock = LOCK_TOKENS[core.lock]
            if core.skip_locked:
                lock += " SKIP LOCKED"
            self.print(f"LOCK:   {lock}")
        self._ast_footer()

    def _ast_footer(self) -> None:
        for entry in self.plugins:
            self.print(f"Plugin: {entry.name} ({entry.status})")
        if self.parameterize:
            self.print("Parameterize: on")

    def _ast_insert(self) -> None:
        stmt = self.current_builder().statement
        self.print(f"Engine: {self.engine}")
        self.print("Mode: INSERT")
        self.print(f"INTO:   {node_summary(stmt.into)}")
        if stmt.columns:
            self.print(f"COLUMNS: {self._summaries(stmt.columns)}")
        for index, row in enumerate(stmt.values):
            self.print(f"VALUES[{index}]: {self._summaries(row)}")
        if stmt.on_conflict is not None:
            self.print(f"ON CONFLICT: {stmt.on_conflict.action.name.replace('_', ' ')}")
        if stmt.returning:
            self.print(f"RETURNING: {self._summaries(stmt.returning)}")
        self._ast_footer()

    def _ast_update(self) -> None:
        stmt = self.current_builder().statement
        self.print(f"Engine: {self.engine}")
        self.print("Mode: UPDATE")
        self.print(f"TABLE:  {node_summary(stmt.table)}")
        for index, assignment in enumerate(stmt.assignments):
            self.print(f"SET[{index}]: {node_summary(assignment.left)} = {node_summary(assignment.right)}")
        if stmt.wheres:
            self.print(f"WHERE:  {len(stmt.wheres)} condition(s)")
        if stmt.returning:
            self.print(f"RETURNING: {self._summaries(stmt.returning)}")
        self._ast_footer()

    def _ast_delete(self) -> None:
        stmt = self.current_builder().statement
        self.print(f"Engine: {self.engine}")
        self.print("Mode: DELETE")
        self.print(f"FROM:   {node_summary(stmt.from_)}")
        if stmt.wheres:
            self.print(f"WHERE:  {len(stmt.wheres)} condition(s)")
        if stmt.returning:
            self.print(f"RETURNING: {self._summaries(stmt.returning)}")
        self._ast_footer()

    def dot_source(self) -> str:
        """Render the statement under construction as Graphviz source.

        For SELECT, plugins are applied one at a time so that the conditions and joins
        each one adds are drawn in the plugin's color.
        """
        if self.mode is not Mode.SELECT:
            return self.current_builder().to_dot()
        core = self.require_query().clone_core()
        provenance = PluginProvenance()
        for entry in self.plugins:
            where_count, join_count = len(core.wheres), len(core.joins)
            core = TransformerPipeline([entry.factory()]).run(core)
            for index in range(where_count, len(core.wheres)):
                provenance.add_where(entry.name, entry.color, index)
            for index in range(join_count, len(core.joins)):
                provenance.add_join(entry.name, entry.color, index)
        graph = GraphRenderer(provenance)
        core.render(graph)
        return graph.to_dot()

    def cmd_dot(self, args: str) -> None:
        path = args.strip()
        if not path:
            msg = "usage: dot <filepath>"
            raise CommandError(msg)
        source = self.dot_source()
        try:
            Path(path).write_text(source, encoding="utf-8")
        except OSError as e:
            msg = f"failed to write DOT file: {e}"
            raise CommandError(msg) from e
        self.print(f"Wrote DOT to {path}")

    def cmd_reset(self, _: str) -> None:
        self.set_mode(Mode.SELECT)
        self.set_ops = []
        self.ctes = []
        self.print("Query cleared")

    def cmd_tables(self, _: str) -> None:
        if not self.tables and not self.aliases:
            self.print("No tables registered")
            return
        for name in self.tables:
            self.print(f"table: {name}")
        for name, alias in self.aliases.items():
            self.print(f"alias: {name} -> {alias_source_name(alias)}")

    def cmd_help(self, _: str) -> None:
        self.out.write(HELP_TEXT)

    # Editing

    @staticmethod
    def _clause_items(core: "SelectCore") -> "dict[str, list[Any]]":
        return {
            "select": core.projections,
            "where": core.wheres,
            "join": core.joins,
            "order": core.orders,
            "group": core.groups,
            "having": core.havings,
            "window": core.windows,
        }

    def edit_entries(self, clause: Optional[str] = None) -> "list[EditEntry]":
        """List the entries of the SELECT under construction, in clause order.

        Args:
            clause: Only list the entries of this clause.

        Raises:
            CommandError: If no query has been started.

        Returns:
            The entries, each rendered inline in the session dialect.
        """
        items = self._clause_items(self.require_query().core)
        renderer = get_renderer(self.engine, parameterize=False)
        entries: list[EditEntry] = []
        for name in EDIT_CLAUSES:
            if clause is not None and name != clause:
                continue
            for index, item in enumerate(items[name]):
                entries.append(EditEntry(name, index, self._edit_display(name, item, renderer)))
        return entries

    @staticmethod
    def _edit_display(clause: str, item: Any, renderer: "SQLRenderer") -> str:
        if clause == "window":
            return str(item.name)
        if clause != "join":
            return str(item.render(renderer))
        right = str(item.right.render(renderer))
        if not JOIN_TOKENS[item.type]:
            return right
        label = f"LATERAL {JOIN_TOKENS[item.type]}" if item.lateral else JOIN_TOKENS[item.type]
        if item.on is None:
            return f"{label} {right}"
        return f"{label} {right} ON {item.on.render(renderer)}"

    def cmd_edit(self, args: str) -> None:
        rest = args.strip()
        word = rest.split(maxsplit=1)[0].lower() if rest else ""
        clause: Optional[str] = None
        if word in EDIT_CLAUSES:
            clause = word
            rest = rest[len(word) :].strip()
        elif word and not word.isdigit() and word not in REMOVE_VERBS:
            msg = f"unknown clause {word!r} (choose: {', '.join(EDIT_CLAUSES)})"
            raise CommandError(msg)
        entries = self.edit_entries(clause)
        if not rest:
            self._show_edit_entries(entries, clause)
            return
        verb, _, tail = rest.partition(" ")
        if verb.lower() in REMOVE_VERBS:
            number, entry = self._edit_entry(entries, tail.strip())
            del self._clause_items(self.require_query().core)[entry.clause][entry.index]
            log_with_context(logger, logging.DEBUG, "repl.edit.removed", clause=entry.clause, index=entry.index)
            self.print(f"Removed {EDIT_LABELS[entry.clause]} [{number}]")
            return
        number, entry = self._edit_entry(entries, verb)
        value = tail.strip()
        if not value:
            raise CommandError(EDIT_USAGE)
        self._replace_entry(entry, value)
        log_with_context(logger, logging.DEBUG, "repl.edit.replaced", clause=entry.clause, index=entry.index)
        self.print(f"Updated {EDIT_LABELS[entry.clause]} [{number}]")

    @staticmethod
    def _edit_entry(entries: "list[EditEntry]", text: str) -> "tuple[int, EditEntry]":
        if not entries:
            msg = "nothing to edit"
            raise CommandError(msg)
        if not text.isdigit() or not 1 <= int(text) <= len(entries):
            msg = f"invalid entry number {text!r} (1-{len(entries)})"
            raise CommandError(msg)
        return int(text), entries[int(text) - 1]

    def _show_edit_entries(self, entries: "list[EditEntry]", clause: Optional[str]) -> None:
        if clause is not None:
            self.print(f"{EDIT_LABELS[clause]}:")
            if not entries:
                self.print("  (empty)")
            for number, entry in enumerate(entries, start=1):
                self.print(f"  [{number}] {entry.display}")
            return
        if not entries:
            self.print("Nothing to edit")
            return
        self.print("Editable clauses:")
        number = 1
        for name in EDIT_CLAUSES:
            self.print(f"  {EDIT_LABELS[name]}:")
            group = [entry for entry in entries if entry.clause == name]
            if not group:
                self.print("    (empty)")
            for entry in group:
                self.print(f"    [{number}] {entry.display}")
                number += 1

    def _replace_entry(self, entry: EditEntry, value: str) -> None:
        """Parse ``value`` the way the clause's own command does and put it in place of ``entry``."""
        items = self._clause_items(self.require_query().core)[entry.clause]
        if entry.clause == "select":
            projections = self._projections(value)
            if not projections:
                raise CommandError(EDIT_USAGE)
            items[entry.index : entry.index + 1] = projections
        elif entry.clause in {"where", "having"}:
            items[entry.index] = self._parse_condition(value, entry.clause)
        elif entry.clause == "join":
            self._replace_join(items[entry.index], value)
        elif entry.clause == "order":
            items[entry.index] = self.parser.parse_ordering(value)
        elif entry.clause == "group":
            items[entry.index] = self._grouping(value)
        else:
            items[entry.index] = self._window_definition(value)

    def _replace_join(self, join: "Join", value: str) -> None:
        if not JOIN_TOKENS[join.type]:
            msg = "raw joins can only be removed"
            raise CommandError(msg)
        index = value.lower().find(" on ")
        if index < 0:
            if join.on is not None:
                msg = "expected: <table> on <condition>"
                raise CommandError(msg)
            join.right = self.resolve_table(value)
            return
        condition = self._parse_condition(value[index + 4 :], "join condition")
        join.right = self.resolve_table(value[:index].strip())
        join.on = condition

    # Tables

    def cmd_table(self, args: str) -> None:
        name = args.strip()
        if not name:
            msg = "usage: table <name>"
            raise CommandError(msg)
        self.ensure_table(name)
        self.print(f'Registered table "{name}"')

    def cmd_alias(self, args: str) -> None:
        parts = args.split()
        if len(parts) != 2:  # noqa: PLR2004
            msg = "usage: alias <table> <alias_name>"
            raise CommandError(msg)
        table_name, alias_name = parts
        self.aliases[alias_name] = self.ensure_table(table_name).alias(alias_name)
        self.print(f'Aliased "{table_name}" as "{alias_name}"')

    # SELECT

    def cmd_from(self, args: str) -> None:
        name = args.strip()
        if not name:
            msg = "usage: from <table>"
            raise CommandError(msg)
        source = self.resolve_table(name)
        self.set_mode(Mode.SELECT)
        self.query = SelectQuery(source)
        self._attach_plugins(self.query)
        self.print(f'Query FROM "{name}"')

    def cmd_select(self, args: str) -> None:
        query = self.require_query()
        projections = self._projections(args)
        query.select(*projections)
        self.print(f"Projections set ({len(projections)} columns)")

    def _projections(self, text: str) -> "list[Node]":
        projections: list[Node] = []
        for part in (part.strip() for part in self._split(text)):
            if not part:
                continue
            if part == "*":
                projections.append(Star())
            elif part.endswith(".*"):
                projections.append(self.ensure_table(part[:-2]).star())
            else:
                projections.append(self.parser.parse_projection(part))
        return projections

    def cmd_distinct(self, _: str) -> None:
        self.require_query().distinct()
        self.print("DISTINCT enabled")

    def cmd_distinct_on(self, args: str) -> None:
        query = self.require_query()
        columns = [self.parser.parse_full_expression(part) for part in self._split(args) if part.strip()]
        query.distinct_on(*columns)
        self.print(f"DISTINCT ON set ({len(columns)} columns)")

    def _parse_condition(self, args: str, context: str) -> Node:
        try:
            return self.parser.parse_expression(args.strip())
        except SQLParsingError as e:
            msg = f"{context}: {e}"
            raise SQLParsingError(msg) from e

    def cmd_where(self, args: str) -> None:
        condition = self._parse_condition(args, "where")
        builder = self.current_builder()
        if isinstance(builder, InsertQuery):
            msg = "where command is not supported for INSERT"
            raise CommandError(msg)
        builder.where(condition)
        self.print("WHERE condition added")

    def cmd_group(self, args: str) -> None:
        query = self.require_query()
        groups = [self._grouping(part.strip()) for part in self._split(args) if part.strip()]
        query.group(*groups)
        self.print(f"GROUP BY set ({len(groups)} columns)")

    def _grouping(self, text: str) -> Node:
        if text.lower().startswith(GROUPING_SET_PREFIXES):
            return self.parser.parse_grouping_set(text)
        return self.parser.parse_full_expression(text)

    def cmd_having(self, args: str) -> None:
        query = self.require_query()
        query.having(self._parse_condition(args, "having"))
        self.print("HAVING condition added")

    def _window_definition(self, text: str) -> "WindowDefinition":
        try:
            return self.parser.parse_window_definition(text)
        except SQLParsingError as e:
            msg = f"window: {e}"
            raise SQLParsingError(msg) from e

    def cmd_window(self, args: str) -> None:
        query = self.require_query()
        definition = self._window_definition(args)
        query.window(definition)
        self.print(f'Window "{definition.name}" defined')

    def cmd_order(self, args: str) -> None:
        query = self.require_query()
        orderings = [self.parser.parse_ordering(part) for part in self._split(args) if part.strip()]
        query.order(*orderings)
        self.print(f"ORDER BY set ({len(orderings)} columns)")

    @staticmethod
    def _integer(args: str, command: str) -> int:
        try:
            return int(args.strip())
        except ValueError:
            msg = f"{command} requires an integer, got {args!r}"
            raise CommandError(msg) from None

    def cmd_limit(self, args: str) -> None:
        query = self.require_query()
        value = self._integer(args, "limit")
        query.limit(value)
        self.print(f"LIMIT set to {value}")

    def cmd_offset(self, args: str) -> None:
        query = self.require_query()
        value = self._integer(args, "offset")
        query.offset(value)
        self.print(f"OFFSET set to {value}")

    def cmd_comment(self, args: str) -> None:
        query = self.require_query()
        text = args.strip()
        if not text:
            msg = "usage: comment <text>"
            raise CommandError(msg)
        query.comment(text)
        self.print(f"Comment set: {text}")

    def cmd_hint(self, args: str) -> None:
        query = self.require_query()
        text = args.strip()
        if not text:
            msg = "usage: hint <text>"
            raise CommandError(msg)
        query.hint(text)
        self.print(f"Hint added: {text}")

    # Joins

    def cmd_join(self, args: str, join_type: JoinType, lateral: bool = False) -> None:
        query = self.require_query()
        index = args.lower().find(" on ")
        if index < 0:
            msg = "expected: <table> on <condition>"
            raise CommandError(msg)
        name = args[:index].strip()
        source = self.resolve_table(name)
        condition = self._parse_condition(args[index + 4 :], "join condition")
        if lateral:
            query.lateral_join(source, join_type).on(condition)
            self.print(f'LATERAL {JOIN_TOKENS[join_type]} "{name}" added')
        else:
            query.join(source, join_type).on(condition)
            self.print(f'{JOIN_TOKENS[join_type]} "{name}" added')

    def cmd_cross_join(self, args: str) -> None:
        query = self.require_query()
        name = args.strip()
        if not name:
            msg = "usage: cross join <table>"
            raise CommandError(msg)
        query.cross_join(self.resolve_table(name))
        self.print(f'CROSS JOIN "{name}" added')

    def cmd_raw_join(self, args: str) -> None:
        query = self.require_query()
        raw = args.strip()
        if not raw:
            msg = "usage: raw join <SQL text>"
            raise CommandError(msg)
        query.string_join(raw)
        self.print("String join added")

    # Locking

    def cmd_lock(self, _: str, mode: LockMode) -> None:
        self.require_query().core.lock = mode
        self.print(f"{LOCK_TOKENS[mode]} enabled")

    def cmd_skip_locked(self, _: str) -> None:
        self.require_query().skip_locked()
        self.print("SKIP LOCKED enabled")

    # Set operations and CTEs

    def cmd_set_operation(self, _: str, kind: SetOperationType) -> None:
        self.set_ops.append((kind, self.require_query()))
        self.query = None
        self.print(f"{SET_OPERATION_TOKENS[kind]} - start a new query with 'from <table>'")

    def cmd_with(self, args: str, recursive: bool) -> None:
        query = self.require_query()
        name = args.strip()
        if not name:
            msg = "usage: with recursive <name>" if recursive else "usage: with <name>"
            raise CommandError(msg)
        self.ctes.append((name, query, recursive))
        self.ensure_table(name)
        self.query = None
        kind = "recursive CTE" if recursive else "CTE"
        self.print(f"Pushed {kind} \"{name}\" - start a new query with 'from <table>'")

    # DML

    def cmd_insert_into(self, args: str) -> None:
        name = args.strip()
        if not name:
            msg = "usage: insert into <table>"
            raise CommandError(msg)
        target = self.resolve_table(name)
        self.set_mode(Mode.INSERT)
        self.insert_query = InsertQuery(target)
        self._attach_plugins(self.insert_query)
        self.print(f'INSERT INTO "{name}"')

    def _require_insert(self, command: str) -> InsertQuery:
        if self.mode is not Mode.INSERT or self.insert_query is None:
            msg = f"{command} command requires an active INSERT (use 'insert into <table>' first)"
            raise CommandError(msg)
        return self.insert_query

    def cmd_columns(self, args: str) -> None:
        query = self._require_insert("columns")
        columns = self._columns(args)
        query.columns(*columns)
        self.print(f"Columns set ({len(columns)})")

    def cmd_values(self, args: str) -> None:
        query = self._require_insert("values")
        try:
            values = [parse_value(part, self.engine) for part in self._split(args) if part.strip()]
        except SQLParsingError as e:
            msg = f"values: {e}"
            raise SQLParsingError(msg) from e
        query.values(*values)
        self.print(f"Values row added ({len(values)} values)")

    def cmd_on_conflict(self, args: str) -> None:
        query = self._require_insert("on conflict")
        usage = "usage: on conflict (<cols>) do nothing | on conflict (<cols>) do update set <col> = <val>"
        text = args.strip()
        if not text.startswith("("):
            raise CommandError(usage)
        close = text.find(")")
        if close < 0:
            msg = "missing closing parenthesis in conflict target"
            raise CommandError(msg)
        columns = self._columns(text[1:close])
        rest = text[close + 1 :].strip()
        lowered = rest.lower()
        if lowered == "do nothing":
            query.on_conflict(*columns).do_nothing()
            self.print("ON CONFLICT DO NOTHING set")
            return
        if lowered.startswith("do update set "):
            assignments = [
                self._assignment(part, usage)
                for part in self._split(rest[len("do update set ") :])
                if part.strip()
            ]
            if not assignments:
                raise CommandError(usage)
            query.on_conflict(*columns).do_update(*assignments)
            self.print("ON CONFLICT DO UPDATE set")
            return
        raise CommandError(usage)

    def _assignment(self, text: str, usage: str) -> Assignment:
        """Parse ``table.col = expr``."""
        if "=" not in text:
            raise CommandError(usage)
        column, value = self.parser.parse_assignment(text)
        return Assignment(column, value)

    def cmd_update(self, args: str) -> None:
        name = args.strip()
        if not name:
            msg = "usage: update <table>"
            raise CommandError(msg)
        target = self.resolve_table(name)
        self.set_mode(Mode.UPDATE)
        self.update_query = UpdateQuery(target)
        self._attach_plugins(self.update_query)
        self.print(f'UPDATE "{name}"')

    def cmd_set(self, args: str) -> None:
        if self.mode is not Mode.UPDATE or self.update_query is None:
            msg = "set command requires an active UPDATE (use 'update <table>' first)"
            raise CommandError(msg)
        try:
            assignment = self._assignment(args, "usage: set <table.col> = <value>")
        except SQLParsingError as e:
            msg = f"set: {e}"
            raise SQLParsingError(msg) from e
        self.update_query.set(assignment.left, assignment.right)
        left, _, right = args.strip().partition("=")
        self.print(f"SET {left.strip()} = {right.strip()}")

    def cmd_delete_from(self, args: str) -> None:
        name = args.strip()
        if not name:
            msg = "usage: delete from <table>"
            raise CommandError(msg)
        target = self.resolve_table(name)
        self.set_mode(Mode.DELETE)
        self.delete_query = DeleteQuery(target)
        self._attach_plugins(self.delete_query)
        self.print(f'DELETE FROM "{name}"')

    def cmd_returning(self, args: str) -> None:
        if self.mode is Mode.SELECT:
            msg = "returning command requires INSERT, UPDATE, or DELETE mode"
            raise CommandError(msg)
        columns = self._columns(args)
        builder = self.current_builder()
        builder.returning(*columns)  # type: ignore[attr-defined]
        self.print(f"RETURNING set ({len(columns)} columns)")

    # Configuration

    def cmd_engine(self, args: str) -> None:
        name = args.strip().lower()
        if name not in DIALECTS:
            msg = f"unknown engine {name!r} (choose: {', '.join(DIALECTS)})"
            raise CommandError(msg)
        self.set_engine(name)
        self.print(f"Engine set to {self.engine}")

    def cmd_parameterize(self, _: str) -> None:
        self.parameterize = not self.parameterize
        self.set_engine(self.engine)
        self.print(f"Parameterized queries {'enabled' if self.parameterize else 'disabled'}")

    def cmd_plugin(self, args: str) -> None:
        parts = args.split()
        if not parts:
            msg = "usage: plugin <name> [args] | plugin off [name]"
            raise CommandError(msg)
        name = parts[0].lower()
        if name == "off":
            self._plugin_off(parts[1:])
            return
        configure = PLUGIN_CONFIGURERS.get(name)
        if configure is None:
            msg = f"unknown plugin: {name}"
            raise CommandError(msg)
        entry, message = configure(args.strip()[len(parts[0]) :])
        self.plugins.register(entry)
        self._refresh_plugins()
        log_with_context(logger, logging.DEBUG, "repl.plugin.enabled", plugin=entry.name, status=entry.status)
        self.print(message)

    def _plugin_off(self, names: "list[str]") -> None:
        if not names:
            self.plugins.clear()
            message = "All plugins disabled"
        else:
            name = names[0].lower()
            if not self.plugins.deregister(name):
                msg = f"plugin {name!r} is not enabled"
                raise CommandError(msg)
            message = f"{name} disabled"
        self._refresh_plugins()
        self.print(message)

    def cmd_plugins(self, _: str) -> None:
        self.print("Available plugins:")
        for name in PLUGIN_CONFIGURERS:
            entry = self.plugins.get(name)
            if entry is None:
                self.print(f"  {name:<14} off")
            else:
                self.print(f"  {name:<14} on   ({entry.status})")
