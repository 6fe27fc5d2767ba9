"""Transformer plugins that can be toggled from the shell."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Final, Optional

from sqlbee.exceptions import CommandError
from sqlbee.repl.parser import parse_value
from sqlbee.transformers import SoftDelete, TenantScope

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlbee.transformers import Transformer

__all__ = (
    "SOFT_DELETE_COLOR",
    "TENANT_COLOR",
    "PluginEntry",
    "PluginRegistry",
    "configure_soft_delete",
    "configure_tenant",
)

SOFT_DELETE_COLOR: Final = "#CC6666"
TENANT_COLOR: Final = "#6699CC"


@dataclass
class PluginEntry:
    """An enabled plugin.

    ``factory`` builds a fresh transformer for every statement the plugin is attached to.
    ``color`` tints the plugin's nodes in Graphviz output.
    """

    name: str
    factory: "Callable[[], Transformer]"
    status: str
    color: str


class PluginRegistry:
    """Enabled plugins, applied in registration order."""

    def __init__(self) -> None:
        self._entries: list[PluginEntry] = []

    def register(self, entry: PluginEntry) -> None:
        """Add ``entry``, replacing an enabled plugin of the same name in place."""
        for index, existing in enumerate(self._entries):
            if existing.name == entry.name:
                self._entries[index] = entry
                return
        self._entries.append(entry)

    def deregister(self, name: str) -> bool:
        for index, existing in enumerate(self._entries):
            if existing.name == name:
                del self._entries[index]
                return True
        return False

    def clear(self) -> None:
        self._entries = []

    def get(self, name: str) -> Optional[PluginEntry]:
        return next((entry for entry in self._entries if entry.name == name), None)

    def names(self) -> "list[str]":
        return [entry.name for entry in self._entries]

    def create_transformers(self) -> "list[Transformer]":
        return [entry.factory() for entry in self._entries]

    def __iter__(self) -> "Iterator[PluginEntry]":
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


def configure_soft_delete(args: str) -> "tuple[PluginEntry, str]":
    """Build the soft-delete plugin from ``plugin softdelete`` arguments.

    Accepted forms::

        plugin softdelete                          deleted_at on every table
        plugin softdelete removed_at               custom column on every table
        plugin softdelete removed_at on users posts
        plugin softdelete users.deleted_at, posts.removed_at

    Args:
        args: Everything after ``plugin softdelete``.

    Raises:
        CommandError: If a ``table.column`` pair or the ``on`` form is malformed.

    Returns:
        The registry entry and the confirmation message to print.
    """
    rest = args.strip()
    if "." in rest:
        columns: dict[str, str] = {}
        for pair in (part.strip() for part in rest.split(",")):
            if not pair:
                continue
            table, dot, column = pair.partition(".")
            if not dot or not table or not column:
                msg = f"invalid table.column pair: {pair!r}"
                raise CommandError(msg)
            columns[table] = column
        status = ", ".join(sorted(f"{table}.{column}" for table, column in columns.items()))
        return (
            PluginEntry("softdelete", lambda: SoftDelete(table_columns=columns), status, SOFT_DELETE_COLOR),
            "Soft-delete enabled (per-table columns)",
        )

    index = rest.lower().find(" on ")
    if index >= 0:
        column = rest[:index].strip()
        tables = rest[index + 4 :].split()
        if not column or not tables:
            msg = "usage: plugin softdelete <column> on <table1> [table2 ...]"
            raise CommandError(msg)
        status = f"column: {column}, tables: {', '.join(tables)}"
        return (
            PluginEntry("softdelete", lambda: SoftDelete(column, tables=tables), status, SOFT_DELETE_COLOR),
            f"Soft-delete enabled ({status})",
        )

    column = rest.split()[0] if rest else "deleted_at"
    status = f"column: {column}"
    return (
        PluginEntry("softdelete", lambda: SoftDelete(column), status, SOFT_DELETE_COLOR),
        f"Soft-delete enabled ({status})",
    )


def configure_tenant(args: str) -> "tuple[PluginEntry, str]":
    """Build the tenant scoping plugin from ``plugin tenant <value> [column] [on <tables..>]``.

    Raises:
        CommandError: If no tenant value is given.
        SQLParsingError: If the value is not a literal.
    """
    rest = args.strip()
    tables: Optional[list[str]] = None
    index = rest.lower().find(" on ")
    if index >= 0:
        tables = rest[index + 4 :].split()
        rest = rest[:index].strip()
    words = rest.split()
    if not words:
        msg = "usage: plugin tenant <value> [column] [on <table1> ...]"
        raise CommandError(msg)
    value = parse_value(words[0])
    column = words[1] if len(words) > 1 else "tenant_id"
    status = f"column: {column}, value: {value!r}"
    if tables:
        status += f", tables: {', '.join(tables)}"
    return (
        PluginEntry("tenant", lambda: TenantScope(value, column=column, tables=tables), status, TENANT_COLOR),
        f"Tenant scope enabled ({status})",
    )
