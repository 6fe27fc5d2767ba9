"""Tab completion for the interactive shell.

The completer looks at the line up to the cursor, finds the command being typed and
offers candidates for its current argument: command names, registered tables and
aliases, ``table.column`` for columns the session has already seen, engines, plugin
names, operators or ordering directions.
"""

from enum import Enum, auto
from typing import Callable, Final, Optional

from sqlbee.nodes import AggregateFunc, WindowFunc
from sqlbee.renderers import DIALECTS
from sqlbee.repl.session import EDIT_CLAUSES, PLUGIN_CONFIGURERS, Session
from sqlbee.utils.logging import get_logger

__all__ = ("ARGUMENT_CONTEXTS", "CompletionContext", "Completer", "install_completer")

logger = get_logger("repl.completer")


class CompletionContext(Enum):
    COMMAND = auto()
    TABLE = auto()
    COLUMN = auto()
    ENGINE = auto()
    PLUGIN = auto()
    PLUGIN_OFF = auto()
    ORDER_DIRECTION = auto()
    OPERATOR = auto()
    ALIAS_TABLE = auto()
    EDIT_CLAUSE = auto()
    NONE = auto()


ORDER_DIRECTIONS: Final = ("asc", "desc", "nulls first", "nulls last")
OPERATORS: Final = (
    "!=", "&", "*", "+", "-", "/", "<", "<<", "<=", "=", ">", ">=", ">>", "^", "|", "||", "~",
    "between", "in", "is", "like", "not", "regexp",
)
FUNCTION_NAMES: Final = tuple(
    sorted(
        [f"{func.name}(" for func in AggregateFunc]
        + [f"{func.name}(" for func in WindowFunc]
        + ["CASE ", "CAST(", "COALESCE(", "COUNT(DISTINCT ", "CUBE(", "EXTRACT(", "GROUPING SETS("]
        + ["LOWER(", "NULLIF(", "ROLLUP(", "UPPER("]
    )
)
COMPLETER_DELIMS: Final = " \t\n,()"


def _last_word(text: str) -> str:
    for index in range(len(text) - 1, -1, -1):
        if text[index] in COMPLETER_DELIMS:
            return text[index + 1 :]
    return text


def _previous_word(text: str) -> str:
    words = text.replace(",", " ").split()
    return words[-1].lower() if words else ""


def table_arguments(args: str) -> "tuple[CompletionContext, str]":
    """``from``, ``update``, ``insert into`` and friends: a table name."""
    arg = args.strip()
    if " " not in arg:
        return CompletionContext.TABLE, arg
    if args.endswith(" "):
        return CompletionContext.OPERATOR, ""
    return CompletionContext.COLUMN, arg.split()[-1]


def join_arguments(args: str) -> "tuple[CompletionContext, str]":
    """Joins: a table name, then column references in the ON condition."""
    words = args.split()
    if not words:
        return CompletionContext.TABLE, ""
    if " " not in args:
        return CompletionContext.TABLE, args
    if args.endswith(" "):
        if "." in words[-1]:
            return CompletionContext.OPERATOR, ""
        return CompletionContext.COLUMN, ""
    return CompletionContext.COLUMN, _last_word(args)


def column_arguments(args: str) -> "tuple[CompletionContext, str]":
    """Expressions: a column reference, or an operator right after one."""
    if args.endswith(" "):
        if "." in _previous_word(args):
            return CompletionContext.OPERATOR, ""
        return CompletionContext.COLUMN, ""
    return CompletionContext.COLUMN, _last_word(args)


def order_arguments(args: str) -> "tuple[CompletionContext, str]":
    if args.endswith(" "):
        if "." in _previous_word(args):
            return CompletionContext.ORDER_DIRECTION, ""
        return CompletionContext.COLUMN, ""
    word = _last_word(args)
    before = args[: len(args) - len(word)]
    if before.strip() and not before.rstrip().endswith(",") and "." in _previous_word(before):
        return CompletionContext.ORDER_DIRECTION, word
    return CompletionContext.COLUMN, word


def window_arguments(args: str) -> "tuple[CompletionContext, str]":
    """The window name is free text; the clauses after it take column references."""
    if len(args.split()) <= 1 and not args.endswith(" "):
        return CompletionContext.NONE, ""
    return column_arguments(args)


def engine_arguments(args: str) -> "tuple[CompletionContext, str]":
    return CompletionContext.ENGINE, args.strip()


def plugin_arguments(args: str) -> "tuple[CompletionContext, str]":
    if args.lower().startswith("off "):
        return CompletionContext.PLUGIN_OFF, args[4:].strip()
    arg = args.strip()
    if " " not in arg:
        return CompletionContext.PLUGIN, arg
    return CompletionContext.NONE, ""


def alias_arguments(args: str) -> "tuple[CompletionContext, str]":
    arg = args.strip()
    if " " not in arg:
        return CompletionContext.ALIAS_TABLE, arg
    return CompletionContext.NONE, ""


def edit_arguments(args: str) -> "tuple[CompletionContext, str]":
    arg = args.strip()
    if " " not in arg:
        return CompletionContext.EDIT_CLAUSE, arg
    return CompletionContext.NONE, ""


ARGUMENT_CONTEXTS: "Final[dict[str, Callable[[str], tuple[CompletionContext, str]]]]" = {
    "alias ": alias_arguments,
    "columns ": column_arguments,
    "cross join ": join_arguments,
    "delete from ": table_arguments,
    "distinct on ": column_arguments,
    "edit ": edit_arguments,
    "engine ": engine_arguments,
    "expr ": column_arguments,
    "from ": table_arguments,
    "full join ": join_arguments,
    "group ": column_arguments,
    "having ": column_arguments,
    "insert into ": table_arguments,
    "join ": join_arguments,
    "lateral join ": join_arguments,
    "lateral left join ": join_arguments,
    "left join ": join_arguments,
    "order ": order_arguments,
    "plugin ": plugin_arguments,
    "project ": column_arguments,
    "returning ": column_arguments,
    "right join ": join_arguments,
    "select ": column_arguments,
    "set ": column_arguments,
    "update ": table_arguments,
    "where ": column_arguments,
    "window ": window_arguments,
}


def filter_prefix(items: "list[str]", prefix: str) -> "list[str]":
    """Items starting with ``prefix``, compared case-insensitively, in their original order."""
    lowered = prefix.lower()
    return [item for item in items if item.lower().startswith(lowered)]


class Completer:
    """Computes completions for a :class:`~sqlbee.repl.session.Session`.

    :meth:`candidates` works on a plain line;
    :meth:`complete` adapts it to the ``readline`` completer protocol.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._matches: list[str] = []

    def context(self, line: str) -> "tuple[CompletionContext, str]":
        """Classify ``line`` (the text before the cursor) and return the prefix being typed."""
        lowered = line.lower()
        for command in self.session.commands:
            if command.prefix.endswith(" ") and lowered.startswith(command.prefix):
                arguments = ARGUMENT_CONTEXTS.get(command.prefix)
                if arguments is None:
                    return CompletionContext.NONE, ""
                return arguments(line[len(command.prefix) :])
        return CompletionContext.COMMAND, line.lstrip()

    def candidates(self, line: str) -> "list[str]":
        """Completions for the word being typed at the end of ``line``.

        Each candidate replaces the whole prefix returned by :meth:`context`.
        """
        context, prefix = self.context(line)
        if context is CompletionContext.COMMAND:
            return filter_prefix(self.session.command_names(), prefix)
        if context is CompletionContext.TABLE:
            return filter_prefix(self.table_names(), prefix)
        if context is CompletionContext.ALIAS_TABLE:
            return filter_prefix(sorted(self.session.tables), prefix)
        if context is CompletionContext.COLUMN:
            return self.column_references(prefix)
        if context is CompletionContext.ENGINE:
            return filter_prefix(list(DIALECTS), prefix)
        if context is CompletionContext.PLUGIN:
            return filter_prefix(["off", *PLUGIN_CONFIGURERS], prefix)
        if context is CompletionContext.PLUGIN_OFF:
            return filter_prefix([entry.name for entry in self.session.plugins], prefix)
        if context is CompletionContext.ORDER_DIRECTION:
            return filter_prefix(list(ORDER_DIRECTIONS), prefix)
        if context is CompletionContext.OPERATOR:
            return filter_prefix(list(OPERATORS), prefix)
        if context is CompletionContext.EDIT_CLAUSE:
            return filter_prefix(list(EDIT_CLAUSES), prefix)
        return []

    def table_names(self) -> "list[str]":
        return sorted({*self.session.tables, *self.session.aliases})

    def column_references(self, prefix: str) -> "list[str]":
        """``table.column`` after a dot; table names and function names before one."""
        relation, dot, _ = prefix.partition(".")
        if not dot:
            return filter_prefix(self.table_names(), prefix) + filter_prefix(list(FUNCTION_NAMES), prefix)
        seen = sorted(self.session.parser.columns.get(relation, ()))
        references = [f"{relation}.{column}" for column in seen]
        references.append(f"{relation}.*")
        return filter_prefix(references, prefix)

    def complete(self, text: str, state: int) -> Optional[str]:
        """``readline`` completer: return the ``state``-th completion of ``text``."""
        if state == 0:
            import readline

            line = readline.get_line_buffer()[: readline.get_endidx()]
            _, prefix = self.context(line)
            offset = len(prefix) - len(text) if prefix.endswith(text) else 0
            self._matches = [candidate[offset:] for candidate in self.candidates(line)]
        if state < len(self._matches):
            return self._matches[state]
        return None


def install_completer(session: Session) -> Optional[Completer]:
    """Register tab completion for ``session`` with ``readline``.

    Returns:
        The installed completer, or ``None`` where the platform has no ``readline``.
    """
    try:
        import readline
    except ImportError:
        logger.debug("readline is not available; tab completion disabled")
        return None
    completer = Completer(session)
    readline.set_completer(completer.complete)
    readline.set_completer_delims(COMPLETER_DELIMS)
    if "libedit" in (readline.__doc__ or ""):
        readline.parse_and_bind("bind ^I rl_complete")
    else:
        readline.parse_and_bind("tab: complete")
    return completer
