"""Interactive shell for building queries one clause at a time."""

from sqlbee.repl.completer import Completer, install_completer
from sqlbee.repl.parser import ExpressionParser, parse_value, split_top_level_commas
from sqlbee.repl.plugins import PluginEntry, PluginRegistry
from sqlbee.repl.session import Command, EditEntry, Mode, Session

__all__ = (
    "Command",
    "Completer",
    "EditEntry",
    "ExpressionParser",
    "Mode",
    "PluginEntry",
    "PluginRegistry",
    "Session",
    "install_completer",
    "parse_value",
    "split_top_level_commas",
)
