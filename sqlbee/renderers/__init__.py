"""SQL, formatted SQL and Graphviz renderers."""

from typing import Final

from sqlbee.exceptions import ImproperConfigurationError
from sqlbee.renderers._base import (
    NodeVisitor,
    Parameterizer,
    SQLRenderer,
    format_float,
    sanitize_comment,
    validate_function_name,
    validate_type_name,
)
from sqlbee.renderers.formatting import FormattingRenderer
from sqlbee.renderers.graph import GraphRenderer, PluginProvenance
from sqlbee.renderers.mysql import MySQLRenderer
from sqlbee.renderers.postgres import PostgresRenderer
from sqlbee.renderers.sqlite import SQLiteRenderer

__all__ = (
    "DIALECTS",
    "FormattingRenderer",
    "GraphRenderer",
    "MySQLRenderer",
    "NodeVisitor",
    "Parameterizer",
    "PluginProvenance",
    "PostgresRenderer",
    "SQLRenderer",
    "SQLiteRenderer",
    "format_float",
    "get_renderer",
    "sanitize_comment",
    "validate_function_name",
    "validate_type_name",
)

DIALECTS: Final[dict[str, type[SQLRenderer]]] = {
    "postgres": PostgresRenderer,
    "mysql": MySQLRenderer,
    "sqlite": SQLiteRenderer,
}


def get_renderer(dialect: str, parameterize: bool = True) -> SQLRenderer:
    """Build the renderer registered for ``dialect``.

    Args:
        dialect: One of ``postgres``, ``mysql`` or ``sqlite`` (case-insensitive).
        parameterize: Passed to the renderer constructor.

    Raises:
        ImproperConfigurationError: If the dialect is unknown.

    Returns:
        A fresh renderer instance.
    """
    try:
        renderer_class = DIALECTS[dialect.lower()]
    except KeyError:
        msg = f"unknown dialect {dialect!r}, expected one of: {', '.join(DIALECTS)}"
        raise ImproperConfigurationError(msg) from None
    return renderer_class(parameterize=parameterize)
