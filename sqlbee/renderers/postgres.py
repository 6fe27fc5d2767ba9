from sqlbee.quoting import quote_double
from sqlbee.renderers._base import SQLRenderer

__all__ = ("PostgresRenderer",)


class PostgresRenderer(SQLRenderer):
    """PostgreSQL: double-quoted identifiers and ``$N`` placeholders.

    Comparison operators use the common spelling: ``~``/``!~`` for regular
    expressions, plain ``=`` for case-sensitive equality and
    ``LOWER(l) = LOWER(r)`` for case-insensitive equality.
    """

    dialect = "postgres"

    def quote_identifier(self, name: str) -> str:
        return quote_double(name)

    def placeholder(self, index: int) -> str:
        return f"${index}"
