"""Shared statement builder machinery.

Builders accumulate nodes into a statement root and carry the transformers
registered with :meth:`QueryBuilder.use`. Rendering never touches the root the
builder owns: :meth:`QueryBuilder.to_sql` clones it, feeds the clone through the
transformer pipeline and renders the result.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar

from typing_extensions import Self

from sqlbee.nodes import DeleteStatement, InsertStatement, SelectCore, UpdateStatement
from sqlbee.renderers import FormattingRenderer, GraphRenderer, Parameterizer
from sqlbee.transformers import TransformerPipeline
from sqlbee.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from sqlbee.renderers import NodeVisitor, PluginProvenance
    from sqlbee.transformers import Transformer

__all__ = ("QueryBuilder", "SafeQuery")

logger = get_logger("builder")

StatementT = TypeVar("StatementT", SelectCore, InsertStatement, UpdateStatement, DeleteStatement)


@dataclass(frozen=True)
class SafeQuery:
    """A rendered statement with its bound parameters."""

    sql: str
    parameters: Optional[list[Any]] = None
    dialect: Optional[str] = None


class QueryBuilder(ABC, Generic[StatementT]):
    """Abstract base class for statement builders."""

    def __init__(self) -> None:
        self.transformers: list[Transformer] = []

    @property
    @abstractmethod
    def statement(self) -> StatementT:
        """The statement root this builder appends to."""

    @abstractmethod
    def clone_statement(self) -> StatementT:
        """Return a shallow copy of the root, safe for transformers to mutate."""

    def use(self, *transformers: "Transformer") -> Self:
        """Register transformers, applied in registration order at render time.

        Returns:
            The current builder instance for method chaining.
        """
        self.transformers.extend(transformers)
        return self

    def transformed(self) -> StatementT:
        """Clone the root and run it through the registered transformers.

        Raises:
            SQLTransformationError: If a transformer fails.

        Returns:
            The rewritten clone.
        """
        return TransformerPipeline(self.transformers).run(self.clone_statement())

    def to_sql(self, renderer: "NodeVisitor") -> "tuple[str, Optional[list[Any]]]":
        """Render the statement.

        A parameterising renderer is reset first, so the returned parameters belong
        to this statement only.

        Args:
            renderer: A dialect renderer, possibly wrapped in a formatter.

        Raises:
            SQLTransformationError: If a transformer fails; no SQL is produced.

        Returns:
            The SQL text and the collected parameters, ``None`` when the renderer
            does not parameterise.
        """
        parameterizer = renderer if isinstance(renderer, Parameterizer) else None
        if parameterizer is not None:
            parameterizer.reset()
        statement = self.transformed()
        sql = str(statement.render(renderer))
        if parameterizer is None:
            return sql, None
        return sql, parameterizer.params()

    def build(self, renderer: "NodeVisitor") -> SafeQuery:
        """Render the statement into a :class:`SafeQuery`."""
        sql, parameters = self.to_sql(renderer)
        dialect = getattr(renderer, "dialect", None)
        log_with_context(
            logger, logging.DEBUG, "Built statement", dialect=dialect, parameter_count=len(parameters or ())
        )
        return SafeQuery(sql=sql, parameters=parameters, dialect=dialect)

    def to_pretty_sql(self, renderer: "NodeVisitor") -> "tuple[str, Optional[list[Any]]]":
        """Render multi-line SQL through a :class:`~sqlbee.renderers.FormattingRenderer`."""
        if not isinstance(renderer, FormattingRenderer):
            renderer = FormattingRenderer(renderer)  # type: ignore[arg-type]
        return self.to_sql(renderer)

    def to_dot(self, provenance: "Optional[PluginProvenance]" = None) -> str:
        """Render the transformed statement as a Graphviz ``digraph``."""
        graph = GraphRenderer(provenance)
        self.transformed().render(graph)
        return graph.to_dot()
