"""Statement transformer interface and pipeline.

A transformer rewrites a statement root before it is rendered. Statement builders
clone their root and run it through a :class:`TransformerPipeline`, so the rewrite
never leaks back into the builder.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional, TypeVar, Union

from sqlbee.exceptions import SQLBeeError, SQLTransformationError
from sqlbee.nodes import DeleteStatement, InsertStatement, SelectCore, UpdateStatement
from sqlbee.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = ("BaseTransformer", "Statement", "Transformer", "TransformerPipeline")

logger = get_logger("transformers")

Statement = Union[SelectCore, InsertStatement, UpdateStatement, DeleteStatement]
StatementT = TypeVar("StatementT", SelectCore, InsertStatement, UpdateStatement, DeleteStatement)


class Transformer(ABC):
    """Defines the interface for a statement rewriting step."""

    @abstractmethod
    def transform_select(self, core: SelectCore) -> SelectCore:
        """Rewrite a SELECT statement."""
        raise NotImplementedError

    @abstractmethod
    def transform_insert(self, stmt: InsertStatement) -> InsertStatement:
        """Rewrite an INSERT statement."""
        raise NotImplementedError

    @abstractmethod
    def transform_update(self, stmt: UpdateStatement) -> UpdateStatement:
        """Rewrite an UPDATE statement."""
        raise NotImplementedError

    @abstractmethod
    def transform_delete(self, stmt: DeleteStatement) -> DeleteStatement:
        """Rewrite a DELETE statement."""
        raise NotImplementedError

    @property
    def name(self) -> str:
        return type(self).__name__


class BaseTransformer(Transformer):
    """Identity transformer; subclasses override the statement kinds they rewrite."""

    def transform_select(self, core: SelectCore) -> SelectCore:
        return core

    def transform_insert(self, stmt: InsertStatement) -> InsertStatement:
        return stmt

    def transform_update(self, stmt: UpdateStatement) -> UpdateStatement:
        return stmt

    def transform_delete(self, stmt: DeleteStatement) -> DeleteStatement:
        return stmt


def _dispatch(transformer: Transformer, statement: "Statement") -> "Statement":
    if isinstance(statement, SelectCore):
        return transformer.transform_select(statement)
    if isinstance(statement, InsertStatement):
        return transformer.transform_insert(statement)
    if isinstance(statement, UpdateStatement):
        return transformer.transform_update(statement)
    if isinstance(statement, DeleteStatement):
        return transformer.transform_delete(statement)
    msg = f"cannot transform {type(statement).__name__}"
    raise SQLTransformationError(msg, statement)


class TransformerPipeline:
    """Applies transformers to a statement root in registration order."""

    def __init__(self, transformers: "Optional[Iterable[Transformer]]" = None) -> None:
        self.transformers: list[Transformer] = list(transformers or [])

    def __len__(self) -> int:
        return len(self.transformers)

    def add(self, transformer: Transformer) -> "TransformerPipeline":
        self.transformers.append(transformer)
        return self

    def run(self, statement: StatementT) -> StatementT:
        """Feed ``statement`` through every transformer.

        The statement is expected to be a clone owned by the caller; transformers
        may mutate it in place.

        Args:
            statement: The statement root to rewrite.

        Raises:
            SQLTransformationError: If a transformer fails. Errors that are not
                sqlbee errors are wrapped, with the original as ``__cause__``.

        Returns:
            The statement returned by the last transformer.
        """
        current: Statement = statement
        for transformer in self.transformers:
            log_with_context(
                logger, logging.DEBUG, "Applying transformer", transformer=transformer.name, statement=type(current).__name__
            )
            try:
                current = _dispatch(transformer, current)
            except SQLBeeError:
                log_with_context(logger, logging.DEBUG, "Transformer failed", transformer=transformer.name)
                raise
            except Exception as e:
                log_with_context(logger, logging.DEBUG, "Transformer failed", transformer=transformer.name)
                msg = f"transformer {transformer.name} failed: {e}"
                raise SQLTransformationError(msg, statement) from e
        return current  # type: ignore[return-value]
