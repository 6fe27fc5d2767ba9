"""Window definitions, frames and the OVER clause."""

from collections.abc import Sequence
from typing import Any, Optional

from sqlbee.nodes._base import Node
from sqlbee.nodes._enums import FrameBoundType, FrameType
from sqlbee.nodes._expressions import Expression, as_node

__all__ = (
    "FrameBound",
    "Over",
    "WindowDefinition",
    "WindowFrame",
    "current_row",
    "following",
    "preceding",
    "unbounded_following",
    "unbounded_preceding",
)


class FrameBound:
    __slots__ = ("offset", "type")

    def __init__(self, type: FrameBoundType, offset: Optional[Node] = None) -> None:  # noqa: A002
        self.type = type
        self.offset = offset

    def __repr__(self) -> str:
        return f"FrameBound(type={self.type!r}, offset={self.offset!r})"


class WindowFrame:
    """``ROWS|RANGE start`` or ``ROWS|RANGE BETWEEN start AND end``."""

    __slots__ = ("end", "start", "type")

    def __init__(self, type: FrameType, start: FrameBound, end: Optional[FrameBound] = None) -> None:  # noqa: A002
        self.type = type
        self.start = start
        self.end = end

    def __repr__(self) -> str:
        return f"WindowFrame(type={self.type!r}, start={self.start!r}, end={self.end!r})"


class WindowDefinition:
    """A window specification, inline in OVER or named in the WINDOW clause.

    The fluent methods replace the corresponding part and return ``self``.
    """

    __slots__ = ("frame", "name", "order_by", "partition_by")

    def __init__(
        self,
        name: str = "",
        partition_by: "Optional[Sequence[Node]]" = None,
        order_by: "Optional[Sequence[Node]]" = None,
        frame: Optional[WindowFrame] = None,
    ) -> None:
        self.name = name
        self.partition_by: list[Node] = list(partition_by or [])
        self.order_by: list[Node] = list(order_by or [])
        self.frame = frame

    def partition(self, *columns: Node) -> "WindowDefinition":
        self.partition_by = list(columns)
        return self

    def order(self, *orderings: Node) -> "WindowDefinition":
        self.order_by = list(orderings)
        return self

    def rows(self, start: FrameBound, end: Optional[FrameBound] = None) -> "WindowDefinition":
        self.frame = WindowFrame(FrameType.ROWS, start, end)
        return self

    def range(self, start: FrameBound, end: Optional[FrameBound] = None) -> "WindowDefinition":
        self.frame = WindowFrame(FrameType.RANGE, start, end)
        return self

    def is_empty(self) -> bool:
        return not self.partition_by and not self.order_by and self.frame is None

    def __repr__(self) -> str:
        return (
            f"WindowDefinition(name={self.name!r}, partition_by={self.partition_by!r}, "
            f"order_by={self.order_by!r}, frame={self.frame!r})"
        )


class Over(Expression):
    """``expr OVER (...)`` or ``expr OVER "name"``."""

    __slots__ = ("expr", "window", "window_name")
    __visit_name__ = "over"

    def __init__(self, expr: Node, window: Optional[WindowDefinition] = None, window_name: str = "") -> None:
        self.expr = expr
        self.window = window
        self.window_name = window_name


def unbounded_preceding() -> FrameBound:
    return FrameBound(FrameBoundType.UNBOUNDED_PRECEDING)


def preceding(offset: Any) -> FrameBound:
    return FrameBound(FrameBoundType.PRECEDING, as_node(offset))


def current_row() -> FrameBound:
    return FrameBound(FrameBoundType.CURRENT_ROW)


def following(offset: Any) -> FrameBound:
    return FrameBound(FrameBoundType.FOLLOWING, as_node(offset))


def unbounded_following() -> FrameBound:
    return FrameBound(FrameBoundType.UNBOUNDED_FOLLOWING)
