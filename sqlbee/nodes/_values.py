from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional

from sqlbee.nodes._base import Node
from sqlbee.nodes._expressions import Expression

if TYPE_CHECKING:
    from sqlbee.nodes._relations import Table

__all__ = ("BindParam", "Casted", "MaskedValue", "RawFragment", "Star")


class BindParam(Expression):
    """A value that is always emitted as a placeholder in parameterised mode."""

    __slots__ = ("value",)
    __visit_name__ = "bind_param"

    def __init__(self, value: Any) -> None:
        self.value = value


class Casted(Expression):
    """A literal value coerced to a SQL type, ``CAST(value AS type_name)``.

    ``type_name`` is validated by the renderer against letters, digits, ``_``,
    space, ``(``, ``)`` and ``,``.
    """

    __slots__ = ("type_name", "value")
    __visit_name__ = "casted"

    def __init__(self, value: Any, type_name: str = "") -> None:
        self.value = value
        self.type_name = type_name


class RawFragment(Expression):
    """Verbatim SQL text with optional ordered bind values.

    The text is emitted as-is and never escaped. Only use it with trusted input.
    """

    __slots__ = ("binds", "raw")
    __visit_name__ = "raw_fragment"

    def __init__(self, raw: str, binds: "Optional[Sequence[Any]]" = None) -> None:
        self.raw = raw
        self.binds = list(binds) if binds else []


class MaskedValue(Expression):
    """A constant shown in place of a hidden column value.

    Renderers always inline it as a literal of their dialect, even when parameterising,
    so the statement text shows what was masked.
    """

    __slots__ = ("value",)
    __visit_name__ = "masked_value"

    def __init__(self, value: Any) -> None:
        self.value = value


class Star(Node):
    """``*`` or ``"table".*``."""

    __slots__ = ("table",)
    __visit_name__ = "star"

    def __init__(self, table: "Optional[Table]" = None) -> None:
        self.table = table
