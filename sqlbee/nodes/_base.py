from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from sqlbee.renderers._base import NodeVisitor

__all__ = ("Node",)


class Node:
    """Base class of every AST node.

    A node carries no rendering logic. ``render`` looks up ``visit_<name>`` on the
    renderer, where ``<name>`` is the class level ``__visit_name__`` tag, so a dialect
    renderer that overrides one visit method is picked up by every recursive call.
    """

    __slots__ = ()

    __visit_name__: ClassVar[str] = ""
    is_select: ClassVar[bool] = False

    def render(self, renderer: "NodeVisitor") -> Any:
        """Render this node with ``renderer``.

        Args:
            renderer: Any visitor exposing ``visit_<name>`` methods.

        Returns:
            Whatever the visitor returns for this node kind (SQL text for SQL renderers).
        """
        return getattr(renderer, f"visit_{self.__visit_name__}")(self)

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in _slot_names(type(self)))
        return f"{type(self).__name__}({fields})"


def _slot_names(cls: type) -> "list[str]":
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        names.extend(slot for slot in slots if not slot.startswith("_"))
    return names
