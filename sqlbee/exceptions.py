from typing import Any, ClassVar, Optional

__all__ = (
    "AccessDeniedError",
    "CommandError",
    "ImproperConfigurationError",
    "InvalidIdentifierError",
    "MissingDependencyError",
    "SQLBeeError",
    "SQLBuilderError",
    "SQLParsingError",
    "SQLTransformationError",
    "UnsupportedLiteralError",
)


class SQLBeeError(Exception):
    """Base class of every error sqlbee raises.

    Attributes:
        message: What went wrong. Falls back to the class's ``default_message``.
    """

    default_message: ClassVar[str] = "sqlbee error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class MissingDependencyError(SQLBeeError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        self.package = package
        extra = install_package or package
        super().__init__(
            f"{package!r} is required for this feature. Install it with 'pip install sqlbee[{extra}]' "
            f"or 'pip install {extra}'",
        )


class ImproperConfigurationError(SQLBeeError):
    """A renderer, transformer or logging setup cannot work as configured."""


class CommandError(SQLBeeError):
    """A shell command is malformed or not valid in the current session state."""


class SQLParsingError(SQLBeeError):
    """Issues parsing a textual expression or shell command."""

    default_message = "Issues parsing SQL expression."


class SQLBuilderError(SQLBeeError):
    """Issues Building or Generating SQL statements."""

    default_message = "Issues building SQL statement."


class InvalidIdentifierError(SQLBuilderError):
    """A function name or type name contains characters outside its whitelist."""

    def __init__(self, kind: str, value: str) -> None:
        self.kind = kind
        self.value = value
        super().__init__(f"invalid {kind}: {value!r}")


class UnsupportedLiteralError(SQLBuilderError):
    """A literal value has a Python type the renderer cannot interpolate."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"unsupported literal type: {type(value).__name__}")


class SQLTransformationError(SQLBeeError):
    """Issues transforming a statement before rendering.

    Attributes:
        statement: The statement root the pipeline was working on, when known.
    """

    default_message = "Issues transforming SQL statement."

    def __init__(self, message: Optional[str] = None, statement: Optional[Any] = None) -> None:
        super().__init__(message)
        self.statement = statement


class AccessDeniedError(SQLTransformationError):
    """A policy transformer refused access to a table referenced by the statement."""

    default_message = "access denied"

    def __init__(self, table: Optional[str] = None, message: Optional[str] = None) -> None:
        if message is None and table:
            message = f"access denied for table {table!r}"
        super().__init__(message)
        self.table = table
