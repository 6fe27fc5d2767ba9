"""Identifier and string literal quoting.

All functions are pure and operate on the string as given; multi-byte characters and
embedded NUL characters pass through untouched.
"""

__all__ = ("escape_like_pattern", "escape_string", "quote_backtick", "quote_double")


def quote_double(name: str) -> str:
    """Quote an identifier with double quotes, doubling embedded double quotes.

    Args:
        name: The raw identifier.

    Returns:
        The quoted identifier, e.g. ``"users"``.
    """
    return '"' + name.replace('"', '""') + '"'


def quote_backtick(name: str) -> str:
    """Quote an identifier with backticks, doubling embedded backticks.

    Args:
        name: The raw identifier.

    Returns:
        The backtick-quoted identifier.
    """
    return "`" + name.replace("`", "``") + "`"


def escape_string(value: str) -> str:
    """Escape a string for use inside a single-quoted SQL literal.

    Backslashes are doubled first, then single quotes.
    """
    return value.replace("\\", "\\\\").replace("'", "''")


def escape_like_pattern(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally.

    Args:
        value: The text to search for.

    Returns:
        The text with ``\\``, ``%`` and ``_`` escaped by a backslash.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
