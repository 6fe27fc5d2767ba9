import pytest

from sqlbee.quoting import escape_like_pattern, escape_string, quote_backtick, quote_double


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("users", '"users"'),
        ('we"ird', '"we""ird"'),
        ("", '""'),
        ("naïve", '"naïve"'),
    ],
)
def test_quote_double(name: str, expected: str) -> None:
    """Double quotes wrap the identifier and embedded quotes are doubled."""
    assert quote_double(name) == expected


def test_quote_backtick() -> None:
    """Backticks wrap the identifier and embedded backticks are doubled."""
    assert quote_backtick("users") == "`users`"
    assert quote_backtick("a`b") == "`a``b`"


@pytest.mark.parametrize("name", ["plain", 'x"y', "a``b", "nul\x00byte", '""'])
def test_quoting_is_reversible(name: str) -> None:
    """Stripping the outer quotes and undoubling gives back the original name."""
    assert quote_double(name)[1:-1].replace('""', '"') == name
    assert quote_backtick(name)[1:-1].replace("``", "`") == name


def test_escape_string_doubles_backslash_before_quote() -> None:
    """Backslashes are doubled first so an escaped quote cannot be broken out of."""
    assert escape_string("it's") == "it''s"
    assert escape_string("a\\b") == "a\\\\b"
    assert escape_string("\\'") == "\\\\''"


def test_escape_like_pattern() -> None:
    """Wildcards are escaped and plain text passes through unchanged."""
    assert escape_like_pattern("50%_off") == "50\\%\\_off"
    assert escape_like_pattern("back\\slash") == "back\\\\slash"
    assert escape_like_pattern("plain text") == "plain text"
