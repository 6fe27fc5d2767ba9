import pytest

from sqlbee import new_insert, new_select
from sqlbee.exceptions import ImproperConfigurationError
from sqlbee.nodes import Table
from sqlbee.renderers import (
    DIALECTS,
    MySQLRenderer,
    PostgresRenderer,
    SQLiteRenderer,
    SQLRenderer,
    get_renderer,
)


def test_mysql_join_with_parameters(users: Table, posts: Table, mysql: MySQLRenderer) -> None:
    """MySQL uses backticks and positional ``?`` placeholders."""
    query = (
        new_select(users)
        .select(users["name"], users["email"])
        .join(posts)
        .on(users["id"].eq(posts["author_id"]))
        .where(users["active"].eq(True), posts["published"].eq(True))
    )

    sql, params = query.to_sql(mysql)

    assert sql == (
        "SELECT `users`.`name`, `users`.`email` FROM `users` "
        "INNER JOIN `posts` ON `users`.`id` = `posts`.`author_id` "
        "WHERE `users`.`active` = ? AND `posts`.`published` = ?"
    )
    assert params == [True, True]


def test_sqlite_case_insensitive_eq(sqlite_inline: SQLiteRenderer) -> None:
    node = Table("t")["name"].case_insensitive_eq("alice")
    assert node.render(sqlite_inline) == "\"t\".\"name\" = 'alice' COLLATE NOCASE"


@pytest.mark.parametrize(
    ("renderer", "regexp", "not_regexp", "sensitive", "insensitive"),
    [
        (
            PostgresRenderer(parameterize=False),
            "\"t\".\"c\" ~ 'x'",
            "\"t\".\"c\" !~ 'x'",
            "\"t\".\"c\" = 'x'",
            "LOWER(\"t\".\"c\") = LOWER('x')",
        ),
        (
            MySQLRenderer(parameterize=False),
            "`t`.`c` REGEXP 'x'",
            "`t`.`c` NOT REGEXP 'x'",
            "`t`.`c` = BINARY 'x'",
            "`t`.`c` = 'x'",
        ),
        (
            SQLiteRenderer(parameterize=False),
            "\"t\".\"c\" REGEXP 'x'",
            "\"t\".\"c\" NOT REGEXP 'x'",
            "\"t\".\"c\" = 'x' COLLATE BINARY",
            "\"t\".\"c\" = 'x' COLLATE NOCASE",
        ),
    ],
    ids=["postgres", "mysql", "sqlite"],
)
def test_dialect_comparison_spellings(
    renderer: SQLRenderer, regexp: str, not_regexp: str, sensitive: str, insensitive: str
) -> None:
    column = Table("t")["c"]
    assert column.matches_regexp("x").render(renderer) == regexp
    assert column.does_not_match_regexp("x").render(renderer) == not_regexp
    assert column.case_sensitive_eq("x").render(renderer) == sensitive
    assert column.case_insensitive_eq("x").render(renderer) == insensitive


@pytest.mark.parametrize("dialect", ["postgres", "mysql", "sqlite"])
def test_shared_operators_render_identically(dialect: str) -> None:
    """Operators without a dialect override only differ in identifier quoting."""
    renderer = get_renderer(dialect, parameterize=False)
    column = Table("t")["c"]
    quoted = renderer.quote_identifier("t") + "." + renderer.quote_identifier("c")
    assert column.like("a%").render(renderer) == f"{quoted} LIKE 'a%'"
    assert column.is_null().render(renderer) == f"{quoted} IS NULL"
    assert column.between(1, 2).render(renderer) == f"{quoted} BETWEEN 1 AND 2"


def test_mysql_backtick_escaping(mysql: MySQLRenderer) -> None:
    assert mysql.quote_identifier("a`b") == "`a``b`"


def test_sqlite_insert_placeholders(users: Table) -> None:
    renderer = SQLiteRenderer()
    sql, params = new_insert(users).columns(users["id"], users["name"]).values(1, None).to_sql(renderer)
    assert sql == 'INSERT INTO "users" ("id", "name") VALUES (?, NULL)'
    assert params == [1]


def test_get_renderer() -> None:
    assert set(DIALECTS) == {"postgres", "mysql", "sqlite"}
    renderer = get_renderer("MySQL", parameterize=False)
    assert isinstance(renderer, MySQLRenderer)
    assert renderer.parameterize is False
    assert renderer.params() is None
    assert get_renderer("sqlite").dialect == "sqlite"


def test_get_renderer_unknown_dialect() -> None:
    with pytest.raises(ImproperConfigurationError, match="unknown dialect 'oracle'"):
        get_renderer("oracle")


def test_placeholder_styles() -> None:
    assert PostgresRenderer().placeholder(3) == "$3"
    assert MySQLRenderer().placeholder(3) == "?"
    assert SQLiteRenderer().placeholder(3) == "?"


def test_dialect_hooks_are_abstract() -> None:
    """A renderer must supply identifier quoting and placeholders before it can be built."""

    class QuotingOnly(SQLRenderer):
        def quote_identifier(self, name: str) -> str:
            return f"[{name}]"

    class Bracketed(QuotingOnly):
        def placeholder(self, index: int) -> str:
            return f":{index}"

    with pytest.raises(TypeError, match="abstract"):
        SQLRenderer()  # type: ignore[abstract]
    with pytest.raises(TypeError, match="placeholder"):
        QuotingOnly()  # type: ignore[abstract]

    sql, params = new_select(Table("users")).where(Table("users")["id"].eq(1)).to_sql(Bracketed())
    assert sql == "SELECT * FROM [users] WHERE [users].[id] = :1"
    assert params == [1]
