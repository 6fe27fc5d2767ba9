from io import StringIO
from pathlib import Path

import pytest

from sqlbee.exceptions import CommandError, SQLParsingError
from sqlbee.repl import Mode, Session
from sqlbee.repl.session import NO_QUERY


@pytest.fixture()
def out() -> StringIO:
    return StringIO()


@pytest.fixture()
def session(out: StringIO) -> Session:
    return Session(out=out)


def run(session: Session, *lines: str) -> None:
    for line in lines:
        session.execute(line)


def last_line(out: StringIO) -> str:
    return out.getvalue().splitlines()[-1]


def test_select_flow(session: Session, out: StringIO) -> None:
    run(
        session,
        "table users",
        "from users",
        "select users.id, users.name",
        "where users.age >= 18",
        "order users.name desc",
        "limit 10",
        "sql",
    )

    lines = out.getvalue().splitlines()
    assert lines[0] == '  Registered table "users"'
    assert lines[1] == '  Query FROM "users"'
    assert lines[2] == "  Projections set (2 columns)"
    assert lines[-1] == (
        '  SELECT "users"."id", "users"."name" FROM "users" '
        'WHERE "users"."age" >= 18 ORDER BY "users"."name" DESC LIMIT 10;'
    )


def test_parameterized_output(session: Session, out: StringIO) -> None:
    run(session, "from users", "where users.age >= 18", "limit 10", "params", "sql")
    lines = out.getvalue().splitlines()
    assert "  Parameterized queries enabled" in lines
    assert lines[-2] == '  SELECT * FROM "users" WHERE "users"."age" >= $1 LIMIT $2;'
    assert lines[-1] == "  Params: [18, 10]"


def test_engine_switch(session: Session, out: StringIO) -> None:
    run(session, "from users", "where users.id = 1", "engine MySQL", "sql")
    assert "  Engine set to mysql" in out.getvalue()
    assert last_line(out) == "  SELECT * FROM `users` WHERE `users`.`id` = 1;"

    with pytest.raises(CommandError, match="unknown engine 'oracle'"):
        session.execute("engine oracle")


def test_unknown_command(session: Session) -> None:
    with pytest.raises(CommandError, match="unknown command: frobnicate"):
        session.execute("frobnicate now")


def test_blank_lines_are_ignored(session: Session, out: StringIO) -> None:
    session.execute("   ")
    assert out.getvalue() == ""


def test_commands_require_a_query(session: Session) -> None:
    with pytest.raises(CommandError, match="no query defined"):
        session.execute("sql")
    with pytest.raises(CommandError, match="no query defined"):
        session.execute("limit 5")
    assert NO_QUERY.startswith("no query defined")


def test_unknown_table_in_condition(session: Session) -> None:
    session.execute("from users")
    with pytest.raises(SQLParsingError, match="where: unknown table or alias 'posts'"):
        session.execute("where posts.id = 1")


def test_joins(session: Session, out: StringIO) -> None:
    run(
        session,
        "from users",
        "join posts on posts.author_id = users.id",
        "left join comments on comments.post_id = posts.id",
        "cross join tags",
        "sql",
    )
    assert last_line(out) == (
        '  SELECT * FROM "users" INNER JOIN "posts" ON "posts"."author_id" = "users"."id" '
        'LEFT OUTER JOIN "comments" ON "comments"."post_id" = "posts"."id" CROSS JOIN "tags";'
    )

    with pytest.raises(CommandError, match="expected: <table> on <condition>"):
        session.execute("join posts")


def test_grouping_and_having(session: Session, out: StringIO) -> None:
    run(
        session,
        "from users",
        "select users.dept, count(*) as n",
        "group users.dept",
        "having count(*) > 1",
        "sql",
    )
    assert last_line(out) == (
        '  SELECT "users"."dept", COUNT(*) AS "n" FROM "users" GROUP BY "users"."dept" HAVING COUNT(*) > 1;'
    )


def test_locking(session: Session, out: StringIO) -> None:
    run(session, "from users", "for update", "skip locked", "sql")
    assert last_line(out) == '  SELECT * FROM "users" FOR UPDATE SKIP LOCKED;'


def test_set_operation(session: Session, out: StringIO) -> None:
    run(session, "from users", "select users.id", "union", "from posts", "select posts.id", "sql")
    assert "  UNION - start a new query with 'from <table>'" in out.getvalue()
    assert last_line(out) == '  (SELECT "users"."id" FROM "users") UNION (SELECT "posts"."id" FROM "posts");'


def test_cte(session: Session, out: StringIO) -> None:
    run(session, "from users", "where users.active = true", "with active", "from active", "sql")
    assert last_line(out) == (
        '  WITH "active" AS (SELECT * FROM "users" WHERE "users"."active" = TRUE) SELECT * FROM "active";'
    )


def test_insert_flow(session: Session, out: StringIO) -> None:
    run(
        session,
        "insert into users",
        "columns users.id, users.name",
        "values 1, 'a'",
        "on conflict (users.id) do update set users.name = 'b'",
        "returning users.id",
        "sql",
    )
    assert session.mode is Mode.INSERT
    assert last_line(out) == (
        "  INSERT INTO \"users\" (\"id\", \"name\") VALUES (1, 'a') "
        'ON CONFLICT ("id") DO UPDATE SET "users"."name" = \'b\' RETURNING "users"."id";'
    )


def test_insert_do_nothing_and_errors(session: Session, out: StringIO) -> None:
    run(session, "insert into users", "columns users.id", "values 1", "on conflict (users.id) do nothing", "sql")
    assert last_line(out) == '  INSERT INTO "users" ("id") VALUES (1) ON CONFLICT ("id") DO NOTHING;'

    with pytest.raises(CommandError, match="usage: on conflict"):
        session.execute("on conflict users.id do nothing")
    with pytest.raises(CommandError, match="not supported for INSERT"):
        session.execute("where users.id = 1")


def test_update_flow(session: Session, out: StringIO) -> None:
    run(session, "update users", "set users.name = 'x'", "where users.id = 1", "sql")
    assert "  SET users.name = 'x'" in out.getvalue()
    assert last_line(out) == "  UPDATE \"users\" SET \"users\".\"name\" = 'x' WHERE \"users\".\"id\" = 1;"


def test_delete_flow(session: Session, out: StringIO) -> None:
    run(session, "delete from users", "where users.id = 1", "returning users.id", "sql")
    assert last_line(out) == '  DELETE FROM "users" WHERE "users"."id" = 1 RETURNING "users"."id";'


def test_dml_commands_check_mode(session: Session) -> None:
    session.execute("from users")
    with pytest.raises(CommandError, match="columns command requires an active INSERT"):
        session.execute("columns users.id")
    with pytest.raises(CommandError, match="set command requires an active UPDATE"):
        session.execute("set users.a = 1")
    with pytest.raises(CommandError, match="returning command requires INSERT, UPDATE, or DELETE mode"):
        session.execute("returning users.id")


def test_plugins(session: Session, out: StringIO) -> None:
    run(session, "from users", "plugin softdelete", "sql")
    assert "  Soft-delete enabled (column: deleted_at)" in out.getvalue()
    assert last_line(out) == '  SELECT * FROM "users" WHERE "users"."deleted_at" IS NULL;'

    session.execute("plugins")
    assert "on   (column: deleted_at)" in out.getvalue()

    run(session, "plugin off", "sql")
    assert "  All plugins disabled" in out.getvalue()
    assert last_line(out) == '  SELECT * FROM "users";'

    with pytest.raises(CommandError, match="unknown plugin: audit"):
        session.execute("plugin audit")
    with pytest.raises(CommandError, match="plugin 'tenant' is not enabled"):
        session.execute("plugin off tenant")


def test_plugins_apply_to_later_statements(session: Session, out: StringIO) -> None:
    run(session, "plugin tenant 7", "delete from users", "sql")
    assert last_line(out) == '  DELETE FROM "users" WHERE "users"."tenant_id" = 7;'


def test_pretty(session: Session, out: StringIO) -> None:
    run(session, "from users", "where users.id = 1", "pretty")
    assert out.getvalue().endswith('  SELECT *\n  FROM "users"\n  WHERE "users"."id" = 1;\n')


def test_ast_summary(session: Session, out: StringIO) -> None:
    run(session, "from users", "select users.id", "where users.id = 1", "order users.id", "ast")
    lines = out.getvalue().splitlines()
    assert "  Engine: postgres" in lines
    assert "  FROM:   users" in lines
    assert "  SELECT: users.id" in lines
    assert "  WHERE:  1 condition(s)" in lines
    assert "  ORDER:  users.id ASC" in lines


def test_expr(session: Session, out: StringIO) -> None:
    run(session, "table users", "expr users.a + 1")
    assert last_line(out) == '  "users"."a" + 1'
    session.execute("expr users.a = 1 or users.b = 2")
    assert last_line(out) == '  ("users"."a" = 1 OR "users"."b" = 2)'
    with pytest.raises(SQLParsingError, match="expr: "):
        session.execute("expr users.a foo 1")


def test_expr_precedence_and_negative_literals(session: Session, out: StringIO) -> None:
    run(session, "table users", "expr users.a + users.b * 2")
    assert last_line(out) == '  "users"."a" + ("users"."b" * 2)'

    run(session, "update users", "set users.total = users.price * 2 + 1", "sql")
    assert last_line(out) == '  UPDATE "users" SET "users"."total" = ("users"."price" * 2) + 1;'


def test_where_with_negative_literal(session: Session, out: StringIO) -> None:
    run(session, "from users", "where users.x > -5", "where users.y between -2 and 2", "sql")
    assert last_line(out) == (
        '  SELECT * FROM "users" WHERE "users"."x" > -5 AND "users"."y" BETWEEN -2 AND 2;'
    )


def test_values_accept_negative_numbers(session: Session, out: StringIO) -> None:
    run(session, "insert into users", "columns users.id, users.score", "values -1, -2.5", "sql")
    assert last_line(out) == '  INSERT INTO "users" ("id", "score") VALUES (-1, -2.5);'


def test_aliases_and_tables(session: Session, out: StringIO) -> None:
    run(session, "alias users u", "from u", "where u.id = 1", "sql")
    assert '  Aliased "users" as "u"' in out.getvalue()
    assert last_line(out) == '  SELECT * FROM "users" AS "u" WHERE "u"."id" = 1;'

    session.execute("tables")
    lines = out.getvalue().splitlines()
    assert lines[-2:] == ["  table: users", "  alias: u -> users"]


def test_reset(session: Session, out: StringIO) -> None:
    run(session, "from users", "union", "from posts", "reset")
    assert last_line(out) == "  Query cleared"
    assert session.set_ops == []
    with pytest.raises(CommandError):
        session.execute("sql")


def test_limit_requires_integer(session: Session) -> None:
    session.execute("from users")
    with pytest.raises(CommandError, match="limit requires an integer"):
        session.execute("limit ten")


def test_dot_export(session: Session, out: StringIO, tmp_path: Path) -> None:
    target = tmp_path / "query.dot"
    run(session, "from users", "where users.id = 1", "plugin softdelete", f"dot {target}")

    assert last_line(out) == f"  Wrote DOT to {target}"
    source = target.read_text(encoding="utf-8")
    assert source.startswith("digraph AST {")
    assert 'subgraph "cluster_0_softdelete" {' in source

    with pytest.raises(CommandError, match="usage: dot <filepath>"):
        session.execute("dot")


def test_help(session: Session, out: StringIO) -> None:
    session.execute("help")
    assert "Query Building:" in out.getvalue()
    assert "plugin softdelete" in out.getvalue()


def test_edit_lists_entries(session: Session, out: StringIO) -> None:
    run(
        session,
        "from users",
        "select users.id, users.name",
        "where users.age > 18",
        "join posts on posts.author_id = users.id",
        "order users.name desc",
        "edit",
    )
    lines = out.getvalue().splitlines()
    assert lines[lines.index("  Editable clauses:") :] == [
        "  Editable clauses:",
        "    SELECT:",
        '      [1] "users"."id"',
        '      [2] "users"."name"',
        "    WHERE:",
        '      [3] "users"."age" > 18',
        "    JOIN:",
        '      [4] INNER JOIN "posts" ON "posts"."author_id" = "users"."id"',
        "    ORDER BY:",
        '      [5] "users"."name" DESC',
        "    GROUP BY:",
        "      (empty)",
        "    HAVING:",
        "      (empty)",
        "    WINDOW:",
        "      (empty)",
    ]

    session.execute("edit having")
    assert out.getvalue().splitlines()[-2:] == ["  HAVING:", "    (empty)"]
    session.execute("edit select")
    assert out.getvalue().splitlines()[-3:] == ["  SELECT:", '    [1] "users"."id"', '    [2] "users"."name"']


def test_edit_remove_and_replace(session: Session, out: StringIO) -> None:
    run(
        session,
        "from users",
        "select users.id, users.name",
        "where users.age > 18",
        "where users.active = true",
        "order users.name",
    )

    session.execute("edit where remove 1")
    assert last_line(out) == "  Removed WHERE [1]"
    session.execute("edit 2 users.email, users.name as n")
    assert last_line(out) == "  Updated SELECT [2]"
    session.execute("edit order 1 users.id desc nulls last")
    assert last_line(out) == "  Updated ORDER BY [1]"

    session.execute("sql")
    assert last_line(out) == (
        '  SELECT "users"."id", "users"."email", "users"."name" AS "n" FROM "users" '
        'WHERE "users"."active" = TRUE ORDER BY "users"."id" DESC NULLS LAST;'
    )


def test_edit_joins_groups_and_windows(session: Session, out: StringIO) -> None:
    run(
        session,
        "from users",
        "join posts on posts.author_id = users.id",
        "cross join tags",
        "group users.dept",
        "window w partition by users.dept",
        "edit join 1 comments on comments.user_id = users.id",
        "edit join 2 labels",
        "edit group 1 rollup(users.dept, users.team)",
        "edit window 1 w2 order by users.id",
        "sql",
    )
    assert last_line(out) == (
        '  SELECT * FROM "users" INNER JOIN "comments" ON "comments"."user_id" = "users"."id" '
        'CROSS JOIN "labels" GROUP BY ROLLUP("users"."dept", "users"."team") '
        'WINDOW "w2" AS (ORDER BY "users"."id" ASC);'
    )


def test_edit_errors(session: Session, out: StringIO) -> None:
    with pytest.raises(CommandError, match="no query defined"):
        session.execute("edit")

    session.execute("from users")
    session.execute("edit")
    assert last_line(out) == "  Nothing to edit"
    with pytest.raises(CommandError, match="nothing to edit"):
        session.execute("edit remove 1")

    run(session, "where users.id = 1", "raw join JOIN x ON TRUE")
    with pytest.raises(CommandError, match="unknown clause 'limit'"):
        session.execute("edit limit")
    with pytest.raises(CommandError, match=r"invalid entry number '3' \(1-2\)"):
        session.execute("edit remove 3")
    with pytest.raises(CommandError, match="usage: edit"):
        session.execute("edit 1")
    with pytest.raises(CommandError, match="raw joins can only be removed"):
        session.execute("edit join 1 posts")
    with pytest.raises(SQLParsingError, match="where: "):
        session.execute("edit where 1 users.id")

    session.execute("edit join remove 1")
    session.execute("sql")
    assert last_line(out) == '  SELECT * FROM "users" WHERE "users"."id" = 1;'
