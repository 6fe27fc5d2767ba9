import re

import pytest

from sqlbee import new_delete, new_insert, new_select, new_update
from sqlbee.exceptions import InvalidIdentifierError, UnsupportedLiteralError
from sqlbee.nodes import (
    Assignment,
    BindParam,
    Case,
    Casted,
    ExtractField,
    Literal,
    NamedFunction,
    RawFragment,
    Star,
    Table,
    WindowDefinition,
    cast,
    count,
    count_distinct,
    cube,
    current_row,
    exists,
    extract,
    following,
    grouping_sets,
    lag,
    not_exists,
    preceding,
    rank,
    row_number,
    sum_,
    unbounded_preceding,
)
from sqlbee.renderers import PostgresRenderer, format_float


def test_simple_select_inline(users: Table, pg_inline: PostgresRenderer) -> None:
    """SELECT with a boolean literal and parameterisation off."""
    query = new_select(users).where(users["active"].eq(True))

    sql, params = query.to_sql(pg_inline)

    assert sql == 'SELECT * FROM "users" WHERE "users"."active" = TRUE'
    assert params is None


def test_limit_offset_are_parameters(users: Table, pg: PostgresRenderer) -> None:
    sql, params = new_select(users).limit(10).offset(20).to_sql(pg)

    assert sql == 'SELECT * FROM "users" LIMIT $1 OFFSET $2'
    assert params == [10, 20]


def test_limit_bind_param(users: Table, pg: PostgresRenderer) -> None:
    sql, params = new_select(users).limit(BindParam(10)).to_sql(pg)
    assert sql == 'SELECT * FROM "users" LIMIT $1'
    assert params == [10]


def test_insert_on_conflict_do_update(users: Table, pg: PostgresRenderer) -> None:
    """INSERT columns are unqualified; SET and RETURNING columns stay qualified."""
    query = (
        new_insert(users)
        .columns(users["email"], users["name"])
        .values("a@b.com", "Alice")
        .on_conflict(users["email"])
        .do_update(Assignment(users["name"], "Alice"))
        .query.returning(users["id"])
    )

    sql, params = query.to_sql(pg)

    assert sql == (
        'INSERT INTO "users" ("email", "name") VALUES ($1, $2) '
        'ON CONFLICT ("email") DO UPDATE SET "users"."name" = $3 RETURNING "users"."id"'
    )
    assert params == ["a@b.com", "Alice", "Alice"]


def test_insert_multiple_rows_and_do_nothing(users: Table, pg: PostgresRenderer) -> None:
    query = new_insert(users).columns(users["id"]).values(1).values(2).on_conflict().do_nothing()

    sql, params = query.to_sql(pg)

    assert sql == 'INSERT INTO "users" ("id") VALUES ($1), ($2) ON CONFLICT DO NOTHING'
    assert params == [1, 2]


def test_insert_from_select(users: Table, pg_inline: PostgresRenderer) -> None:
    archive = Table("archive")
    source = new_select(users).select(users["id"]).where(users["active"].eq(False))
    query = new_insert(archive).columns(archive["id"]).from_select(source)

    sql, _ = query.to_sql(pg_inline)

    assert sql == (
        'INSERT INTO "archive" ("id") SELECT "users"."id" FROM "users" WHERE "users"."active" = FALSE'
    )


def test_conflict_update_where(users: Table, pg_inline: PostgresRenderer) -> None:
    query = (
        new_insert(users)
        .columns(users["id"], users["name"])
        .values(1, "a")
        .on_conflict(users["id"])
        .do_update(Assignment(users["name"], "a"))
        .where(users["locked"].eq(False))
    )

    sql, _ = query.to_sql(pg_inline)

    assert sql.endswith('DO UPDATE SET "users"."name" = \'a\' WHERE "users"."locked" = FALSE')


def test_update_and_delete(users: Table, pg: PostgresRenderer) -> None:
    update = new_update(users).set(users["name"], "Bob").where(users["id"].eq(7)).returning(users["id"])
    sql, params = update.to_sql(pg)
    assert sql == 'UPDATE "users" SET "users"."name" = $1 WHERE "users"."id" = $2 RETURNING "users"."id"'
    assert params == ["Bob", 7]

    delete = new_delete(users).where(users["id"].eq(7), None)
    sql, params = delete.to_sql(pg)
    assert sql == 'DELETE FROM "users" WHERE "users"."id" = $1'
    assert params == [7]


def test_null_is_never_a_parameter(users: Table, pg: PostgresRenderer) -> None:
    query = new_select(users).where(users["a"].eq(None), users["b"].eq(BindParam(None)), users["c"].eq(5))

    sql, params = query.to_sql(pg)

    assert sql == 'SELECT * FROM "users" WHERE "users"."a" = NULL AND "users"."b" = NULL AND "users"."c" = $1'
    assert params == [5]


def test_placeholders_follow_traversal_order(users: Table, posts: Table, pg: PostgresRenderer) -> None:
    """Placeholders are numbered 1..N in the order values appear in the SQL."""
    query = (
        new_select(users)
        .select(users["id"], users["score"].plus(1).as_("next"))
        .join(posts)
        .on(posts["author_id"].eq(users["id"]) & posts["published"].eq(True))
        .where(users["name"].in_("a", "b"))
        .having(count().gt(3))
        .group(users["id"])
        .limit(5)
    )

    sql, params = query.to_sql(pg)

    placeholders = re.findall(r"\$(\d+)", sql)
    assert placeholders == [str(i) for i in range(1, len(params or []) + 1)]
    assert params == [1, True, "a", "b", 3, 5]


def test_rendering_is_deterministic(users: Table) -> None:
    query = new_select(users).where(users["id"].between(1, 9)).order(users["id"].desc())
    first = query.to_sql(PostgresRenderer())
    renderer = PostgresRenderer()
    assert query.to_sql(renderer) == first
    assert query.to_sql(renderer) == first


def test_raw_fragment_binds_advance_numbering(users: Table, pg: PostgresRenderer) -> None:
    """Binds carried by a raw fragment take parameter slots even without placeholders in the text."""
    query = new_select(users).where(RawFragment("ts > now()", [1, 2]), users["id"].eq(3))

    sql, params = query.to_sql(pg)

    assert sql == 'SELECT * FROM "users" WHERE ts > now() AND "users"."id" = $3'
    assert params == [1, 2, 3]


def test_clause_order(users: Table, posts: Table, pg_inline: PostgresRenderer) -> None:
    recent = new_select(posts).select(posts["author_id"])
    window = WindowDefinition("w").partition(users["dept"])
    query = (
        new_select(users)
        .with_("recent", recent)
        .comment("report */ drop")
        .hint("SeqScan(users)")
        .distinct_on(users["dept"])
        .select(users["dept"], rank().over("w"))
        .join(posts)
        .on(posts["author_id"].eq(users["id"]))
        .where(users["active"].eq(True), users["age"].ge(18))
        .group(users["dept"])
        .having(count().gt(1))
        .window(window)
        .order(users["dept"].asc())
        .limit(10)
        .offset(5)
        .for_update()
        .skip_locked()
    )

    sql, _ = query.to_sql(pg_inline)

    assert sql == (
        'WITH "recent" AS (SELECT "posts"."author_id" FROM "posts") '
        "/* report * / drop */ SELECT /*+ SeqScan(users) */ "
        'DISTINCT ON ("users"."dept") "users"."dept", RANK() OVER "w" '
        'FROM "users" INNER JOIN "posts" ON "posts"."author_id" = "users"."id" '
        'WHERE "users"."active" = TRUE AND "users"."age" >= 18 '
        'GROUP BY "users"."dept" HAVING COUNT(*) > 1 '
        'WINDOW "w" AS (PARTITION BY "users"."dept") '
        'ORDER BY "users"."dept" ASC LIMIT 10 OFFSET 5 FOR UPDATE SKIP LOCKED'
    )


def test_recursive_cte_and_columns(users: Table, pg_inline: PostgresRenderer) -> None:
    tree = Table("tree")
    query = new_select(tree).with_recursive("tree", new_select(users), ["id", "parent"]).with_("x", new_select(users))

    sql, _ = query.to_sql(pg_inline)

    assert sql.startswith('WITH RECURSIVE "tree" ("id", "parent") AS (SELECT * FROM "users"), "x" AS (')


def test_joins(users: Table, posts: Table, pg_inline: PostgresRenderer) -> None:
    latest = new_select(posts).where(posts["author_id"].eq(users["id"])).limit(1).as_("latest")
    query = (
        new_select(users)
        .outer_join(posts)
        .on(posts["author_id"].eq(users["id"]))
        .lateral_join(latest)
        .on(Literal(True).eq(True))
        .cross_join(Table("regions"))
        .string_join("NATURAL JOIN teams")
    )

    sql, _ = query.to_sql(pg_inline)

    assert sql == (
        'SELECT * FROM "users" LEFT OUTER JOIN "posts" ON "posts"."author_id" = "users"."id" '
        'INNER JOIN LATERAL (SELECT * FROM "posts" WHERE "posts"."author_id" = "users"."id" LIMIT 1) AS "latest" '
        "ON TRUE = TRUE "
        'CROSS JOIN "regions" NATURAL JOIN teams'
    )


def test_subquery_join_is_parenthesised(users: Table, posts: Table, pg_inline: PostgresRenderer) -> None:
    sub = new_select(posts)
    sql, _ = new_select(users).join(sub).on(users["id"].eq(1)).to_sql(pg_inline)
    assert sql == 'SELECT * FROM "users" INNER JOIN (SELECT * FROM "posts") ON "users"."id" = 1'


def test_set_operation(users: Table, posts: Table, pg: PostgresRenderer) -> None:
    union = new_select(users).select(users["id"]).where(users["a"].eq(1)).union_all(
        new_select(posts).select(posts["id"]).where(posts["b"].eq(2))
    )
    union.order(users["id"].asc()).limit(3).offset(1)

    pg.reset()
    sql = union.render(pg)

    assert sql == (
        '(SELECT "users"."id" FROM "users" WHERE "users"."a" = $1) UNION ALL '
        '(SELECT "posts"."id" FROM "posts" WHERE "posts"."b" = $2) '
        'ORDER BY "users"."id" ASC LIMIT $3 OFFSET $4'
    )
    assert pg.params() == [1, 2, 3, 1]


@pytest.mark.parametrize(
    ("method", "keyword"),
    [
        ("union", "UNION"),
        ("intersect", "INTERSECT"),
        ("intersect_all", "INTERSECT ALL"),
        ("except_", "EXCEPT"),
        ("except_all", "EXCEPT ALL"),
    ],
)
def test_set_operation_keywords(users: Table, posts: Table, method: str, keyword: str) -> None:
    node = getattr(new_select(users), method)(new_select(posts))
    assert node.render(PostgresRenderer()) == f'(SELECT * FROM "users") {keyword} (SELECT * FROM "posts")'


def test_predicates(users: Table, pg_inline: PostgresRenderer) -> None:
    column = users["x"]
    cases = [
        (column.not_in(1, 2), '"users"."x" NOT IN (1, 2)'),
        (column.not_between(1, 2), '"users"."x" NOT BETWEEN 1 AND 2'),
        (column.is_not_null(), '"users"."x" IS NOT NULL'),
        (~column.eq(1), 'NOT ("users"."x" = 1)'),
        (column.eq(1) | column.eq(2), '("users"."x" = 1 OR "users"."x" = 2)'),
        (column.matches_regexp("^a"), "\"users\".\"x\" ~ '^a'"),
        (column.does_not_match_regexp("^a"), "\"users\".\"x\" !~ '^a'"),
        (column.case_sensitive_eq("A"), "\"users\".\"x\" = 'A'"),
        (column.case_insensitive_eq("A"), "LOWER(\"users\".\"x\") = LOWER('A')"),
        (column.is_distinct_from(1), '"users"."x" IS DISTINCT FROM 1'),
        (column.contains("{1}"), "\"users\".\"x\" @> '{1}'"),
        (column.overlaps("{1}"), "\"users\".\"x\" && '{1}'"),
        (column.eq_any(1, 2), '("users"."x" = 1 OR "users"."x" = 2)'),
        (exists(new_select(users)), 'EXISTS (SELECT * FROM "users")'),
        (not_exists(new_select(users)), 'NOT EXISTS (SELECT * FROM "users")'),
    ]
    for node, expected in cases:
        assert node.render(pg_inline) == expected


def test_arithmetic_parenthesisation(users: Table, pg_inline: PostgresRenderer) -> None:
    """Nested arithmetic operands are always parenthesised; leaves never are."""
    node = (users["a"] + 1) * (users["b"] - 2)
    assert node.render(pg_inline) == '("users"."a" + 1) * ("users"."b" - 2)'
    assert users["a"].bitwise_not().shift_left(2).render(pg_inline) == '(~"users"."a") << 2'
    assert users["a"].concat("x").render(pg_inline) == "\"users\".\"a\" || 'x'"


def test_functions(users: Table, pg_inline: PostgresRenderer) -> None:
    assert count().render(pg_inline) == "COUNT(*)"
    assert count_distinct(users["id"]).render(pg_inline) == 'COUNT(DISTINCT "users"."id")'
    filtered = sum_(users["amount"]).with_filter(users["paid"].eq(True))
    assert filtered.render(pg_inline) == 'SUM("users"."amount") FILTER (WHERE "users"."paid" = TRUE)'
    assert extract(ExtractField.YEAR, users["created"]).render(pg_inline) == 'EXTRACT(YEAR FROM "users"."created")'
    assert cast(users["id"], "text").render(pg_inline) == 'CAST("users"."id" AS text)'
    assert NamedFunction("greatest", [1, 2], distinct=True).render(pg_inline) == "greatest(DISTINCT 1, 2)"
    assert Casted("5", "integer").render(pg_inline) == "CAST('5' AS integer)"

    case = Case().when(users["age"].lt(18), "minor").else_("adult")
    assert case.render(pg_inline) == "CASE WHEN \"users\".\"age\" < 18 THEN 'minor' ELSE 'adult' END"


def test_count_star_takes_no_parameter(pg: PostgresRenderer) -> None:
    pg.reset()
    assert count().render(pg) == "COUNT(*)"
    assert pg.params() == []


def test_window_rendering(users: Table, pg_inline: PostgresRenderer) -> None:
    window = WindowDefinition().partition(users["dept"]).order(users["salary"].desc())
    window.rows(unbounded_preceding(), current_row())
    assert row_number().over(window).render(pg_inline) == (
        'ROW_NUMBER() OVER (PARTITION BY "users"."dept" ORDER BY "users"."salary" DESC '
        "ROWS BETWEEN UNBOUNDED PRECEDING AND CURRENT ROW)"
    )
    ranged = WindowDefinition().range(preceding(2))
    assert lag(users["x"], 1).over(ranged).render(pg_inline) == 'LAG("users"."x", 1) OVER (RANGE 2 PRECEDING)'
    assert rank().over().render(pg_inline) == "RANK() OVER ()"
    framed = WindowDefinition().rows(preceding(1), following(1))
    assert pg_inline.render_window_definition(framed) == "(ROWS BETWEEN 1 PRECEDING AND 1 FOLLOWING)"


def test_grouping_sets_rendering(users: Table, pg_inline: PostgresRenderer) -> None:
    assert cube(users["a"], users["b"]).render(pg_inline) == 'CUBE("users"."a", "users"."b")'
    node = grouping_sets([users["a"]], [users["a"], users["b"]])
    assert node.render(pg_inline) == 'GROUPING SETS(("users"."a"), ("users"."a", "users"."b"))'


def test_star_and_alias(users: Table, pg_inline: PostgresRenderer) -> None:
    alias = users.alias("u")
    sql, _ = new_select(alias).select(Star(users), alias["id"].as_("user_id")).to_sql(pg_inline)
    assert sql == 'SELECT "users".*, "u"."id" AS "user_id" FROM "users" AS "u"'


def test_literal_formatting(pg_inline: PostgresRenderer) -> None:
    assert Literal("it's a \\ test").render(pg_inline) == "'it''s a \\\\ test'"
    assert Literal(False).render(pg_inline) == "FALSE"
    assert Literal(42).render(pg_inline) == "42"
    assert Literal(1.5).render(pg_inline) == "1.5"
    assert Literal(None).render(pg_inline) == "NULL"


def test_format_float() -> None:
    assert format_float(1.5) == "1.5"
    assert format_float(2.0) == "2"
    assert format_float(1e20) == "1e+20"
    assert format_float(0.1 + 0.2) == repr(0.1 + 0.2)


def test_unsupported_literal_raises(pg_inline: PostgresRenderer) -> None:
    with pytest.raises(UnsupportedLiteralError):
        Literal(object()).render(pg_inline)


@pytest.mark.parametrize("name", ["drop table", "f;", "", "a-b"])
def test_invalid_function_name(name: str, pg_inline: PostgresRenderer) -> None:
    with pytest.raises(InvalidIdentifierError):
        NamedFunction(name).render(pg_inline)


def test_invalid_type_name(pg_inline: PostgresRenderer) -> None:
    with pytest.raises(InvalidIdentifierError):
        Casted(1, "int; DROP").render(pg_inline)
    assert Casted(1, "numeric(10, 2)").render(pg_inline) == "CAST(1 AS numeric(10, 2))"


def test_identifier_quoting_escapes(pg_inline: PostgresRenderer) -> None:
    table = Table('we"ird')
    assert table["c"].render(pg_inline) == '"we""ird"."c"'
