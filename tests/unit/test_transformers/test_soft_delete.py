from sqlbee import new_delete, new_insert, new_select, new_update
from sqlbee.nodes import Table
from sqlbee.renderers import PostgresRenderer
from sqlbee.transformers import SoftDelete


def test_select_filters_every_table(users: Table, posts: Table, pg_inline: PostgresRenderer) -> None:
    query = new_select(users).join(posts).on(posts["author_id"].eq(users["id"])).use(SoftDelete())
    sql, _ = query.to_sql(pg_inline)
    assert sql.endswith('WHERE "users"."deleted_at" IS NULL AND "posts"."deleted_at" IS NULL')


def test_custom_column(users: Table, pg_inline: PostgresRenderer) -> None:
    sql, _ = new_select(users).use(SoftDelete(column="removed_on")).to_sql(pg_inline)
    assert sql == 'SELECT * FROM "users" WHERE "users"."removed_on" IS NULL'


def test_table_whitelist(users: Table, posts: Table, pg_inline: PostgresRenderer) -> None:
    query = new_select(users).join(posts).on(posts["author_id"].eq(users["id"])).use(SoftDelete(tables=["posts"]))
    sql, _ = query.to_sql(pg_inline)
    assert sql.endswith('WHERE "posts"."deleted_at" IS NULL')
    assert '"users"."deleted_at"' not in sql


def test_per_table_columns_restrict_to_named_tables(users: Table, posts: Table) -> None:
    """Per-table overrides join the whitelist; unnamed tables are left alone."""
    transformer = SoftDelete(table_columns={"posts": "archived_at"})
    assert transformer.applies_to("posts")
    assert not transformer.applies_to("users")
    assert transformer.column_for("posts") == "archived_at"

    combined = SoftDelete(tables=["users"], table_columns={"posts": "archived_at"})
    assert combined.tables == {"users", "posts"}
    assert combined.column_for("users") == "deleted_at"


def test_alias_is_used_for_qualification(users: Table, pg_inline: PostgresRenderer) -> None:
    aliased = users.alias("u")
    sql, _ = new_select(aliased).use(SoftDelete()).to_sql(pg_inline)
    assert sql == 'SELECT * FROM "users" AS "u" WHERE "u"."deleted_at" IS NULL'


def test_subqueries_are_skipped(users: Table, pg_inline: PostgresRenderer) -> None:
    subquery = new_select(users).as_("active_users")
    sql, _ = new_select(subquery).use(SoftDelete()).to_sql(pg_inline)
    assert "deleted_at" not in sql


def test_update_and_delete(users: Table, pg_inline: PostgresRenderer) -> None:
    update = new_update(users).set(users["name"], "x").use(SoftDelete())
    sql, _ = update.to_sql(pg_inline)
    assert sql == 'UPDATE "users" SET "users"."name" = \'x\' WHERE "users"."deleted_at" IS NULL'

    delete = new_delete(users).where(users["id"].eq(1)).use(SoftDelete())
    sql, _ = delete.to_sql(pg_inline)
    assert sql == 'DELETE FROM "users" WHERE "users"."id" = 1 AND "users"."deleted_at" IS NULL'


def test_insert_is_untouched(users: Table, pg_inline: PostgresRenderer) -> None:
    sql, _ = new_insert(users).columns(users["id"]).values(1).use(SoftDelete()).to_sql(pg_inline)
    assert sql == 'INSERT INTO "users" ("id") VALUES (1)'
