import pytest

from sqlbee import new_delete, new_select
from sqlbee.exceptions import AccessDeniedError, SQLTransformationError
from sqlbee.nodes import SelectCore, Table
from sqlbee.renderers import PostgresRenderer
from sqlbee.transformers import BaseTransformer, SoftDelete, TenantScope, TransformerPipeline


class _Marker(BaseTransformer):
    def __init__(self, label: str, seen: "list[str]") -> None:
        self.label = label
        self.seen = seen

    def transform_select(self, core: SelectCore) -> SelectCore:
        self.seen.append(self.label)
        return core


class _Broken(BaseTransformer):
    def transform_select(self, core: SelectCore) -> SelectCore:
        raise ValueError("boom")


class _Denied(BaseTransformer):
    def transform_select(self, core: SelectCore) -> SelectCore:
        raise AccessDeniedError("users")


def test_pipeline_runs_in_registration_order(users: Table) -> None:
    seen: list[str] = []
    pipeline = TransformerPipeline([_Marker("a", seen)]).add(_Marker("b", seen))

    core = SelectCore(users)
    assert pipeline.run(core) is core
    assert seen == ["a", "b"]
    assert len(pipeline) == 2


def test_empty_pipeline_is_identity(users: Table) -> None:
    core = SelectCore(users)
    assert TransformerPipeline().run(core) is core


def test_foreign_errors_are_wrapped(users: Table) -> None:
    """Errors raised by a transformer surface as SQLTransformationError with the cause kept."""
    with pytest.raises(SQLTransformationError, match="_Broken failed: boom") as exc_info:
        TransformerPipeline([_Broken()]).run(SelectCore(users))
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_sqlbee_errors_pass_through(users: Table) -> None:
    with pytest.raises(AccessDeniedError) as exc_info:
        TransformerPipeline([_Denied()]).run(SelectCore(users))
    assert exc_info.value.table == "users"


def test_transformer_name_defaults_to_class_name() -> None:
    assert SoftDelete().name == "SoftDelete"


def test_composed_transformers(users: Table, posts: Table, pg: PostgresRenderer) -> None:
    """Conditions from every transformer are appended in registration order."""
    query = (
        new_select(users)
        .join(posts)
        .on(posts["author_id"].eq(users["id"]))
        .use(SoftDelete(), TenantScope(42))
    )

    sql, params = query.to_sql(pg)

    assert sql == (
        'SELECT * FROM "users" INNER JOIN "posts" ON "posts"."author_id" = "users"."id" '
        'WHERE "users"."deleted_at" IS NULL AND "posts"."deleted_at" IS NULL '
        'AND "users"."tenant_id" = $1 AND "posts"."tenant_id" = $2'
    )
    assert params == [42, 42]
    assert len(query.transformed().wheres) == 4
    assert query.core.wheres == []


def test_failed_transform_produces_no_sql(users: Table, pg: PostgresRenderer) -> None:
    query = new_select(users).use(SoftDelete(), _Broken())
    with pytest.raises(SQLTransformationError):
        query.to_sql(pg)
    assert query.core.wheres == []


def test_dml_passes_through_identity_transformers(users: Table) -> None:
    delete = new_delete(users).use(_Marker("unused", []))
    assert delete.transformed().wheres == []
