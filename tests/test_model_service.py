"""
ModelSchema Tests: Model Service Unit Tests
============================================

What:  Tests for the ModelService orchestrator (create_schema, get).
How:   Uses recording collaborators from conftest.py (no database).

What we test:
    ✅ Base tables handed over before junction tables
    ✅ Configuration errors raised before any table reaches the collaborator
    ✅ Unexpected collaborator errors wrapped in DatabaseError
    ✅ get() passes the resolved plan through and returns the rows
    ✅ Settings used when nothing is injected
"""

import pytest

from modelschema.config import settings
from modelschema.exceptions import (
    DatabaseError,
    MissingRelationTargetError,
    ModelNotFoundError,
    UnknownFieldTypeError,
)
from modelschema.schemas.descriptors import QueryOptions
from modelschema.services.model_service import ModelService


class TestCreateSchema:
    """Tests for the create_schema workflow."""

    @pytest.mark.asyncio
    async def test_base_tables_then_junctions(self, ddl_recorder, field_defaults, blog_models):
        service = ModelService(ddl_executor=ddl_recorder, field_defaults=field_defaults)

        schema = await service.create_schema(blog_models)

        assert ddl_recorder.names == ["user", "tag", "post", "post_tags"]
        assert [t.name for t in schema.all_tables()] == ddl_recorder.names

    @pytest.mark.asyncio
    async def test_collation_passed_to_tables(self, ddl_recorder, field_defaults, blog_models):
        service = ModelService(
            ddl_executor=ddl_recorder,
            field_defaults=field_defaults,
            default_collation="utf8mb4_unicode_ci",
        )

        await service.create_schema(blog_models)

        assert {t.collation for t in ddl_recorder.tables[:3]} == {"utf8mb4_unicode_ci"}

    @pytest.mark.asyncio
    async def test_configuration_error_before_any_ddl(self, ddl_recorder, field_defaults, blog_models):
        blog_models["tag"]["fields"]["label"]["type"] = "varchar"
        service = ModelService(ddl_executor=ddl_recorder, field_defaults=field_defaults)

        with pytest.raises(UnknownFieldTypeError):
            await service.create_schema(blog_models)

        assert ddl_recorder.tables == []

    @pytest.mark.asyncio
    async def test_missing_target_before_any_ddl(self, ddl_recorder, field_defaults, blog_models):
        del blog_models["tag"]
        service = ModelService(ddl_executor=ddl_recorder, field_defaults=field_defaults)

        with pytest.raises(MissingRelationTargetError):
            await service.create_schema(blog_models)

        assert ddl_recorder.tables == []

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, ddl_recorder, field_defaults, blog_models):
        ddl_recorder.fail_on = "post"
        service = ModelService(ddl_executor=ddl_recorder, field_defaults=field_defaults)

        with pytest.raises(DatabaseError) as exc_info:
            await service.create_schema(blog_models)

        assert exc_info.value.context == {"table": "post", "original_error": "RuntimeError"}
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert ddl_recorder.names == ["user", "tag"]

    @pytest.mark.asyncio
    async def test_database_error_not_rewrapped(self, ddl_recorder, field_defaults, blog_models):
        original = DatabaseError(message="disk full")
        ddl_recorder.fail_on = "user"
        ddl_recorder.error = original
        service = ModelService(ddl_executor=ddl_recorder, field_defaults=field_defaults)

        with pytest.raises(DatabaseError) as exc_info:
            await service.create_schema(blog_models)

        assert exc_info.value is original

    def test_compile_does_not_touch_collaborator(self, ddl_recorder, field_defaults, blog_models):
        service = ModelService(ddl_executor=ddl_recorder, field_defaults=field_defaults)

        schema = service.compile(blog_models)

        assert len(schema.tables) == 3
        assert ddl_recorder.tables == []


class TestGet:
    """Tests for model reads."""

    @pytest.mark.asyncio
    async def test_plan_handed_to_executor(self, query_recorder, field_defaults, blog_models):
        service = ModelService(query_executor=query_recorder, field_defaults=field_defaults)

        rows = await service.get(blog_models, "post")

        assert rows == [{"title": "Hello"}]
        plan = query_recorder.plans[0]
        assert plan.model == "post"
        assert plan.select_columns[0] == "title AS 'title'"
        assert len(plan.joins) == 4

    @pytest.mark.asyncio
    async def test_options_forwarded(self, query_recorder, field_defaults, blog_models):
        service = ModelService(query_executor=query_recorder, field_defaults=field_defaults)

        await service.get(blog_models, "post", QueryOptions(alias="p", select=[]))

        plan = query_recorder.plans[0]
        assert plan.alias == "p"
        assert plan.select_columns == []

    @pytest.mark.asyncio
    async def test_join_depth_from_constructor(self, query_recorder, field_defaults, blog_models):
        service = ModelService(query_executor=query_recorder, field_defaults=field_defaults, max_join_depth=0)

        await service.get(blog_models, "post")

        assert query_recorder.plans[0].joins == []

    @pytest.mark.asyncio
    async def test_unknown_model(self, query_recorder, field_defaults, blog_models):
        service = ModelService(query_executor=query_recorder, field_defaults=field_defaults)

        with pytest.raises(ModelNotFoundError):
            await service.get(blog_models, "comment")

        assert query_recorder.plans == []

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, query_recorder, field_defaults, blog_models):
        query_recorder.error = ValueError("bad row")
        service = ModelService(query_executor=query_recorder, field_defaults=field_defaults)

        with pytest.raises(DatabaseError) as exc_info:
            await service.get(blog_models, "post")

        assert exc_info.value.context["model"] == "post"
        assert exc_info.value.context["original_error"] == "ValueError"


class TestSettingsFallback:

    def setup_method(self):
        self.service = ModelService()

    def test_defaults_read_from_settings(self):
        assert self.service.field_defaults == settings.field_defaults
        assert self.service.default_collation == settings.default_collation
        assert self.service.max_join_depth == settings.max_join_depth

    def test_injected_values_win(self):
        service = ModelService(field_defaults={"type": "int"}, default_collation="latin1_swedish_ci", max_join_depth=0)
        assert service.field_defaults == {"type": "int"}
        assert service.default_collation == "latin1_swedish_ci"
        assert service.max_join_depth == 0
