"""
ModelSchema Tests: Settings & Logging
======================================

What we test:
    ✅ Defaults and MODELSCHEMA_* environment overrides
    ✅ Validation of log level, default field type and numeric ranges
    ✅ setup_logging() configures the root logger
    ✅ build_engine() picks a shared pool for in-memory SQLite
    ✅ get_engine() caches the shared engine, dispose_engine() releases it
"""

import logging

import pytest
from pydantic import ValidationError
from sqlalchemy.pool import StaticPool

import modelschema
from modelschema.config import Settings, default_field_template
from modelschema.database import build_engine, dispose_engine, get_engine
from modelschema.logging_setup import setup_logging


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MODELSCHEMA_DATABASE_URL", raising=False)
        config = Settings(_env_file=None)

        assert config.database_url == "sqlite+aiosqlite:///./modelschema.db"
        assert config.field_defaults == default_field_template()
        assert config.default_collation == "utf8_general_ci"
        assert config.max_join_depth == 1
        assert config.table_prefix == ""

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MODELSCHEMA_TABLE_PREFIX", "app_")
        monkeypatch.setenv("MODELSCHEMA_MAX_JOIN_DEPTH", "2")
        monkeypatch.setenv("MODELSCHEMA_FIELD_DEFAULTS", '{"type": "int", "required": true}')

        config = Settings(_env_file=None)

        assert config.table_prefix == "app_"
        assert config.max_join_depth == 2
        assert config.field_defaults == {"type": "int", "required": True}

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="LOUD")

    def test_unknown_default_type_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, field_defaults={"type": "money"})

    def test_join_depth_bounded(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, max_join_depth=-1)

    def test_template_copies_are_independent(self):
        template = default_field_template()
        template["type"] = "int"
        assert default_field_template()["type"] == "string"


class TestLogging:

    def test_setup_logging_sets_level(self):
        root = logging.getLogger()
        previous_level, previous_handlers = root.level, list(root.handlers)
        try:
            setup_logging("debug")
            assert root.level == logging.DEBUG
            assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
            for handler in previous_handlers:
                root.addHandler(handler)
            root.setLevel(previous_level)


class TestEngine:

    @pytest.mark.asyncio
    async def test_memory_sqlite_uses_static_pool(self):
        engine = build_engine("sqlite+aiosqlite:///:memory:")
        try:
            assert isinstance(engine.pool, StaticPool)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_shared_engine_cached_until_disposed(self):
        first = get_engine()
        try:
            assert get_engine() is first
            await dispose_engine()

            second = get_engine()
            assert second is not first
        finally:
            await dispose_engine()

    @pytest.mark.asyncio
    async def test_dispose_without_engine_is_noop(self):
        assert modelschema.dispose_engine is dispose_engine
        await dispose_engine()
        await dispose_engine()
