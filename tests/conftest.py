"""
ModelSchema Tests: Configuration (conftest.py)
===============================================

What:  Shared pytest fixtures for the whole test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by every module in tests/.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── field_defaults:   The built-in field default template
    ├── blog_models:      user / tag / post with belongs-to and has-many relations
    ├── ddl_recorder:     DDLExecutor double that records every table it receives
    ├── query_recorder:   QueryExecutor double that records plans, returns canned rows
    └── sqlite_engine:    Async in-memory SQLite engine (aiosqlite)
"""

import os
from typing import Any, Dict, List

# Override settings for testing BEFORE any modelschema imports
os.environ["MODELSCHEMA_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["MODELSCHEMA_LOG_LEVEL"] = "WARNING"
os.environ["MODELSCHEMA_RETRY_MAX_ATTEMPTS"] = "1"
os.environ["MODELSCHEMA_RETRY_MIN_WAIT"] = "0"

import pytest
import pytest_asyncio

from modelschema.config import default_field_template
from modelschema.database import build_engine
from modelschema.schemas.descriptors import QueryPlan, TableDescriptor
from modelschema.services.executors import DDLExecutor, QueryExecutor


# ══════════════════════════════════════════════════════════════════════════
# Collaborator doubles
# ══════════════════════════════════════════════════════════════════════════


class RecordingDDLExecutor(DDLExecutor):
    """Keeps every descriptor handed over, optionally failing on one table name."""

    def __init__(self, fail_on: str = None, error: Exception = None):
        self.tables: List[TableDescriptor] = []
        self.fail_on = fail_on
        self.error = error or RuntimeError("boom")

    @property
    def names(self) -> List[str]:
        return [table.name for table in self.tables]

    async def create_table(self, table: TableDescriptor) -> None:
        if table.name == self.fail_on:
            raise self.error
        self.tables.append(table)


class RecordingQueryExecutor(QueryExecutor):
    def __init__(self, rows: List[Dict[str, Any]] = None, error: Exception = None):
        self.plans: List[QueryPlan] = []
        self.rows = rows or []
        self.error = error

    async def fetch(self, plan: QueryPlan) -> List[Dict[str, Any]]:
        self.plans.append(plan)
        if self.error is not None:
            raise self.error
        return list(self.rows)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def field_defaults():
    """A fresh copy of the built-in template; tests may mutate it."""
    return default_field_template()


@pytest.fixture
def blog_models():
    """
    Three related models.

    post.author  required belongs-to user  (INNER join)
    post.editor  optional belongs-to user  (LEFT join)
    post.tags    optional has-many tag     (junction post_tags, LEFT joins)
    """
    return {
        "user": {
            "fields": {
                "name": {"type": "string", "required": True},
                "email": {"type": "string", "unique": True},
            },
        },
        "tag": {
            "fields": {
                "label": {"type": "string"},
            },
        },
        "post": {
            "comment": "Blog posts",
            "fields": {
                "title": {"type": "string", "required": True, "comment": "Post title"},
                "body": {"type": "string", "maxLength": -1},
                "author": {"type": "relation", "data": "user", "required": True},
                "editor": {"type": "relation", "data": "user"},
                "tags": {"type": "relation", "data": "tag", "hasMany": True},
            },
        },
    }


@pytest.fixture
def ddl_recorder():
    return RecordingDDLExecutor()


@pytest.fixture
def query_recorder():
    return RecordingQueryExecutor(rows=[{"title": "Hello"}])


@pytest_asyncio.fixture
async def sqlite_engine():
    """
    Provides an async in-memory SQLite engine.

    Every connection shares one database (StaticPool), so tables created
    through one collaborator are visible to the other.
    """
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    yield engine
    await engine.dispose()
