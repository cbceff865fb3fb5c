"""
ModelSchema: Model Service (Orchestrator)
==========================================

What:  Connects the pure core (compile_schema / resolve_query) to the DDL and
       query collaborators.
How:   Reads the field default template, collation and join depth from
       settings unless given explicitly, then:
           create_schema(): compile everything -> base tables -> junction tables
           get():           resolve -> fetch
Who:   Application code: setup scripts call create_schema(), request
       handlers call get().

Orchestration Flow (create_schema):
    ┌────────────┐    ┌──────────────────┐    ┌────────────────────┐
    │  compile   │───▶│  base tables     │───▶│  junction tables   │
    │  (pure)    │    │  (DDLExecutor)   │    │  (DDLExecutor)     │
    └────────────┘    └──────────────────┘    └────────────────────┘

    A configuration error raises during "compile", before the first
    CREATE TABLE reaches the collaborator.

Error Handling Strategy:
    ModelSchemaError subclasses propagate unchanged. Any other exception
    from a collaborator is logged and wrapped in DatabaseError.

The service keeps no per-call state; one instance can serve concurrent callers.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from modelschema.config import settings
from modelschema.exceptions import DatabaseError, ModelSchemaError
from modelschema.schemas.descriptors import CompiledSchema, QueryOptions, QueryPlan
from modelschema.services.executors import DDLExecutor, QueryExecutor
from modelschema.services.query_resolver import resolve_query
from modelschema.services.schema_compiler import ModelMapping, compile_schema

logger = logging.getLogger(__name__)


class ModelService:
    """
    Business entry point for schema creation and model reads.

    Collaborators are created lazily (SQLAlchemy implementations on the
    shared engine) unless injected.
    """

    def __init__(
        self,
        ddl_executor: Optional[DDLExecutor] = None,
        query_executor: Optional[QueryExecutor] = None,
        field_defaults: Optional[Mapping[str, Any]] = None,
        default_collation: Optional[str] = None,
        max_join_depth: Optional[int] = None,
    ):
        self._ddl_executor = ddl_executor
        self._query_executor = query_executor
        self._field_defaults = field_defaults
        self._default_collation = default_collation
        self._max_join_depth = max_join_depth

    # ── Configuration (read per call so runtime changes are seen) ────────

    @property
    def field_defaults(self) -> Mapping[str, Any]:
        if self._field_defaults is not None:
            return self._field_defaults
        return settings.field_defaults

    @property
    def default_collation(self) -> str:
        return self._default_collation or settings.default_collation

    @property
    def max_join_depth(self) -> int:
        if self._max_join_depth is not None:
            return self._max_join_depth
        return settings.max_join_depth

    @property
    def ddl_executor(self) -> DDLExecutor:
        if self._ddl_executor is None:
            from modelschema.services.sqlalchemy_executor import SqlAlchemyDDLExecutor

            self._ddl_executor = SqlAlchemyDDLExecutor()
        return self._ddl_executor

    @property
    def query_executor(self) -> QueryExecutor:
        if self._query_executor is None:
            from modelschema.services.sqlalchemy_executor import SqlAlchemyQueryExecutor

            self._query_executor = SqlAlchemyQueryExecutor()
        return self._query_executor

    # ── Schema ────────────────────────────────────────────────────────────

    def compile(self, models: ModelMapping) -> CompiledSchema:
        """Descriptors only; nothing is handed to a collaborator."""
        return compile_schema(
            models,
            self.field_defaults,
            default_collation=self.default_collation,
        )

    async def create_schema(self, models: ModelMapping) -> CompiledSchema:
        """
        Compile all models and create their tables.

        Workflow Steps:
            1. Compile the full mapping (raises on any configuration error)
            2. Hand every base table to the DDL executor, in model order
            3. Hand every junction table to the DDL executor

        Returns:
            The CompiledSchema that was executed

        Raises:
            ConfigurationError (and subclasses): invalid model definitions
            DatabaseError: the collaborator failed
        """
        schema = self.compile(models)
        logger.info(
            "Creating %d table(s) and %d junction table(s)",
            len(schema.tables),
            len(schema.junction_tables),
        )

        for table in schema.all_tables():
            try:
                await self.ddl_executor.create_table(table)
            except ModelSchemaError:
                raise
            except Exception as e:
                logger.error("Unexpected error creating %s: %s", table.name, str(e), exc_info=True)
                raise DatabaseError(
                    message=f"Could not create table '{table.name}'",
                    context={"table": table.name, "original_error": type(e).__name__},
                ) from e

        return schema

    # ── Reads ─────────────────────────────────────────────────────────────

    def resolve(
        self,
        models: ModelMapping,
        model_name: str,
        options: Optional[QueryOptions] = None,
    ) -> QueryPlan:
        """Query plan only; nothing is handed to a collaborator."""
        return resolve_query(
            models,
            model_name,
            options,
            field_defaults=self.field_defaults,
            max_join_depth=self.max_join_depth,
        )

    async def get(
        self,
        models: ModelMapping,
        model_name: str,
        options: Optional[QueryOptions] = None,
    ) -> List[Dict[str, Any]]:
        """
        Read rows of `model_name` together with its related models.

        Raises:
            ModelNotFoundError: `model_name` is not defined
            ConfigurationError (and subclasses): invalid model definitions
            DatabaseError: the collaborator failed
        """
        plan = self.resolve(models, model_name, options)
        try:
            return await self.query_executor.fetch(plan)
        except ModelSchemaError:
            raise
        except Exception as e:
            logger.error("Unexpected error reading %s: %s", model_name, str(e), exc_info=True)
            raise DatabaseError(
                message=f"Could not read model '{model_name}'",
                context={"model": model_name, "original_error": type(e).__name__},
            ) from e


# Singleton instance
model_service = ModelService()
