"""
ModelSchema: Declarative Model-to-Relational Schema Compiler
=============================================================

What:  Compiles declarative model definitions into relational DDL descriptors
       and resolves per-model SELECT/JOIN plans.

Architecture Note:

    ┌─────────────────────────────────────┐
    │      ModelService (orchestrator)    │  ← hands results to collaborators
    ├─────────────────────────────────────┤
    │  Schema Compiler │ Join Resolver    │  ← pure, no I/O
    ├─────────────────────────────────────┤
    │  Field Resolution │ Naming Utils    │  ← pure, no I/O
    ├─────────────────────────────────────┤
    │  DDL / Query collaborators          │  ← SQLAlchemy (async)
    └─────────────────────────────────────┘

Quick use:

    from modelschema import compile_schema, resolve_query, default_field_template

    models = {
        "user": {"fields": {"name": {"type": "string"}}},
        "post": {"fields": {
            "title": {"type": "string"},
            "author": {"type": "relation", "data": "user", "required": True},
        }},
    }
    schema = compile_schema(models, default_field_template())
    plan = resolve_query(models, "post", field_defaults=default_field_template())

Applications that use the shared engine (ModelService without injected
collaborators) call `await dispose_engine()` at shutdown.
"""

from modelschema.config import default_field_template, settings
from modelschema.database import build_engine, dispose_engine, get_engine
from modelschema.exceptions import (
    ConfigurationError,
    ConfigurationOmissionError,
    DatabaseError,
    MissingRelationTargetError,
    ModelNotFoundError,
    ModelSchemaError,
    UnknownFieldTypeError,
)
from modelschema.schemas.definitions import (
    FieldType,
    ModelDefinition,
    RelationField,
    ScalarField,
    load_models,
    parse_models,
)
from modelschema.schemas.descriptors import (
    ColumnDefinition,
    CompiledSchema,
    ForeignKeyDescriptor,
    JoinKind,
    JoinSpec,
    JunctionTableDescriptor,
    PassthroughOptions,
    QueryOptions,
    QueryPlan,
    StorageKind,
    TableDescriptor,
)
from modelschema.services.field_resolver import classify_storage, resolve_field
from modelschema.services.model_service import ModelService, model_service
from modelschema.services.query_resolver import MAX_JOIN_DEPTH, resolve_query
from modelschema.services.schema_compiler import compile_schema

__version__ = "1.0.0"

__all__ = [
    "MAX_JOIN_DEPTH",
    "ColumnDefinition",
    "CompiledSchema",
    "ConfigurationError",
    "ConfigurationOmissionError",
    "DatabaseError",
    "FieldType",
    "ForeignKeyDescriptor",
    "JoinKind",
    "JoinSpec",
    "JunctionTableDescriptor",
    "MissingRelationTargetError",
    "ModelDefinition",
    "ModelNotFoundError",
    "ModelSchemaError",
    "ModelService",
    "PassthroughOptions",
    "QueryOptions",
    "QueryPlan",
    "RelationField",
    "ScalarField",
    "StorageKind",
    "TableDescriptor",
    "UnknownFieldTypeError",
    "build_engine",
    "classify_storage",
    "compile_schema",
    "default_field_template",
    "dispose_engine",
    "get_engine",
    "load_models",
    "model_service",
    "parse_models",
    "resolve_field",
    "resolve_query",
    "settings",
]
