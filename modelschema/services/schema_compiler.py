"""
ModelSchema: Schema Compiler
=============================

What:  Turns a mapping of model definitions into table descriptors (one per
       model) and junction-table descriptors (one per has-many relation).
How:   Models are walked in declared order, and the fields of each model in
       declared order:
           belongs-to relation -> INT(11) column + foreign key to <target>(id)
           has-many relation   -> no column; one junction table
           anything else       -> typed column + UNIQUE / NOT NULL / COMMENT /
                                  CHARACTER SET or COLLATE fragments
Who:   Called by ModelService.create_schema() at setup time, or directly by
       callers that only need the descriptors.
When:  The whole mapping is compiled before anything is returned, so a
       configuration error never leaves a half-created schema behind.

Junction table for `post.tags -> tag`:
    post_tags (
        id_post  INT(11) NOT NULL,     FK_post_tags_tags -> post(id)
        id_tags  INT(11) NOT NULL,     FK_post_tags_tag  -> tag(id)
        PRIMARY KEY (id_post, id_tags)
    )
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from modelschema.exceptions import MissingRelationTargetError
from modelschema.schemas.definitions import (
    FieldDefinition,
    ModelDefinition,
    RelationField,
    parse_models,
)
from modelschema.schemas.descriptors import (
    ColumnDefinition,
    CompiledSchema,
    ForeignKeyDescriptor,
    JunctionTableDescriptor,
    StorageKind,
    TableDescriptor,
)
from modelschema.services import naming
from modelschema.services.field_resolver import resolve_field, sql_type

logger = logging.getLogger(__name__)

ModelMapping = Mapping[str, Union[ModelDefinition, Mapping[str, Any]]]


def _relation_target(
    models: Mapping[str, ModelDefinition], owner: str, field: RelationField
) -> ModelDefinition:
    target = models.get(field.data)
    if target is None:
        raise MissingRelationTargetError(target=field.data, model=owner, field=field.name)
    return target


def build_column(field: FieldDefinition) -> ColumnDefinition:
    """Column definition for a scalar or belongs-to field."""
    kind, type_text = sql_type(field)

    constraints: List[str] = []
    if field.unique:
        constraints.append("UNIQUE")
    if field.required:
        constraints.append("NOT NULL")
    if field.comment:
        constraints.append(f"COMMENT {naming.quote_literal(field.comment)}")

    character_set = collation = None
    # CHARACTER SET / COLLATE apply to text columns only; numeric, date and
    # foreign key columns never carry them, even when the field declares one
    if kind.is_text:
        # Character set wins over collation when both are declared
        if field.character_set:
            character_set = field.character_set
            constraints.append(f"CHARACTER SET {character_set}")
        elif field.collation:
            collation = field.collation
            constraints.append(f"COLLATE {collation}")

    return ColumnDefinition(
        name=field.name,
        sql_type=type_text,
        storage_kind=kind,
        constraints=constraints,
        nullable=not field.required,
        unique=field.unique,
        comment=field.comment,
        character_set=character_set,
        collation=collation,
    )


def build_junction_table(
    owner_table: str, field: RelationField, target: ModelDefinition
) -> JunctionTableDescriptor:
    """Junction table realizing `owner_table.<field>` as a many-to-many link."""
    name = naming.junction_table_name(owner_table, field.name)
    owner_column = naming.junction_column(owner_table)
    target_column = naming.junction_column(field.name)

    columns = [
        ColumnDefinition(
            name=column,
            sql_type="INT(11)",
            storage_kind=StorageKind.FOREIGN_KEY,
            constraints=["NOT NULL"],
            nullable=False,
        )
        for column in (owner_column, target_column)
    ]

    return JunctionTableDescriptor(
        name=name,
        columns=columns,
        primary_keys=[owner_column, target_column],
        foreign_keys={
            owner_column: ForeignKeyDescriptor(
                constraint_name=naming.foreign_key_name(name, field.name),
                referenced_table=owner_table,
            ),
            target_column: ForeignKeyDescriptor(
                constraint_name=naming.foreign_key_name(name, field.data),
                referenced_table=target.table_name,
            ),
        },
        owner_table=owner_table,
        field_name=field.name,
        target_table=target.table_name,
    )


def compile_model(
    models: Mapping[str, ModelDefinition],
    model: ModelDefinition,
    field_defaults: Mapping[str, Any],
    default_collation: Optional[str] = None,
) -> CompiledSchema:
    """Descriptors for a single model: its table plus its junction tables."""
    table_name = model.table_name
    columns: List[ColumnDefinition] = []
    foreign_keys: Dict[str, ForeignKeyDescriptor] = {}
    junction_tables: List[JunctionTableDescriptor] = []

    for field_name, raw in model.fields.items():
        field = resolve_field(field_name, raw, field_defaults, model=model.id)

        if isinstance(field, RelationField):
            target = _relation_target(models, model.id, field)
            if field.has_many:
                junction_tables.append(build_junction_table(table_name, field, target))
                continue
            foreign_keys[field_name] = ForeignKeyDescriptor(
                constraint_name=naming.foreign_key_name(table_name, field_name),
                referenced_table=target.table_name,
                referenced_column=naming.SURROGATE_KEY,
            )

        columns.append(build_column(field))

    table = TableDescriptor(
        name=table_name,
        columns=columns,
        collation=model.collation or default_collation,
        comment=model.comment,
        foreign_keys=foreign_keys,
    )
    return CompiledSchema(tables=[table], junction_tables=junction_tables)


def compile_schema(
    models: ModelMapping,
    field_defaults: Mapping[str, Any],
    *,
    default_collation: Optional[str] = None,
) -> CompiledSchema:
    """
    Compile every model into table and junction-table descriptors.

    Args:
        models: Model name -> ModelDefinition (or raw mapping), in declared order
        field_defaults: Field default template, merged under every field
        default_collation: Table collation for models that declare none

    Returns:
        CompiledSchema with all base tables first, then all junction tables

    Raises:
        ConfigurationOmissionError: a model has no `fields`
        UnknownFieldTypeError: a field declares an unrecognized type
        MissingRelationTargetError: a relation names an undefined model
    """
    parsed = parse_models(models)
    schema = CompiledSchema()

    for model in parsed.values():
        compiled = compile_model(parsed, model, field_defaults, default_collation)
        schema.tables.extend(compiled.tables)
        schema.junction_tables.extend(compiled.junction_tables)

    logger.debug(
        "Compiled %d model(s) into %d table(s) and %d junction table(s)",
        len(parsed),
        len(schema.tables),
        len(schema.junction_tables),
    )
    return schema
