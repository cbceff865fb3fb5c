"""
ModelSchema: Query Projection & Join Resolver
==============================================

What:  Builds the select list and the ordered join list needed to read one
       model together with its related models.
How:   Fields are walked in declared order:
           scalar      -> "<field> AS '<prefix><field>'"
           belongs-to  -> one join owner.<field> = <alias>.id, then the target's
                          fields under the prefix "<field>."
           has-many    -> owner.id = junction.id_<owner> first (the junction is
                          aliased by path below the top level), then
                          junction.id_<field> = <alias>.id, then the target's
                          fields under "<field>."
       Required relations join INNER (a row missing its required relation is
       dropped), optional ones join LEFT (related columns come back NULL).
Who:   Called by ModelService.get() for every read.

Join depth policy:
    MAX_JOIN_DEPTH = 1: relations of a joined model are not expanded. This
    bounds the join graph and stops recursion through cyclic models. Deeper
    expansion must be requested explicitly with `max_join_depth`.

Caller overrides (QueryOptions) replace the computed select list, join list
or alias outright; passthrough options are forwarded as given.
"""

import logging
from typing import Any, List, Mapping, Optional

from modelschema.exceptions import MissingRelationTargetError, ModelNotFoundError
from modelschema.schemas.definitions import ModelDefinition, RelationField, parse_models
from modelschema.schemas.descriptors import JoinKind, JoinSpec, QueryOptions, QueryPlan
from modelschema.services import naming
from modelschema.services.field_resolver import resolve_field
from modelschema.services.schema_compiler import ModelMapping

logger = logging.getLogger(__name__)

MAX_JOIN_DEPTH = 1


def join_kind(field: RelationField) -> JoinKind:
    return JoinKind.INNER if field.required else JoinKind.LEFT


def _project(
    models: Mapping[str, ModelDefinition],
    model: ModelDefinition,
    *,
    owner_alias: str,
    prefix: str,
    depth: int,
    field_defaults: Mapping[str, Any],
    max_join_depth: int,
    selects: List[str],
    joins: List[JoinSpec],
) -> None:
    """Append the projection of `model` (reached at `depth`) to selects/joins."""
    table_name = model.table_name

    for field_name, raw in model.fields.items():
        field = resolve_field(field_name, raw, field_defaults, model=model.id)

        if not isinstance(field, RelationField):
            alias = naming.column_alias(prefix, field_name)
            selects.append(naming.select_expression(field_name, alias))
            continue

        if depth >= max_join_depth:
            continue

        target = models.get(field.data)
        if target is None:
            raise MissingRelationTargetError(target=field.data, model=model.id, field=field_name)

        kind = join_kind(field)
        right_alias = naming.join_alias(prefix, field_name)

        if field.has_many:
            junction = naming.junction_table_name(table_name, field_name)
            link = JoinSpec(
                kind=kind,
                left_table=owner_alias,
                left_column=naming.SURROGATE_KEY,
                right_table=junction,
                right_column=naming.junction_column(table_name),
                right_alias=naming.junction_alias(prefix, field_name, junction),
            )
            joins.append(link)
            joins.append(
                JoinSpec(
                    kind=kind,
                    left_table=link.right_name,
                    left_column=naming.junction_column(field_name),
                    right_table=target.table_name,
                    right_column=naming.SURROGATE_KEY,
                    right_alias=right_alias,
                )
            )
        else:
            joins.append(
                JoinSpec(
                    kind=kind,
                    left_table=owner_alias,
                    left_column=field_name,
                    right_table=target.table_name,
                    right_column=naming.SURROGATE_KEY,
                    right_alias=right_alias,
                )
            )

        _project(
            models,
            target,
            owner_alias=right_alias,
            prefix=naming.alias_prefix(prefix, field_name),
            depth=depth + 1,
            field_defaults=field_defaults,
            max_join_depth=max_join_depth,
            selects=selects,
            joins=joins,
        )


def resolve_query(
    models: ModelMapping,
    model_name: str,
    options: Optional[QueryOptions] = None,
    *,
    field_defaults: Mapping[str, Any],
    max_join_depth: int = MAX_JOIN_DEPTH,
) -> QueryPlan:
    """
    Resolve the select list, joins and alias used to read `model_name`.

    Args:
        models: Model name -> ModelDefinition (or raw mapping)
        model_name: Model to read
        options: Caller overrides and passthrough options
        field_defaults: Field default template, merged under every field
        max_join_depth: Relation hops to expand (0 disables joins)

    Returns:
        QueryPlan ready for a query collaborator

    Raises:
        ModelNotFoundError: `model_name` is not defined
        MissingRelationTargetError: an expanded relation names an undefined model
        UnknownFieldTypeError: a field declares an unrecognized type
    """
    if max_join_depth < 0:
        raise ValueError(f"max_join_depth must be >= 0, got {max_join_depth}")

    options = options or QueryOptions()
    parsed = parse_models(models)
    model = parsed.get(model_name)
    if model is None:
        raise ModelNotFoundError(model=model_name)

    alias = options.alias if options.alias is not None else model_name
    selects: List[str] = []
    joins: List[JoinSpec] = []
    _project(
        parsed,
        model,
        owner_alias=alias,
        prefix="",
        depth=0,
        field_defaults=field_defaults,
        max_join_depth=max_join_depth,
        selects=selects,
        joins=joins,
    )

    plan = QueryPlan(
        model=model_name,
        table=model.table_name,
        alias=alias,
        select_columns=options.select if options.select is not None else selects,
        joins=options.join if options.join is not None else joins,
        passthrough=options.passthrough,
    )
    logger.debug(
        "Resolved %s: %d column(s), %d join(s)",
        model_name,
        len(plan.select_columns),
        len(plan.joins),
    )
    return plan
