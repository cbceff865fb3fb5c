"""
ModelSchema: Field Descriptor Resolution
=========================================

What:  Merges a raw field definition with the field default template and
       classifies the result into a physical storage kind.
How:   Both mappings are validated as FieldAttributes; only attributes that
       were explicitly written are merged, raw over template. The merged
       attributes become a ScalarField or a RelationField.
Who:   Called by the schema compiler and the join resolver for every field
       they read. There is no cache: the template is an argument, so a
       changed template is picked up by the next call.

Storage classification (first match wins):
    relation                         -> FOREIGN_KEY   INT(11)
    maxLength == -1 or maxLength>255 -> LARGE_TEXT    TEXT
    int/float/double/bool/date/datetime -> verbatim token
    anything else (string)           -> BOUNDED_STRING VARCHAR(255)
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from modelschema.exceptions import (
    ConfigurationError,
    ConfigurationOmissionError,
    UnknownFieldTypeError,
)
from modelschema.schemas.definitions import (
    FieldAttributes,
    FieldDefinition,
    FieldType,
    ModelDefinition,
    RelationField,
    ScalarField,
)
from modelschema.schemas.descriptors import StorageKind

logger = logging.getLogger(__name__)

BOUNDED_STRING_LENGTH = 255
UNBOUNDED = -1

_VERBATIM_KINDS = {
    FieldType.INT: StorageKind.INT,
    FieldType.FLOAT: StorageKind.FLOAT,
    FieldType.DOUBLE: StorageKind.DOUBLE,
    FieldType.BOOL: StorageKind.BOOL,
    FieldType.DATE: StorageKind.DATE,
    FieldType.DATETIME: StorageKind.DATETIME,
}

_SQL_TYPES = {
    StorageKind.LARGE_TEXT: "TEXT",
    StorageKind.BOUNDED_STRING: f"VARCHAR({BOUNDED_STRING_LENGTH})",
    StorageKind.FOREIGN_KEY: "INT(11)",
}


def _attributes(
    raw: Mapping[str, Any], model: Optional[str], field: Optional[str]
) -> Dict[str, Any]:
    """Explicitly written attributes of `raw`, keyed by snake_case name."""
    try:
        parsed = FieldAttributes.model_validate(dict(raw))
    except PydanticValidationError as e:
        raise ConfigurationError(
            message=f"Field '{model}.{field}' has invalid attributes",
            model=model,
            field=field,
            context={"errors": e.errors(include_url=False)},
        ) from e
    return parsed.model_dump(exclude_unset=True)


def merge_attributes(
    raw: Mapping[str, Any],
    field_defaults: Mapping[str, Any],
    model: Optional[str] = None,
    field: Optional[str] = None,
) -> Dict[str, Any]:
    """Template attributes overlaid by the attributes present in `raw`."""
    merged = _attributes(field_defaults, model, field)
    merged.update(_attributes(raw, model, field))
    return merged


def coerce_relation_default(value: Any) -> Union[int, float]:
    """Numeric defaults are kept; anything else becomes 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            pass
    return 0


def resolve_field(
    name: str,
    raw: Mapping[str, Any],
    field_defaults: Mapping[str, Any],
    model: Optional[str] = None,
) -> FieldDefinition:
    """
    Produce a fully populated field from a raw definition and the template.

    Args:
        name: Field name (unique within its model)
        raw: Attributes as declared by the model
        field_defaults: Default template; fills every attribute absent from raw
        model: Owning model name, used in error context only

    Raises:
        UnknownFieldTypeError: `type` is present but not recognized
        ConfigurationOmissionError: a relation has no `data` target
    """
    attrs = merge_attributes(raw, field_defaults, model=model, field=name)

    type_token = attrs.pop("type", None)
    if type_token is None:
        type_token = FieldType.STRING.value
    try:
        field_type = FieldType(type_token)
    except ValueError:
        raise UnknownFieldTypeError(field_type=type_token, model=model, field=name) from None

    # None means "unset" for the typed attributes below
    common = {k: v for k, v in attrs.items() if v is not None and k not in ("data", "has_many", "default")}

    if field_type is FieldType.RELATION:
        target = attrs.get("data")
        if not target:
            raise ConfigurationOmissionError(attribute="data", model=model, field=name)
        default = attrs.get("default")
        coerced = coerce_relation_default(default)
        if default is not None and coerced != default:
            logger.debug(
                "Relation %s.%s default %r is not numeric; using %r",
                model, name, default, coerced,
            )
        return RelationField(
            name=name,
            data=target,
            has_many=bool(attrs.get("has_many") or False),
            default=coerced,
            **common,
        )

    return ScalarField(name=name, type=field_type, default=attrs.get("default"), **common)


def resolve_fields(
    model: ModelDefinition,
    field_defaults: Mapping[str, Any],
) -> List[FieldDefinition]:
    """All fields of a model, resolved, in declaration order."""
    return [
        resolve_field(name, raw, field_defaults, model=model.id)
        for name, raw in model.fields.items()
    ]


def classify_storage(field: FieldDefinition) -> StorageKind:
    """
    Physical storage kind of a resolved field.

    Relations are classified before the length rule: a foreign key is
    always an integer column whatever its declared maxLength.
    """
    if isinstance(field, RelationField):
        return StorageKind.FOREIGN_KEY
    if field.max_length == UNBOUNDED or field.max_length > BOUNDED_STRING_LENGTH:
        return StorageKind.LARGE_TEXT
    return _VERBATIM_KINDS.get(field.type, StorageKind.BOUNDED_STRING)


def sql_type(field: FieldDefinition) -> Tuple[StorageKind, str]:
    """Storage kind and SQL type text; scalar tokens are emitted verbatim."""
    kind = classify_storage(field)
    if kind in _SQL_TYPES:
        return kind, _SQL_TYPES[kind]
    return kind, field.type.value
