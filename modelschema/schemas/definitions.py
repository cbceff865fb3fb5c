"""
ModelSchema: Model & Field Definitions
=======================================

What:  Pydantic models describing the declarative input: models and their fields.
How:   Raw field attributes are validated by `FieldAttributes` (every attribute
       optional, camelCase or snake_case accepted). Resolution against the
       default template (services/field_resolver.py) produces one of two
       closed variants:
           ScalarField    string, int, float, double, bool, date, datetime
           RelationField  relation (belongs-to or has-many)
Who:   Built by callers (usually from configuration); read by the compiler
       and the join resolver.

ModelDefinition keeps its fields as raw mappings. Resolution happens every
time a field is read, so a changed default template is seen everywhere.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from modelschema.exceptions import ConfigurationError, ConfigurationOmissionError


class FieldType(str, Enum):
    """Recognized field type tokens."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    DOUBLE = "double"
    BOOL = "bool"
    DATE = "date"
    DATETIME = "datetime"
    RELATION = "relation"


# ══════════════════════════════════════════════════════════════════════════
# Raw attributes (before default resolution)
# ══════════════════════════════════════════════════════════════════════════


class FieldAttributes(BaseModel):
    """
    Attributes of a raw field definition or of the default template.

    Nothing is defaulted here: `model_fields_set` tells the resolver which
    attributes were actually written down. Unknown keys (form labels,
    placeholders...) are ignored.
    """

    type: Optional[str] = None
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    required: Optional[bool] = None
    unique: Optional[bool] = None
    comment: Optional[str] = None
    character_set: Optional[str] = Field(default=None, alias="characterSet")
    collation: Optional[str] = None
    data: Optional[str] = None
    has_many: Optional[bool] = Field(default=None, alias="hasMany")
    default: Any = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ══════════════════════════════════════════════════════════════════════════
# Resolved fields (tagged variants)
# ══════════════════════════════════════════════════════════════════════════


class _ResolvedField(BaseModel):
    name: str
    max_length: int = 255
    required: bool = False
    unique: bool = False
    comment: Optional[str] = None
    character_set: Optional[str] = None
    collation: Optional[str] = None

    model_config = {"frozen": True}


class ScalarField(_ResolvedField):
    """A plain value column."""

    kind: Literal["scalar"] = "scalar"
    type: FieldType = FieldType.STRING
    default: Any = None


class RelationField(_ResolvedField):
    """
    A reference to another model.

    has_many=False: belongs-to, stored as a foreign key column on the owner.
    has_many=True:  many-to-many, stored in a junction table only.
    """

    kind: Literal["relation"] = "relation"
    type: Literal[FieldType.RELATION] = FieldType.RELATION
    data: str
    has_many: bool = False
    default: Union[int, float] = 0

    @property
    def belongs_to(self) -> bool:
        return not self.has_many


FieldDefinition = Annotated[Union[ScalarField, RelationField], Field(discriminator="kind")]


# ══════════════════════════════════════════════════════════════════════════
# Models
# ══════════════════════════════════════════════════════════════════════════


class ModelLabels(BaseModel):
    """Display names, used by presentation code only."""

    singular: Optional[str] = None
    plural: Optional[str] = None


class ModelDefinition(BaseModel):
    """
    One declarative entity.

    `fields` preserves declaration order; each value is the raw attribute
    mapping of one field.
    """

    id: Optional[str] = None
    table: Optional[str] = None
    fields: Dict[str, Dict[str, Any]]
    collation: Optional[str] = None
    comment: Optional[str] = None
    labels: ModelLabels = Field(default_factory=ModelLabels)

    model_config = ConfigDict(extra="ignore")

    @property
    def table_name(self) -> str:
        """Physical table name: `table`, falling back to `id`."""
        return self.table or self.id or ""

    @property
    def display_name(self) -> str:
        if self.labels.singular:
            return self.labels.singular
        return (self.id or "").capitalize()

    @property
    def plural_name(self) -> str:
        if self.labels.plural:
            return self.labels.plural
        return f"{self.display_name}s"


def parse_model(name: str, raw: Union[ModelDefinition, Mapping[str, Any]]) -> ModelDefinition:
    """
    Validate one model definition and fill `id` from its mapping key.

    Raises:
        ConfigurationOmissionError: `fields` is missing
        ConfigurationError: the definition is malformed
    """
    if isinstance(raw, ModelDefinition):
        model = raw
    else:
        if not isinstance(raw, Mapping):
            raise ConfigurationError(
                message=f"Model '{name}' must be a mapping, got {type(raw).__name__}",
                model=name,
            )
        if raw.get("fields") is None:
            raise ConfigurationOmissionError(attribute="fields", model=name)
        try:
            model = ModelDefinition.model_validate(dict(raw))
        except PydanticValidationError as e:
            raise ConfigurationError(
                message=f"Model '{name}' is malformed: {e.error_count()} validation error(s)",
                model=name,
                context={"errors": e.errors(include_url=False)},
            ) from e

    if model.id is None:
        model = model.model_copy(update={"id": name})
    return model


def parse_models(
    raw_models: Mapping[str, Union[ModelDefinition, Mapping[str, Any]]],
) -> Dict[str, ModelDefinition]:
    """Validate a whole model mapping, preserving its order."""
    return {name: parse_model(name, raw) for name, raw in raw_models.items()}


def load_models(path: Union[str, Path]) -> Dict[str, ModelDefinition]:
    """
    Read a JSON object of model name -> definition from disk.

    Raises:
        ConfigurationError: the file is not a JSON object
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            message=f"Model file '{path.name}' is not valid JSON",
            context={"path": str(path), "error": str(e)},
        ) from e
    if not isinstance(raw, dict):
        raise ConfigurationError(
            message=f"Model file '{path.name}' must contain a JSON object",
            context={"path": str(path)},
        )
    return parse_models(raw)
