"""
ModelSchema: Exception Hierarchy
=================================

What:  Library-specific exceptions raised while compiling schemas and resolving queries.
How:   Each exception carries a human-readable message and a context dict
       (model name, field name, offending value) for logging.
Who:   Raised by the resolver, compiler and collaborators; caught by callers.
When:  Before any DDL or query artifact is handed to a collaborator.

Exception Hierarchy:
    ModelSchemaError (base)
    ├── ConfigurationError               model definitions are unusable
    │   ├── UnknownFieldTypeError        field declares an unrecognized type token
    │   ├── MissingRelationTargetError   relation `data` names an absent model
    │   ├── ConfigurationOmissionError   a required attribute is missing
    │   └── ModelNotFoundError           requested model is not in the mapping
    └── DatabaseError                    DDL/query collaborator failed

A relation field whose `default` is not numeric is NOT an error: it is
coerced to 0 where the field is resolved.
"""

from typing import Any, Dict, Optional


class ModelSchemaError(Exception):
    """
    Base exception for all ModelSchema errors.

    Attributes:
        message:  Human-readable error description
        context:  Structured details (model, field, value) for logging
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ConfigurationError(ModelSchemaError):
    """Model definitions cannot be compiled or resolved as given."""

    def __init__(
        self,
        message: str = "Invalid model configuration",
        model: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if model:
            ctx["model"] = model
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.model = model
        self.field = field


class UnknownFieldTypeError(ConfigurationError):
    """
    Raised when a field declares a type outside the recognized set.

    Only an explicit, unrecognized token triggers this. A field with no
    `type` at all takes the template's type (bounded string by default).
    """

    def __init__(
        self,
        field_type: Any,
        model: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        where = f"'{model}.{field}'" if model else f"'{field}'"
        message = f"Field {where} declares unknown type '{field_type}'"
        ctx = context or {}
        ctx["type"] = field_type
        super().__init__(message=message, model=model, field=field, context=ctx)
        self.field_type = field_type


class MissingRelationTargetError(ConfigurationError):
    """
    Raised when a relation field points at a model absent from the mapping.

    Raised before any join or foreign key is emitted: a dangling join would
    silently produce wrong SQL.
    """

    def __init__(
        self,
        target: str,
        model: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"Relation '{model}.{field}' targets unknown model '{target}'"
        ctx = context or {}
        ctx["target"] = target
        super().__init__(message=message, model=model, field=field, context=ctx)
        self.target = target


class ConfigurationOmissionError(ConfigurationError):
    """Raised when a required attribute (e.g. a model's `fields`) is absent."""

    def __init__(
        self,
        attribute: str,
        model: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        owner = model if not field else f"{model}.{field}"
        message = f"'{owner}' is missing required attribute '{attribute}'"
        ctx = context or {}
        ctx["attribute"] = attribute
        super().__init__(message=message, model=model, field=field, context=ctx)
        self.attribute = attribute


class ModelNotFoundError(ConfigurationError):
    """Raised when a query is requested for a model name that is not defined."""

    def __init__(self, model: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Model '{model}' is not defined",
            model=model,
            context=context,
        )


class DatabaseError(ModelSchemaError):
    """
    Raised when a DDL or query collaborator fails unexpectedly.

    The original driver exception is chained (`raise ... from`) and its type
    name recorded in `context["original_error"]`.
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
