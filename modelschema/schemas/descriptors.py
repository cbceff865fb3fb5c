"""
ModelSchema: Compiler & Resolver Output Descriptors
====================================================

What:  Pydantic models for everything the core produces:
           - StorageKind / ColumnDefinition / ForeignKeyDescriptor
           - TableDescriptor / JunctionTableDescriptor / CompiledSchema
           - JoinKind / JoinSpec / QueryOptions / QueryPlan
Who:   Produced by the schema compiler and the join resolver; consumed by the
       DDL and query collaborators.
When:  Rebuilt on every compile/resolve call. Nothing here is persisted.

Descriptors hold plain identifiers. Identifier quoting belongs to the
collaborator that renders them for a concrete SQL dialect.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Schema descriptors
# ══════════════════════════════════════════════════════════════════════════


class StorageKind(str, Enum):
    """Physical storage class of a column."""

    LARGE_TEXT = "large_text"
    BOUNDED_STRING = "bounded_string"
    INT = "int"
    FLOAT = "float"
    DOUBLE = "double"
    BOOL = "bool"
    DATE = "date"
    DATETIME = "datetime"
    FOREIGN_KEY = "foreign_key"

    @property
    def is_text(self) -> bool:
        return self in (StorageKind.LARGE_TEXT, StorageKind.BOUNDED_STRING)


class ColumnDefinition(BaseModel):
    """
    One column: name, SQL type and constraint fragments.

    The structured attributes (nullable, unique, comment...) mirror the
    fragments so a collaborator can build typed columns instead of parsing text.
    """

    name: str
    sql_type: str
    storage_kind: StorageKind
    constraints: List[str] = Field(default_factory=list)
    nullable: bool = True
    unique: bool = False
    comment: Optional[str] = None
    character_set: Optional[str] = None
    collation: Optional[str] = None

    @property
    def definition(self) -> str:
        """`name TYPE CONSTRAINT...`, unquoted."""
        return " ".join([self.name, self.sql_type, *self.constraints])


class ForeignKeyDescriptor(BaseModel):
    constraint_name: str
    referenced_table: str
    referenced_column: str = "id"

    @property
    def reference(self) -> str:
        """`table(column)` form."""
        return f"{self.referenced_table}({self.referenced_column})"


class TableDescriptor(BaseModel):
    """
    A table to create.

    `foreign_keys` is keyed by the local column name. When `has_id` is set the
    collaborator adds the surrogate integer primary key `id`.
    """

    name: str
    columns: List[ColumnDefinition] = Field(default_factory=list)
    collation: Optional[str] = None
    comment: Optional[str] = None
    foreign_keys: Dict[str, ForeignKeyDescriptor] = Field(default_factory=dict)
    has_id: bool = True
    primary_keys: List[str] = Field(default_factory=lambda: ["id"])

    def column(self, name: str) -> Optional[ColumnDefinition]:
        for column in self.columns:
            if column.name == name:
                return column
        return None


class JunctionTableDescriptor(TableDescriptor):
    """Synthesized many-to-many table; no surrogate key, composite primary key."""

    has_id: bool = False
    primary_keys: List[str] = Field(default_factory=list)
    owner_table: str
    field_name: str
    target_table: str


class CompiledSchema(BaseModel):
    """Base tables first, junction tables after; creation must follow this order."""

    tables: List[TableDescriptor] = Field(default_factory=list)
    junction_tables: List[JunctionTableDescriptor] = Field(default_factory=list)

    def all_tables(self) -> List[TableDescriptor]:
        return [*self.tables, *self.junction_tables]


# ══════════════════════════════════════════════════════════════════════════
# Query descriptors
# ══════════════════════════════════════════════════════════════════════════


class JoinKind(str, Enum):
    INNER = "INNER"
    LEFT = "LEFT"


class JoinSpec(BaseModel):
    """
    One join step. Order inside a plan matters: a junction join always
    precedes the join to the table behind it.
    """

    kind: JoinKind
    left_table: str
    left_column: str
    right_table: str
    right_column: str
    right_alias: Optional[str] = None

    @property
    def right_name(self) -> str:
        """Name the right side is referenced by in the statement."""
        return self.right_alias or self.right_table

    def to_sql(self) -> str:
        """Unquoted fragment, e.g. `INNER JOIN user AS author ON post.author = author.id`."""
        target = self.right_table
        if self.right_alias:
            target = f"{self.right_table} AS {self.right_alias}"
        return (
            f"{self.kind.value} JOIN {target} ON "
            f"{self.left_table}.{self.left_column} = {self.right_name}.{self.right_column}"
        )


class PassthroughOptions(BaseModel):
    """
    Options the resolver forwards untouched to the query collaborator.

    where:     column -> value equality filters
    order_by:  column names, a leading '-' sorts descending
    limit / offset: pagination
    extra:     anything else a collaborator understands
    """

    where: Dict[str, Any] = Field(default_factory=dict)
    order_by: List[str] = Field(default_factory=list)
    limit: Optional[int] = Field(default=None, ge=0)
    offset: Optional[int] = Field(default=None, ge=0)
    extra: Dict[str, Any] = Field(default_factory=dict)


class QueryOptions(BaseModel):
    """
    Caller overrides for a resolved query.

    None means "not supplied". A supplied `select`, `join` or `alias`
    replaces the computed value outright; lists are never concatenated.
    """

    select: Optional[List[str]] = None
    join: Optional[List[JoinSpec]] = None
    alias: Optional[str] = None
    passthrough: PassthroughOptions = Field(default_factory=PassthroughOptions)


class QueryPlan(BaseModel):
    """Bundle handed to the query collaborator."""

    model: str
    table: str
    alias: str
    select_columns: List[str] = Field(default_factory=list)
    joins: List[JoinSpec] = Field(default_factory=list)
    passthrough: PassthroughOptions = Field(default_factory=PassthroughOptions)
