"""
ModelSchema: SQLAlchemy Collaborators
======================================

What:  Concrete DDL and query collaborators backed by async SQLAlchemy.
How:   SqlAlchemyDDLExecutor turns a TableDescriptor into a sqlalchemy.Table
       (surrogate `id` key, typed columns, named foreign keys, composite
       primary key for junction tables) and runs CREATE TABLE with checkfirst.
       SqlAlchemyQueryExecutor turns a QueryPlan into a select() with joins,
       filters, ordering and pagination, and returns rows as dicts.
Who:   Default collaborators of ModelService.
When:  After the core has compiled or resolved everything it needs.

Dialect notes:
    - Identifier quoting is done by the engine's dialect.
    - Column character set and collation are MySQL/MariaDB type variants;
      other dialects get the plain type.
    - `table_prefix` is prepended to every physical table name; statements
      still refer to tables through their unprefixed alias.

Resilience:
    Connection-level failures (invalidated connections, disconnects) are
    retried with exponential backoff and jitter. Everything else surfaces
    at once as DatabaseError.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import sqlalchemy as sa
from sqlalchemy.dialects import mysql
from sqlalchemy.exc import DBAPIError, DisconnectionError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.schema import CreateTable
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from modelschema.config import settings
from modelschema.database import get_engine
from modelschema.exceptions import DatabaseError
from modelschema.schemas.descriptors import (
    ColumnDefinition,
    JoinKind,
    QueryPlan,
    StorageKind,
    TableDescriptor,
)
from modelschema.services import naming
from modelschema.services.executors import DDLExecutor, QueryExecutor
from modelschema.services.field_resolver import BOUNDED_STRING_LENGTH

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Retry policy
# ══════════════════════════════════════════════════════════════════════════


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, DisconnectionError):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


_transient_retry = retry(
    retry=retry_if_exception(_is_transient),
    stop=stop_after_attempt(settings.retry_max_attempts),
    wait=wait_exponential_jitter(
        initial=settings.retry_min_wait,
        max=settings.retry_max_wait,
        jitter=1,
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


# ══════════════════════════════════════════════════════════════════════════
# DDL
# ══════════════════════════════════════════════════════════════════════════

_GENERIC_TYPES = {
    StorageKind.LARGE_TEXT: sa.Text,
    StorageKind.BOUNDED_STRING: lambda: sa.String(BOUNDED_STRING_LENGTH),
    StorageKind.INT: sa.Integer,
    StorageKind.FLOAT: sa.Float,
    StorageKind.DOUBLE: sa.Double,
    StorageKind.BOOL: sa.Boolean,
    StorageKind.DATE: sa.Date,
    StorageKind.DATETIME: sa.DateTime,
    StorageKind.FOREIGN_KEY: sa.Integer,
}


def column_type(column: ColumnDefinition) -> sa.types.TypeEngine:
    """SQLAlchemy type for a column, with a MySQL variant carrying charset/collation."""
    generic = _GENERIC_TYPES[column.storage_kind]()
    if not column.storage_kind.is_text or not (column.character_set or column.collation):
        return generic

    if column.storage_kind is StorageKind.LARGE_TEXT:
        variant = mysql.TEXT(charset=column.character_set, collation=column.collation)
    else:
        variant = mysql.VARCHAR(
            BOUNDED_STRING_LENGTH,
            charset=column.character_set,
            collation=column.collation,
        )
    return generic.with_variant(variant, "mysql", "mariadb")


def build_table(
    descriptor: TableDescriptor,
    metadata: sa.MetaData,
    table_prefix: str = "",
) -> sa.Table:
    """
    Register `descriptor` as a Table in `metadata`.

    Referenced tables not yet in `metadata` get a placeholder holding only
    their key column, so foreign keys can be compiled in any model order;
    the placeholder is replaced when the real table is built. Building the
    same descriptor twice replaces the earlier Table.
    """
    name = f"{table_prefix}{descriptor.name}"
    existing = metadata.tables.get(name)
    if existing is not None:
        metadata.remove(existing)

    for fk in descriptor.foreign_keys.values():
        referenced = f"{table_prefix}{fk.referenced_table}"
        if referenced != name and referenced not in metadata.tables:
            sa.Table(
                referenced,
                metadata,
                sa.Column(fk.referenced_column, sa.Integer, primary_key=True),
            )

    columns: List[sa.Column] = []
    if descriptor.has_id:
        columns.append(sa.Column(naming.SURROGATE_KEY, sa.Integer, primary_key=True, autoincrement=True))
    for column in descriptor.columns:
        columns.append(
            sa.Column(
                column.name,
                column_type(column),
                nullable=column.nullable,
                unique=column.unique or None,
                comment=column.comment,
            )
        )

    constraints: List[sa.schema.Constraint] = []
    if not descriptor.has_id and descriptor.primary_keys:
        constraints.append(sa.PrimaryKeyConstraint(*descriptor.primary_keys))
    for column_name, fk in descriptor.foreign_keys.items():
        constraints.append(
            sa.ForeignKeyConstraint(
                [column_name],
                [f"{table_prefix}{fk.referenced_table}.{fk.referenced_column}"],
                name=fk.constraint_name,
            )
        )

    dialect_options = {}
    if descriptor.collation:
        dialect_options["mysql_collate"] = descriptor.collation

    return sa.Table(
        name,
        metadata,
        *columns,
        *constraints,
        comment=descriptor.comment,
        **dialect_options,
    )


class SqlAlchemyDDLExecutor(DDLExecutor):
    """
    Creates tables through an async engine.

    One MetaData is kept per executor so foreign keys can resolve the
    tables created before them.
    """

    def __init__(self, engine: Optional[AsyncEngine] = None, table_prefix: Optional[str] = None):
        self.engine = engine or get_engine()
        self.table_prefix = settings.table_prefix if table_prefix is None else table_prefix
        self.metadata = sa.MetaData()

    def build(self, descriptor: TableDescriptor) -> sa.Table:
        return build_table(descriptor, self.metadata, self.table_prefix)

    def render(self, descriptor: TableDescriptor) -> str:
        """CREATE TABLE statement for the engine's dialect."""
        table = self.build(descriptor)
        return str(CreateTable(table).compile(dialect=self.engine.dialect)).strip()

    async def create_table(self, table: TableDescriptor) -> None:
        sa_table = self.build(table)
        try:
            await self._create(sa_table)
        except SQLAlchemyError as e:
            logger.error("Could not create table %s: %s", sa_table.name, str(e))
            raise DatabaseError(
                message=f"Could not create table '{sa_table.name}'",
                context={"table": sa_table.name, "original_error": type(e).__name__},
            ) from e
        logger.info("Table ready: %s", sa_table.name)

    @_transient_retry
    async def _create(self, table: sa.Table) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(table.create, checkfirst=True)


# ══════════════════════════════════════════════════════════════════════════
# Queries
# ══════════════════════════════════════════════════════════════════════════

# "<expression> AS '<alias>'" as produced by naming.select_expression()
_ALIASED_COLUMN = re.compile(r"^(?P<expr>.+?)\s+AS\s+'(?P<alias>(?:[^']|'')*)'$", re.IGNORECASE | re.DOTALL)
_BARE_IDENTIFIER = re.compile(r"^\w+$")


def select_column(expression: str, base_alias: str) -> sa.ColumnElement:
    """
    Select-list entry for one expression string.

    Aliased expressions are re-labelled so the dialect quotes the alias. A
    bare column name is qualified with the table its alias path points to
    ("author.name" -> author.name, "title" -> <base_alias>.title), so equal
    column names in joined tables stay unambiguous. Anything else is passed
    through verbatim.
    """
    match = _ALIASED_COLUMN.match(expression.strip())
    if match is None:
        return sa.literal_column(expression)

    expr = match.group("expr")
    alias = match.group("alias").replace("''", "'")
    if _BARE_IDENTIFIER.match(expr):
        path = alias.split(".")[:-1]
        table = naming.join_alias(".".join(path[:-1]), path[-1]) if path else base_alias
        expr = f"{table}.{expr}"
    return sa.literal_column(expr).label(alias)


def _order_column(name: str) -> sa.ColumnElement:
    if name.startswith("-"):
        return sa.literal_column(name[1:]).desc()
    return sa.literal_column(name).asc()


def build_select(plan: QueryPlan, table_prefix: str = "") -> sa.Select:
    """select() statement for a QueryPlan."""
    from_clause = sa.table(f"{table_prefix}{plan.table}").alias(plan.alias)

    for join in plan.joins:
        right = sa.table(f"{table_prefix}{join.right_table}").alias(join.right_name)
        onclause = sa.literal_column(f"{join.left_table}.{join.left_column}") == sa.literal_column(
            f"{join.right_name}.{join.right_column}"
        )
        from_clause = from_clause.join(right, onclause, isouter=join.kind is JoinKind.LEFT)

    columns = [select_column(c, plan.alias) for c in plan.select_columns] or [sa.literal_column("*")]
    stmt = sa.select(*columns).select_from(from_clause)

    options = plan.passthrough
    for column_name, value in options.where.items():
        stmt = stmt.where(sa.literal_column(column_name) == value)
    if options.order_by:
        stmt = stmt.order_by(*[_order_column(name) for name in options.order_by])
    if options.limit is not None:
        stmt = stmt.limit(options.limit)
    if options.offset is not None:
        stmt = stmt.offset(options.offset)
    if options.extra:
        logger.debug("Ignoring unsupported passthrough options: %s", sorted(options.extra))
    return stmt


class SqlAlchemyQueryExecutor(QueryExecutor):
    """Runs resolved query plans through an async engine."""

    def __init__(self, engine: Optional[AsyncEngine] = None, table_prefix: Optional[str] = None):
        self.engine = engine or get_engine()
        self.table_prefix = settings.table_prefix if table_prefix is None else table_prefix

    def build(self, plan: QueryPlan) -> sa.Select:
        return build_select(plan, self.table_prefix)

    def render(self, plan: QueryPlan) -> str:
        """SELECT statement for the engine's dialect, with bound parameters left as placeholders."""
        return str(self.build(plan).compile(dialect=self.engine.dialect))

    async def fetch(self, plan: QueryPlan) -> List[Dict[str, Any]]:
        stmt = self.build(plan)
        try:
            rows = await self._execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Query for %s failed: %s", plan.model, str(e))
            raise DatabaseError(
                message=f"Could not read model '{plan.model}'",
                context={"model": plan.model, "original_error": type(e).__name__},
            ) from e
        logger.debug("Fetched %d row(s) for %s", len(rows), plan.model)
        return rows

    @_transient_retry
    async def _execute(self, stmt: sa.Select) -> List[Dict[str, Any]]:
        async with self.engine.connect() as conn:
            result = await conn.execute(stmt)
            return [dict(row) for row in result.mappings().all()]
