"""
ModelSchema: Naming & Aliasing Utilities
=========================================

What:  Deterministic identifier generation shared by the compiler and the resolver.

    foreign_key_name("post", "author")      -> "FK_post_author"
    junction_table_name("post", "tags")     -> "post_tags"
    junction_column("post")                 -> "id_post"
    alias_prefix("", "author")              -> "author."
    column_alias("author.", "name")         -> "author.name"
    join_alias("author.", "company")        -> "author__company"
    junction_alias("author.", "tags", "user_tags") -> "author__tags__user_tags"
    select_expression("name", "author.name") -> "name AS 'author.name'"
"""

from typing import Optional

SURROGATE_KEY = "id"


def foreign_key_name(table: str, suffix: str) -> str:
    """Constraint name for a foreign key declared on `table`."""
    return f"FK_{table}_{suffix}"


def junction_table_name(owner_table: str, field_name: str) -> str:
    return f"{owner_table}_{field_name}"


def junction_column(name: str) -> str:
    """Junction-table column pointing at `name`'s surrogate key."""
    return f"{SURROGATE_KEY}_{name}"


def alias_prefix(prefix: str, field_name: str) -> str:
    """Alias prefix for the columns of a model reached through `field_name`."""
    return f"{prefix}{field_name}."


def column_alias(prefix: str, field_name: str) -> str:
    return f"{prefix}{field_name}"


def join_alias(prefix: str, field_name: str) -> str:
    """
    Table alias for a joined model.

    At the top level this is the field name itself; nested hops join the
    path with double underscores so the alias stays a plain identifier.
    """
    path = [part for part in prefix.split(".") if part]
    return "__".join([*path, field_name])


def junction_alias(prefix: str, field_name: str, junction: str) -> Optional[str]:
    """
    Table alias for a junction table reached through `field_name`.

    None at the top level, where the junction is referenced by its table
    name. Nested hops qualify it with the path; two paths may cross
    the same junction table ("author__tags__user_tags", "editor__tags__user_tags").
    """
    if not prefix:
        return None
    return join_alias(prefix, f"{field_name}__{junction}")


def quote_literal(value: str) -> str:
    """Single-quoted SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def select_expression(column: str, alias: str) -> str:
    return f"{column} AS {quote_literal(alias)}"
