# lotus_backend/core/dialects.py
"""Native upsert statements for the supported backends."""

from typing import Any, Dict, Sequence

from sqlalchemy import Table
from sqlalchemy.sql import Executable

from lotus_backend.core.errors import QueryError


def _insert_for(dialect_name: str):
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    elif dialect_name in ("mysql", "mariadb"):
        from sqlalchemy.dialects.mysql import insert
    else:
        raise QueryError(f"Upsert is not supported for dialect {dialect_name!r}")
    return insert


def insert_ignore(
    dialect_name: str,
    table: Table,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
) -> Executable:
    """INSERT that silently keeps the existing row on a unique conflict."""
    stmt = _insert_for(dialect_name)(table).values(**values)
    if dialect_name in ("mysql", "mariadb"):
        return stmt.prefix_with("IGNORE")
    return stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))


def insert_or_increment(
    dialect_name: str,
    table: Table,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
    counter: str,
    also_set: Dict[str, Any] = None,
) -> Executable:
    """INSERT ``values``; on conflict add the inserted ``counter`` to the stored one."""
    also_set = also_set or {}
    stmt = _insert_for(dialect_name)(table).values(**values)
    column = table.c[counter]

    if dialect_name in ("mysql", "mariadb"):
        return stmt.on_duplicate_key_update(
            {counter: column + stmt.inserted[counter], **also_set}
        )
    return stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={counter: column + stmt.excluded[counter], **also_set},
    )
