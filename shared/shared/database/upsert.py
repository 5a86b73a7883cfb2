"""
Race-free inserts keyed on unique constraints.

``insert_ignore`` emits ``INSERT ... ON CONFLICT (...) DO NOTHING`` for the
session's dialect. Concurrent duplicate inserts collapse into one row and the
losing writer simply sees ``False`` instead of an IntegrityError.
"""

from collections.abc import Sequence
from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def _dialect_insert(session: AsyncSession):
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert
    if name == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"insert_ignore is not supported for dialect {name!r}")


async def insert_ignore(
    session: AsyncSession,
    model: Any,
    values: dict[str, Any],
    conflict_columns: Sequence[str],
) -> bool:
    """Insert ``values`` unless a row with the same ``conflict_columns`` exists.

    Returns True when this call created the row.
    """
    insert = _dialect_insert(session)
    stmt = (
        insert(model)
        .values(**values)
        .on_conflict_do_nothing(index_elements=list(conflict_columns))
    )
    result = await session.execute(stmt)
    return (result.rowcount or 0) > 0
