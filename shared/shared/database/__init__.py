from shared.database.postgres import (
    AsyncSessionFactory,
    Base,
    get_async_session_factory,
    session_factory_for,
)
from shared.database.upsert import insert_ignore

__all__ = [
    "AsyncSessionFactory",
    "Base",
    "get_async_session_factory",
    "insert_ignore",
    "session_factory_for",
]
