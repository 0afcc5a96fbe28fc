"""Database layer: declarative base, engine and session management."""

from sales_kernel.db.base import Base, new_row_id
from sales_kernel.db.engine import (
    DEFAULT_DATABASE_URL,
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "new_row_id",
    "DEFAULT_DATABASE_URL",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
