"""Database layer - engine, base classes, types."""

from fundflow_kernel.db.base import Base, TimestampedBase, UUIDString
from fundflow_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from fundflow_kernel.db.types import Money, to_money

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "Base",
    "TimestampedBase",
    "UUIDString",
    "Money",
    "to_money",
]
