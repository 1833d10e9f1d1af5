"""Database layer - engine, base classes, types."""

from tuition_kernel.db.base import UUID, Base, TrackedBase, UUIDKeyed, UUIDString
from tuition_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    session_scope,
)
from tuition_kernel.db.types import round_money, split_evenly

__all__ = [
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDKeyed",
    "UUIDString",
    "UUID",
    "round_money",
    "split_evenly",
]
