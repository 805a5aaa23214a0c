"""SQLAlchemy adapter package for idsync."""

from __future__ import annotations

from .mappings import create_all_tables, key_value_table, metadata
from .store import (
    SqlAlchemyKeyValueStore,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyKeyValueStore",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "key_value_table",
    "metadata",
    "shutdown",
    "startup",
]
