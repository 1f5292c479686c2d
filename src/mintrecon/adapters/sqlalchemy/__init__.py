"""SQLAlchemy adapter package for mintrecon."""

from __future__ import annotations

from .mappings import create_all_tables, kv_entry_table, metadata
from .store import SqlAlchemyKeyValueStore, StartupError, is_started, shutdown, startup

__all__ = [
    "SqlAlchemyKeyValueStore",
    "StartupError",
    "create_all_tables",
    "is_started",
    "kv_entry_table",
    "metadata",
    "shutdown",
    "startup",
]
