"""Adapters - I/O implementations of ports."""

from .sqlite_store import SqliteEntityStore, StoreError

__all__ = [
    "SqliteEntityStore",
    "StoreError",
]
