"""Ports - interfaces/protocols for external dependencies."""

from .entity_store import EntityStore

__all__ = [
    "EntityStore",
]
