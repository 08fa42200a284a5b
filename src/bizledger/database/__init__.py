"""Persistence layer for bizledger application."""

from bizledger.database.base import KeyValueStore
from bizledger.database.factories import create_sqlite_store

__all__ = ["KeyValueStore", "create_sqlite_store"]
