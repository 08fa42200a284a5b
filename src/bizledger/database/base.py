"""Abstract key-value store interface."""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """Abstract key-value store for bizledger.

    Values are serialized text blobs. Every write replaces the whole value
    stored under a key.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the store."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize storage schema (create tables)."""
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Get the value stored under key, or None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""
        pass
