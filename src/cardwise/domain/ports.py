"""
Ports (interfaces) for persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStore(ABC):
    """
    Port for a namespaced key-value store holding JSON-compatible documents.

    Implementations:
        - InMemoryStore: Process-local dict, used by tests and the HTTP API.
        - JsonFileStore: One JSON document on disk per namespace.
    """

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        """
        Fetch the document stored under key.

        Returns:
            The stored document, or None if the key is absent.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: dict[str, Any]) -> None:
        """Store value under key, replacing any previous document."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """
        List every key in insertion order.
        """
        pass
