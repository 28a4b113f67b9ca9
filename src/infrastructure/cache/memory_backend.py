"""
In-Memory Generation Backend

Per-process storage for cache generations. This is the default backend and
the one used by tests.

Implementation Details:
- One dict per generation, keyed by identity key
- Whole-entry replacement, so a put is atomic from a reader's point of view
- Deleting a generation drops its dict in one step; readers see either the
  old generation or none

Author: System Architect
Date: 2025-12-13
"""

from typing import Any

from src.core.exceptions import StoreCapacityError
from src.offline_proxy.models.http import CacheEntry


class MemoryGenerationBackend:
    """
    Dict-backed GenerationBackend.

    Args:
        max_entries_per_generation: Capacity of a single generation. A put of a
            new key into a full generation raises StoreCapacityError;
            overwriting an existing key is always allowed.
    """

    def __init__(self, max_entries_per_generation: int | None = None):
        self._generations: dict[str, dict[str, CacheEntry]] = {}
        self._max_entries = max_entries_per_generation

    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass

    async def generation_names(self) -> list[str]:
        return sorted(self._generations)

    async def has_generation(self, name: str) -> bool:
        return name in self._generations

    async def create_generation(self, name: str) -> None:
        self._generations.setdefault(name, {})

    async def delete_generation(self, name: str) -> bool:
        return self._generations.pop(name, None) is not None

    async def get(self, generation: str, key: str) -> CacheEntry | None:
        entries = self._generations.get(generation)
        if entries is None:
            return None
        return entries.get(key)

    async def put(self, generation: str, entry: CacheEntry) -> None:
        entries = self._generations.setdefault(generation, {})
        key = entry.identity.key
        if (
            self._max_entries is not None
            and key not in entries
            and len(entries) >= self._max_entries
        ):
            raise StoreCapacityError(
                f"Generation '{generation}' is full",
                details={"max_entries": self._max_entries}, generation=generation,
            )
        entries[key] = entry

    async def keys(self, generation: str) -> list[str]:
        return list(self._generations.get(generation, {}))

    async def count(self, generation: str) -> int:
        return len(self._generations.get(generation, {}))

    async def health_check(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "backend": "memory",
            "generations": len(self._generations),
            "entries": sum(len(entries) for entries in self._generations.values()),
        }
