"""
Generation Backend Protocol

This module defines the abstract protocol for cache generation backends,
enabling dependency injection and testability.

Architectural Decision: Protocol-based abstraction
- Enables multiple backend implementations (in-memory, Redis)
- Facilitates testing with fake implementations
- Follows dependency inversion principle

Author: System Architect
Date: 2025-12-08
"""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from src.offline_proxy.models.http import CacheEntry


@runtime_checkable
class GenerationBackend(Protocol):
    """
    Protocol for the storage beneath a CacheStore.

    A backend holds named generations, each mapping an identity key to a
    CacheEntry. Backends do no locking of their own; the CacheStore
    serializes writes per generation.

    Implementations:
    - MemoryGenerationBackend: per-process dict storage (default)
    - RedisGenerationBackend: one Redis hash per generation, shared across processes

    Every method may raise CacheStoreError.
    """

    async def connect(self) -> None:
        """Prepare the backend (open connections)."""
        ...

    async def disconnect(self) -> None:
        """Release backend resources."""
        ...

    async def generation_names(self) -> list[str]:
        """List every existing generation name."""
        ...

    async def has_generation(self, name: str) -> bool:
        """Whether a generation exists."""
        ...

    async def create_generation(self, name: str) -> None:
        """Create an empty generation; no-op if it exists."""
        ...

    async def delete_generation(self, name: str) -> bool:
        """Delete a generation with all its entries. Returns False if absent."""
        ...

    async def get(self, generation: str, key: str) -> "CacheEntry | None":
        """Look up one entry."""
        ...

    async def put(self, generation: str, entry: "CacheEntry") -> None:
        """Store one entry atomically, creating the generation if needed."""
        ...

    async def keys(self, generation: str) -> list[str]:
        """Identity keys stored in a generation."""
        ...

    async def count(self, generation: str) -> int:
        """Number of entries in a generation."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """Backend health summary."""
        ...
