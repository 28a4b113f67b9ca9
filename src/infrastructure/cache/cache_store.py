#!/usr/bin/env python3
"""
Generation-Partitioned Cache Store

Architecture:
    CacheStore (Public API)
        ├── GenerationBackend (memory or Redis storage)
        ├── per-generation asyncio.Lock (write/delete serialization)
        └── CacheGeneration (handle on one named partition)

Concurrency:
    - Lookups take no lock; a backend put replaces whole entries, so a
      reader sees the old entry or the new one, never a partial write
    - Writes and deletes take the lock of their own generation only, so
      requests hitting different generations never wait on each other
    - There is no global lock

Invariants enforced here:
    - Only GET identities are stored
    - Only status-200 snapshots are stored

Author: System Architect
Date: 2025-12-13
"""

import asyncio
from typing import Any

from src.core.config.constants import Stage
from src.core.exceptions import (
    CacheStoreError,
    GenerationNotFoundError,
    UncacheableEntryError,
)
from src.core.interfaces.cache import GenerationBackend
from src.core.logging.logger import get_logger, log_stage
from src.offline_proxy.models.http import CacheEntry, RequestIdentity, ResponseSnapshot

logger = get_logger(__name__)


class CacheGeneration:
    """
    Handle on one named generation.

    Obtained from CacheStore.open(); mirrors the shape of a browser Cache
    object (match / put / keys).
    """

    def __init__(self, store: "CacheStore", name: str):
        self._store = store
        self.name = name

    async def match(self, identity: RequestIdentity) -> ResponseSnapshot | None:
        return await self._store.match(self.name, identity)

    async def put(self, identity: RequestIdentity, snapshot: ResponseSnapshot) -> None:
        await self._store.put(self.name, identity, snapshot)

    async def keys(self) -> list[str]:
        return await self._store.keys(self.name)

    async def size(self) -> int:
        return await self._store.size(self.name)

    def __repr__(self) -> str:
        return f"CacheGeneration(name='{self.name}')"


class CacheStore:
    """
    Key-value store of response snapshots, partitioned into named generations.

    Passed explicitly to every component that needs it; there is no
    module-level instance.

    Args:
        backend: Storage implementation (MemoryGenerationBackend, RedisGenerationBackend)

    Example:
        store = CacheStore(MemoryGenerationBackend())
        static = await store.open("app-static-v1")
        await static.put(request.identity, snapshot)
        cached = await static.match(request.identity)
    """

    def __init__(self, backend: GenerationBackend):
        self._backend = backend
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def backend(self) -> GenerationBackend:
        return self._backend

    def _lock_for(self, name: str) -> asyncio.Lock:
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks.setdefault(name, asyncio.Lock())
        return lock

    async def _call(self, operation: str, method, *args, **context):
        """Call and await a backend method, wrapping unexpected errors as CacheStoreError."""
        try:
            return await method(*args)
        except CacheStoreError:
            raise
        except Exception as e:
            raise CacheStoreError.from_exception(e, operation=operation, **context)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        await self._call("connect", self._backend.connect)

    async def close(self) -> None:
        await self._call("disconnect", self._backend.disconnect)

    # ------------------------------------------------------------------
    # Generations
    # ------------------------------------------------------------------

    async def open(self, name: str) -> CacheGeneration:
        """Open a generation, creating it empty if it does not exist."""
        if not await self.has(name):
            async with self._lock_for(name):
                await self._call("create_generation", self._backend.create_generation, name, generation=name)
                log_stage(logger, Stage.STORE, "Generation created", level="debug", generation=name)
        return CacheGeneration(self, name)

    async def has(self, name: str) -> bool:
        return await self._call("has_generation", self._backend.has_generation, name, generation=name)

    async def generation_names(self) -> list[str]:
        names = await self._call("generation_names", self._backend.generation_names)
        return sorted(names)

    async def delete_generation(self, name: str) -> bool:
        """
        Delete a generation and all of its entries.

        Waits for in-flight writes to the same generation to finish first.
        Returns False if the generation did not exist.
        """
        async with self._lock_for(name):
            deleted = await self._call(
                "delete_generation", self._backend.delete_generation, name, generation=name
            )
        if deleted:
            log_stage(logger, Stage.STORE, "Generation deleted", generation=name)
        return deleted

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    async def match(self, name: str, identity: RequestIdentity) -> ResponseSnapshot | None:
        """Look up an identity in one generation. Hits are returned as independent copies."""
        entry = await self._call("get", self._backend.get, name, identity.key, generation=name)
        return entry.snapshot.clone() if entry is not None else None

    async def match_any(self, identity: RequestIdentity) -> ResponseSnapshot | None:
        """Look up an identity across every generation, in name order."""
        for name in await self.generation_names():
            snapshot = await self.match(name, identity)
            if snapshot is not None:
                return snapshot
        return None

    async def put(self, name: str, identity: RequestIdentity, snapshot: ResponseSnapshot) -> None:
        """
        Store a snapshot, replacing any existing entry for the identity.

        Raises:
            UncacheableEntryError: Non-GET identity or non-200 snapshot
            CacheStoreError: Backend failure (including StoreCapacityError)
        """
        if not identity.is_cacheable:
            raise UncacheableEntryError(
                f"{identity.method} requests are never cached",
                details={"key": identity.key}, generation=name,
            )
        if not snapshot.ok:
            raise UncacheableEntryError(
                f"Only status 200 responses are cached, got {snapshot.status_code}",
                details={"key": identity.key}, generation=name,
            )

        entry = CacheEntry(identity=identity, snapshot=snapshot.clone())
        async with self._lock_for(name):
            await self._call("put", self._backend.put, name, entry, generation=name)

    async def keys(self, name: str, must_exist: bool = False) -> list[str]:
        if must_exist:
            await self._require(name)
        return await self._call("keys", self._backend.keys, name, generation=name)

    async def size(self, name: str, must_exist: bool = False) -> int:
        if must_exist:
            await self._require(name)
        return await self._call("count", self._backend.count, name, generation=name)

    async def _require(self, name: str) -> None:
        if not await self.has(name):
            raise GenerationNotFoundError(
                f"Generation '{name}' does not exist", generation=name
            )

    async def health_check(self) -> dict[str, Any]:
        try:
            return await self._backend.health_check()
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}
