"""
Cache Module

Generation-partitioned response store with in-memory and Redis backends.
"""

from .cache_store import CacheGeneration, CacheStore
from .memory_backend import MemoryGenerationBackend
from .redis_backend import RedisGenerationBackend

__all__ = [
    "CacheStore",
    "CacheGeneration",
    "MemoryGenerationBackend",
    "RedisGenerationBackend",
]
