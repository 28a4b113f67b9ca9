"""
Redis Generation Backend

Shares cache generations across every proxy process through Redis.

Layout:
    {namespace}:generations            SET of generation names
    {namespace}:generation:{name}      HASH identity key -> orjson(CacheEntry)

Why Redis?
- Distributed: every worker sees the same generations
- Persistent: survives application restarts, so a restart does not
  need a fresh install to serve offline

Writes and deletes go through MULTI/EXEC pipelines so a generation's name
and its hash never disagree.

Author: System Architect
Date: 2025-12-13
"""

from typing import Any

import orjson
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from src.core.config.constants import REDIS_KEY_GENERATION, REDIS_KEY_GENERATIONS
from src.core.config.settings import RedisSettings
from src.core.exceptions import CacheConnectionError, CacheStoreError
from src.core.logging.logger import get_logger
from src.offline_proxy.models.http import CacheEntry

logger = get_logger(__name__)


class RedisGenerationBackend:
    """
    GenerationBackend on top of redis.asyncio.

    Args:
        settings: Redis connection settings
        namespace: Key prefix, normally the cache namespace
        client: Pre-built client (tests inject a fake here)
    """

    def __init__(
        self,
        settings: RedisSettings | None = None,
        namespace: str = "app",
        client: Any = None,
    ):
        self._settings = settings or RedisSettings()
        self._namespace = namespace
        self._pool: ConnectionPool | None = None
        self._client = client

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Establish connection to Redis with connection pooling.

        Raises:
            CacheConnectionError: If connection fails
        """
        if self._client is None:
            self._pool = ConnectionPool(
                host=self._settings.REDIS_HOST,
                port=self._settings.REDIS_PORT,
                db=self._settings.REDIS_DB,
                password=self._settings.REDIS_PASSWORD,
                max_connections=self._settings.REDIS_MAX_CONNECTIONS,
                socket_connect_timeout=self._settings.REDIS_SOCKET_CONNECT_TIMEOUT,
                socket_timeout=self._settings.REDIS_SOCKET_TIMEOUT,
                retry_on_timeout=True,
                health_check_interval=self._settings.REDIS_HEALTH_CHECK_INTERVAL,
                decode_responses=True,
            )
            self._client = redis.Redis(connection_pool=self._pool)

        try:
            await self._client.ping()
        except (ConnectionError, TimeoutError) as e:
            logger.error("Failed to connect to Redis", error=str(e))
            raise CacheConnectionError(
                message=f"Failed to connect to Redis: {e}",
                details={"host": self._settings.REDIS_HOST, "port": self._settings.REDIS_PORT},
            )

        logger.info(
            "Redis generation backend connected",
            host=self._settings.REDIS_HOST,
            port=self._settings.REDIS_PORT,
            namespace=self._namespace,
        )

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
        if self._pool is not None:
            await self._pool.disconnect()
        self._client = None
        self._pool = None
        logger.info("Redis generation backend disconnected")

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    @property
    def _names_key(self) -> str:
        return f"{self._namespace}:{REDIS_KEY_GENERATIONS}"

    def _generation_key(self, name: str) -> str:
        return f"{self._namespace}:{REDIS_KEY_GENERATION}:{name}"

    def _require_client(self):
        if self._client is None:
            raise CacheConnectionError(
                "Redis generation backend used before connect()",
            ).with_suggestion("Call 'await backend.connect()' during startup")
        return self._client

    # ------------------------------------------------------------------
    # GenerationBackend
    # ------------------------------------------------------------------

    async def generation_names(self) -> list[str]:
        client = self._require_client()
        try:
            names = await client.smembers(self._names_key)
        except RedisError as e:
            raise CacheStoreError.from_exception(e, operation="generation_names")
        return sorted(names)

    async def has_generation(self, name: str) -> bool:
        client = self._require_client()
        try:
            return bool(await client.sismember(self._names_key, name))
        except RedisError as e:
            raise CacheStoreError.from_exception(e, operation="has_generation", generation=name)

    async def create_generation(self, name: str) -> None:
        client = self._require_client()
        try:
            await client.sadd(self._names_key, name)
        except RedisError as e:
            raise CacheStoreError.from_exception(e, operation="create_generation", generation=name)

    async def delete_generation(self, name: str) -> bool:
        client = self._require_client()
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.srem(self._names_key, name)
                pipe.delete(self._generation_key(name))
                removed, _ = await pipe.execute()
        except RedisError as e:
            raise CacheStoreError.from_exception(e, operation="delete_generation", generation=name)
        return bool(removed)

    async def get(self, generation: str, key: str) -> CacheEntry | None:
        client = self._require_client()
        try:
            raw = await client.hget(self._generation_key(generation), key)
        except RedisError as e:
            raise CacheStoreError.from_exception(e, operation="get", generation=generation)
        if raw is None:
            return None
        try:
            return CacheEntry.from_dict(orjson.loads(raw))
        except (orjson.JSONDecodeError, KeyError, ValueError) as e:
            raise CacheStoreError.from_exception(
                e, message="Corrupt cache entry", operation="get", generation=generation, key=key
            )

    async def put(self, generation: str, entry: CacheEntry) -> None:
        client = self._require_client()
        payload = orjson.dumps(entry.to_dict()).decode("utf-8")
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.sadd(self._names_key, generation)
                pipe.hset(self._generation_key(generation), entry.identity.key, payload)
                await pipe.execute()
        except RedisError as e:
            raise CacheStoreError.from_exception(e, operation="put", generation=generation)

    async def keys(self, generation: str) -> list[str]:
        client = self._require_client()
        try:
            return list(await client.hkeys(self._generation_key(generation)))
        except RedisError as e:
            raise CacheStoreError.from_exception(e, operation="keys", generation=generation)

    async def count(self, generation: str) -> int:
        client = self._require_client()
        try:
            return int(await client.hlen(self._generation_key(generation)))
        except RedisError as e:
            raise CacheStoreError.from_exception(e, operation="count", generation=generation)

    async def health_check(self) -> dict[str, Any]:
        if self._client is None:
            return {"status": "unhealthy", "backend": "redis", "error": "not connected"}
        try:
            await self._client.ping()
        except RedisError as e:
            return {"status": "unhealthy", "backend": "redis", "error": str(e)}
        return {"status": "healthy", "backend": "redis", "namespace": self._namespace}
