"""Key-value storage interface and implementations.

Holds two kinds of records:
- hash fields, used for the external id to account id mapping
- TTL'd model values, used for local login sessions

Redis-first, with an in-memory fallback for development and tests.
"""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel

from src.session_sharing.core.errors import StorageError
from src.session_sharing.runtime.config.config_data import ConfigData

T = TypeVar("T", bound=BaseModel)


class KeyValueStorage(ABC):
    """Abstract interface for storage backends."""

    @abstractmethod
    async def get_field(self, key: str, field: str) -> str | None:
        """Read one field of the hash stored at ``key``."""

    @abstractmethod
    async def set_field(self, key: str, field: str, value: str) -> None:
        """Write one field of the hash stored at ``key``, replacing any value."""

    @abstractmethod
    async def set_field_if_absent(self, key: str, field: str, value: str) -> str:
        """Write ``value`` unless the field already holds one.

        Returns:
            The value stored after the call: ``value`` when it was written,
            the pre-existing value otherwise.
        """

    @abstractmethod
    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        """Store a model with TTL."""

    @abstractmethod
    async def get(self, key: str, model_class: type[T]) -> T | None:
        """Retrieve a model, or None if not found/expired."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a key."""

    @abstractmethod
    async def cleanup_expired(self) -> int:
        """Clean up expired values.

        Returns:
            Number of values cleaned up
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if storage backend is available."""


class InMemoryStorage(KeyValueStorage):
    """In-memory storage with TTL support for model values."""

    def __init__(self):
        self._hashes: dict[str, dict[str, str]] = {}
        self._data: dict[str, dict[str, Any]] = {}

    async def get_field(self, key: str, field: str) -> str | None:
        return self._hashes.get(key, {}).get(field)

    async def set_field(self, key: str, field: str, value: str) -> None:
        self._hashes.setdefault(key, {})[field] = value

    async def set_field_if_absent(self, key: str, field: str, value: str) -> str:
        return self._hashes.setdefault(key, {}).setdefault(field, value)

    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        """Store value in memory with expiration."""
        self._data[key] = {
            "data": json.loads(value.model_dump_json()),
            "expires_at": time.time() + ttl_seconds,
        }

    async def get(self, key: str, model_class: type[T]) -> T | None:
        """Retrieve value from memory if not expired."""
        entry = self._data.get(key)
        if entry is None:
            return None

        if time.time() > entry["expires_at"]:
            del self._data[key]
            return None

        try:
            return model_class.model_validate(entry["data"])
        except ValueError:
            # Clean up corrupted data
            del self._data[key]
            return None

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
        self._hashes.pop(key, None)

    async def cleanup_expired(self) -> int:
        now = time.time()
        expired_keys = [key for key, entry in self._data.items() if now > entry["expires_at"]]

        for key in expired_keys:
            del self._data[key]

        return len(expired_keys)

    def is_available(self) -> bool:
        """In-memory storage is always available."""
        return True


class RedisStorage(KeyValueStorage):
    """Redis-based storage. Every client failure surfaces as :class:`StorageError`."""

    def __init__(self, redis_client):
        self._redis = redis_client
        self._available = True

    async def _call(self, op: str, *args, **kwargs):
        try:
            result = await getattr(self._redis, op)(*args, **kwargs)
        except Exception as e:
            self._available = False
            raise StorageError(f"Redis {op} failed: {e}") from e
        self._available = True
        return result

    @staticmethod
    def _decode(value: Any) -> str | None:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def get_field(self, key: str, field: str) -> str | None:
        return self._decode(await self._call("hget", key, field))

    async def set_field(self, key: str, field: str, value: str) -> None:
        await self._call("hset", key, field, value)

    async def set_field_if_absent(self, key: str, field: str, value: str) -> str:
        if await self._call("hsetnx", key, field, value):
            return value
        existing = await self.get_field(key, field)
        return existing if existing is not None else value

    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        await self._call("setex", key, ttl_seconds, value.model_dump_json())

    async def get(self, key: str, model_class: type[T]) -> T | None:
        data = self._decode(await self._call("get", key))
        if data is None:
            return None
        try:
            return model_class.model_validate_json(data)
        except ValueError:
            logger.warning("Discarding corrupted value stored at {}", key)
            await self.delete(key)
            return None

    async def delete(self, key: str) -> None:
        await self._call("delete", key)

    async def cleanup_expired(self) -> int:
        """Redis handles expiration automatically."""
        return 0

    def is_available(self) -> bool:
        """Check if Redis connection is healthy."""
        return self._available

    async def ping(self) -> bool:
        """Test Redis connection health."""
        try:
            await self._redis.ping()
            self._available = True
            return True
        except Exception:
            self._available = False
            return False

    async def close(self) -> None:
        await self._redis.aclose()


async def create_storage(config: ConfigData | None = None) -> KeyValueStorage:
    """Create Redis storage when configured and reachable, in-memory otherwise.

    In production an unreachable Redis is fatal: in-memory mappings would be
    lost on restart and not shared between workers.
    """
    import redis.asyncio as redis

    if config is None:
        from src.session_sharing.runtime.context import get_config

        config = get_config()
    if not config.redis.enabled or not config.redis.url:
        logger.info("Redis not configured, using in-memory storage")
        return InMemoryStorage()

    redis_client = redis.from_url(
        config.redis.connection_string,
        encoding="utf-8",
        decode_responses=config.redis.decode_responses,
        socket_connect_timeout=config.redis.socket_timeout,
        socket_timeout=config.redis.socket_timeout,
    )

    redis_storage = RedisStorage(redis_client)
    if await redis_storage.ping():
        logger.info("Storage: Redis connected")
        return redis_storage

    if config.app.environment == "production":
        raise StorageError("Redis ping failed")
    logger.warning("Redis unavailable, using in-memory storage")
    return InMemoryStorage()
