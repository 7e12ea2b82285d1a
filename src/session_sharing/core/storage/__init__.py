"""Storage abstractions for identity mappings and login sessions."""

from .kv_storage import InMemoryStorage, KeyValueStorage, RedisStorage, create_storage

__all__ = ["InMemoryStorage", "KeyValueStorage", "RedisStorage", "create_storage"]
