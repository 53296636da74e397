"""Storage module."""

from ..config import Settings
from .redis_store import RedisStore
from .storage import IKeyValueStore, ISubscription, SqliteStore


def create_store(settings: Settings) -> IKeyValueStore:
    """Build the store selected by STORE_BACKEND."""
    if settings.store_backend == "redis":
        return RedisStore(settings.redis_url)
    if settings.store_backend == "sqlite":
        return SqliteStore(settings.database_url)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.store_backend}")


__all__ = [
    "IKeyValueStore",
    "ISubscription",
    "RedisStore",
    "SqliteStore",
    "create_store",
]
