from .base import BaseRepository, CacheRepository
from .memory_cache import InMemoryCacheRepository
from .redis_cache import RedisCacheRepository

__all__ = ["BaseRepository", "CacheRepository", "InMemoryCacheRepository", "RedisCacheRepository"]
