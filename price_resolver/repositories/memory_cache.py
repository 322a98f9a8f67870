from typing import Callable, Dict, Optional, Tuple
import copy
import time
import structlog

from .base import CacheRepository


logger = structlog.get_logger()


class InMemoryCacheRepository(CacheRepository):
    """Process-local cache with per-key expiry."""

    def __init__(self, key_prefix: str = "iaero:prices", clock: Callable[[], float] = time.monotonic):
        self.key_prefix = key_prefix
        self.clock = clock
        self._entries: Dict[str, Tuple[Optional[float], dict]] = {}

    async def connect(self) -> None:
        logger.info("Using in-memory response cache")

    async def disconnect(self) -> None:
        self._entries.clear()

    async def health_check(self) -> bool:
        return True

    def _make_key(self, key: str) -> str:
        """Create prefixed key."""
        return f"{self.key_prefix}:{key}"

    async def get_json(self, key: str) -> Optional[dict]:
        full_key = self._make_key(key)
        entry = self._entries.get(full_key)
        if entry is None:
            return None

        expires_at, value = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self._entries[full_key]
            return None

        return copy.deepcopy(value)

    async def set_json(self, key: str, value: dict, ttl: Optional[int] = None) -> None:
        expires_at = self.clock() + ttl if ttl else None
        self._entries[self._make_key(key)] = (expires_at, copy.deepcopy(value))
        self._evict_expired()

    async def delete(self, key: str) -> None:
        self._entries.pop(self._make_key(key), None)

    def _evict_expired(self) -> None:
        now = self.clock()
        expired = [
            key for key, (expires_at, _) in self._entries.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._entries[key]
