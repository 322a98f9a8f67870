from abc import ABC, abstractmethod
from typing import Optional


class BaseRepository(ABC):
    """Base repository interface."""

    @abstractmethod
    async def connect(self) -> None:
        """Connect to the data store."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from the data store."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the data store is healthy."""
        pass


class CacheRepository(BaseRepository):
    """Cache repository interface."""

    @abstractmethod
    async def get_json(self, key: str) -> Optional[dict]:
        """Get a JSON value, or None when missing or expired."""
        pass

    @abstractmethod
    async def set_json(self, key: str, value: dict, ttl: Optional[int] = None) -> None:
        """Set a JSON value with an optional time-to-live in seconds."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete cache value."""
        pass
