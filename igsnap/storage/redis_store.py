"""Redis snapshot store."""

from typing import Optional

from pydantic import ValidationError

from igsnap.exceptions import PersistenceError
from igsnap.models.snapshot import ProfileSnapshot
from igsnap.storage.base import SnapshotStore, make_key

try:
    import redis.asyncio as redis
    from redis.exceptions import RedisError
    REDIS_AVAILABLE = True
except ImportError:
    REDIS_AVAILABLE = False


class RedisSnapshotStore(SnapshotStore):
    """
    Redis-based document store. Keys never expire.

    Requires redis package: pip install igsnap[redis]

    Example:
        store = RedisSnapshotStore("redis://localhost:6379/0")
        async with store:
            await store.upsert("natgeo", snapshot)
            stored = await store.get("natgeo")
    """

    name = "redis"

    def __init__(self, redis_url: str = "redis://localhost:6379/0"):
        """
        Initialize Redis store.

        Args:
            redis_url: Redis connection URL
        """
        if not REDIS_AVAILABLE:
            raise ImportError(
                "Redis package not installed. Install with: pip install igsnap[redis]"
            )

        self.redis_url = redis_url
        self._client: Optional["redis.Redis"] = None
        self._key_prefix = "igsnap:profile:"

    async def _ensure_client(self) -> "redis.Redis":
        """Get or create Redis client."""
        if self._client is None:
            self._client = redis.from_url(self.redis_url)
        return self._client

    def _make_key(self, username: str) -> str:
        """Create Redis key for username."""
        return f"{self._key_prefix}{make_key(username)}"

    async def upsert(self, username: str, snapshot: ProfileSnapshot) -> None:
        """Store snapshot for username."""
        try:
            client = await self._ensure_client()
            await client.set(self._make_key(username), snapshot.model_dump_json(by_alias=True))
        except (RedisError, ValueError) as e:
            raise PersistenceError(f"Redis write failed: {e}") from e

    async def get(self, username: str) -> ProfileSnapshot | None:
        """Retrieve snapshot for username."""
        try:
            client = await self._ensure_client()
            data = await client.get(self._make_key(username))
        except (RedisError, ValueError) as e:
            raise PersistenceError(f"Redis read failed: {e}") from e

        if data is None:
            return None

        try:
            return ProfileSnapshot.model_validate_json(data)
        except ValidationError as e:
            raise PersistenceError(f"Stored snapshot is invalid: {e}") from e

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

