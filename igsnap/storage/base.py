"""Abstract snapshot store interface."""

from abc import ABC, abstractmethod

from igsnap.models.snapshot import ProfileSnapshot


def make_key(username: str) -> str:
    """Store key for a username."""
    return username.strip().lower()


class SnapshotStore(ABC):
    """Abstract base class for snapshot persistence backends."""

    name: str = "store"

    @abstractmethod
    async def upsert(self, username: str, snapshot: ProfileSnapshot) -> None:
        """
        Store a snapshot, replacing any previous one for the username.

        Args:
            username: Instagram handle
            snapshot: ProfileSnapshot to persist

        Raises:
            PersistenceError: If the write fails
        """
        ...

    @abstractmethod
    async def get(self, username: str) -> ProfileSnapshot | None:
        """
        Retrieve the latest snapshot for a username.

        Args:
            username: Instagram handle

        Returns:
            Stored ProfileSnapshot or None if absent

        Raises:
            PersistenceError: If the read fails
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Cleanup connections and resources."""
        ...

    async def __aenter__(self) -> "SnapshotStore":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - cleanup."""
        await self.close()
