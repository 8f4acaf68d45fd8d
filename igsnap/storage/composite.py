"""Fan-out over several snapshot stores."""

from igsnap.exceptions import PersistenceError
from igsnap.logging import get_logger
from igsnap.models.snapshot import ProfileSnapshot
from igsnap.storage.base import SnapshotStore


class CompositeSnapshotStore(SnapshotStore):
    """
    Writes to every store; reads from the first store holding the key.

    A failing store does not stop writes to the others. Once all have been
    attempted, a single PersistenceError names the stores that failed.
    """

    name = "composite"

    def __init__(self, stores: list[SnapshotStore]):
        if not stores:
            raise ValueError("CompositeSnapshotStore needs at least one store")
        self.stores = stores
        self._log = get_logger("composite_store")

    async def upsert(self, username: str, snapshot: ProfileSnapshot) -> None:
        failures = []
        for store in self.stores:
            try:
                await store.upsert(username, snapshot)
            except PersistenceError as e:
                self._log.warning("store_write_failed", store=store.name, username=username, error=str(e))
                failures.append(f"{store.name}: {e}")

        if failures:
            raise PersistenceError("; ".join(failures))

    async def get(self, username: str) -> ProfileSnapshot | None:
        errors = []
        for store in self.stores:
            try:
                snapshot = await store.get(username)
            except PersistenceError as e:
                self._log.warning("store_read_failed", store=store.name, username=username, error=str(e))
                errors.append(f"{store.name}: {e}")
                continue
            if snapshot is not None:
                return snapshot

        if errors and len(errors) == len(self.stores):
            raise PersistenceError("; ".join(errors))
        return None

    async def close(self) -> None:
        for store in self.stores:
            await store.close()
