"""Snapshot store on top of the S3 object store."""

from pydantic import ValidationError

from igsnap.core.exporter import from_json, to_json
from igsnap.exceptions import PersistenceError
from igsnap.models.snapshot import ProfileSnapshot
from igsnap.storage.base import SnapshotStore, make_key
from igsnap.storage.object_store import S3ObjectStore


class ObjectSnapshotStore(SnapshotStore):
    """
    Writes ``profiles/{username}/latest.json`` plus a timestamped archive copy.

    Reads only look at ``latest.json``.
    """

    name = "object_store"

    def __init__(self, objects: S3ObjectStore, prefix: str = "profiles"):
        self.objects = objects
        self.prefix = prefix.strip("/")

    def latest_key(self, username: str) -> str:
        return f"{self.prefix}/{make_key(username)}/latest.json"

    def archive_key(self, username: str, snapshot: ProfileSnapshot) -> str:
        stamp = snapshot.scraped_at.strftime("%Y-%m-%dT%H-%M-%S")
        return f"{self.prefix}/{make_key(username)}/{stamp}.json"

    async def upsert(self, username: str, snapshot: ProfileSnapshot) -> None:
        body = to_json(snapshot, indent=None).encode("utf-8")
        try:
            await self.objects.put(self.archive_key(username, snapshot), body, "application/json")
            await self.objects.put(self.latest_key(username), body, "application/json")
        except Exception as e:
            raise PersistenceError(f"Object store write failed: {e}") from e

    async def get(self, username: str) -> ProfileSnapshot | None:
        try:
            data = await self.objects.get(self.latest_key(username))
        except Exception as e:
            raise PersistenceError(f"Object store read failed: {e}") from e

        if data is None:
            return None

        try:
            return from_json(data)
        except ValidationError as e:
            raise PersistenceError(f"Stored snapshot is invalid: {e}") from e

    async def close(self) -> None:
        # The object store is shared with the media relocator; its owner closes it
        pass
