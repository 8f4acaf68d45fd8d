"""Local JSON file snapshot store."""

import asyncio
from pathlib import Path

from pydantic import ValidationError

from igsnap.core.exporter import load_json, save_json
from igsnap.exceptions import PersistenceError
from igsnap.models.snapshot import ProfileSnapshot
from igsnap.storage.base import SnapshotStore, make_key


class FileSnapshotStore(SnapshotStore):
    """Stores each snapshot as ``{data_dir}/{username}.json``."""

    name = "local_file"

    def __init__(self, data_dir: str | Path = "data"):
        self.data_dir = Path(data_dir)

    def path_for(self, username: str) -> Path:
        return self.data_dir / f"{make_key(username)}.json"

    async def upsert(self, username: str, snapshot: ProfileSnapshot) -> None:
        try:
            await asyncio.to_thread(save_json, snapshot, self.path_for(username))
        except OSError as e:
            raise PersistenceError(f"File write failed: {e}") from e

    async def get(self, username: str) -> ProfileSnapshot | None:
        path = self.path_for(username)
        if not path.exists():
            return None
        try:
            return await asyncio.to_thread(load_json, path)
        except (OSError, ValidationError) as e:
            raise PersistenceError(f"File read failed: {e}") from e

    async def close(self) -> None:
        pass
