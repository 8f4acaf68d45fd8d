"""MongoDB snapshot store."""

from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi
from pydantic import ValidationError

from igsnap.exceptions import NotConfiguredError, PersistenceError
from igsnap.logging import get_logger
from igsnap.models.snapshot import ProfileSnapshot
from igsnap.storage.base import SnapshotStore, make_key


class MongoSnapshotStore(SnapshotStore):
    """
    Document store backed by a MongoDB collection.

    Documents are keyed by ``user.username``. The client is created on first
    use and kept for the lifetime of the store; one store per process.
    """

    name = "mongo"

    def __init__(
        self,
        uri: str | None,
        db_name: str = "instagram-scraper",
        collection_name: str = "profiles",
        client: AsyncMongoClient | None = None,
    ):
        if client is None and not uri:
            raise NotConfiguredError("MONGODB_URI is not set")

        self.uri = uri
        self.db_name = db_name
        self.collection_name = collection_name
        self._client = client
        self._owns_client = client is None
        self._collection: AsyncCollection | None = None
        self._log = get_logger("mongo_store")

    async def _ensure_collection(self) -> AsyncCollection:
        """Connect on first use and verify the server answers."""
        if self._collection is None:
            if self._client is None:
                self._client = AsyncMongoClient(
                    self.uri,
                    server_api=ServerApi("1", strict=True, deprecation_errors=True),
                )
            db = self._client[self.db_name]
            await db.command("ping")
            self._log.info("mongo_connected", db=self.db_name)
            self._collection = db[self.collection_name]
        return self._collection

    async def upsert(self, username: str, snapshot: ProfileSnapshot) -> None:
        """Replace the stored document for username."""
        document = snapshot.model_dump(mode="json", by_alias=True)
        try:
            collection = await self._ensure_collection()
            await collection.update_one(
                {"user.username": make_key(username)},
                {"$set": document},
                upsert=True,
            )
        except PyMongoError as e:
            raise PersistenceError(f"MongoDB write failed: {e}") from e

    async def get(self, username: str) -> ProfileSnapshot | None:
        """Find the document for username."""
        try:
            collection = await self._ensure_collection()
            document = await collection.find_one(
                {"user.username": make_key(username)},
                projection={"_id": False},
            )
        except PyMongoError as e:
            raise PersistenceError(f"MongoDB read failed: {e}") from e

        if document is None:
            return None

        try:
            return ProfileSnapshot.model_validate(document)
        except ValidationError as e:
            raise PersistenceError(f"Stored snapshot is invalid: {e}") from e

    async def close(self) -> None:
        """Close the client if this store created it."""
        if self._client is not None and self._owns_client:
            await self._client.close()
            self._client = None
        self._collection = None
