"""Unit tests for snapshot stores - uses JSON fixtures, no network."""

import io
import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from botocore.exceptions import ClientError

from igsnap.config import DocumentBackend, ScraperConfig, StorageTarget
from igsnap.core.exporter import load_json
from igsnap.exceptions import NotConfiguredError, PersistenceError
from igsnap.models.snapshot import ProfileSnapshot, SnapshotStatus
from igsnap.storage.composite import CompositeSnapshotStore
from igsnap.storage.factory import build_store, check_storage_config
from igsnap.storage.file_store import FileSnapshotStore
from igsnap.storage.mongo_store import MongoSnapshotStore
from igsnap.storage.object_snapshot_store import ObjectSnapshotStore
from igsnap.storage.object_store import S3ObjectStore
from igsnap.storage.sqlite_store import SQLiteSnapshotStore


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_snapshot() -> ProfileSnapshot:
    """Load a sample snapshot from fixtures."""
    return load_json(FIXTURES_DIR / "snapshot_natgeo.json")


@pytest.fixture
def sqlite_store(tmp_path):
    return SQLiteSnapshotStore(str(tmp_path / "test.db"))


class FakeObjectStore:
    """In-memory stand-in for S3ObjectStore."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}

    async def put(self, key, data, content_type):
        self.objects[key] = data
        return f"https://bucket.example/{key}"

    async def get(self, key):
        return self.objects.get(key)

    async def close(self):
        pass


class FailingStore(FileSnapshotStore):
    name = "failing"

    async def upsert(self, username, snapshot):
        raise PersistenceError("write rejected")

    async def get(self, username):
        raise PersistenceError("read rejected")


class TestSQLiteStore:
    """Test SQLite document store."""

    @pytest.mark.asyncio
    async def test_miss_returns_none(self, sqlite_store):
        async with sqlite_store:
            assert await sqlite_store.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_upsert_and_get(self, sqlite_store, sample_snapshot):
        async with sqlite_store:
            await sqlite_store.upsert("natgeo", sample_snapshot)
            stored = await sqlite_store.get("natgeo")

        assert stored == sample_snapshot

    @pytest.mark.asyncio
    async def test_upsert_twice_is_stable(self, sqlite_store, sample_snapshot):
        async with sqlite_store:
            await sqlite_store.upsert("natgeo", sample_snapshot)
            await sqlite_store.upsert("natgeo", sample_snapshot)
            assert await sqlite_store.get("natgeo") == sample_snapshot

    @pytest.mark.asyncio
    async def test_last_write_wins(self, sqlite_store, sample_snapshot):
        newer = ProfileSnapshot.empty("natgeo")
        async with sqlite_store:
            await sqlite_store.upsert("natgeo", sample_snapshot)
            await sqlite_store.upsert("natgeo", newer)
            stored = await sqlite_store.get("natgeo")

        assert stored.status == SnapshotStatus.EMPTY_OR_PRIVATE
        assert stored.posts == []

    @pytest.mark.asyncio
    async def test_case_insensitive_key(self, sqlite_store, sample_snapshot):
        async with sqlite_store:
            await sqlite_store.upsert("NatGeo", sample_snapshot)
            assert await sqlite_store.get("natgeo") is not None

    @pytest.mark.asyncio
    async def test_corrupt_row_raises_persistence_error(self, sqlite_store, sample_snapshot):
        async with sqlite_store:
            await sqlite_store.upsert("natgeo", sample_snapshot)
            db = await sqlite_store._ensure_db()
            await db.execute("UPDATE snapshots SET snapshot_json = ? WHERE username = ?", ("{not json", "natgeo"))
            await db.commit()

            with pytest.raises(PersistenceError, match="invalid"):
                await sqlite_store.get("natgeo")


class TestRedisStore:
    """Test Redis store failure mapping - no server needed."""

    @pytest.mark.asyncio
    async def test_bad_url_raises_persistence_error(self, sample_snapshot):
        pytest.importorskip("redis")
        from igsnap.storage.redis_store import RedisSnapshotStore

        store = RedisSnapshotStore("not-a-redis-url")

        with pytest.raises(PersistenceError):
            await store.upsert("natgeo", sample_snapshot)
        with pytest.raises(PersistenceError):
            await store.get("natgeo")

    @pytest.mark.asyncio
    async def test_corrupt_value_raises_persistence_error(self):
        pytest.importorskip("redis")
        from igsnap.storage.redis_store import RedisSnapshotStore

        store = RedisSnapshotStore()
        store._client = MagicMock()
        store._client.get = AsyncMock(return_value=b"{not json")

        with pytest.raises(PersistenceError, match="invalid"):
            await store.get("natgeo")


class TestFileStore:
    """Test local JSON file store."""

    @pytest.mark.asyncio
    async def test_upsert_writes_camel_case_json(self, tmp_path, sample_snapshot):
        store = FileSnapshotStore(tmp_path / "data")
        await store.upsert("natgeo", sample_snapshot)

        text = (tmp_path / "data" / "natgeo.json").read_text(encoding="utf-8")
        assert '"followersCount"' in text
        assert '"scrapedAt"' in text

    @pytest.mark.asyncio
    async def test_roundtrip(self, tmp_path, sample_snapshot):
        store = FileSnapshotStore(tmp_path)
        await store.upsert("natgeo", sample_snapshot)
        assert await store.get("natgeo") == sample_snapshot

    @pytest.mark.asyncio
    async def test_miss(self, tmp_path):
        assert await FileSnapshotStore(tmp_path).get("nobody") is None

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, tmp_path):
        (tmp_path / "natgeo.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            await FileSnapshotStore(tmp_path).get("natgeo")


class TestObjectSnapshotStore:
    """Test object store backed snapshots."""

    @pytest.mark.asyncio
    async def test_writes_latest_and_archive(self, sample_snapshot):
        objects = FakeObjectStore()
        store = ObjectSnapshotStore(objects)

        await store.upsert("natgeo", sample_snapshot)

        assert set(objects.objects) == {
            "profiles/natgeo/latest.json",
            "profiles/natgeo/2024-07-13T08-00-00.json",
        }
        assert await store.get("natgeo") == sample_snapshot

    @pytest.mark.asyncio
    async def test_miss(self):
        assert await ObjectSnapshotStore(FakeObjectStore()).get("natgeo") is None


class TestS3ObjectStore:
    """Test the boto3 wrapper with a mocked client."""

    @pytest.mark.asyncio
    async def test_put_returns_public_url(self):
        client = MagicMock()
        store = S3ObjectStore("photos", client=client)

        url = await store.put("images/natgeo/1/0.jpg", b"data", "image/jpeg")

        assert url == "https://photos.s3.amazonaws.com/images/natgeo/1/0.jpg"
        client.put_object.assert_called_once_with(
            Bucket="photos",
            Key="images/natgeo/1/0.jpg",
            Body=b"data",
            ContentType="image/jpeg",
        )

    @pytest.mark.asyncio
    async def test_custom_public_base_url(self):
        store = S3ObjectStore("photos", public_base_url="https://cdn.example.com/", client=MagicMock())
        assert store.url_for("a/b.jpg") == "https://cdn.example.com/a/b.jpg"

    @pytest.mark.asyncio
    async def test_get_reads_body(self):
        client = MagicMock()
        client.get_object.return_value = {"Body": io.BytesIO(b"payload")}
        store = S3ObjectStore("photos", client=client)

        assert await store.get("k") == b"payload"

    @pytest.mark.asyncio
    async def test_get_missing_key(self):
        client = MagicMock()
        client.get_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchKey", "Message": "not found"}}, "GetObject"
        )
        store = S3ObjectStore("photos", client=client)

        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_get_other_error_raises(self):
        client = MagicMock()
        client.get_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GetObject"
        )
        store = S3ObjectStore("photos", client=client)

        with pytest.raises(ClientError):
            await store.get("k")


class TestMongoStore:
    """Test the MongoDB store with a mocked client."""

    def make_store(self):
        collection = MagicMock()
        collection.update_one = AsyncMock()
        collection.find_one = AsyncMock(return_value=None)
        db = MagicMock()
        db.command = AsyncMock(return_value={"ok": 1})
        db.__getitem__.return_value = collection
        client = MagicMock()
        client.__getitem__.return_value = db
        return MongoSnapshotStore(None, client=client), collection, db

    def test_requires_uri(self):
        with pytest.raises(NotConfiguredError):
            MongoSnapshotStore(None)

    @pytest.mark.asyncio
    async def test_upsert_by_username(self, sample_snapshot):
        store, collection, db = self.make_store()

        await store.upsert("natgeo", sample_snapshot)

        db.command.assert_awaited_once_with("ping")
        filter_, update = collection.update_one.await_args.args
        assert filter_ == {"user.username": "natgeo"}
        assert update["$set"]["user"]["followersCount"] == 283041993
        assert collection.update_one.await_args.kwargs == {"upsert": True}

    @pytest.mark.asyncio
    async def test_connects_once(self, sample_snapshot):
        store, collection, db = self.make_store()

        await store.upsert("natgeo", sample_snapshot)
        await store.get("natgeo")

        assert db.command.await_count == 1

    @pytest.mark.asyncio
    async def test_get_miss(self):
        store, collection, _ = self.make_store()
        assert await store.get("natgeo") is None

    @pytest.mark.asyncio
    async def test_get_hit(self, sample_snapshot):
        store, collection, _ = self.make_store()
        collection.find_one.return_value = sample_snapshot.model_dump(mode="json", by_alias=True)

        assert await store.get("natgeo") == sample_snapshot


class TestCompositeStore:
    """Test fan-out over several stores."""

    @pytest.mark.asyncio
    async def test_writes_every_store(self, tmp_path, sample_snapshot):
        a = FileSnapshotStore(tmp_path / "a")
        b = FileSnapshotStore(tmp_path / "b")
        store = CompositeSnapshotStore([a, b])

        await store.upsert("natgeo", sample_snapshot)

        assert await a.get("natgeo") == sample_snapshot
        assert await b.get("natgeo") == sample_snapshot

    @pytest.mark.asyncio
    async def test_one_failure_still_writes_others(self, tmp_path, sample_snapshot):
        good = FileSnapshotStore(tmp_path)
        store = CompositeSnapshotStore([FailingStore(tmp_path / "x"), good])

        with pytest.raises(PersistenceError, match="failing"):
            await store.upsert("natgeo", sample_snapshot)

        assert await good.get("natgeo") == sample_snapshot

    @pytest.mark.asyncio
    async def test_read_skips_failing_store(self, tmp_path, sample_snapshot):
        good = FileSnapshotStore(tmp_path)
        await good.upsert("natgeo", sample_snapshot)
        store = CompositeSnapshotStore([FailingStore(tmp_path / "x"), good])

        assert await store.get("natgeo") == sample_snapshot

    @pytest.mark.asyncio
    async def test_read_all_failing_raises(self, tmp_path):
        store = CompositeSnapshotStore([FailingStore(tmp_path)])
        with pytest.raises(PersistenceError):
            await store.get("natgeo")

    def test_needs_a_store(self):
        with pytest.raises(ValueError):
            CompositeSnapshotStore([])


class TestBuildStore:
    """Test building stores from config."""

    def test_default_is_sqlite(self, tmp_path):
        config = ScraperConfig(sqlite_path=str(tmp_path / "x.db"))
        assert isinstance(build_store(config), SQLiteSnapshotStore)

    def test_several_targets(self, tmp_path):
        config = ScraperConfig(
            storage_targets={StorageTarget.LOCAL_FILE, StorageTarget.DOCUMENT_STORE},
            sqlite_path=str(tmp_path / "x.db"),
            data_dir=str(tmp_path / "data"),
        )
        store = build_store(config)

        assert isinstance(store, CompositeSnapshotStore)
        assert [s.name for s in store.stores] == ["sqlite", "local_file"]

    def test_object_target_uses_shared_objects(self):
        config = ScraperConfig(
            storage_targets={StorageTarget.OBJECT_STORE},
            s3_bucket_name="photos",
        )
        objects = FakeObjectStore()
        store = build_store(config, objects)

        assert isinstance(store, ObjectSnapshotStore)
        assert store.objects is objects

    def test_mongo_without_uri(self):
        config = ScraperConfig(document_backend=DocumentBackend.MONGO, mongodb_uri=None)
        with pytest.raises(NotConfiguredError):
            check_storage_config(config)

    def test_object_target_without_bucket(self):
        config = ScraperConfig(storage_targets={StorageTarget.OBJECT_STORE}, s3_bucket_name=None)
        with pytest.raises(NotConfiguredError):
            build_store(config)

    def test_no_targets(self):
        with pytest.raises(NotConfiguredError):
            check_storage_config(ScraperConfig(storage_targets=set()))
