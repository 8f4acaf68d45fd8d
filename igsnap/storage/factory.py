"""Builds the snapshot store described by a ScraperConfig."""

from igsnap.config import DocumentBackend, ScraperConfig, StorageTarget
from igsnap.exceptions import NotConfiguredError
from igsnap.storage.base import SnapshotStore
from igsnap.storage.composite import CompositeSnapshotStore
from igsnap.storage.file_store import FileSnapshotStore
from igsnap.storage.object_snapshot_store import ObjectSnapshotStore
from igsnap.storage.object_store import S3ObjectStore

# Fixed order so reads always try the same store first
TARGET_ORDER = (
    StorageTarget.DOCUMENT_STORE,
    StorageTarget.OBJECT_STORE,
    StorageTarget.LOCAL_FILE,
)


def check_storage_config(config: ScraperConfig) -> None:
    """
    Raise NotConfiguredError if a selected target lacks its settings.

    Raises:
        NotConfiguredError: Mongo URI or S3 bucket missing for a selected target
    """
    if not config.storage_targets:
        raise NotConfiguredError("No storage targets selected")
    if (
        StorageTarget.DOCUMENT_STORE in config.storage_targets
        and config.document_backend == DocumentBackend.MONGO
        and not config.mongodb_uri
    ):
        raise NotConfiguredError("MONGODB_URI is not set")
    if StorageTarget.OBJECT_STORE in config.storage_targets and not config.object_store_configured:
        raise NotConfiguredError("S3_BUCKET_NAME is not set")


def build_object_store(config: ScraperConfig) -> S3ObjectStore | None:
    """S3 object store, or None when no bucket is configured."""
    if not config.object_store_configured:
        return None
    return S3ObjectStore(
        bucket=config.s3_bucket_name,
        region=config.aws_region,
        access_key_id=config.aws_access_key_id,
        secret_access_key=config.aws_secret_access_key,
        public_base_url=config.s3_public_base_url,
    )


def build_document_store(config: ScraperConfig) -> SnapshotStore:
    if config.document_backend == DocumentBackend.MONGO:
        from igsnap.storage.mongo_store import MongoSnapshotStore
        return MongoSnapshotStore(
            config.mongodb_uri,
            db_name=config.mongodb_db_name,
            collection_name=config.mongodb_collection,
        )
    if config.document_backend == DocumentBackend.REDIS:
        from igsnap.storage.redis_store import RedisSnapshotStore
        return RedisSnapshotStore(config.redis_url)

    from igsnap.storage.sqlite_store import SQLiteSnapshotStore
    return SQLiteSnapshotStore(config.sqlite_path)


def build_store(config: ScraperConfig, objects: S3ObjectStore | None = None) -> SnapshotStore:
    """
    Create the persistence gateway for the configured storage targets.

    Args:
        config: ScraperConfig with storage settings
        objects: Shared S3ObjectStore, required for the object_store target

    Returns:
        A single store, or a CompositeSnapshotStore for several targets
    """
    check_storage_config(config)

    stores: list[SnapshotStore] = []
    for target in TARGET_ORDER:
        if target not in config.storage_targets:
            continue
        if target == StorageTarget.DOCUMENT_STORE:
            stores.append(build_document_store(config))
        elif target == StorageTarget.OBJECT_STORE:
            stores.append(ObjectSnapshotStore(objects or build_object_store(config)))
        else:
            stores.append(FileSnapshotStore(config.data_dir))

    if len(stores) == 1:
        return stores[0]
    return CompositeSnapshotStore(stores)
