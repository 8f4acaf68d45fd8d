"""Snapshot persistence backends."""

from igsnap.storage.base import SnapshotStore
from igsnap.storage.composite import CompositeSnapshotStore
from igsnap.storage.factory import build_object_store, build_store
from igsnap.storage.file_store import FileSnapshotStore
from igsnap.storage.object_snapshot_store import ObjectSnapshotStore
from igsnap.storage.object_store import S3ObjectStore
from igsnap.storage.sqlite_store import SQLiteSnapshotStore

__all__ = [
    "SnapshotStore",
    "CompositeSnapshotStore",
    "FileSnapshotStore",
    "ObjectSnapshotStore",
    "S3ObjectStore",
    "SQLiteSnapshotStore",
    "build_store",
    "build_object_store",
]
