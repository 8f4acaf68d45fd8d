"""Pydantic models for igsnap."""

from igsnap.models.profile import Profile
from igsnap.models.post import Image, Post
from igsnap.models.snapshot import ProfileSnapshot, SnapshotStatus

__all__ = [
    "Profile",
    "Post",
    "Image",
    "ProfileSnapshot",
    "SnapshotStatus",
]
