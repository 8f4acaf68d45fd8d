"""Profile snapshot model - the unit of persistence and of responses."""

from datetime import datetime, timezone
from enum import Enum

from igsnap.models.base import CamelModel
from igsnap.models.post import Post
from igsnap.models.profile import Profile


class SnapshotStatus(str, Enum):
    """Outcome of a scrape attempt."""
    SUCCESS = "success"
    EMPTY_OR_PRIVATE = "empty_or_private"
    PARTIAL_DATA = "partial_data"
    ERROR = "error"
    NOT_FOUND = "not_found"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProfileSnapshot(CamelModel):
    """Normalized result of one scrape attempt."""

    user: Profile
    posts: list[Post] = []
    scraped_at: datetime
    status: SnapshotStatus
    error: str | None = None

    @property
    def username(self) -> str:
        return self.user.username

    @classmethod
    def empty(cls, username: str, error: str | None = None) -> "ProfileSnapshot":
        """Snapshot for an account that returned no data."""
        return cls(
            user=Profile(
                username=username,
                biography="No data available. This account may be private or not exist.",
            ),
            scraped_at=utcnow(),
            status=SnapshotStatus.EMPTY_OR_PRIVATE,
            error=error,
        )

    @classmethod
    def failed(cls, username: str, error: str) -> "ProfileSnapshot":
        """Snapshot for a scrape that raised."""
        return cls(
            user=Profile(username=username, biography=f"Error retrieving data: {error}"),
            scraped_at=utcnow(),
            status=SnapshotStatus.ERROR,
            error=error,
        )

    @classmethod
    def not_found(cls, username: str) -> "ProfileSnapshot":
        """Snapshot returned when nothing is stored and nothing could be scraped."""
        return cls(
            user=Profile(username=username),
            scraped_at=utcnow(),
            status=SnapshotStatus.NOT_FOUND,
            error="Profile data not found",
        )
