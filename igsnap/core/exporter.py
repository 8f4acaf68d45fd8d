"""Export utilities for profile snapshots."""

from pathlib import Path
from typing import TYPE_CHECKING

from igsnap.models.snapshot import ProfileSnapshot

if TYPE_CHECKING:
    import pandas as pd

try:
    import pandas as pd
    PANDAS_AVAILABLE = True
except ImportError:
    PANDAS_AVAILABLE = False


def to_json(snapshot: ProfileSnapshot, indent: int | None = 2) -> str:
    """
    Convert a snapshot to its wire JSON (camelCase keys).

    Args:
        snapshot: ProfileSnapshot to serialize
        indent: JSON indentation level, None for compact output

    Returns:
        JSON string
    """
    return snapshot.model_dump_json(indent=indent, by_alias=True)


def to_dict(snapshot: ProfileSnapshot) -> dict:
    """
    Convert a snapshot to a JSON-compatible dict (camelCase keys).

    ``error`` is omitted when there is none.
    """
    data = snapshot.model_dump(mode="json", by_alias=True)
    if data.get("error") is None:
        data.pop("error", None)
    return data


def from_json(data: str | bytes) -> ProfileSnapshot:
    """Parse a snapshot from wire JSON."""
    return ProfileSnapshot.model_validate_json(data)


def save_json(
    snapshot: ProfileSnapshot,
    filepath: str | Path,
    indent: int = 2,
) -> Path:
    """
    Save a snapshot to a JSON file.

    Args:
        snapshot: ProfileSnapshot to save
        filepath: Output file path
        indent: JSON indentation level

    Returns:
        Path to saved file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_json(snapshot, indent=indent), encoding="utf-8")
    return path


def save_many_json(
    snapshots: list[ProfileSnapshot],
    output_dir: str | Path,
    filename_template: str = "{username}.json",
) -> list[Path]:
    """
    Save snapshots to individual JSON files.

    Args:
        snapshots: List of ProfileSnapshots
        output_dir: Directory for output files
        filename_template: Template with {username} placeholder

    Returns:
        List of paths to saved files
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    return [
        save_json(s, output_path / filename_template.format(username=s.username))
        for s in snapshots
    ]


def load_json(filepath: str | Path) -> ProfileSnapshot:
    """
    Load a snapshot from a JSON file.

    Args:
        filepath: Path to JSON file

    Returns:
        ProfileSnapshot instance
    """
    return from_json(Path(filepath).read_text(encoding="utf-8"))


def _check_pandas():
    """Raise ImportError if pandas is not available."""
    if not PANDAS_AVAILABLE:
        raise ImportError(
            "pandas is required for DataFrame export. Install with: pip install igsnap[export]"
        )


def to_posts_df(snapshot: ProfileSnapshot) -> "pd.DataFrame":
    """
    Convert a snapshot's posts to a pandas DataFrame.

    List columns are flattened: ``images`` becomes the first image URL plus an
    image count; hashtags, mentions and videos are joined with spaces.

    Raises:
        ImportError: If pandas is not installed
    """
    _check_pandas()

    rows = []
    for post in snapshot.posts:
        rows.append({
            "username": snapshot.username,
            "id": post.id,
            "shortCode": post.short_code,
            "url": post.url,
            "timestamp": post.timestamp,
            "caption": post.caption,
            "likesCount": post.likes_count,
            "commentsCount": post.comments_count,
            "imageCount": len(post.images),
            "firstImageUrl": post.images[0].url if post.images else "",
            "videos": " ".join(post.videos),
            "hashtags": " ".join(post.hashtags),
            "mentions": " ".join(post.mentions),
        })

    return pd.DataFrame(rows)


def to_profile_df(snapshots: list[ProfileSnapshot]) -> "pd.DataFrame":
    """
    One row per snapshot with the profile fields, status and scrape time.

    Raises:
        ImportError: If pandas is not installed
    """
    _check_pandas()

    rows = []
    for snapshot in snapshots:
        row = snapshot.user.model_dump(mode="json", by_alias=True)
        row["status"] = snapshot.status.value
        row["scrapedAt"] = snapshot.scraped_at.isoformat()
        row["postsCount"] = len(snapshot.posts)
        rows.append(row)

    return pd.DataFrame(rows)


def save_csv(snapshot: ProfileSnapshot, filepath: str | Path) -> Path:
    """
    Save a snapshot's posts to a CSV file.

    Raises:
        ImportError: If pandas is not installed
    """
    _check_pandas()

    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    to_posts_df(snapshot).to_csv(path, index=False)
    return path
