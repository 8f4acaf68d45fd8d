"""igsnap - Instagram profile snapshots via Apify."""

from igsnap.models.profile import Profile
from igsnap.models.post import Image, Post
from igsnap.models.snapshot import ProfileSnapshot, SnapshotStatus
from igsnap.config import ScraperConfig
from igsnap.core.orchestrator import ProfileScraper
from igsnap.core.normalizer import normalize
from igsnap.core.exporter import to_json, to_dict, save_json, load_json

__version__ = "0.1.0"

__all__ = [
    # Main interface
    "ProfileScraper",
    "ScraperConfig",
    "normalize",
    # Models
    "Profile",
    "Post",
    "Image",
    "ProfileSnapshot",
    "SnapshotStatus",
    # Export utilities
    "to_json",
    "to_dict",
    "save_json",
    "load_json",
    "__version__",
]
