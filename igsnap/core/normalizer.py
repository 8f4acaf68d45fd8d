"""Normalization of remote actor records into the fixed profile/post schema.

Every function here is total: missing or malformed fields become the
documented defaults (empty string, 0, False, empty list) and nothing raises.
"""

import math
import re
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from igsnap.models.post import Image, Post
from igsnap.models.profile import Profile

HASHTAG_RE = re.compile(r"#(\w+)")
MENTION_RE = re.compile(r"@([A-Za-z0-9._]+)")


def normalize_count(value: Any) -> int:
    """
    Convert a count from the provider to a non-negative integer.

    Examples:
        1234 -> 1234
        "1,234" -> 1234
        "1.2K" -> 1200
        -1 -> 0 (hidden like counts)
        None -> 0
    """
    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, int):
        return max(value, 0)

    if isinstance(value, float):
        return max(int(value), 0) if math.isfinite(value) else 0

    if not isinstance(value, str):
        return 0

    count_str = value.strip().upper().replace(",", "")
    if not count_str:
        return 0

    multipliers = {
        "K": 1_000,
        "M": 1_000_000,
        "B": 1_000_000_000,
    }

    multiplier = 1
    if count_str[-1] in multipliers:
        multiplier = multipliers[count_str[-1]]
        count_str = count_str[:-1]

    try:
        number = float(count_str) * multiplier
    except ValueError:
        return 0
    # "inf", "nan", "1e999"
    if not math.isfinite(number):
        return 0
    return max(int(number), 0)


def normalize_timestamp(value: Any) -> str:
    """
    Convert a provider timestamp to an ISO-8601 string.

    Accepts ISO strings (``Z`` suffix allowed) and epoch seconds.
    Returns "" when the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return ""

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()
        except (OverflowError, OSError, ValueError):
            return ""

    if isinstance(value, datetime):
        return value.isoformat()

    if not isinstance(value, str) or not value.strip():
        return ""

    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).isoformat()
    except ValueError:
        return ""


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _first(record: Mapping, *keys: str) -> Any:
    """Return the first non-empty value among keys."""
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str) and item]


def normalize_profile(record: Mapping | None, username: str = "") -> Profile:
    """
    Build a Profile from a profile-shaped record.

    Post-shaped records carry ``ownerUsername``/``ownerFullName`` instead of
    profile fields; those are used as a fallback.

    Args:
        record: Raw record, may be None or partial
        username: Fallback username when the record has none

    Returns:
        Fully populated Profile
    """
    if not isinstance(record, Mapping):
        record = {}

    return Profile(
        username=_text(_first(record, "username", "ownerUsername") or username),
        full_name=_text(_first(record, "fullName", "ownerFullName")),
        biography=_text(record.get("biography")),
        followers_count=normalize_count(record.get("followersCount")),
        following_count=normalize_count(_first(record, "followsCount", "followingCount")),
        profile_pic_url=_text(_first(record, "profilePicUrlHD", "profilePicUrl")),
        external_url=_text(record.get("externalUrl")),
        verified=_flag(record.get("verified")),
    )


def normalize_images(record: Mapping) -> list[Image]:
    """Collect images from a post record, preserving source order."""
    images = []
    seen = set()

    for item in record.get("images") or []:
        if isinstance(item, str):
            image = Image(url=item)
        elif isinstance(item, Mapping) and item.get("url"):
            image = Image(
                url=_text(item["url"]),
                width=normalize_count(item.get("width")),
                height=normalize_count(item.get("height")),
            )
        else:
            continue
        if image.url not in seen:
            seen.add(image.url)
            images.append(image)

    if not images and record.get("displayUrl"):
        images.append(
            Image(
                url=_text(record["displayUrl"]),
                width=normalize_count(record.get("dimensionsWidth")),
                height=normalize_count(record.get("dimensionsHeight")),
            )
        )

    return images


def normalize_post(record: Mapping) -> Post | None:
    """
    Build a Post from a post-shaped record.

    Returns:
        Post, or None when the record has neither an id nor a short code
    """
    if not isinstance(record, Mapping):
        return None

    short_code = _text(record.get("shortCode"))
    post_id = _text(record.get("id")) or short_code
    if not post_id:
        return None

    caption = _text(record.get("caption"))
    url = _text(record.get("url"))
    if not url and short_code:
        url = f"https://www.instagram.com/p/{short_code}/"

    videos = _string_list(record.get("videoUrls"))
    if not videos and record.get("videoUrl"):
        videos = [_text(record["videoUrl"])]

    hashtags = _string_list(record.get("hashtags")) or HASHTAG_RE.findall(caption)
    mentions = _string_list(record.get("mentions")) or MENTION_RE.findall(caption)

    return Post(
        id=post_id,
        short_code=short_code,
        caption=caption,
        url=url,
        comments_count=normalize_count(record.get("commentsCount")),
        likes_count=normalize_count(record.get("likesCount")),
        timestamp=normalize_timestamp(record.get("timestamp")),
        images=normalize_images(record),
        videos=videos,
        mentions=mentions,
        hashtags=hashtags,
    )


def normalize_posts(records: Sequence[Mapping]) -> list[Post]:
    """
    Build Posts from post-shaped records.

    Records without an id are skipped and duplicate ids keep their first
    occurrence, so ids are unique within the returned list.
    """
    posts = []
    seen_ids = set()

    for record in records:
        post = normalize_post(record)
        if post is None or post.id in seen_ids:
            continue
        seen_ids.add(post.id)
        posts.append(post)

    return posts


def normalize(records: Mapping | Sequence[Mapping] | None, username: str = "") -> Profile:
    """
    Normalize one record or a list of records into a Profile.

    With a list, the first record whose username matches (case-insensitively)
    is used, falling back to the first record.
    """
    if records is None or isinstance(records, Mapping):
        return normalize_profile(records, username)

    candidates = [r for r in records if isinstance(r, Mapping)]
    if not candidates:
        return normalize_profile(None, username)

    wanted = username.lower()
    for record in candidates:
        if wanted and _text(record.get("username")).lower() == wanted:
            return normalize_profile(record, username)

    return normalize_profile(candidates[0], username)
