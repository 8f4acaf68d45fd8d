"""Strategies for picking the profile and post records out of a dataset.

The actor returns a flat list whose shape depends on its input: a "details"
run yields one profile record with ``latestPosts``; a "posts" run yields post
records carrying ``ownerUsername``. A matcher is any callable
``(records, username) -> record | None``.
"""

from collections.abc import Callable, Mapping, Sequence

from igsnap.config import MatcherStrategy

ProfileMatcher = Callable[[Sequence[Mapping], str], Mapping | None]

POST_TYPES = {"Image", "Video", "Sidecar", "Post"}


def is_post_record(record: Mapping) -> bool:
    """A record is post-shaped if it has a short code or a post type."""
    return bool(record.get("shortCode")) or record.get("type") in POST_TYPES


def match_by_username(records: Sequence[Mapping], username: str) -> Mapping | None:
    """First record whose ``username`` equals the request, case-insensitively."""
    wanted = username.lower()
    for record in records:
        value = record.get("username")
        if isinstance(value, str) and value.lower() == wanted:
            return record
    return None


def match_first_record(records: Sequence[Mapping], username: str) -> Mapping | None:
    """First record, whatever it is."""
    return records[0] if records else None


def match_without_short_code(records: Sequence[Mapping], username: str) -> Mapping | None:
    """First record that is not post-shaped."""
    for record in records:
        if not is_post_record(record):
            return record
    return None


MATCHERS: dict[MatcherStrategy, ProfileMatcher] = {
    MatcherStrategy.USERNAME: match_by_username,
    MatcherStrategy.FIRST_RECORD: match_first_record,
    MatcherStrategy.NO_SHORT_CODE: match_without_short_code,
}


def get_matcher(strategy: MatcherStrategy) -> ProfileMatcher:
    return MATCHERS[strategy]


def select_post_records(
    records: Sequence[Mapping],
    profile_record: Mapping | None = None,
) -> list[Mapping]:
    """
    Pick the post-shaped records, in source order.

    Falls back to the profile record's ``latestPosts`` when the dataset holds
    no standalone posts.
    """
    posts = [r for r in records if is_post_record(r)]
    if posts:
        return posts

    if profile_record is not None:
        latest = profile_record.get("latestPosts")
        if isinstance(latest, list):
            return [p for p in latest if isinstance(p, Mapping)]

    return []
