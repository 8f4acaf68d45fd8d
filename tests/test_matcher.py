"""Unit tests for profile/post record matching."""

import json
from pathlib import Path

from igsnap.config import MatcherStrategy
from igsnap.core.matcher import (
    get_matcher,
    is_post_record,
    match_by_username,
    match_first_record,
    match_without_short_code,
    select_post_records,
)


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_records(name: str) -> list[dict]:
    return json.loads((FIXTURES_DIR / f"{name}.json").read_text(encoding="utf-8"))


class TestIsPostRecord:
    """Test post-shape detection."""

    def test_short_code(self):
        assert is_post_record({"shortCode": "abc"}) is True

    def test_type_discriminator(self):
        assert is_post_record({"type": "Sidecar"}) is True
        assert is_post_record({"type": "Post"}) is True

    def test_profile_record(self):
        assert is_post_record(load_records("details_natgeo")[0]) is False


class TestMatchers:
    """Test the matching strategies."""

    def test_username_match_case_insensitive(self):
        records = [{"username": "other"}, {"username": "NatGeo"}]
        assert match_by_username(records, "natgeo") is records[1]

    def test_username_no_match(self):
        assert match_by_username(load_records("posts_natgeo"), "natgeo") is None

    def test_username_empty(self):
        assert match_by_username([], "natgeo") is None

    def test_first_record(self):
        records = load_records("posts_natgeo")
        assert match_first_record(records, "x") is records[0]
        assert match_first_record([], "x") is None

    def test_without_short_code(self):
        records = [{"shortCode": "a"}, {"username": "natgeo"}]
        assert match_without_short_code(records, "natgeo") is records[1]
        assert match_without_short_code(records[:1], "natgeo") is None

    def test_get_matcher(self):
        assert get_matcher(MatcherStrategy.USERNAME) is match_by_username
        assert get_matcher(MatcherStrategy.FIRST_RECORD) is match_first_record
        assert get_matcher(MatcherStrategy.NO_SHORT_CODE) is match_without_short_code


class TestSelectPostRecords:
    """Test post record selection."""

    def test_standalone_posts(self):
        records = load_records("posts_natgeo")
        assert select_post_records(records) == records

    def test_latest_posts_fallback(self):
        records = load_records("details_natgeo")
        posts = select_post_records(records, records[0])
        assert [p["shortCode"] for p in posts] == ["C9aBcDeFgHi", "C9zYxWvUtSr"]

    def test_mixed_dataset_prefers_standalone(self):
        profile = {"username": "natgeo", "latestPosts": [{"shortCode": "old"}]}
        post = {"shortCode": "new", "type": "Image"}
        assert select_post_records([profile, post], profile) == [post]

    def test_nothing(self):
        assert select_post_records([{"username": "natgeo"}], None) == []
