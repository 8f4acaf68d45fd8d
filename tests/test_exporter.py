"""Unit tests for exporter utilities - uses JSON fixtures, no internet."""

import json
from pathlib import Path

from igsnap.core.exporter import (
    from_json,
    load_json,
    save_json,
    save_many_json,
    to_dict,
    to_json,
)
from igsnap.models.snapshot import ProfileSnapshot, SnapshotStatus


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture() -> ProfileSnapshot:
    """Load ProfileSnapshot from JSON fixture."""
    return load_json(FIXTURES_DIR / "snapshot_natgeo.json")


class TestToJson:
    """Test JSON string conversion."""

    def test_to_json_is_valid_json(self):
        parsed = json.loads(to_json(load_fixture()))
        assert "user" in parsed
        assert "posts" in parsed
        assert parsed["status"] == "success"

    def test_camel_case_keys(self):
        parsed = json.loads(to_json(load_fixture()))
        assert "followersCount" in parsed["user"]
        assert "shortCode" in parsed["posts"][0]
        assert "scrapedAt" in parsed
        assert "followers_count" not in parsed["user"]

    def test_compact(self):
        assert "\n" not in to_json(load_fixture(), indent=None)

    def test_from_json(self):
        snapshot = load_fixture()
        assert from_json(to_json(snapshot)) == snapshot


class TestToDict:
    """Test dictionary conversion."""

    def test_no_error_key_on_success(self):
        d = to_dict(load_fixture())
        assert "error" not in d
        assert d["user"]["username"] == "natgeo"

    def test_error_kept_on_failure(self):
        d = to_dict(ProfileSnapshot.failed("natgeo", "Actor run failed"))
        assert d["status"] == "error"
        assert d["error"] == "Actor run failed"
        assert d["posts"] == []

    def test_empty_snapshot_placeholder(self):
        d = to_dict(ProfileSnapshot.empty("ghost"))
        assert d["status"] == SnapshotStatus.EMPTY_OR_PRIVATE.value
        assert d["user"]["username"] == "ghost"
        assert d["user"]["followersCount"] == 0
        assert d["user"]["biography"]


class TestSaveLoadJson:
    """Test file I/O operations."""

    def test_save_and_load_roundtrip(self, tmp_path):
        """Save and load should preserve data."""
        original = load_fixture()
        filepath = tmp_path / "test_output.json"

        save_json(original, filepath)
        loaded = load_json(filepath)

        assert loaded == original

    def test_save_creates_parent_dirs(self, tmp_path):
        """Should create nested directories."""
        filepath = tmp_path / "nested" / "dir" / "output.json"
        save_json(load_fixture(), filepath)
        assert filepath.exists()

    def test_save_returns_path(self, tmp_path):
        filepath = tmp_path / "test.json"
        assert save_json(load_fixture(), filepath) == filepath

    def test_save_many(self, tmp_path):
        snapshots = [load_fixture(), ProfileSnapshot.empty("ghost")]
        paths = save_many_json(snapshots, tmp_path / "out")
        assert [p.name for p in paths] == ["natgeo.json", "ghost.json"]
