"""
Unit tests for prefs_store module.

Tests reading defaults, full writes and
tolerance of damaged preference files.
"""

import json
import os

import pytest

from SB_Libs.LibraryLib.prefs_store import PreferencesStore
from SB_Libs.errors import PersistenceError


class TestLoadAll:
    """Tests for PreferencesStore.load_all."""

    def test_defaults_when_missing(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.json")

        assert store.load_all() == {
            "notification_active": False,
            "active_image_uri": None,
            "saved_images": [],
        }
        assert not store.exists()

    def test_defaults_when_corrupt(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json")

        assert PreferencesStore(path).load_all()["saved_images"] == []

    def test_defaults_when_not_a_dict(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("[1, 2, 3]")

        assert PreferencesStore(path).load_all()["notification_active"] is False

    def test_filters_bad_image_entries(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text(json.dumps({
            "saved_images": ["a.png", 5, "", "b.png", "a.png", None],
            "active_image_uri": "",
        }))
        store = PreferencesStore(path)

        state = store.load_all()
        assert state["saved_images"] == ["a.png", "b.png"]
        assert state["active_image_uri"] is None


class TestWrites:
    """Tests for PreferencesStore writes."""

    def test_save_all_round_trip(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.json")

        store.save_all(True, "b.png", ["a.png", "b.png"])

        assert store.load_all() == {
            "notification_active": True,
            "active_image_uri": "b.png",
            "saved_images": ["a.png", "b.png"],
        }

    def test_saved_images_keep_order(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.json")
        images = ["z.png", "a.png", "m.png"]

        store.save_all(False, None, images)

        assert store.load_all()["saved_images"] == images

    def test_rewrite_replaces_every_key(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.json")
        store.save_all(True, "a.png", ["a.png"])

        store.save_all(False, None, [])

        assert store.load_all() == {
            "notification_active": False,
            "active_image_uri": None,
            "saved_images": [],
        }

    def test_creates_parent_directory(self, tmp_path):
        store = PreferencesStore(tmp_path / "nested" / "dir" / "prefs.json")

        store.save_all(True, None, [])

        assert store.exists()

    def test_no_temp_files_left(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.json")

        store.save_all(False, None, ["a.png"])

        assert os.listdir(tmp_path) == ["prefs.json"]

    def test_write_failure_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = PreferencesStore(blocker / "prefs.json")

        with pytest.raises(PersistenceError):
            store.save_all(False, None, [])
