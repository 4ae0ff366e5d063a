"""Tests for the viewer preference store."""

import json

import pytest

from docsync.core.preferences import (
    COLLAPSED_SIDEBAR_WIDTH,
    DEFAULT_SIDEBAR_WIDTH,
    DEFAULT_THEME,
    Preferences,
    PreferenceStore,
    clamp_width,
)


class TestPreferences:
    """Tests for the Preferences container."""

    def test_defaults(self):
        prefs = Preferences()
        assert prefs.theme == DEFAULT_THEME
        assert prefs.sidebar_width == DEFAULT_SIDEBAR_WIDTH
        assert prefs.sidebar_collapsed is False
        assert prefs.expanded_folders == []
        assert prefs.last_location == ""

    def test_from_dict_repairs_invalid_values(self):
        """Unknown themes and bad widths should fall back to defaults."""
        prefs = Preferences.from_dict({
            "theme": "neon",
            "sidebar_width": "wide",
            "expanded_folders": "docs",
        })
        assert prefs.theme == DEFAULT_THEME
        assert prefs.sidebar_width == DEFAULT_SIDEBAR_WIDTH
        assert prefs.expanded_folders == []

    def test_from_dict_clamps_width(self):
        assert Preferences.from_dict({"sidebar_width": 9000}).sidebar_width == 600

    @pytest.mark.parametrize("width, expected", [(10, 150), (150, 150), (320, 320), (600, 600), (601, 600)])
    def test_clamp_width(self, width, expected):
        assert clamp_width(width) == expected


class TestPreferenceStore:
    """Tests for PreferenceStore."""

    def test_missing_file_gives_defaults(self, tmp_prefs_path):
        store = PreferenceStore(tmp_prefs_path)
        assert store.theme == DEFAULT_THEME
        assert store.last_location == ""

    def test_corrupt_file_gives_defaults(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json")

        store = PreferenceStore(path)
        assert store.sidebar_width == DEFAULT_SIDEBAR_WIDTH

    def test_writes_through(self, tmp_prefs_path):
        """Every mutation should be visible to a fresh store."""
        store = PreferenceStore(tmp_prefs_path)
        store.set_theme("light")
        store.set_sidebar_width(1000)
        store.toggle_folder("docs")
        store.set_last_location("docs/intro.md")

        reloaded = PreferenceStore(tmp_prefs_path)
        assert reloaded.theme == "light"
        assert reloaded.sidebar_width == 600
        assert reloaded.is_expanded("docs")
        assert reloaded.last_location == "docs/intro.md"

        with open(tmp_prefs_path) as f:
            assert json.load(f)["expanded_folders"] == ["docs"]

    def test_unknown_theme_rejected(self):
        store = PreferenceStore()
        with pytest.raises(ValueError):
            store.set_theme("neon")

    def test_sidebar_collapse(self):
        store = PreferenceStore()
        store.set_sidebar_width(300)

        assert store.toggle_sidebar() is True
        assert store.effective_sidebar_width == COLLAPSED_SIDEBAR_WIDTH
        assert store.toggle_sidebar() is False
        assert store.effective_sidebar_width == 300

    def test_toggle_folder(self):
        store = PreferenceStore()
        assert store.toggle_folder("a") is True
        assert store.toggle_folder("a") is False
        assert not store.is_expanded("a")

    def test_expand_ancestors(self):
        """Every containing folder should be expanded, the document itself not."""
        store = PreferenceStore()
        store.expand_ancestors("a/b/c/doc.md")

        assert store.is_expanded("a")
        assert store.is_expanded("a/b")
        assert store.is_expanded("a/b/c")
        assert not store.is_expanded("a/b/c/doc.md")

    def test_expand_ancestors_root_document(self):
        store = PreferenceStore()
        store.expand_ancestors("doc.md")
        assert store.prefs.expanded_folders == []

    def test_in_memory_store_never_writes(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        store = PreferenceStore()
        store.set_theme("dark")
        assert list(tmp_path.iterdir()) == []
