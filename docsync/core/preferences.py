"""
Viewer Preferences.

Persisted key/value settings for the presentation layer: theme, sidebar
geometry, expanded folders and the last viewed location. Stored as a
JSON file; nothing here takes part in reconciliation.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

THEMES = (
    "light",
    "dark",
    "catppuccin-latte",
    "catppuccin-macchiato",
    "catppuccin-mocha",
)
DEFAULT_THEME = "catppuccin-mocha"

MIN_SIDEBAR_WIDTH = 150
MAX_SIDEBAR_WIDTH = 600
DEFAULT_SIDEBAR_WIDTH = 250
COLLAPSED_SIDEBAR_WIDTH = 48


def clamp_width(width: int) -> int:
    """Constrain a sidebar width to the allowed range."""
    return max(MIN_SIDEBAR_WIDTH, min(MAX_SIDEBAR_WIDTH, int(width)))


@dataclass
class Preferences:
    """Root container for persisted viewer preferences."""
    theme: str = DEFAULT_THEME
    sidebar_width: int = DEFAULT_SIDEBAR_WIDTH
    sidebar_collapsed: bool = False
    expanded_folders: List[str] = field(default_factory=list)
    last_location: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "theme": self.theme,
            "sidebar_width": self.sidebar_width,
            "sidebar_collapsed": self.sidebar_collapsed,
            "expanded_folders": sorted(set(self.expanded_folders)),
            "last_location": self.last_location,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preferences":
        """Create from dictionary, replacing invalid values with defaults."""
        theme = data.get("theme", DEFAULT_THEME)
        if theme not in THEMES:
            theme = DEFAULT_THEME

        try:
            width = clamp_width(data.get("sidebar_width", DEFAULT_SIDEBAR_WIDTH))
        except (TypeError, ValueError):
            width = DEFAULT_SIDEBAR_WIDTH

        folders = data.get("expanded_folders") or []
        if not isinstance(folders, list):
            folders = []

        return cls(
            theme=theme,
            sidebar_width=width,
            sidebar_collapsed=bool(data.get("sidebar_collapsed", False)),
            expanded_folders=[str(f) for f in folders],
            last_location=str(data.get("last_location") or ""),
        )


class PreferenceStore:
    """
    File-backed preference store.

    Every mutation is written through immediately. A missing or
    unreadable file yields defaults.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Args:
            path: JSON file location. None keeps preferences in memory only.
        """
        self.path = Path(path).expanduser() if path else None
        self.prefs = self.load()

    def load(self) -> Preferences:
        """Load preferences from disk."""
        if not self.path or not self.path.exists():
            return Preferences()

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preferences at {self.path}: {e}")
            return Preferences()

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed preferences at {self.path}")
            return Preferences()
        return Preferences.from_dict(data)

    def save(self) -> None:
        """Write preferences to disk."""
        if not self.path:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(self.prefs.to_dict(), f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to save preferences to {self.path}: {e}")

    # Theme

    @property
    def theme(self) -> str:
        return self.prefs.theme

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme}")
        self.prefs.theme = theme
        self.save()

    # Sidebar

    @property
    def sidebar_width(self) -> int:
        return self.prefs.sidebar_width

    def set_sidebar_width(self, width: int) -> int:
        """Store a clamped width and return it."""
        self.prefs.sidebar_width = clamp_width(width)
        self.save()
        return self.prefs.sidebar_width

    @property
    def sidebar_collapsed(self) -> bool:
        return self.prefs.sidebar_collapsed

    @property
    def effective_sidebar_width(self) -> int:
        if self.prefs.sidebar_collapsed:
            return COLLAPSED_SIDEBAR_WIDTH
        return self.prefs.sidebar_width

    def toggle_sidebar(self) -> bool:
        self.prefs.sidebar_collapsed = not self.prefs.sidebar_collapsed
        self.save()
        return self.prefs.sidebar_collapsed

    # Folders

    def is_expanded(self, folder: str) -> bool:
        return folder in self.prefs.expanded_folders

    def toggle_folder(self, folder: str) -> bool:
        """Flip a folder's expanded state and return the new state."""
        if folder in self.prefs.expanded_folders:
            self.prefs.expanded_folders.remove(folder)
            expanded = False
        else:
            self.prefs.expanded_folders.append(folder)
            expanded = True
        self.save()
        return expanded

    def expand_folder(self, folder: str) -> None:
        if folder in self.prefs.expanded_folders:
            return
        self.prefs.expanded_folders.append(folder)
        self.save()

    def expand_ancestors(self, path: str) -> None:
        """Expand every folder containing ``path``."""
        parts = path.split("/")
        missing = [
            "/".join(parts[:i])
            for i in range(1, len(parts))
            if "/".join(parts[:i]) not in self.prefs.expanded_folders
        ]
        if not missing:
            return
        self.prefs.expanded_folders.extend(missing)
        self.save()

    # Location

    @property
    def last_location(self) -> str:
        return self.prefs.last_location

    def set_last_location(self, path: str) -> None:
        if path == self.prefs.last_location:
            return
        self.prefs.last_location = path
        self.save()


__all__ = [
    "THEMES",
    "DEFAULT_THEME",
    "Preferences",
    "PreferenceStore",
    "clamp_width",
]
