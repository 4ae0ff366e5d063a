"""Core modules for docsync."""
from .config import Settings, settings, ws_url_for
from .preferences import PreferenceStore, Preferences

__all__ = [
    "Settings",
    "settings",
    "ws_url_for",
    "PreferenceStore",
    "Preferences",
]
