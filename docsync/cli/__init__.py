"""CLI utilities for docsync."""
from .viewer import format_tree, main, run_viewer

__all__ = [
    "format_tree",
    "main",
    "run_viewer",
]
