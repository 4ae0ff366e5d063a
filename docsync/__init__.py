"""docsync - live viewer client for remote markdown collections."""

__version__ = "0.1.0"
