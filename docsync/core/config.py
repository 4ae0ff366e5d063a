"""Configuration settings for docsync."""
from pathlib import Path
from typing import Tuple
from urllib.parse import urlsplit, urlunsplit

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Document store
    base_url: str = "http://127.0.0.1:3000"
    files_endpoint: str = "/api/files"
    static_endpoint: str = "/api/static"
    ws_path: str = "/ws"

    # Transport
    reconnect_delay: float = 2.0
    request_timeout: float = 30.0

    # Collection
    document_suffixes: Tuple[str, ...] = (".md", ".markdown")

    # Viewer
    preferences_path: Path = Path.home() / ".docsync" / "preferences.json"
    log_level: str = "INFO"

    class Config:
        env_prefix = "DOCSYNC_"
        env_file = ".env"

    @property
    def ws_url(self) -> str:
        """Push channel URL derived from ``base_url``."""
        return ws_url_for(self.base_url, self.ws_path)


def ws_url_for(base_url: str, ws_path: str = "/ws") -> str:
    """Map http(s)://host[:port]/... to ws(s)://host[:port]{ws_path}."""
    parts = urlsplit(base_url)
    scheme = "wss" if parts.scheme == "https" else "ws"
    return urlunsplit((scheme, parts.netloc, "/" + ws_path.lstrip("/"), "", ""))


settings = Settings()
