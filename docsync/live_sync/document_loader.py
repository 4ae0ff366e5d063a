"""
Document Loader - pull API client for the document store.

The listing endpoint is the only source of truth for collection
membership; the content endpoint returns raw document source which is
rendered locally.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from .rendering import render_markdown

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentRef:
    """
    A document in the store listing.

    Attributes:
        name: Display name (file name).
        path: Store-relative, ``/``-delimited identifier. Unique.
        last_modified: Modification time reported by the store.
        kind: Document kind reported by the store (e.g. "markdown").
    """
    name: str
    path: str
    last_modified: float = 0.0
    kind: str = "markdown"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentRef":
        """Create from a listing entry."""
        path = data["path"]
        if not isinstance(path, str) or not path:
            raise ValueError(f"Listing entry has no usable path: {path!r}")
        return cls(
            name=data.get("name") or path.rsplit("/", 1)[-1],
            path=path,
            last_modified=float(data.get("modified", data.get("last_modified", 0)) or 0),
            kind=data.get("type", data.get("kind", "markdown")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the listing wire format."""
        return {
            "name": self.name,
            "path": self.path,
            "modified": self.last_modified,
            "type": self.kind,
        }


@dataclass
class LoadedDocument:
    """Content of a single document as fetched and rendered."""
    path: str
    content: str
    html: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class DocumentLoadError(Exception):
    """Raised when a listing or document fetch fails."""

    def __init__(self, message: str, path: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.status = status


class DocumentSource(ABC):
    """Interface for the pull API consumed by the reconciliation engine."""

    @abstractmethod
    async def list_documents(self) -> List[DocumentRef]:
        """Fetch the authoritative listing."""
        pass

    @abstractmethod
    async def load_document(self, path: str, defeat_cache: bool = False) -> LoadedDocument:
        """Fetch and render a single document."""
        pass


class HttpDocumentLoader(DocumentSource):
    """
    aiohttp client for the store's pull API.

    Endpoints:
        GET {base_url}{files_endpoint}          -> {"files": [...]}
        GET {base_url}{files_endpoint}/{path}   -> {"content": ..., "metadata": {...}}
    """

    def __init__(
        self,
        base_url: str,
        files_endpoint: str = "/api/files",
        static_endpoint: str = "/api/static",
        request_timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the loader.

        Args:
            base_url: Store server URL, e.g. http://127.0.0.1:3000.
            files_endpoint: Path of the listing endpoint.
            static_endpoint: Path media references are rewritten to.
            request_timeout: Total per-request timeout in seconds.
            session: Optional shared aiohttp session. Created lazily if omitted.
        """
        self.base_url = base_url.rstrip("/")
        self.files_endpoint = "/" + files_endpoint.strip("/")
        self.static_endpoint = static_endpoint
        self.request_timeout = request_timeout
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this loader created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def _get_json(self, url: str, path: str = "") -> Dict[str, Any]:
        session = await self._get_session()
        try:
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self.request_timeout),
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise DocumentLoadError(
                        f"GET {url} returned {response.status}: {error_text[:200]}",
                        path=path,
                        status=response.status,
                    )
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise DocumentLoadError(f"GET {url} failed: {e}", path=path) from e

        if not isinstance(data, dict):
            raise DocumentLoadError(f"GET {url} returned a non-object body", path=path)
        return data

    async def list_documents(self) -> List[DocumentRef]:
        """Fetch the authoritative document listing."""
        url = f"{self.base_url}{self.files_endpoint}"
        data = await self._get_json(url)

        try:
            refs = [DocumentRef.from_dict(entry) for entry in data["files"]]
        except (KeyError, TypeError, ValueError) as e:
            raise DocumentLoadError(f"Malformed listing from {url}: {e}") from e

        logger.debug(f"Listing returned {len(refs)} documents")
        return refs

    async def load_document(self, path: str, defeat_cache: bool = False) -> LoadedDocument:
        """
        Fetch a document and render it.

        Args:
            path: Store-relative document path.
            defeat_cache: Append a uniqueness token to media references so
                          previously cached images are fetched again.
        """
        url = f"{self.base_url}{self.files_endpoint}/{quote(path)}"
        data = await self._get_json(url, path=path)

        content = data.get("content", data.get("markdown"))
        if not isinstance(content, str):
            raise DocumentLoadError(f"Document {path} has no content", path=path)

        html = render_markdown(content, self.static_endpoint, defeat_cache=defeat_cache)
        logger.debug(f"Loaded {path} ({len(content)} chars, defeat_cache={defeat_cache})")

        return LoadedDocument(
            path=path,
            content=content,
            html=html,
            metadata=data.get("metadata") or {},
        )


__all__ = [
    "DocumentRef",
    "LoadedDocument",
    "DocumentLoadError",
    "DocumentSource",
    "HttpDocumentLoader",
]
