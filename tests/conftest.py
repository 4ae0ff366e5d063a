"""Pytest fixtures for docsync tests."""
import asyncio
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import pytest

from docsync.live_sync.document_loader import (
    DocumentLoadError,
    DocumentRef,
    DocumentSource,
    LoadedDocument,
)


def make_refs(*paths: str) -> Tuple[DocumentRef, ...]:
    """Build listing entries for the given paths."""
    return tuple(DocumentRef(name=p.rsplit("/", 1)[-1], path=p) for p in paths)


# --- Pull API Fakes ---

class FakeDocumentSource(DocumentSource):
    """In-memory pull API with call recording and failure injection."""

    def __init__(self, paths: Iterable[str] = (), delay: float = 0.0):
        self.paths: List[str] = list(paths)
        self.contents: Dict[str, str] = {}
        self.delay = delay
        self.fail_listing = False
        self.fail_loads: set = set()
        self.list_calls = 0
        self.load_calls: List[Tuple[str, bool]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def set_listing(self, *paths: str) -> None:
        self.paths = list(paths)

    async def _enter(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        if self.delay:
            await asyncio.sleep(self.delay)

    async def list_documents(self) -> List[DocumentRef]:
        self.list_calls += 1
        await self._enter()
        try:
            if self.fail_listing:
                raise DocumentLoadError("listing unavailable", status=503)
            return list(make_refs(*self.paths))
        finally:
            self.in_flight -= 1

    async def load_document(self, path: str, defeat_cache: bool = False) -> LoadedDocument:
        self.load_calls.append((path, defeat_cache))
        await self._enter()
        try:
            if path in self.fail_loads or path not in self.paths:
                raise DocumentLoadError(f"{path} not found", path=path, status=404)
            content = self.contents.get(path, f"# {path}")
            return LoadedDocument(path=path, content=content, html=f"<h1>{path}</h1>")
        finally:
            self.in_flight -= 1


@pytest.fixture
def refs() -> Callable[..., Tuple[DocumentRef, ...]]:
    """Factory fixture building DocumentRef tuples from paths."""
    return make_refs


@pytest.fixture
def source_factory() -> Callable[..., FakeDocumentSource]:
    """Factory fixture for in-memory document sources."""
    return FakeDocumentSource


# --- Push Channel Fakes ---

class FakeSocket:
    """Async-context socket yielding canned frames, optionally staying open."""

    def __init__(self, messages: Iterable[str] = (), hold: bool = False):
        self.hold = hold
        self.sent: List[str] = []
        self.closed = False
        self._inbox: asyncio.Queue = asyncio.Queue()
        for message in messages:
            self._inbox.put_nowait(message)

    async def __aenter__(self) -> "FakeSocket":
        return self

    async def __aexit__(self, *exc_info) -> bool:
        self.closed = True
        return False

    def __aiter__(self):
        return self._frames()

    async def _frames(self):
        while True:
            if self._inbox.empty() and not self.hold:
                return
            message = await self._inbox.get()
            if message is None:
                return
            yield message

    def push(self, message: str) -> None:
        """Deliver a frame from the server side."""
        self._inbox.put_nowait(message)

    async def send(self, data: str) -> None:
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True
        self._inbox.put_nowait(None)


class FailingConnect:
    """Async context manager whose connect attempt fails."""

    def __init__(self, error: Exception):
        self.error = error

    async def __aenter__(self):
        raise self.error

    async def __aexit__(self, *exc_info) -> bool:
        return False


class FakeConnector:
    """Socket factory handing out scripted connections in order."""

    def __init__(self, *scripted):
        self.scripted = list(scripted)
        self.uris: List[str] = []
        self.sockets: List[FakeSocket] = []

    def __call__(self, uri: str):
        self.uris.append(uri)
        item = self.scripted.pop(0) if self.scripted else FakeSocket(hold=True)
        if isinstance(item, Exception):
            return FailingConnect(item)
        self.sockets.append(item)
        return item


@pytest.fixture
def socket_factory() -> Callable[..., FakeSocket]:
    return FakeSocket


@pytest.fixture
def connector_factory() -> Callable[..., FakeConnector]:
    return FakeConnector


async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)
    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def wait_until() -> Callable[..., object]:
    """Poll a predicate until it holds or the timeout expires."""
    return _wait_until


@pytest.fixture
def tmp_prefs_path(tmp_path) -> Optional[str]:
    return str(tmp_path / "prefs" / "preferences.json")
