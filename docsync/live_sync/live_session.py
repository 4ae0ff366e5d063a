"""
Live Document Session.

Wires the push channel, document loader and reconciliation engine into
one viewer session, and keeps the location fragment and folder state in
step with the current document.
"""

import logging
from typing import Any, AsyncContextManager, Callable, Iterable, List, Optional

from ..core.config import Settings, ws_url_for
from ..core.preferences import PreferenceStore
from .document_loader import DocumentRef, DocumentSource, HttpDocumentLoader, LoadedDocument
from .file_tree import TreeNode, build_tree
from .location import LocationFragment
from .path_resolver import (
    DOCUMENT_SUFFIXES,
    is_resolvable_reference,
    resolve_reference,
    strip_fragment,
)
from .push_channel import ConnectionStatus, PushChannelClient
from .sync_engine import ReconciliationEngine, Resync, SelectDocument, SessionState
from .sync_hooks import SyncContext, SyncHooks
from .sync_protocol import ClientMessageType, ReconnectPolicy

logger = logging.getLogger(__name__)


class LiveDocumentSession:
    """
    A live view of a remote document collection.

    Usage:
        session = LiveDocumentSession.from_settings(settings)
        await session.start()
        await session.follow_reference("../intro.md")
        ...
        await session.stop()
    """

    def __init__(
        self,
        source: DocumentSource,
        ws_url: str,
        location: Optional[LocationFragment] = None,
        preferences: Optional[PreferenceStore] = None,
        reconnect_delay: float = 2.0,
        connect: Optional[Callable[[str], AsyncContextManager[Any]]] = None,
        suffixes: Iterable[str] = DOCUMENT_SUFFIXES,
    ):
        """
        Args:
            source: Pull API implementation.
            ws_url: Push channel endpoint.
            location: Location whose fragment selects the initial document.
            preferences: Optional preference store for folder state and
                         the last viewed location.
            reconnect_delay: Fixed delay between reconnect attempts.
            connect: Socket factory passed to the push channel.
            suffixes: Suffixes that mark a reference as a document.
        """
        self.source = source
        self.location = location or LocationFragment("")
        self.preferences = preferences
        self.suffixes = tuple(suffixes)

        self.hooks = SyncHooks()
        self.engine = ReconciliationEngine(source, hooks=self.hooks)
        self.channel = PushChannelClient(
            ws_url,
            on_message=self.engine.handle_raw_message,
            reconnect_policy=ReconnectPolicy(reconnect_delay),
            connect=connect,
            on_open=self._on_open,
        )

        self._tree: List[TreeNode] = []
        self._tree_files: tuple = ()
        # set when the startup pull already covers the first channel open
        self._synced_before_open = False

        self.hooks.on_document_loaded(priority=10)(self._track_document)
        self.hooks.on_current_cleared(priority=10)(self._track_cleared)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        url: Optional[str] = None,
        preferences: Optional[PreferenceStore] = None,
    ) -> "LiveDocumentSession":
        """
        Build a session from settings.

        Args:
            settings: Application settings.
            url: Optional viewer URL overriding ``settings.base_url``; may
                 carry a ``#fragment`` naming the initial document.
            preferences: Optional preference store.
        """
        location = LocationFragment(url or settings.base_url)
        loader = HttpDocumentLoader(
            base_url=location.base,
            files_endpoint=settings.files_endpoint,
            static_endpoint=settings.static_endpoint,
            request_timeout=settings.request_timeout,
        )
        return cls(
            source=loader,
            ws_url=ws_url_for(location.base, settings.ws_path),
            location=location,
            preferences=preferences,
            reconnect_delay=settings.reconnect_delay,
            suffixes=settings.document_suffixes,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self.engine.state

    @property
    def current_path(self) -> str:
        return self.engine.state.current_path

    @property
    def files(self) -> List[DocumentRef]:
        return list(self.engine.state.files)

    @property
    def document(self) -> Optional[LoadedDocument]:
        return self.engine.state.document

    @property
    def connection_status(self) -> ConnectionStatus:
        return self.channel.status

    @property
    def tree(self) -> List[TreeNode]:
        """Sidebar tree, rebuilt whenever the listing changes."""
        files = tuple(self.engine.state.files)
        if files != self._tree_files:
            self._tree = build_tree(files)
            self._tree_files = files
        return self._tree

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> SessionState:
        """
        Load the initial listing and document, then go live.

        The location fragment wins over the first document in the listing;
        without a fragment the last viewed location is tried. If the store
        is unreachable the session starts empty and resyncs once the push
        channel opens.
        """
        preferred = self.location.fragment
        if not preferred and self.preferences:
            preferred = self.preferences.last_location

        await self.engine.start()
        state = await self.engine.process(Resync(preferred_path=preferred, reload_current=False))
        self._synced_before_open = state.revision > 0
        if not self._synced_before_open:
            logger.warning("Initial listing failed; will resync when the push channel opens")
        elif not state.files:
            logger.warning("Starting with an empty document listing")

        await self.channel.start()
        return self.engine.state

    async def stop(self) -> None:
        """Tear down the channel, the engine and the HTTP session."""
        await self.channel.stop()
        await self.engine.stop()
        close = getattr(self.source, "close", None)
        if close is not None:
            await close()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def select_document(self, path: str, wait: bool = True) -> SessionState:
        """
        Display ``path``.

        The request is queued behind any pending notifications. A path the
        store does not have leaves the current document in place.
        """
        self.engine.submit(SelectDocument(path))
        if wait:
            await self.engine.drain()
        return self.engine.state

    async def follow_reference(self, reference: str, wait: bool = True) -> bool:
        """
        Follow a link from the current document.

        Returns:
            False if the reference is left to default handling (external
            URL, same-document anchor, non-document target).
        """
        if not is_resolvable_reference(reference, self.suffixes):
            return False

        target = resolve_reference(self.current_path, strip_fragment(reference))
        if not target:
            return False

        logger.debug(f"Following {reference!r} from {self.current_path!r} to {target!r}")
        await self.select_document(target, wait=wait)
        return True

    async def request_refresh(self) -> bool:
        """Ask the store to re-send state; resync locally either way."""
        self.engine.submit(Resync())
        return await self.channel.send(ClientMessageType.REQUEST_REFRESH)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _on_open(self) -> None:
        if self._synced_before_open:
            self._synced_before_open = False
            return
        logger.info("Push channel opened; resyncing with the store")
        self.engine.submit(Resync(preferred_path=self.location.fragment))

    async def _track_document(self, ctx: SyncContext) -> None:
        self.location.update(ctx.current_path)
        if self.preferences:
            self.preferences.expand_ancestors(ctx.current_path)
            self.preferences.set_last_location(ctx.current_path)

    async def _track_cleared(self, ctx: SyncContext) -> None:
        self.location.update("")
        if self.preferences:
            self.preferences.set_last_location("")


__all__ = ["LiveDocumentSession"]
