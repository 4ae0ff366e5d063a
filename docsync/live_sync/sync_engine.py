"""
Reconciliation Engine for Live Document Sync.

Consumes change notifications and viewer commands one at a time, pulls
the authoritative listing/content through a DocumentSource, and keeps
the session's current document pointing at a path that exists.

Every step either commits a complete new SessionState or leaves the
previous one untouched; a failed fetch never half-applies.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Set, Tuple, Union

from .document_loader import DocumentLoadError, DocumentRef, DocumentSource, LoadedDocument
from .file_tree import first_document_path
from .sync_hooks import HookEventType, SyncContext, SyncHooks
from .sync_protocol import ChangeEvent, ChangeEventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    """
    Process-local view of the document collection.

    Replaced wholesale on every committed step.

    Attributes:
        files: Last authoritative listing.
        current_path: Displayed document, or "" when nothing is loaded.
                      Always "" or the path of an entry in ``files``.
        is_loading: True while a step is in flight.
        document: Content of the current document, if any.
        revision: Incremented on every commit.
    """
    files: Sequence[DocumentRef] = field(default_factory=tuple)
    current_path: str = ""
    is_loading: bool = False
    document: Optional[LoadedDocument] = None
    revision: int = 0

    @property
    def paths(self) -> Set[str]:
        return {ref.path for ref in self.files}

    def has_path(self, path: str) -> bool:
        return any(ref.path == path for ref in self.files)

    def is_consistent(self) -> bool:
        """True if the current path is empty or present in the listing."""
        return self.current_path == "" or self.has_path(self.current_path)


@dataclass(frozen=True)
class SelectDocument:
    """Viewer command: display ``path``."""
    path: str


@dataclass(frozen=True)
class Resync:
    """
    Viewer command: re-pull the listing and re-validate the current document.

    Used on startup (``preferred_path`` from the location fragment) and
    after the push channel reconnects, since missed notifications are
    never replayed.
    """
    preferred_path: str = ""
    reload_current: bool = True


WorkItem = Union[ChangeEvent, SelectDocument, Resync]


def infer_rename_target(old_paths: Set[str], new_files: Sequence[DocumentRef]) -> Optional[str]:
    """
    Guess where a removed document went.

    A removal of the current document may be the first half of a rename
    reported as remove + add. If exactly one path appears in the new
    listing that was not in the old one, it is taken as the new name.
    This cannot tell a rename from an unrelated delete + add in the same
    tick.
    """
    added = [ref.path for ref in new_files if ref.path not in old_paths]
    if len(added) == 1:
        return added[0]
    return None


def fallback_path(files: Sequence[DocumentRef]) -> str:
    """First document in tree order, or "" for an empty listing."""
    return first_document_path(files)


class ReconciliationEngine:
    """
    Serialized reconciliation of push notifications against the pull API.

    Handles:
    1. Queueing notifications and commands in arrival order.
    2. Processing each to completion before the next starts.
    3. Re-pulling the listing and choosing the current document.
    4. Rolling back on fetch failure and emitting session hooks.
    """

    def __init__(
        self,
        source: DocumentSource,
        state: Optional[SessionState] = None,
        hooks: Optional[SyncHooks] = None,
    ):
        """
        Initialize the engine.

        Args:
            source: Pull API implementation.
            state: Initial session state. Defaults to an empty session.
            hooks: Hook registry notified after each commit.
        """
        self.source = source
        self.hooks = hooks or SyncHooks()
        self._state = state or SessionState()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._lock = asyncio.Lock()
        self._consumer: Optional[asyncio.Task] = None
        # hook emissions collected during a step, run after it commits
        self._outbox: List[Tuple[HookEventType, List[Exception]]] = []

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state

    @property
    def pending(self) -> int:
        """Number of queued, unprocessed items."""
        return self._queue.qsize()

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    def submit(self, item: WorkItem) -> None:
        """Queue a notification or command for serialized processing."""
        self._queue.put_nowait(item)

    def handle_raw_message(self, raw: str) -> None:
        """
        Push channel handler: parse a frame and queue it.

        Malformed frames and unknown types are logged and dropped.
        """
        try:
            event = ChangeEvent.from_json(raw)
        except ValueError as e:
            logger.warning(f"Dropping push frame: {e}")
            return

        if event.type == ChangeEventType.PONG:
            logger.debug("Pong received")
            return

        self.submit(event)

    async def start(self) -> None:
        """Starts the consumer task."""
        if self._consumer and not self._consumer.done():
            return
        self._consumer = asyncio.create_task(self._consume())
        logger.debug("Reconciliation consumer started")

    async def stop(self) -> None:
        """Stops the consumer task. Queued items are discarded."""
        if self._consumer:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None
        logger.debug("Reconciliation consumer stopped")

    async def drain(self) -> None:
        """
        Wait until every queued item has been processed.

        Called from a hook running on the consumer task, this returns at
        once: the consumer cannot wait for itself, and the queued work runs
        right after the current item.
        """
        if self._consumer is not None and asyncio.current_task() is self._consumer:
            logger.debug("drain() called from the consumer; not waiting")
            return
        await self._queue.join()

    async def _consume(self) -> None:
        """Consumer task: processes queued items strictly in order."""
        while True:
            item = await self._queue.get()
            try:
                await self.process(item)
            except Exception as e:
                logger.error(f"Unexpected failure processing {item}: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    async def process(self, item: WorkItem) -> SessionState:
        """
        Apply one notification or command to completion.

        Hooks run after the step is committed and the lock is released,
        so a hook may queue further work or call ``process`` itself.

        Returns:
            The session state after the step (unchanged on failure).
        """
        async with self._lock:
            before = self._state
            self._state = replace(before, is_loading=True)
            self._outbox = []
            try:
                await self._dispatch(item, before)
            except DocumentLoadError as e:
                logger.warning(f"Reconciliation of {item} failed, keeping previous state: {e}")
                self._state = replace(before, is_loading=False)
                self._outbox = [(HookEventType.ON_ERROR, [e])]
            finally:
                if self._state.is_loading:
                    self._state = replace(self._state, is_loading=False)
            state = self._state
            outbox, self._outbox = self._outbox, []

        for event_type, errors in outbox:
            await self._emit(event_type, item, state, errors)
        return state

    async def _dispatch(self, item: WorkItem, before: SessionState) -> None:
        if isinstance(item, SelectDocument):
            await self._select(item, before)
        elif isinstance(item, Resync):
            await self._resync(item, before)
        elif item.type == ChangeEventType.RELOAD:
            await self._reload(item, before)
        elif item.type == ChangeEventType.FILE_ADDED:
            await self._added(item, before)
        elif item.type == ChangeEventType.FILE_REMOVED:
            await self._removed(item, before)
        elif item.type == ChangeEventType.FILE_RENAMED:
            await self._renamed(item, before)
        else:
            logger.debug(f"Ignoring {item.type.value}")

    async def _reload(self, event: ChangeEvent, before: SessionState) -> None:
        if not before.current_path:
            return
        document = await self.source.load_document(before.current_path, defeat_cache=True)
        await self._commit(event, before, before.files, before.current_path, document)

    async def _added(self, event: ChangeEvent, before: SessionState) -> None:
        files = await self.source.list_documents()
        await self._settle(event, before, files, before.current_path)

    async def _renamed(self, event: ChangeEvent, before: SessionState) -> None:
        files = await self.source.list_documents()
        if event.old_name == before.current_path and before.current_path:
            logger.info(f"Current document renamed: {event.old_name} -> {event.new_name}")
            await self._settle(event, before, files, event.new_name, force_load=True)
        else:
            await self._settle(event, before, files, before.current_path)

    async def _removed(self, event: ChangeEvent, before: SessionState) -> None:
        old_paths = before.paths
        files = await self.source.list_documents()

        if event.name != before.current_path or not before.current_path:
            await self._settle(event, before, files, before.current_path)
            return

        target = infer_rename_target(old_paths, files)
        if target is not None:
            logger.info(f"Current document removed; treating {target} as its new name")
        else:
            target = fallback_path(files)
            logger.info(f"Current document removed; falling back to {target or 'nothing'}")
        await self._settle(event, before, files, target, force_load=True)

    async def _select(self, command: SelectDocument, before: SessionState) -> None:
        files = before.files
        if not before.has_path(command.path):
            files = await self.source.list_documents()
            if not any(ref.path == command.path for ref in files):
                raise DocumentLoadError(
                    f"Document {command.path} is not in the collection",
                    path=command.path,
                    status=404,
                )
        document = await self.source.load_document(command.path)
        await self._commit(command, before, files, command.path, document)

    async def _resync(self, command: Resync, before: SessionState) -> None:
        files = await self.source.list_documents()
        paths = {ref.path for ref in files}

        if command.preferred_path and command.preferred_path in paths:
            target = command.preferred_path
        elif before.current_path in paths:
            target = before.current_path
        else:
            target = fallback_path(files)

        await self._settle(
            command,
            before,
            files,
            target,
            force_load=command.reload_current or target != before.current_path,
            defeat_cache=target == before.current_path,
        )

    async def _settle(
        self,
        trigger: WorkItem,
        before: SessionState,
        files: List[DocumentRef],
        target: str,
        force_load: bool = False,
        defeat_cache: bool = False,
    ) -> None:
        """
        Commit a fresh listing with a current document that exists in it.

        A target missing from the listing falls back to the first
        document in tree order.
        """
        paths = {ref.path for ref in files}
        if target and target not in paths:
            fallback = fallback_path(files)
            logger.info(f"{target} is not in the listing; falling back to {fallback or 'nothing'}")
            target = fallback

        document = before.document if target == before.current_path else None
        if target and (force_load or target != before.current_path):
            document = await self.source.load_document(target, defeat_cache=defeat_cache)

        await self._commit(trigger, before, files, target, document)

    async def _commit(
        self,
        trigger: WorkItem,
        before: SessionState,
        files: Sequence[DocumentRef],
        current_path: str,
        document: Optional[LoadedDocument],
    ) -> None:
        new_state = SessionState(
            files=tuple(files),
            current_path=current_path,
            is_loading=False,
            document=document if current_path else None,
            revision=before.revision + 1,
        )
        self._state = new_state
        logger.debug(f"Committed revision {new_state.revision} for {trigger}")

        if tuple(files) != tuple(before.files):
            self._outbox.append((HookEventType.FILES_UPDATED, []))
        if current_path and new_state.document is not before.document:
            self._outbox.append((HookEventType.DOCUMENT_LOADED, []))
        elif not current_path and before.current_path:
            self._outbox.append((HookEventType.CURRENT_CLEARED, []))

    async def _emit(
        self,
        event_type: HookEventType,
        trigger: WorkItem,
        state: SessionState,
        errors: List[Exception],
    ) -> None:
        context = SyncContext(
            event_type=event_type,
            current_path=state.current_path,
            files=list(state.files),
            document=state.document,
            trigger=trigger,
            errors=list(errors),
        )
        await self.hooks.emit(event_type, context)


__all__ = [
    "SessionState",
    "SelectDocument",
    "Resync",
    "WorkItem",
    "ReconciliationEngine",
    "infer_rename_target",
    "fallback_path",
]
