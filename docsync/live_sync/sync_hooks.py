"""
Session Hooks for Live Document Sync.

The reconciliation engine runs these after it commits a step, so the
presentation side (sidebar tree, location fragment, folder state) can
follow the session without the engine knowing about it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class HookEventType(Enum):
    """Points in a reconciliation step where hooks run."""
    FILES_UPDATED = "files_updated"
    DOCUMENT_LOADED = "document_loaded"
    CURRENT_CLEARED = "current_cleared"
    ON_ERROR = "on_error"


@dataclass
class SyncContext:
    """
    Snapshot of the session handed to each hook.

    Attributes:
        event_type: Why the hooks are running.
        current_path: Current document after the step ("" if none).
        files: Listing after the step.
        document: Loaded document, if any.
        trigger: Notification or command that started the step.
        metadata: Scratch space shared by hooks in one chain.
        errors: Failures collected so far (fetch or hook errors).
        abort_reason: Set once a hook stops the chain.
    """
    event_type: HookEventType
    current_path: str = ""
    files: List[Any] = field(default_factory=list)
    document: Optional[Any] = None
    trigger: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    errors: List[Exception] = field(default_factory=list)
    abort_reason: Optional[str] = None

    def abort(self, reason: str = "stopped by hook") -> None:
        """Skip the remaining hooks of this chain."""
        self.abort_reason = reason
        logger.info(f"{self.event_type.value} hooks stopped: {reason}")

    @property
    def is_aborted(self) -> bool:
        return self.abort_reason is not None


HookCallback = Callable[[SyncContext], Awaitable[None]]


def _hook_name(callback: Callable[..., Any]) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class SyncHooks:
    """
    Priority-ordered async hook chains, one per HookEventType.

    Lower priority runs first. A hook that raises stops its chain and the
    ON_ERROR chain runs with the same context; errors raised by ON_ERROR
    hooks are only recorded.
    """

    def __init__(self):
        self._chains: Dict[HookEventType, List[Tuple[int, HookCallback]]] = {}

    def register(self, event_type: HookEventType, callback: HookCallback, priority: int = 100) -> None:
        chain = self._chains.setdefault(event_type, [])
        chain.append((priority, callback))
        # sort is stable, so equal priorities keep registration order
        chain.sort(key=lambda entry: entry[0])
        logger.debug(f"Hook {_hook_name(callback)} registered for {event_type.value} (priority {priority})")

    def registered(self, event_type: HookEventType) -> List[HookCallback]:
        """Callbacks for ``event_type`` in run order."""
        return [callback for _, callback in self._chains.get(event_type, [])]

    def _decorator(self, event_type: HookEventType, priority: int):
        def decorator(func: HookCallback) -> HookCallback:
            self.register(event_type, func, priority)
            return func
        return decorator

    def on_files_updated(self, priority: int = 100):
        return self._decorator(HookEventType.FILES_UPDATED, priority)

    def on_document_loaded(self, priority: int = 100):
        return self._decorator(HookEventType.DOCUMENT_LOADED, priority)

    def on_current_cleared(self, priority: int = 100):
        return self._decorator(HookEventType.CURRENT_CLEARED, priority)

    def on_error(self, priority: int = 100):
        return self._decorator(HookEventType.ON_ERROR, priority)

    async def emit(self, event_type: HookEventType, context: SyncContext) -> SyncContext:
        """
        Run the chain for ``event_type``.

        Returns:
            ``context``, with any hook failures appended to ``errors``.
        """
        is_error_chain = event_type == HookEventType.ON_ERROR
        if not is_error_chain:
            context.event_type = event_type

        chain = self.registered(event_type)
        if chain:
            logger.debug(f"Running {len(chain)} {event_type.value} hooks")

        for hook in chain:
            if context.is_aborted and not is_error_chain:
                break

            try:
                await hook(context)
            except Exception as exc:
                logger.error(f"Hook {_hook_name(hook)} failed: {exc}", exc_info=True)
                context.errors.append(exc)
                if not is_error_chain:
                    context.abort(f"{_hook_name(hook)} raised {exc!r}")
                    await self.emit(HookEventType.ON_ERROR, context)

        return context

    def clear(self, event_type: Optional[HookEventType] = None) -> None:
        """Drop the hooks for one event, or for all events."""
        if event_type is None:
            self._chains.clear()
        else:
            self._chains.pop(event_type, None)


__all__ = [
    "SyncHooks",
    "SyncContext",
    "HookEventType",
    "HookCallback",
]
