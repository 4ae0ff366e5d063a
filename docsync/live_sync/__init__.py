"""
Live Sync Module for Remote Document Collections.

Keeps a local view of a remote, mutable directory of markdown documents
current, driven by WebSocket change notifications and corroborated
through the HTTP pull API.

Components:
- path_resolver: link resolution and classification
- file_tree: flat listing -> sorted document tree
- document_loader: pull API client
- push_channel: WebSocket connection lifecycle with fixed-delay reconnect
- sync_protocol: push frame parsing and reconnect policy
- sync_engine: serialized reconciliation of notifications
- sync_hooks: hook chain run after each reconciliation step
- live_session: wiring of all of the above into one viewer session
"""

from .path_resolver import (
    DOCUMENT_SUFFIXES,
    is_resolvable_reference,
    resolve_reference,
    strip_fragment,
)
from .file_tree import (
    TreeNode,
    build_tree,
    first_document_path,
)
from .document_loader import (
    DocumentRef,
    LoadedDocument,
    DocumentLoadError,
    DocumentSource,
    HttpDocumentLoader,
)
from .sync_protocol import (
    ChangeEventType,
    ChangeEvent,
    ClientMessageType,
    ReconnectPolicy,
)
from .push_channel import (
    PushChannelClient,
    ConnectionStatus,
)
from .sync_engine import (
    ReconciliationEngine,
    SessionState,
    SelectDocument,
    Resync,
    infer_rename_target,
)
from .sync_hooks import (
    SyncHooks,
    SyncContext,
    HookEventType,
)
from .location import LocationFragment
from .live_session import LiveDocumentSession

__all__ = [
    # Paths
    "DOCUMENT_SUFFIXES",
    "is_resolvable_reference",
    "resolve_reference",
    "strip_fragment",
    # Tree
    "TreeNode",
    "build_tree",
    "first_document_path",
    # Loader
    "DocumentRef",
    "LoadedDocument",
    "DocumentLoadError",
    "DocumentSource",
    "HttpDocumentLoader",
    # Protocol
    "ChangeEventType",
    "ChangeEvent",
    "ClientMessageType",
    "ReconnectPolicy",
    # Channel
    "PushChannelClient",
    "ConnectionStatus",
    # Engine
    "ReconciliationEngine",
    "SessionState",
    "SelectDocument",
    "Resync",
    "infer_rename_target",
    # Hooks
    "SyncHooks",
    "SyncContext",
    "HookEventType",
    # Session
    "LocationFragment",
    "LiveDocumentSession",
]
