"""
Terminal viewer for a live document collection.

Connects to a document store, prints the document tree and follows the
current document as the collection changes until interrupted.

Usage:
    docsync [URL]

    URL defaults to DOCSYNC_BASE_URL and may carry a #fragment naming the
    document to open, e.g. http://127.0.0.1:3000/#guide/intro.md
"""

import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from ..core.config import Settings
from ..core.preferences import PreferenceStore
from ..live_sync.file_tree import TreeNode
from ..live_sync.live_session import LiveDocumentSession
from ..live_sync.sync_hooks import SyncContext

logger = logging.getLogger(__name__)


def format_tree(
    nodes: List[TreeNode],
    current_path: str = "",
    preferences: Optional[PreferenceStore] = None,
    depth: int = 0,
) -> List[str]:
    """Render tree nodes as indented lines; collapsed folders hide children."""
    lines = []
    indent = "  " * depth

    for node in nodes:
        if node.is_container:
            expanded = preferences is None or preferences.is_expanded(node.path)
            lines.append(f"{indent}{'v' if expanded else '>'} {node.name}/")
            if expanded:
                lines.extend(format_tree(node.children or [], current_path, preferences, depth + 1))
        else:
            marker = "*" if node.path == current_path else " "
            lines.append(f"{indent}{marker} {node.name}")

    return lines


async def run_viewer(
    url: Optional[str] = None,
    settings: Optional[Settings] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """Run a viewer session until ``stop_event`` is set or the task is cancelled."""
    settings = settings or Settings()
    preferences = PreferenceStore(settings.preferences_path)
    session = LiveDocumentSession.from_settings(settings, url=url, preferences=preferences)

    def show_tree() -> None:
        print("\n".join(format_tree(session.tree, session.current_path, preferences)))

    @session.hooks.on_files_updated()
    async def on_files(ctx: SyncContext) -> None:
        logger.info(f"Collection now has {len(ctx.files)} documents")
        show_tree()

    @session.hooks.on_document_loaded()
    async def on_document(ctx: SyncContext) -> None:
        logger.info(f"Viewing {ctx.current_path} ({session.location.href})")
        show_tree()

    @session.hooks.on_current_cleared()
    async def on_cleared(ctx: SyncContext) -> None:
        logger.info("No documents left to display")

    @session.hooks.on_error()
    async def on_error(ctx: SyncContext) -> None:
        for error in ctx.errors:
            logger.warning(f"Keeping previous view: {error}")

    await session.start()
    try:
        await (stop_event or asyncio.Event()).wait()
    finally:
        await session.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """Console entry point."""
    load_dotenv()
    args = sys.argv[1:] if argv is None else argv
    settings = Settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    url = args[0] if args else None
    try:
        asyncio.run(run_viewer(url=url, settings=settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
