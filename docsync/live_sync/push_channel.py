"""
Push Channel Client.

Owns the WebSocket connection to the document store: connects, forwards
every inbound frame verbatim to a single handler, and reconnects after a
fixed delay whenever the socket closes. Frames missed while disconnected
are not replayed; the reconciliation engine recovers through the pull API.

Lifecycle (a new client is CONNECTING; the first attempt runs on start()):
    CONNECTING -> OPEN -> CLOSED (reconnect pending) -> CONNECTING -> ...
    any state -> STOPPED on stop()
"""

import asyncio
import logging
from enum import Enum
from typing import Any, AsyncContextManager, Callable, Optional

import websockets

from .sync_protocol import ClientMessageType, ReconnectPolicy, client_message

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str], Any]
ConnectFactory = Callable[[str], AsyncContextManager[Any]]


class ConnectionStatus(Enum):
    """Enum representing the current connection state."""
    CONNECTING = "CONNECTING"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    STOPPED = "STOPPED"


class PushChannelClient:
    """
    Manages the lifecycle of the push notification connection.

    Features:
    - Unconditional reconnection with a fixed delay.
    - Verbatim forwarding of text frames to one handler.
    - Clean teardown that cancels any pending reconnect.
    """

    def __init__(
        self,
        uri: str,
        on_message: MessageHandler,
        reconnect_policy: Optional[ReconnectPolicy] = None,
        connect: Optional[ConnectFactory] = None,
        on_open: Optional[Callable[[], Any]] = None,
    ):
        """
        Args:
            uri: WebSocket endpoint (e.g., ws://127.0.0.1:3000/ws).
            on_message: Callback receiving each raw frame. May be async.
            reconnect_policy: Delay policy between attempts. Defaults to 2s.
            connect: Factory returning an async context manager that yields
                     the socket. Defaults to ``websockets.connect``.
            on_open: Called after every successful open, including the first.
        """
        self.uri = uri
        self.callback = on_message
        self.on_open = on_open
        self._policy = reconnect_policy or ReconnectPolicy()
        self._connect = connect or websockets.connect

        # nothing connects until start(); the first attempt is pending
        self._status = ConnectionStatus.CONNECTING
        self._ws: Any = None
        self._task: Optional[asyncio.Task] = None
        self._stopping = False

    @property
    def status(self) -> ConnectionStatus:
        """Current connection status."""
        return self._status

    @property
    def reconnect_attempts(self) -> int:
        """Reconnect attempts since the last successful open."""
        return self._policy.attempts

    async def start(self) -> None:
        """Starts the connection loop in the background."""
        if self._task and not self._task.done():
            logger.warning("Push channel is already running.")
            return

        self._stopping = False
        self._status = ConnectionStatus.CONNECTING
        logger.info(f"Starting push channel for {self.uri}")
        self._task = asyncio.create_task(self._connection_loop())

    async def stop(self) -> None:
        """Stops the channel, closing the socket and cancelling any pending reconnect."""
        self._stopping = True
        self._status = ConnectionStatus.STOPPED

        ws = self._ws
        if ws is not None:
            try:
                await ws.close()
            except Exception as e:
                logger.debug(f"Error closing push channel socket: {e}")

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Push channel stopped.")

    async def send(self, message_type: ClientMessageType) -> bool:
        """Sends a client frame if the socket is open. Nothing is queued."""
        if self._status != ConnectionStatus.OPEN or self._ws is None:
            logger.debug(f"Dropping {message_type.value}: channel not open")
            return False

        try:
            await self._ws.send(client_message(message_type))
            return True
        except Exception as e:
            logger.warning(f"Failed to send {message_type.value}: {e}")
            return False

    async def _connection_loop(self) -> None:
        """Main loop handling connection, closure and reconnection."""
        while not self._stopping:
            self._status = ConnectionStatus.CONNECTING
            try:
                logger.debug(f"Connecting to {self.uri}...")
                async with self._connect(self.uri) as ws:
                    self._ws = ws
                    self._status = ConnectionStatus.OPEN
                    self._policy.reset()
                    logger.info(f"Push channel connected to {self.uri}")

                    if self.on_open:
                        await self._invoke(self.on_open)

                    async for message in ws:
                        await self._dispatch(message)

                logger.info("Push channel closed by server.")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Push channel lost: {e}")
            finally:
                self._ws = None

            if self._stopping:
                break

            self._status = ConnectionStatus.CLOSED
            delay = self._policy.get_delay()
            logger.info(
                f"Reconnecting in {delay:.1f} seconds (attempt {self._policy.attempts})..."
            )
            await asyncio.sleep(delay)

    async def _dispatch(self, message: Any) -> None:
        """Forwards a raw frame to the handler."""
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")

        logger.debug(f"Push frame: {message[:200]}")
        await self._invoke(self.callback, message)

    async def _invoke(self, callback: Callable[..., Any], *args: Any) -> None:
        """Runs a sync or async callback; its errors never drop the socket."""
        try:
            result = callback(*args)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"Push channel callback failed: {e}", exc_info=True)


__all__ = [
    "PushChannelClient",
    "ConnectionStatus",
    "MessageHandler",
]
