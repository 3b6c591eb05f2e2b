"""WebSocket channel to the game server.

Uses the synchronous websockets client on a worker thread:
- connect + handshake, then OPENED
- one MESSAGE event per inbound text frame
- ERROR on handshake or transport failure, CLOSED on a clean peer close
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException
from websockets.sync.client import ClientConnection, connect

from ..config import WEBSOCKET_CLOSE_TIMEOUT, WEBSOCKET_OPEN_TIMEOUT
from ..errors import ChannelConnectionError
from .base import Channel, ChannelEvent, ChannelEventType

logger = logging.getLogger(__name__)


class WebSocketChannel(Channel):
    """Single-use WebSocket connection emitting ChannelEvents.

    Example:
        >>> channel = WebSocketChannel("ws://localhost:8080")
        >>> channel.subscribe_events(lambda e: print(e.kind))
        >>> channel.open()
        ChannelEventType.OPENED
        >>> channel.send('{"type":"ready","value":{"playerName":"Ada"}}')
        True
        >>> channel.close()
    """

    def __init__(self,
                 endpoint: str,
                 open_timeout: float = WEBSOCKET_OPEN_TIMEOUT,
                 close_timeout: float = WEBSOCKET_CLOSE_TIMEOUT):
        """Initialize WebSocket channel.

        Args:
            endpoint: ws:// or wss:// URI
            open_timeout: Seconds allowed for connect + handshake
            close_timeout: Seconds allowed for the closing handshake
        """
        super().__init__(endpoint)
        self._open_timeout = open_timeout
        self._close_timeout = close_timeout

        self._ws: Optional[ClientConnection] = None
        self._ws_lock = threading.Lock()

        self._closed = False
        self._worker: Optional[threading.Thread] = None

    def open(self) -> None:
        """Start connecting on a background thread."""
        if self._worker is not None:
            logger.warning("Channel already opened")
            return
        if self._closed:
            logger.warning("Channel is closed and cannot be reopened")
            return

        self._worker = threading.Thread(
            target=self._run,
            daemon=True,
            name="WebSocketChannel"
        )
        self._worker.start()

    def send(self, text: str) -> bool:
        """Send one text frame, without raising on failure."""
        with self._ws_lock:
            ws = self._ws
        if ws is None or self._closed:
            return False

        try:
            ws.send(text)
            return True
        except (ConnectionClosed, OSError) as e:
            # The worker thread reports the close itself
            logger.debug(f"Send failed on {self._endpoint}: {e}")
            return False

    def close(self) -> None:
        """Close the connection. No events are emitted afterwards."""
        if self._closed:
            return
        self._closed = True

        with self._ws_lock:
            ws = self._ws
            self._ws = None

        if ws is not None:
            try:
                ws.close()
            except Exception as e:
                logger.debug(f"Error closing websocket: {e}")

        worker = self._worker
        if worker and worker.is_alive() and worker is not threading.current_thread():
            # A worker still in connect() notices _closed once it returns
            worker.join(timeout=self._close_timeout)

    def is_open(self) -> bool:
        with self._ws_lock:
            return self._ws is not None and not self._closed

    # Internal methods

    def _run(self) -> None:
        """Worker: connect, then pump inbound frames until the connection ends."""
        try:
            ws = connect(
                self._endpoint,
                open_timeout=self._open_timeout,
                close_timeout=self._close_timeout,
            )
        except (WebSocketException, OSError, TimeoutError) as e:
            self._emit_unless_closed(ChannelEvent(
                kind=ChannelEventType.ERROR,
                error=ChannelConnectionError(
                    f"Could not open {self._endpoint}: {e}",
                    endpoint=self._endpoint,
                    cause=e,
                ),
            ))
            return

        with self._ws_lock:
            if self._closed:
                discard = True
            else:
                self._ws = ws
                discard = False
        if discard:
            ws.close()
            return

        logger.info(f"WebSocket open to {self._endpoint}")
        self._emit_unless_closed(ChannelEvent(kind=ChannelEventType.OPENED))

        try:
            for frame in ws:
                if isinstance(frame, bytes):
                    frame = frame.decode("utf-8", errors="ignore")
                self._emit_unless_closed(ChannelEvent(kind=ChannelEventType.MESSAGE, data=frame))
        except (WebSocketException, OSError) as e:
            self._handle_closed(e)
            return

        # Iteration ends cleanly on a normal close
        self._handle_closed(None)

    def _handle_closed(self, error: Optional[Exception]) -> None:
        with self._ws_lock:
            self._ws = None

        if error is None or isinstance(error, ConnectionClosedOK):
            logger.info(f"WebSocket to {self._endpoint} closed by peer")
            self._emit_unless_closed(ChannelEvent(kind=ChannelEventType.CLOSED))
        else:
            logger.warning(f"WebSocket to {self._endpoint} failed: {error}")
            self._emit_unless_closed(ChannelEvent(
                kind=ChannelEventType.ERROR,
                error=ChannelConnectionError(
                    f"Connection to {self._endpoint} lost: {error}",
                    endpoint=self._endpoint,
                    cause=error,
                ),
            ))

    def _emit_unless_closed(self, event: ChannelEvent) -> None:
        if self._closed:
            return
        self._emit(event)
