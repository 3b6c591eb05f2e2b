"""Abstract base class for duplex channels.

A Channel is one attempt at a bidirectional, message-oriented connection to
the game server. Instead of a reactive stream it reports its lifecycle as
explicit ChannelEvents, which keeps the retry logic above it testable
without a live socket.

Key principles:
- open() never blocks; the outcome arrives as an OPENED or ERROR event
- One channel object per connection attempt (not reusable after close)
- Pub/sub for events, callbacks invoked from the channel's worker thread
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class ChannelEventType(Enum):
    """Kind of channel event."""
    OPENED = "opened"
    MESSAGE = "message"
    ERROR = "error"
    CLOSED = "closed"


@dataclass(frozen=True)
class ChannelEvent:
    """A single channel lifecycle or data event.

    Attributes:
        kind: Event type
        data: Text frame for MESSAGE events
        error: Exception for ERROR events
    """
    kind: ChannelEventType
    data: Optional[str] = None
    error: Optional[Exception] = None


class Channel(ABC):
    """Abstract duplex channel to the server.

    Channels are responsible for:
    1. Opening the connection in the background
    2. Sending text frames
    3. Publishing lifecycle and inbound-frame events

    Channels should NOT contain retry or protocol logic.
    """

    def __init__(self, endpoint: str):
        """Initialize channel.

        Args:
            endpoint: Server URI (e.g. 'ws://localhost:8080')
        """
        self._endpoint = endpoint
        self._event_callbacks: List[Callable[[ChannelEvent], None]] = []
        self._callback_lock = threading.Lock()

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @abstractmethod
    def open(self) -> None:
        """Start opening the channel. Must not block."""
        pass

    @abstractmethod
    def send(self, text: str) -> bool:
        """Send one text frame.

        Returns:
            True if the frame was handed to the connection, False otherwise
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the channel and release its resources.

        Safe to call multiple times. No events are emitted after it returns.
        """
        pass

    @abstractmethod
    def is_open(self) -> bool:
        pass

    def subscribe_events(self,
                         callback: Callable[[ChannelEvent], None]
                         ) -> Callable[[], None]:
        """Subscribe to channel events.

        Args:
            callback: Function to call with each ChannelEvent

        Returns:
            Unsubscribe function
        """
        with self._callback_lock:
            self._event_callbacks.append(callback)

        def unsubscribe():
            with self._callback_lock:
                if callback in self._event_callbacks:
                    self._event_callbacks.remove(callback)

        return unsubscribe

    def _emit(self, event: ChannelEvent) -> None:
        """Notify all event subscribers."""
        with self._callback_lock:
            callbacks = list(self._event_callbacks)

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in channel event callback: {e}")
