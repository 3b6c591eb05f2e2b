"""Connection manager for the game server.

Owns the duplex channel lifecycle:
- Opening channels without blocking the caller
- Bounded automatic reconnection on a cancellable timer
- The one-shot registration handshake after every successful connect
- Best-effort sending that drops messages while not connected
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional, Union

from ..channel import Channel, ChannelEvent, ChannelEventType, WebSocketChannel
from ..config import MAX_RETRIES, RETRY_DELAY, normalize_endpoint
from ..errors import ChannelConnectionError, ExhaustedRetriesError
from ..models import (
    ConditionedSample,
    ConnectionState,
    ControlsMessage,
    Message,
    PlayerIdentity,
    ReadyMessage,
    RegisterMessage,
    RetryBudget,
)
from ..protocol import JSONProtocol, Protocol
from .status import ConnectionStatus

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Connection lifecycle state machine with a bounded retry budget.

    States::

        DISCONNECTED --connect()--> CONNECTING --opened--> CONNECTED
        CONNECTING/CONNECTED --error/closed--> CONNECTING  (budget left)
                                           --> FAILED      (budget exhausted)
        any --close()--> DISCONNECTED
        FAILED --connect()--> CONNECTING

    While attempt < max, a failure increments attempt and schedules a
    retry. A failure that arrives with attempt == max moves to FAILED and
    nothing further is scheduled, so with max_retries=5 five retries run
    and the sixth consecutive failure is final. A success or an explicit
    connect() resets the budget.

    Channel events arrive on the channel's worker thread and retries fire on
    a timer thread; both go through the same lock. Events from a channel
    that has since been replaced or closed are ignored.

    Example:
        >>> manager = ConnectionManager(identity=PlayerIdentity("Ada"))
        >>> manager.subscribe_status(lambda s: print(s.state))
        >>> manager.connect("localhost:8080")
        <ConnectionState.CONNECTING: 'connecting'>
        >>> manager.send_ready()
        True
        >>> manager.close()
    """

    def __init__(self,
                 identity: Optional[PlayerIdentity] = None,
                 channel_factory: Callable[[str], Channel] = WebSocketChannel,
                 protocol: Optional[Protocol] = None,
                 max_retries: int = MAX_RETRIES,
                 retry_delay: float = RETRY_DELAY,
                 timer_factory: Callable[..., threading.Timer] = threading.Timer):
        """Initialize connection manager.

        Args:
            identity: Player identity registered after each connect, or None
            channel_factory: Builds a Channel for an endpoint URI
            protocol: Wire protocol (default: JSONProtocol)
            max_retries: Retries scheduled before giving up
            retry_delay: Seconds between a failure and the next attempt
            timer_factory: Builds the retry timer, called as
                timer_factory(delay, function)
        """
        self._identity = identity
        self._channel_factory = channel_factory
        self._protocol = protocol or JSONProtocol()
        self._retry_delay = retry_delay
        self._timer_factory = timer_factory

        # Lifecycle state, guarded by _lock
        self._state = ConnectionState.DISCONNECTED
        self._budget = RetryBudget(max_attempts=max_retries)
        self._endpoint: Optional[str] = None
        self._last_error: Optional[Exception] = None
        self._closed = False

        # Current channel; the generation tags its events
        self._channel: Optional[Channel] = None
        self._generation = 0
        self._registered_generation: Optional[int] = None

        # Pending retry; the token invalidates timers that already fired
        self._retry_timer: Optional[threading.Timer] = None
        self._retry_token = 0

        self._lock = threading.Lock()

        # Callbacks
        self._status_callbacks: List[Callable[[ConnectionStatus], None]] = []
        self._callback_lock = threading.Lock()

    # --- Lifecycle ---

    def connect(self, endpoint: Optional[str] = None) -> ConnectionState:
        """Start connecting to the server without blocking.

        An explicit call always starts over: the retry budget resets, any
        pending retry is cancelled and any existing channel is dropped.

        Args:
            endpoint: 'host:port' or ws:// URI; None reuses the last endpoint

        Returns:
            ConnectionState.CONNECTING

        Raises:
            ValueError: If no endpoint was ever given
        """
        with self._lock:
            if endpoint is not None:
                self._endpoint = normalize_endpoint(endpoint)
            if self._endpoint is None:
                raise ValueError("No endpoint to connect to")

            self._closed = False
            self._cancel_retry_timer()
            old_channel = self._detach_channel()

            self._budget = self._budget.reset()
            self._last_error = None
            self._state = ConnectionState.CONNECTING
            channel = self._attach_channel()
            status = self._snapshot()

        logger.info(f"Connecting to {status.endpoint}")
        if old_channel is not None:
            old_channel.close()
        self._notify_status(status)
        channel.open()
        return ConnectionState.CONNECTING

    def close(self) -> None:
        """Tear down the session's connection.

        Cancels any pending retry, releases the channel and moves to
        DISCONNECTED. No retry fires and no channel event is handled after
        this returns. Safe to call multiple times.
        """
        with self._lock:
            already_closed = self._closed
            self._closed = True
            self._cancel_retry_timer()
            channel = self._detach_channel()
            changed = self._state is not ConnectionState.DISCONNECTED
            self._state = ConnectionState.DISCONNECTED
            status = self._snapshot()

        if channel is not None:
            channel.close()

        if changed:
            logger.info("Disconnected from server")
            self._notify_status(status)
        elif not already_closed:
            logger.debug("Connection manager closed")

    # --- Identity ---

    def register_identity(self, name: Optional[str]) -> None:
        """Set the identity registered after each successful connect.

        If already connected and this connection has not registered yet, the
        registration is sent right away.
        """
        identity = PlayerIdentity.from_input(name)

        with self._lock:
            self._identity = identity
            channel = self._claim_registration()

        if channel is not None:
            self._send_registration(channel, identity)

    @property
    def identity(self) -> Optional[PlayerIdentity]:
        return self._identity

    # --- Sending ---

    def send(self, message: Message) -> bool:
        """Best-effort send of one message.

        Returns:
            True if handed to the channel; False (silently) when not
            connected or the channel refused it
        """
        with self._lock:
            if self._state is not ConnectionState.CONNECTED or self._channel is None:
                return False
            channel = self._channel

        frame = self._protocol.serialize_message(message)
        return channel.send(frame)

    def send_ready(self, name: Optional[str] = None) -> bool:
        """Send the ready signal, defaulting to the registered identity."""
        if name is None:
            identity = self._identity or PlayerIdentity.from_input(None)
            name = identity.name
        return self.send(ReadyMessage(player_name=name))

    def send_controls(self, sample: Union[ConditionedSample, ControlsMessage]) -> bool:
        """Send one controls message; dropped while not connected."""
        if isinstance(sample, ConditionedSample):
            sample = ControlsMessage.from_sample(sample)
        return self.send(sample)

    # --- Status ---

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def attempt(self) -> int:
        with self._lock:
            return self._budget.attempt

    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def status(self) -> ConnectionStatus:
        """Get a snapshot of the connection lifecycle."""
        with self._lock:
            if self._endpoint is None and self._state is ConnectionState.DISCONNECTED:
                return ConnectionStatus.disconnected(max_attempts=self._budget.max_attempts)
            return self._snapshot()

    def subscribe_status(self,
                         callback: Callable[[ConnectionStatus], None]
                         ) -> Callable[[], None]:
        """Subscribe to status changes.

        Args:
            callback: Function to call with a ConnectionStatus on every transition

        Returns:
            Unsubscribe function
        """
        with self._callback_lock:
            self._status_callbacks.append(callback)

        def unsubscribe():
            with self._callback_lock:
                if callback in self._status_callbacks:
                    self._status_callbacks.remove(callback)

        return unsubscribe

    # Internal methods

    def _attach_channel(self) -> Channel:
        """Create the channel for the next attempt. Caller holds _lock."""
        self._generation += 1
        generation = self._generation

        channel = self._channel_factory(self._endpoint)
        channel.subscribe_events(lambda event: self._on_channel_event(generation, event))
        self._channel = channel
        return channel

    def _detach_channel(self) -> Optional[Channel]:
        """Forget the current channel so its events go stale. Caller holds _lock.

        The returned channel must be closed outside the lock.
        """
        channel = self._channel
        self._channel = None
        self._generation += 1
        return channel

    def _claim_registration(self) -> Optional[Channel]:
        """Mark this connection registered if it still needs it. Caller holds _lock."""
        if (self._identity is None
                or self._state is not ConnectionState.CONNECTED
                or self._channel is None
                or self._registered_generation == self._generation):
            return None
        self._registered_generation = self._generation
        return self._channel

    def _send_registration(self, channel: Channel, identity: PlayerIdentity) -> None:
        frame = self._protocol.serialize_message(RegisterMessage(player_name=identity.name))
        if channel.send(frame):
            logger.info(f"Registered as player '{identity.name}'")
        else:
            logger.warning(f"Could not send registration for '{identity.name}'")

    def _on_channel_event(self, generation: int, event: ChannelEvent) -> None:
        """Handle an event from the channel of the given generation."""
        if event.kind is ChannelEventType.MESSAGE:
            logger.debug(f"Ignoring inbound frame: {(event.data or '')[:100]}")
        elif event.kind is ChannelEventType.OPENED:
            self._on_channel_opened(generation)
        else:
            self._on_channel_failed(generation, event)

    def _on_channel_opened(self, generation: int) -> None:
        with self._lock:
            if self._closed or generation != self._generation:
                return
            self._state = ConnectionState.CONNECTED
            self._budget = self._budget.reset()
            self._last_error = None
            identity = self._identity
            channel = self._claim_registration()
            status = self._snapshot()

        logger.info(f"Connected to {status.endpoint}")
        if channel is not None:
            self._send_registration(channel, identity)
        self._notify_status(status)

    def _on_channel_failed(self, generation: int, event: ChannelEvent) -> None:
        with self._lock:
            if self._closed or generation != self._generation:
                return

            error = event.error or ChannelConnectionError(
                f"Connection to {self._endpoint} closed",
                endpoint=self._endpoint,
            )
            channel = self._detach_channel()

            if self._budget.exhausted:
                self._state = ConnectionState.FAILED
                self._last_error = ExhaustedRetriesError(
                    f"Could not connect to {self._endpoint} "
                    f"after {self._budget.attempt} retries",
                    attempts=self._budget.attempt,
                )
            else:
                self._budget = self._budget.next()
                self._state = ConnectionState.CONNECTING
                self._last_error = error
                self._schedule_retry()
            status = self._snapshot()

        if channel is not None:
            channel.close()

        if status.state is ConnectionState.FAILED:
            logger.error(f"Connection failed: {error}")
            logger.error("Max retries reached. Could not connect.")
        else:
            logger.warning(f"Connection failed: {error}")
            logger.warning(
                f"Retrying connection ({status.attempt}/{status.max_attempts}) "
                f"in {self._retry_delay:.1f}s..."
            )
        self._notify_status(status)

    def _schedule_retry(self) -> None:
        """Arm the retry timer. Caller holds _lock."""
        self._retry_token += 1
        token = self._retry_token

        timer = self._timer_factory(self._retry_delay, lambda: self._on_retry_timer(token))
        timer.daemon = True
        self._retry_timer = timer
        timer.start()

    def _cancel_retry_timer(self) -> None:
        """Cancel any pending retry. Caller holds _lock."""
        self._retry_token += 1
        if self._retry_timer is not None:
            self._retry_timer.cancel()
            self._retry_timer = None

    def _on_retry_timer(self, token: int) -> None:
        with self._lock:
            if (self._closed
                    or token != self._retry_token
                    or self._state is not ConnectionState.CONNECTING):
                return
            self._retry_timer = None
            channel = self._attach_channel()
            endpoint = self._endpoint

        logger.info(f"Reconnecting to {endpoint}")
        channel.open()

    def _snapshot(self) -> ConnectionStatus:
        """Build a status snapshot. Caller holds _lock."""
        return ConnectionStatus(
            timestamp=time.time(),
            state=self._state,
            attempt=self._budget.attempt,
            max_attempts=self._budget.max_attempts,
            endpoint=self._endpoint,
            error=self._last_error,
        )

    def _notify_status(self, status: ConnectionStatus) -> None:
        """Notify all status subscribers."""
        with self._callback_lock:
            callbacks = list(self._status_callbacks)

        for callback in callbacks:
            try:
                callback(status)
            except Exception as e:
                logger.error(f"Error in status callback: {e}")
