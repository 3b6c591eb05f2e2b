"""Controller session facade.

Wires the orientation source, signal conditioner, control publisher and
connection manager together for one player session.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from .channel import Channel, WebSocketChannel
from .conditioning import SignalConditioner
from .config import SessionConfig
from .connection import ConnectionManager, ConnectionStatus
from .models import AccessResult, ConditionedSample, OrientationSample
from .orientation import OrientationSensor, OrientationSource
from .publisher import ControlPublisher

logger = logging.getLogger(__name__)


class ControllerSession:
    """High-level interface for a phone-style tilt controller.

    This class acts as a facade, managing:
    1. The server connection (ConnectionManager)
    2. Orientation sampling (OrientationSource)
    3. Calibration and smoothing (SignalConditioner)
    4. Streaming controls to the server (ControlPublisher)

    The player identity comes from the config at construction; nothing is
    prompted for at runtime. Missing orientation access never stops the
    session: connection, ready signal and status keep working without it.

    Example:
        >>> config = SessionConfig(endpoint="localhost:8080", player_name="Ada")
        >>> with ControllerSession(config, sensor) as session:
        ...     session.start()
        ...     session.calibrate()
        ...     session.ready()
    """

    def __init__(self,
                 config: SessionConfig,
                 sensor: OrientationSensor,
                 channel_factory: Optional[Callable[[str], Channel]] = None,
                 conditioner: Optional[SignalConditioner] = None):
        """Initialize controller session.

        Args:
            config: Session settings, including the player name
            sensor: Platform orientation sensor
            channel_factory: Channel builder (default: WebSocketChannel)
            conditioner: Custom conditioner, or None to build one from config
        """
        self._config = config
        self._identity = config.identity

        # Components
        self._connection = ConnectionManager(
            identity=self._identity,
            channel_factory=channel_factory or WebSocketChannel,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
        )
        self._source = OrientationSource(sensor, period=config.sample_period)
        self._conditioner = conditioner or SignalConditioner(config.smoothing_factor)
        self._publisher = ControlPublisher(self._connection)

        # Latest raw reading (for calibration) and conditioned output
        self._last_raw: Optional[OrientationSample] = None
        self._latest: Optional[ConditionedSample] = None
        self._sample_lock = threading.Lock()

        self._sample_callbacks: List[Callable[[ConditionedSample], None]] = []
        self._callback_lock = threading.Lock()

        self._started = False
        self._closed = False

    def start(self) -> AccessResult:
        """Connect to the server and start sampling if access is granted.

        Returns:
            Outcome of the orientation access request
        """
        if self._closed:
            raise RuntimeError("Session is closed")
        if self._started:
            return self._source.access

        self._started = True
        logger.info(f"Starting session for player '{self._identity.name}'")

        self._connection.connect(self._config.endpoint_uri)

        access = self._source.request_access()
        if access is AccessResult.GRANTED:
            self._source.start(self._on_sample)
        return access

    def close(self) -> None:
        """End the session: stop sampling, then tear down the connection."""
        if self._closed:
            return
        self._closed = True

        self._source.stop()
        self._connection.close()
        logger.info("Session closed")

    # --- Player actions ---

    def calibrate(self) -> None:
        """Use the latest raw reading as the new zero orientation."""
        with self._sample_lock:
            last_raw = self._last_raw
        self._conditioner.calibrate(last_raw)

    def ready(self) -> bool:
        """Tell the server this player is ready.

        Returns:
            True if sent, False if dropped because not connected
        """
        return self._connection.send_ready(self._identity.name)

    # --- Presentation interface ---

    @property
    def latest_sample(self) -> Optional[ConditionedSample]:
        """Most recent conditioned sample, or None before the first tick."""
        with self._sample_lock:
            return self._latest

    def subscribe_samples(self,
                          callback: Callable[[ConditionedSample], None]
                          ) -> Callable[[], None]:
        """Subscribe to conditioned samples, pushed once per tick.

        Returns:
            Unsubscribe function
        """
        with self._callback_lock:
            self._sample_callbacks.append(callback)

        def unsubscribe():
            with self._callback_lock:
                if callback in self._sample_callbacks:
                    self._sample_callbacks.remove(callback)

        return unsubscribe

    # --- Status interface ---

    @property
    def identity(self):
        return self._identity

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def orientation_access(self) -> Optional[AccessResult]:
        return self._source.access

    def connection_status(self) -> ConnectionStatus:
        return self._connection.status()

    def __enter__(self) -> ControllerSession:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Internal methods

    def _on_sample(self, raw: OrientationSample) -> None:
        """Sampling tick: condition, expose, publish."""
        conditioned = self._conditioner.transform(raw)

        with self._sample_lock:
            self._last_raw = raw
            self._latest = conditioned

        self._notify_sample_callbacks(conditioned)
        self._publisher.publish(conditioned)

    def _notify_sample_callbacks(self, sample: ConditionedSample) -> None:
        with self._callback_lock:
            callbacks = list(self._sample_callbacks)

        for callback in callbacks:
            try:
                callback(sample)
            except Exception as e:
                logger.error(f"Error in sample callback: {e}")
