"""Periodic orientation sampling.

OrientationSource asks the sensor for access once, then samples it on a
fixed-rate schedule. Samples are exposed as a lazy generator (samples())
or pushed to a callback from a dedicated sampling thread (start()).
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterator, Optional

from ..config import SAMPLE_PERIOD
from ..errors import PermissionDeniedError, UnsupportedPlatformError
from ..models import AccessResult, OrientationSample
from .base import OrientationSensor

logger = logging.getLogger(__name__)


class OrientationSource:
    """Fixed-period sampler over an OrientationSensor.

    Each tick reads the sensor exactly once. A tick without a fresh reading
    is skipped rather than waited on. The sequence is single-use: once
    stopped it cannot be restarted; create a new source instead.

    Example:
        >>> source = OrientationSource(sensor, period=0.05)
        >>> if source.start(on_sample):
        ...     ...
        >>> source.stop()
    """

    def __init__(self,
                 sensor: OrientationSensor,
                 period: float = SAMPLE_PERIOD,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize orientation source.

        Args:
            sensor: Platform sensor to sample
            period: Seconds between ticks
            clock: Monotonic clock used for tick scheduling
        """
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")

        self._sensor = sensor
        self._period = period
        self._clock = clock

        self._access: Optional[AccessResult] = None
        self._access_lock = threading.Lock()

        self._started = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def period(self) -> float:
        return self._period

    @property
    def access(self) -> Optional[AccessResult]:
        """Result of the access request, or None if not requested yet."""
        return self._access

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def request_access(self) -> AccessResult:
        """Request orientation access from the platform.

        The sensor is asked at most once per source; later calls return the
        cached outcome. Refusals are reported once and never raised.
        """
        with self._access_lock:
            if self._access is not None:
                return self._access

            try:
                result = self._sensor.request_access()
            except Exception as e:
                logger.error(f"Orientation access request failed: {e}")
                result = AccessResult.UNSUPPORTED

            self._access = result

        if result is AccessResult.DENIED:
            error = PermissionDeniedError("Permission to access orientation was denied.")
            logger.warning(f"{error} Continuing without orientation data.")
        elif result is AccessResult.UNSUPPORTED:
            error = UnsupportedPlatformError("Device does not support orientation sensing.")
            logger.warning(f"{error} Continuing without orientation data.")
        else:
            logger.info("Orientation access granted")

        return result

    def samples(self) -> Iterator[OrientationSample]:
        """Lazy, infinite sequence of samples at the fixed period.

        Yields nothing if access was not granted. Ends when stop() is called.

        Raises:
            RuntimeError: If sampling was already started
        """
        if self._started:
            raise RuntimeError("Orientation sampling already started; sources are single-use")
        self._started = True

        if self.request_access() is not AccessResult.GRANTED:
            return iter(())

        return self._tick_loop()

    def start(self, callback: Callable[[OrientationSample], None]) -> bool:
        """Start the sampling thread, pushing each sample to callback.

        Returns:
            True if sampling started, False if access was not granted
        """
        samples = self.samples()
        if self._access is not AccessResult.GRANTED:
            return False

        self._thread = threading.Thread(
            target=self._run,
            args=(samples, callback),
            daemon=True,
            name="OrientationSampler"
        )
        self._thread.start()
        logger.info(f"Orientation sampling started (period={self._period * 1000:.0f}ms)")
        return True

    def stop(self) -> None:
        """Stop sampling and release the sensor.

        Returns once the sampling thread has exited.
        """
        self._stop_event.set()

        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join()
        self._thread = None

        self._sensor.close()
        if self._started:
            logger.info("Orientation sampling stopped")

    # Internal methods

    def _tick_loop(self) -> Iterator[OrientationSample]:
        """Fixed-rate schedule: tick n fires at start + n * period."""
        next_tick = self._clock()

        while not self._stop_event.is_set():
            sample = self._sensor.read()
            if sample is not None:
                yield sample

            next_tick += self._period
            delay = next_tick - self._clock()
            if delay < 0:
                # Fell behind; drop the missed ticks instead of bursting
                missed = int(-delay // self._period) + 1
                next_tick += missed * self._period
                delay = next_tick - self._clock()
            if self._stop_event.wait(max(delay, 0.0)):
                break

    def _run(self,
             samples: Iterator[OrientationSample],
             callback: Callable[[OrientationSample], None]) -> None:
        for sample in samples:
            try:
                callback(sample)
            except Exception as e:
                logger.error(f"Error in orientation callback: {e}")
