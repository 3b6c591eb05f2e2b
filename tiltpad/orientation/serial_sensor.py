"""Orientation sensor backed by a serial IMU.

The IMU (a microcontroller board or phone bridge on a USB serial port)
streams one text frame per reading, e.g. ``ORIENT 12.0,-3.5,0.25``.

This module handles:
- Opening the serial port as the "permission request"
- Reading frames on a background thread
- Keeping only the freshest reading for the sampler
"""
from __future__ import annotations

import errno
import logging
import threading
from typing import Optional

import serial

from ..config import SERIAL_BAUD, SERIAL_TIMEOUT
from ..models import AccessResult, OrientationSample
from .base import OrientationSensor
from .line_parser import OrientationLineParser

logger = logging.getLogger(__name__)

_DENIED_ERRNOS = (errno.EACCES, errno.EPERM)


class SerialOrientationSensor(OrientationSensor):
    """Serial IMU orientation sensor.

    Access outcomes map onto opening the port:

    - opened                          -> GRANTED
    - PermissionError / EACCES, EPERM -> DENIED
    - port missing or unusable        -> UNSUPPORTED

    Example:
        >>> sensor = SerialOrientationSensor(port="/dev/ttyACM0")
        >>> sensor.request_access()
        <AccessResult.GRANTED: 'granted'>
        >>> sensor.read()
        OrientationSample(alpha=12.0, beta=-3.5, gamma=0.25)
        >>> sensor.close()
    """

    def __init__(self,
                 port: str,
                 baudrate: int = SERIAL_BAUD,
                 timeout: float = SERIAL_TIMEOUT):
        """Initialize serial sensor.

        Args:
            port: Serial port path (e.g., '/dev/ttyACM0', 'COM3')
            baudrate: Serial baud rate
            timeout: Read timeout in seconds
        """
        self._port = port
        self._baudrate = baudrate
        self._timeout = timeout

        self._serial: Optional[serial.Serial] = None
        self._parser = OrientationLineParser()

        # Threading
        self._active = False
        self._reader_thread: Optional[threading.Thread] = None

        # Freshest reading, consumed by read()
        self._latest: Optional[OrientationSample] = None
        self._latest_lock = threading.Lock()

    def request_access(self) -> AccessResult:
        """Open the serial port and start reading frames."""
        if self.is_open():
            return AccessResult.GRANTED

        try:
            self._serial = serial.Serial(
                port=self._port,
                baudrate=self._baudrate,
                timeout=self._timeout,
            )
            self._serial.reset_input_buffer()
        except PermissionError as e:
            logger.warning(f"Permission denied opening {self._port}: {e}")
            return AccessResult.DENIED
        except (serial.SerialException, OSError) as e:
            if getattr(e, "errno", None) in _DENIED_ERRNOS:
                logger.warning(f"Access to {self._port} denied: {e}")
                return AccessResult.DENIED
            logger.warning(f"No orientation sensor on {self._port}: {e}")
            return AccessResult.UNSUPPORTED

        logger.info(f"Opened orientation sensor on {self._port} @ {self._baudrate} baud")

        self._active = True
        self._start_reader_thread()
        return AccessResult.GRANTED

    def read(self) -> Optional[OrientationSample]:
        """Take the freshest reading, if one arrived since the last call."""
        with self._latest_lock:
            sample = self._latest
            self._latest = None
        return sample

    def is_open(self) -> bool:
        return self._active and self._serial is not None

    def close(self) -> None:
        """Stop the reader thread and close the port."""
        self._active = False

        if (self._reader_thread and self._reader_thread.is_alive()
                and self._reader_thread is not threading.current_thread()):
            self._reader_thread.join(timeout=1.0)
        self._reader_thread = None

        if self._serial:
            try:
                self._serial.close()
            except Exception as e:
                logger.error(f"Error closing serial port: {e}")
            finally:
                self._serial = None
                logger.info(f"Closed orientation sensor on {self._port}")

    # Internal methods

    def _start_reader_thread(self) -> None:
        self._reader_thread = threading.Thread(
            target=self._reader_loop,
            daemon=True,
            name="OrientationSerialReader"
        )
        self._reader_thread.start()

    def _reader_loop(self) -> None:
        """Read frames and keep the latest parsed sample."""
        logger.debug("Serial reader thread started")

        while self._active and self._serial:
            try:
                line = self._serial.readline()
            except serial.SerialException as e:
                if self._active:
                    logger.error(f"Serial read error on {self._port}: {e}")
                    self._handle_error(e)
                break

            if not line:
                continue

            sample = self._parser.parse_line(line.decode("utf-8", errors="ignore"))
            if sample is None:
                logger.debug(f"Ignoring unparseable frame: {line[:60]!r}")
                continue

            with self._latest_lock:
                self._latest = sample

        logger.debug("Serial reader thread exiting")

    def _handle_error(self, error: Exception) -> None:
        """Close the port after a fatal read error (e.g. device unplugged).

        Does not join the reader thread, since it is called from it.
        """
        self._active = False
        if self._serial:
            try:
                self._serial.close()
            except Exception as e:
                logger.debug(f"Ignoring close error after {error}: {e}")
            self._serial = None
        with self._latest_lock:
            self._latest = None
        logger.info("Orientation sensor closed due to error")
