"""Replay sensor that plays back recorded orientation readings."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..models import AccessResult, OrientationSample
from .base import OrientationSensor
from .line_parser import OrientationLineParser

logger = logging.getLogger(__name__)


class ReplaySensor(OrientationSensor):
    """Plays back a finite sequence of readings, one per read() call.

    None entries stand for ticks where no reading was available. Once the
    sequence is used up (and loop is False), read() keeps returning None.
    """

    def __init__(self,
                 readings: Iterable[Optional[OrientationSample]],
                 access: AccessResult = AccessResult.GRANTED,
                 loop: bool = False):
        self._readings: List[Optional[OrientationSample]] = list(readings)
        self._access = access
        self._loop = loop
        self._index = 0
        self._closed = False
        self._lock = threading.Lock()
        self.access_requests = 0

    def request_access(self) -> AccessResult:
        self.access_requests += 1
        return self._access

    def read(self) -> Optional[OrientationSample]:
        with self._lock:
            if self._closed or not self._readings:
                return None
            if self._index >= len(self._readings):
                if not self._loop:
                    return None
                self._index = 0
            sample = self._readings[self._index]
            self._index += 1
            return sample

    @property
    def exhausted(self) -> bool:
        with self._lock:
            return not self._loop and self._index >= len(self._readings)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        with self._lock:
            self._closed = True


def load_replay_file(path: Union[str, Path]) -> List[Optional[OrientationSample]]:
    """Load readings from a text file, one orientation frame per line.

    Lines that do not parse (comments, blank lines) are skipped.
    """
    readings: List[Optional[OrientationSample]] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            sample = OrientationLineParser.parse_line(line)
            if sample is not None:
                readings.append(sample)
    logger.info(f"Loaded {len(readings)} readings from {path}")
    return readings
