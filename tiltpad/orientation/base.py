"""Abstract base class for orientation sensors.

A sensor is the platform collaborator behind OrientationSource: it answers
the permission question and hands out fresh readings on demand.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..models import AccessResult, OrientationSample


class OrientationSensor(ABC):
    """Abstract platform interface for orientation readings.

    Sensors are responsible for:
    1. Asking the platform for access (once)
    2. Producing the latest reading without blocking

    Sensors should NOT contain conditioning or scheduling logic.
    """

    @abstractmethod
    def request_access(self) -> AccessResult:
        """Query capability and, if required, ask for consent.

        Returns:
            GRANTED, DENIED or UNSUPPORTED
        """
        pass

    @abstractmethod
    def read(self) -> Optional[OrientationSample]:
        """Return a fresh reading, or None if none arrived since the last call.

        Must not block.
        """
        pass

    def close(self) -> None:
        """Release the sensor. Safe to call multiple times."""
        pass

    def __enter__(self) -> OrientationSensor:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
