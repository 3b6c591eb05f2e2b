"""Orientation layer: sensor backends and periodic sampling.

This module provides:
- The platform sensor interface (OrientationSensor)
- A serial IMU backend (SerialOrientationSensor) and a replay backend (ReplaySensor)
- Text frame parsing (OrientationLineParser)
- Fixed-period sampling (OrientationSource)
"""

from .base import OrientationSensor
from .line_parser import OrientationLineParser
from .replay import ReplaySensor, load_replay_file
from .serial_sensor import SerialOrientationSensor
from .source import OrientationSource

__all__ = [
    'OrientationSensor',
    'OrientationLineParser',
    'ReplaySensor',
    'load_replay_file',
    'SerialOrientationSensor',
    'OrientationSource',
]
