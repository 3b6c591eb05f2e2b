"""Parser for text orientation frames.

Parses lines from a serial IMU or a replay file into OrientationSamples.
"""
from __future__ import annotations

import math
from typing import Optional

from ..models import OrientationSample

FRAME_PREFIX = "ORIENT"

_ABSENT_TOKENS = {"", "null", "none", "nan", "-"}


class OrientationLineParser:
    """Parser for orientation text frames.

    Accepts ``ORIENT <alpha>,<beta>,<gamma>`` or the bare comma-separated
    values. Empty, 'null', 'none', 'nan' or '-' tokens mark an absent axis.
    """

    @staticmethod
    def parse_line(line: str) -> Optional[OrientationSample]:
        """Parse a single line.

        Returns:
            OrientationSample if the line is a valid frame, None otherwise

        Examples:
            >>> OrientationLineParser.parse_line("ORIENT 10.0,5.0,0.0")
            OrientationSample(alpha=10.0, beta=5.0, gamma=0.0)
            >>> OrientationLineParser.parse_line("12.5,,null")
            OrientationSample(alpha=12.5, beta=None, gamma=None)
        """
        line = line.strip()
        if not line or line.startswith("#"):
            return None

        if line.startswith(FRAME_PREFIX):
            line = line[len(FRAME_PREFIX):].strip()

        tokens = line.split(",")
        if not line or len(tokens) != 3:
            return None

        values = []
        for token in tokens:
            token = token.strip()
            if token.lower() in _ABSENT_TOKENS:
                values.append(None)
                continue
            try:
                value = float(token)
            except ValueError:
                return None
            values.append(value if math.isfinite(value) else None)

        return OrientationSample(*values)
