"""Signal conditioner that turns raw orientation into a control signal.

Maintains mutable calibration and smoothing state internally but produces
immutable ConditionedSample snapshots.
"""
from __future__ import annotations

import logging
import math
import threading
from typing import Dict, Optional

from .config import SMOOTHING_FACTOR
from .models import AXES, Baseline, ConditionedSample, OrientationSample

logger = logging.getLogger(__name__)


class SignalConditioner:
    """Applies baseline subtraction and exponential smoothing per axis.

    For each present axis:

        delta    = raw - baseline
        smoothed = delta                           (first value for the axis)
        smoothed = prev + k * (delta - prev)       (afterwards)

    Absent axes pass through as None and leave that axis's smoothing state
    untouched. Output depends only on the sample sequence and the
    calibration history.

    calibrate() and transform() share one lock, so a transform always sees
    either the old or the new baseline in full.
    """

    def __init__(self, smoothing_factor: float = SMOOTHING_FACTOR):
        """Initialize conditioner.

        Args:
            smoothing_factor: Smoothing factor k in (0, 1)

        Raises:
            ValueError: If smoothing_factor is outside (0, 1)
        """
        if not 0.0 < smoothing_factor < 1.0:
            raise ValueError(
                f"smoothing_factor must be in (0, 1), got {smoothing_factor}"
            )
        self._k = smoothing_factor

        self._baseline = Baseline()
        self._smoothed: Dict[str, Optional[float]] = {axis: None for axis in AXES}

        self._lock = threading.Lock()

    @property
    def smoothing_factor(self) -> float:
        return self._k

    @property
    def baseline(self) -> Baseline:
        """Currently live baseline."""
        with self._lock:
            return self._baseline

    def calibrate(self, last_sample: Optional[OrientationSample]) -> Baseline:
        """Capture a raw sample as the new zero reference.

        Absent axes (or a missing sample) calibrate to 0.0. Smoothing state
        is cleared along with the swap since it belongs to the old reference.

        Args:
            last_sample: Most recent raw sample, or None if none arrived yet

        Returns:
            The new baseline
        """
        baseline = Baseline.from_sample(last_sample)

        with self._lock:
            self._baseline = baseline
            self._smoothed = {axis: None for axis in AXES}

        logger.info(
            f"Calibrated baseline: alpha={baseline.alpha:.2f} "
            f"beta={baseline.beta:.2f} gamma={baseline.gamma:.2f}"
        )
        return baseline

    def transform(self, raw: OrientationSample) -> ConditionedSample:
        """Condition one raw sample.

        Args:
            raw: Raw orientation sample

        Returns:
            Conditioned sample; absent or non-finite input axes come out absent
        """
        values: Dict[str, Optional[float]] = {}

        with self._lock:
            for axis in AXES:
                raw_value = getattr(raw, axis)
                # NaN/inf would stick in the smoothing state forever
                if raw_value is None or not math.isfinite(raw_value):
                    values[axis] = None
                    continue

                delta = raw_value - getattr(self._baseline, axis)
                previous = self._smoothed[axis]
                if previous is None:
                    smoothed = delta
                else:
                    smoothed = previous + self._k * (delta - previous)

                self._smoothed[axis] = smoothed
                values[axis] = smoothed

        return ConditionedSample(**values)

    def reset(self) -> None:
        """Forget smoothing history, keeping the baseline."""
        with self._lock:
            self._smoothed = {axis: None for axis in AXES}
