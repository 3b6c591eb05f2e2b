"""Immutable data models for orientation samples, session state and messages.

All models are frozen dataclasses to ensure immutability and thread-safety.
These models serve as the contract between the sensor, conditioning,
connection and application layers.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .config import DEFAULT_PLAYER_NAME, MAX_RETRIES

# Axis identifiers, in wire order
AXES = ("alpha", "beta", "gamma")


@dataclass(frozen=True)
class OrientationSample:
    """Immutable raw orientation reading.

    Any axis may be None when the sensor did not report it.

    Attributes:
        alpha: Rotation around the z axis in degrees
        beta: Rotation around the x axis (front/back tilt) in degrees
        gamma: Rotation around the y axis (left/right tilt) in degrees
    """
    alpha: Optional[float] = None
    beta: Optional[float] = None
    gamma: Optional[float] = None

    @property
    def is_complete(self) -> bool:
        """True if every axis carries a value."""
        return all(getattr(self, axis) is not None for axis in AXES)


@dataclass(frozen=True)
class Baseline:
    """Reference orientation captured at calibration time.

    Attributes:
        alpha: Reference alpha in degrees
        beta: Reference beta in degrees
        gamma: Reference gamma in degrees
    """
    alpha: float = 0.0
    beta: float = 0.0
    gamma: float = 0.0

    @classmethod
    def from_sample(cls, sample: Optional[OrientationSample]) -> Baseline:
        """Capture a sample as baseline, treating absent or non-finite axes as zero."""
        if sample is None:
            return cls()
        return cls(*(_finite_or_none(getattr(sample, axis)) or 0.0 for axis in AXES))


@dataclass(frozen=True)
class ConditionedSample:
    """Baseline-subtracted, smoothed orientation.

    Each new value replaces the previous one; consumers never merge them.
    """
    alpha: Optional[float] = None
    beta: Optional[float] = None
    gamma: Optional[float] = None


class ConnectionState(Enum):
    """Lifecycle states of the server connection."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class AccessResult(Enum):
    """Outcome of an orientation permission request."""
    GRANTED = "granted"
    DENIED = "denied"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class RetryBudget:
    """Bounded count of automatic reconnection attempts.

    Attributes:
        attempt: Failed attempts since the last success or explicit connect
        max_attempts: Retries allowed before automatic recovery stops
    """
    attempt: int = 0
    max_attempts: int = MAX_RETRIES

    def __post_init__(self):
        if self.max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {self.max_attempts}")
        if not 0 <= self.attempt <= self.max_attempts:
            raise ValueError(
                f"attempt must be within [0, {self.max_attempts}], got {self.attempt}"
            )

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    def next(self) -> RetryBudget:
        """Budget after one more failed attempt, capped at max_attempts."""
        return RetryBudget(
            attempt=min(self.attempt + 1, self.max_attempts),
            max_attempts=self.max_attempts,
        )

    def reset(self) -> RetryBudget:
        return RetryBudget(attempt=0, max_attempts=self.max_attempts)


@dataclass(frozen=True)
class PlayerIdentity:
    """Display name the player registers with.

    Attributes:
        name: Non-empty display name
    """
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Player name must be a non-empty string")

    @classmethod
    def from_input(cls, text: Optional[str]) -> PlayerIdentity:
        """Build an identity from user input, falling back to the default name."""
        name = (text or "").strip()
        return cls(name=name or DEFAULT_PLAYER_NAME)


# Message types

@dataclass(frozen=True)
class RegisterMessage:
    """One-shot registration sent after every successful connect.

    Attributes:
        player_name: Display name to register
    """
    player_name: str


@dataclass(frozen=True)
class ReadyMessage:
    """Signals the player is ready.

    Attributes:
        player_name: Display name of the ready player
    """
    player_name: str


@dataclass(frozen=True)
class ControlsMessage:
    """Control values derived from one conditioned sample.

    None means the axis is unavailable, which is distinct from 0.0 (centered).
    """
    alpha: Optional[float] = None
    beta: Optional[float] = None
    gamma: Optional[float] = None

    @classmethod
    def from_sample(cls, sample: ConditionedSample) -> ControlsMessage:
        return cls(
            alpha=_finite_or_none(sample.alpha),
            beta=_finite_or_none(sample.beta),
            gamma=_finite_or_none(sample.gamma),
        )


def _finite_or_none(value: Optional[float]) -> Optional[float]:
    # JSON has no NaN/Infinity, so non-finite values go out as "no value"
    if value is None or not math.isfinite(value):
        return None
    return float(value)


# Union type for all outbound messages
Message = Union[
    RegisterMessage,
    ReadyMessage,
    ControlsMessage,
]
