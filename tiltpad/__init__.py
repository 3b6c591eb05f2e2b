"""Tiltpad - turn a device's orientation into a networked game controller."""

from .config import SessionConfig
from .models import (
    OrientationSample,
    Baseline,
    ConditionedSample,
    ConnectionState,
    AccessResult,
    RetryBudget,
    PlayerIdentity,
    RegisterMessage,
    ReadyMessage,
    ControlsMessage,
    Message,
)
from .errors import (
    TiltpadError,
    SensorAccessError,
    PermissionDeniedError,
    UnsupportedPlatformError,
    ChannelConnectionError,
    ExhaustedRetriesError,
)
from .conditioning import SignalConditioner
from .connection import ConnectionManager, ConnectionStatus
from .publisher import ControlPublisher
from .session import ControllerSession

__all__ = [
    "SessionConfig",
    "OrientationSample",
    "Baseline",
    "ConditionedSample",
    "ConnectionState",
    "AccessResult",
    "RetryBudget",
    "PlayerIdentity",
    "RegisterMessage",
    "ReadyMessage",
    "ControlsMessage",
    "Message",
    "TiltpadError",
    "SensorAccessError",
    "PermissionDeniedError",
    "UnsupportedPlatformError",
    "ChannelConnectionError",
    "ExhaustedRetriesError",
    "SignalConditioner",
    "ConnectionManager",
    "ConnectionStatus",
    "ControlPublisher",
    "ControllerSession",
]
