"""Session configuration.

Module-level constants hold the defaults; SessionConfig bundles them for one
controller session.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_ENDPOINT = "localhost:8080"
DEFAULT_PLAYER_NAME = "Player"

SAMPLE_PERIOD = 0.05  # seconds (20 Hz)
SMOOTHING_FACTOR = 0.1  # smaller = smoother, more latency

MAX_RETRIES = 5
RETRY_DELAY = 2.0  # seconds

SERIAL_BAUD = 115_200
SERIAL_TIMEOUT = 0.1  # seconds

WEBSOCKET_OPEN_TIMEOUT = 10.0  # seconds
WEBSOCKET_CLOSE_TIMEOUT = 1.0  # seconds


def normalize_endpoint(endpoint: str) -> str:
    """Turn a host:port address into a WebSocket URI.

    Args:
        endpoint: 'host:port', 'ws://host:port' or 'wss://host:port'

    Returns:
        URI with an explicit ws:// or wss:// scheme

    Raises:
        ValueError: If endpoint is empty or uses another scheme
    """
    endpoint = (endpoint or "").strip()
    if not endpoint:
        raise ValueError("Endpoint must not be empty")

    if "://" in endpoint:
        scheme = endpoint.split("://", 1)[0].lower()
        if scheme not in ("ws", "wss"):
            raise ValueError(f"Unsupported endpoint scheme: {scheme}")
        return endpoint

    return f"ws://{endpoint}"


@dataclass(frozen=True)
class SessionConfig:
    """Settings for one controller session.

    Attributes:
        endpoint: Server address, 'host:port' or a ws:// / wss:// URI
        player_name: Display name; blank falls back to DEFAULT_PLAYER_NAME
        sample_period: Seconds between orientation samples
        smoothing_factor: Exponential smoothing factor, in (0, 1)
        max_retries: Failed attempts before giving up
        retry_delay: Seconds between reconnection attempts
    """
    endpoint: str = DEFAULT_ENDPOINT
    player_name: Optional[str] = None
    sample_period: float = SAMPLE_PERIOD
    smoothing_factor: float = SMOOTHING_FACTOR
    max_retries: int = MAX_RETRIES
    retry_delay: float = RETRY_DELAY

    def __post_init__(self):
        normalize_endpoint(self.endpoint)
        if self.sample_period <= 0:
            raise ValueError(f"sample_period must be positive, got {self.sample_period}")
        if not 0.0 < self.smoothing_factor < 1.0:
            raise ValueError(
                f"smoothing_factor must be in (0, 1), got {self.smoothing_factor}"
            )
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {self.retry_delay}")

    @property
    def endpoint_uri(self) -> str:
        return normalize_endpoint(self.endpoint)

    @property
    def identity(self):
        from .models import PlayerIdentity
        return PlayerIdentity.from_input(self.player_name)
