"""Connection status snapshots."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from ..config import MAX_RETRIES
from ..models import ConnectionState


@dataclass(frozen=True)
class ConnectionStatus:
    """Point-in-time view of the connection lifecycle.

    Attributes:
        timestamp: Local timestamp when the snapshot was taken
        state: Connection state
        attempt: Failed attempts since the last success or explicit connect
        max_attempts: Retry budget limit
        endpoint: Server URI, None before the first connect
        error: Most recent failure (ChannelConnectionError or
            ExhaustedRetriesError), None after a success
    """
    timestamp: float
    state: ConnectionState
    attempt: int
    max_attempts: int
    endpoint: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def retries_remaining(self) -> int:
        if self.state is ConnectionState.FAILED:
            return 0
        return max(self.max_attempts - self.attempt, 0)

    @classmethod
    def disconnected(cls,
                     max_attempts: int = MAX_RETRIES,
                     timestamp: Optional[float] = None) -> ConnectionStatus:
        """Create a status representing the initial disconnected state."""
        if timestamp is None:
            timestamp = time.time()

        return cls(
            timestamp=timestamp,
            state=ConnectionState.DISCONNECTED,
            attempt=0,
            max_attempts=max_attempts,
        )
