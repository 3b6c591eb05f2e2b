"""Connection layer: lifecycle, retry policy and registration handshake."""

from .manager import ConnectionManager
from .status import ConnectionStatus

__all__ = ["ConnectionManager", "ConnectionStatus"]
