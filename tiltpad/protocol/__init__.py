"""Protocol layer for game server communication."""

from .base import Protocol
from .json_protocol import JSONProtocol
from .serializer import MessageSerializer, REGISTER_TYPE, READY_TYPE, CONTROLS_TYPE

__all__ = [
    "Protocol",
    "JSONProtocol",
    "MessageSerializer",
    "REGISTER_TYPE",
    "READY_TYPE",
    "CONTROLS_TYPE",
]
