"""JSON text-frame protocol implementation."""
from __future__ import annotations

import json

from ..models import Message
from .base import Protocol
from .serializer import MessageSerializer


class JSONProtocol(Protocol):
    """One JSON object per text frame.

    Uses:
    - {"type": "registerPlayer", "value": {"playerName": ...}}
    - {"type": "ready", "value": {"playerName": ...}}
    - {"type": "controls", "value": {"alpha": ..., "beta": ..., "gamma": ...}}
    """

    def __init__(self):
        self._serializer = MessageSerializer()

    def serialize_message(self, message: Message) -> str:
        """Serialize message to a compact JSON frame."""
        payload = self._serializer.to_payload(message)
        return json.dumps(payload, separators=(",", ":"), allow_nan=False)

    @property
    def name(self) -> str:
        return "json"
