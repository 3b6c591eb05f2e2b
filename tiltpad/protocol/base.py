"""Abstract base class for server communication protocols.

Defines the interface for serializing outbound messages.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import Message


class Protocol(ABC):
    """Abstract protocol for server communication.

    The client only talks; frames from the server are not interpreted.
    """

    @abstractmethod
    def serialize_message(self, message: Message) -> str:
        """Serialize message into a text frame.

        Args:
            message: Message object to serialize

        Returns:
            Text frame ready to send over the channel
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Protocol identifier (e.g., 'json')."""
        pass
