"""Message serializer for the game server protocol.

Converts message objects to protocol payloads.
Pure functions with no side effects.
"""
from __future__ import annotations

from typing import Any, Dict

from ..models import (
    ControlsMessage,
    Message,
    ReadyMessage,
    RegisterMessage,
)

REGISTER_TYPE = "registerPlayer"
READY_TYPE = "ready"
CONTROLS_TYPE = "controls"


class MessageSerializer:
    """Serializer for the game server message protocol.

    Every message is an envelope ``{"type": <tag>, "value": <payload>}``.
    """

    @staticmethod
    def to_payload(message: Message) -> Dict[str, Any]:
        """Convert a message object to its protocol envelope.

        Args:
            message: Message object to serialize

        Returns:
            JSON-compatible dict

        Examples:
            >>> MessageSerializer.to_payload(ReadyMessage(player_name="Ada"))
            {'type': 'ready', 'value': {'playerName': 'Ada'}}
        """
        if isinstance(message, RegisterMessage):
            return MessageSerializer._envelope(
                REGISTER_TYPE, {"playerName": message.player_name}
            )
        elif isinstance(message, ReadyMessage):
            return MessageSerializer._envelope(
                READY_TYPE, {"playerName": message.player_name}
            )
        elif isinstance(message, ControlsMessage):
            return MessageSerializer._serialize_controls(message)
        else:
            raise ValueError(f"Unknown message type: {type(message)}")

    @staticmethod
    def _serialize_controls(msg: ControlsMessage) -> Dict[str, Any]:
        """Serialize ControlsMessage.

        Absent axes stay None (JSON null), never 0.
        """
        return MessageSerializer._envelope(
            CONTROLS_TYPE,
            {"alpha": msg.alpha, "beta": msg.beta, "gamma": msg.gamma},
        )

    @staticmethod
    def _envelope(message_type: str, value: Dict[str, Any]) -> Dict[str, Any]:
        return {"type": message_type, "value": value}
