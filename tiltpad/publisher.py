"""Control publisher: conditioned samples out to the server."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .models import ConditionedSample, ControlsMessage

if TYPE_CHECKING:
    from .connection import ConnectionManager

logger = logging.getLogger(__name__)


class ControlPublisher:
    """Packages each conditioned sample as a controls message.

    Stateless beyond forwarding: no buffering, coalescing or rate limiting.
    The sampling period alone sets the message rate.
    """

    def __init__(self, connection: ConnectionManager):
        self._connection = connection

    def publish(self, sample: ConditionedSample) -> bool:
        """Forward one sample.

        Returns:
            True if the message was handed to the channel, False if dropped
        """
        message = ControlsMessage.from_sample(sample)
        sent = self._connection.send_controls(message)
        if not sent:
            logger.debug("Controls dropped (not connected)")
        return sent

    __call__ = publish
