"""Duplex channel layer for server communication."""

from .base import Channel, ChannelEvent, ChannelEventType
from .websocket import WebSocketChannel

__all__ = ["Channel", "ChannelEvent", "ChannelEventType", "WebSocketChannel"]
