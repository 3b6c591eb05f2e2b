"""Unit tests for WebSocketChannel."""

import threading
import unittest
from unittest.mock import MagicMock, patch

from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK, InvalidURI

from tiltpad.channel import ChannelEventType, WebSocketChannel
from tiltpad.errors import ChannelConnectionError

ENDPOINT = "ws://localhost:8080"


class EventRecorder:
    """Collects channel events and signals once a given kind arrives."""

    def __init__(self, until):
        self.events = []
        self.done = threading.Event()
        self._until = until

    def __call__(self, event):
        self.events.append(event)
        if event.kind in self._until:
            self.done.set()

    @property
    def kinds(self):
        return [e.kind for e in self.events]


def frames_then(frames, error=None, gate=None):
    """Build an iterator for a mocked connection's inbound frames."""
    def generate():
        for frame in frames:
            yield frame
        if gate is not None:
            gate.wait(timeout=2.0)
        if error is not None:
            raise error
    return generate()


class TestWebSocketChannelOpen(unittest.TestCase):

    @patch('tiltpad.channel.websocket.connect')
    def test_connect_failure_is_error_event(self, mock_connect):
        mock_connect.side_effect = ConnectionRefusedError(111, "Connection refused")
        channel = WebSocketChannel(ENDPOINT)
        recorder = EventRecorder(until={ChannelEventType.ERROR})
        channel.subscribe_events(recorder)

        channel.open()

        self.assertTrue(recorder.done.wait(timeout=2.0))
        self.assertEqual(recorder.kinds, [ChannelEventType.ERROR])
        error = recorder.events[0].error
        self.assertIsInstance(error, ChannelConnectionError)
        self.assertEqual(error.endpoint, ENDPOINT)
        self.assertIsInstance(error.cause, ConnectionRefusedError)
        self.assertFalse(channel.is_open())
        channel.close()

    @patch('tiltpad.channel.websocket.connect')
    def test_handshake_failure_is_error_event(self, mock_connect):
        mock_connect.side_effect = InvalidURI(ENDPOINT, "bad uri")
        channel = WebSocketChannel(ENDPOINT)
        recorder = EventRecorder(until={ChannelEventType.ERROR})
        channel.subscribe_events(recorder)

        channel.open()

        self.assertTrue(recorder.done.wait(timeout=2.0))
        self.assertEqual(recorder.kinds, [ChannelEventType.ERROR])
        channel.close()

    @patch('tiltpad.channel.websocket.connect')
    def test_connect_arguments(self, mock_connect):
        mock_ws = MagicMock()
        mock_ws.__iter__.return_value = frames_then([])
        mock_connect.return_value = mock_ws
        channel = WebSocketChannel(ENDPOINT, open_timeout=3.0, close_timeout=0.5)
        recorder = EventRecorder(until={ChannelEventType.CLOSED})
        channel.subscribe_events(recorder)

        channel.open()

        self.assertTrue(recorder.done.wait(timeout=2.0))
        mock_connect.assert_called_once_with(ENDPOINT, open_timeout=3.0, close_timeout=0.5)
        channel.close()


class TestWebSocketChannelEvents(unittest.TestCase):

    @patch('tiltpad.channel.websocket.connect')
    def test_open_messages_then_clean_close(self, mock_connect):
        mock_ws = MagicMock()
        mock_ws.__iter__.return_value = frames_then(['{"type":"a"}', b'{"type":"b"}'])
        mock_connect.return_value = mock_ws
        channel = WebSocketChannel(ENDPOINT)
        recorder = EventRecorder(until={ChannelEventType.CLOSED, ChannelEventType.ERROR})
        channel.subscribe_events(recorder)

        channel.open()

        self.assertTrue(recorder.done.wait(timeout=2.0))
        self.assertEqual(recorder.kinds, [
            ChannelEventType.OPENED,
            ChannelEventType.MESSAGE,
            ChannelEventType.MESSAGE,
            ChannelEventType.CLOSED,
        ])
        self.assertEqual(recorder.events[1].data, '{"type":"a"}')
        self.assertEqual(recorder.events[2].data, '{"type":"b"}')
        channel.close()

    @patch('tiltpad.channel.websocket.connect')
    def test_close_ok_is_closed_event(self, mock_connect):
        mock_ws = MagicMock()
        mock_ws.__iter__.return_value = frames_then([], error=ConnectionClosedOK(None, None))
        mock_connect.return_value = mock_ws
        channel = WebSocketChannel(ENDPOINT)
        recorder = EventRecorder(until={ChannelEventType.CLOSED, ChannelEventType.ERROR})
        channel.subscribe_events(recorder)

        channel.open()

        self.assertTrue(recorder.done.wait(timeout=2.0))
        self.assertEqual(recorder.kinds[-1], ChannelEventType.CLOSED)
        channel.close()

    @patch('tiltpad.channel.websocket.connect')
    def test_abnormal_close_is_error_event(self, mock_connect):
        mock_ws = MagicMock()
        mock_ws.__iter__.return_value = frames_then([], error=ConnectionClosedError(None, None))
        mock_connect.return_value = mock_ws
        channel = WebSocketChannel(ENDPOINT)
        recorder = EventRecorder(until={ChannelEventType.CLOSED, ChannelEventType.ERROR})
        channel.subscribe_events(recorder)

        channel.open()

        self.assertTrue(recorder.done.wait(timeout=2.0))
        self.assertEqual(recorder.kinds, [ChannelEventType.OPENED, ChannelEventType.ERROR])
        self.assertIsInstance(recorder.events[-1].error, ChannelConnectionError)
        self.assertFalse(channel.is_open())
        channel.close()

    @patch('tiltpad.channel.websocket.connect')
    def test_subscriber_errors_are_contained(self, mock_connect):
        mock_ws = MagicMock()
        mock_ws.__iter__.return_value = frames_then(['{"type":"a"}'])
        mock_connect.return_value = mock_ws
        channel = WebSocketChannel(ENDPOINT)

        def broken(event):
            raise RuntimeError("subscriber bug")

        recorder = EventRecorder(until={ChannelEventType.CLOSED})
        channel.subscribe_events(broken)
        channel.subscribe_events(recorder)

        channel.open()

        self.assertTrue(recorder.done.wait(timeout=2.0))
        self.assertEqual(len(recorder.events), 3)
        channel.close()


class TestWebSocketChannelSendClose(unittest.TestCase):

    def open_channel(self, mock_connect):
        gate = threading.Event()
        mock_ws = MagicMock()
        mock_ws.__iter__.return_value = frames_then([], gate=gate)
        # Closing a live connection ends its frame iterator
        mock_ws.close.side_effect = lambda: gate.set()
        mock_connect.return_value = mock_ws

        channel = WebSocketChannel(ENDPOINT, close_timeout=1.0)
        recorder = EventRecorder(until={ChannelEventType.OPENED})
        channel.subscribe_events(recorder)
        channel.open()
        self.assertTrue(recorder.done.wait(timeout=2.0))
        return channel, mock_ws, gate, recorder

    @patch('tiltpad.channel.websocket.connect')
    def test_send_while_open(self, mock_connect):
        channel, mock_ws, gate, _ = self.open_channel(mock_connect)

        self.assertTrue(channel.is_open())
        self.assertTrue(channel.send('{"type":"ready"}'))
        mock_ws.send.assert_called_once_with('{"type":"ready"}')

        gate.set()
        channel.close()

    @patch('tiltpad.channel.websocket.connect')
    def test_send_failure_returns_false(self, mock_connect):
        channel, mock_ws, gate, _ = self.open_channel(mock_connect)
        mock_ws.send.side_effect = ConnectionClosedError(None, None)

        self.assertFalse(channel.send("frame"))

        gate.set()
        channel.close()

    @patch('tiltpad.channel.websocket.connect')
    def test_close_suppresses_events(self, mock_connect):
        channel, mock_ws, gate, recorder = self.open_channel(mock_connect)

        channel.close()
        channel._worker.join(timeout=2.0)

        self.assertEqual(recorder.kinds, [ChannelEventType.OPENED])
        self.assertFalse(channel.is_open())
        self.assertFalse(channel.send("late frame"))
        mock_ws.close.assert_called_once()

    def test_send_before_open(self):
        channel = WebSocketChannel(ENDPOINT)
        self.assertFalse(channel.send("frame"))
        self.assertFalse(channel.is_open())

    @patch('tiltpad.channel.websocket.connect')
    def test_not_reopenable(self, mock_connect):
        channel = WebSocketChannel(ENDPOINT)
        channel.close()

        channel.open()

        mock_connect.assert_not_called()

    def test_close_is_idempotent(self):
        channel = WebSocketChannel(ENDPOINT)
        channel.close()
        channel.close()


if __name__ == '__main__':
    unittest.main()
