"""Unit tests for SerialOrientationSensor."""

import errno
import time
import unittest
from unittest.mock import MagicMock, patch

import serial

from tiltpad.models import AccessResult, OrientationSample
from tiltpad.orientation.serial_sensor import SerialOrientationSensor


def idle_readline():
    time.sleep(0.001)
    return b""


def wait_for_reading(sensor, timeout=1.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        sample = sensor.read()
        if sample is not None:
            return sample
        time.sleep(0.001)
    return None


class TestSerialSensorAccess(unittest.TestCase):
    """Tests for mapping port opening onto access results."""

    @patch('tiltpad.orientation.serial_sensor.serial.Serial')
    def test_granted(self, mock_serial_class):
        mock_serial = MagicMock()
        mock_serial.readline.side_effect = lambda: idle_readline()
        mock_serial_class.return_value = mock_serial

        sensor = SerialOrientationSensor(port="/dev/ttyACM0")
        result = sensor.request_access()

        self.assertEqual(result, AccessResult.GRANTED)
        self.assertTrue(sensor.is_open())
        mock_serial_class.assert_called_once_with(
            port="/dev/ttyACM0",
            baudrate=115_200,
            timeout=0.1,
        )
        mock_serial.reset_input_buffer.assert_called_once()
        sensor.close()

    @patch('tiltpad.orientation.serial_sensor.serial.Serial')
    def test_permission_error_is_denied(self, mock_serial_class):
        mock_serial_class.side_effect = PermissionError(errno.EACCES, "Permission denied")

        sensor = SerialOrientationSensor(port="/dev/ttyACM0")

        self.assertEqual(sensor.request_access(), AccessResult.DENIED)
        self.assertFalse(sensor.is_open())

    @patch('tiltpad.orientation.serial_sensor.serial.Serial')
    def test_eacces_serial_exception_is_denied(self, mock_serial_class):
        mock_serial_class.side_effect = serial.SerialException(
            errno.EACCES, "could not open port: Permission denied"
        )

        sensor = SerialOrientationSensor(port="/dev/ttyACM0")

        self.assertEqual(sensor.request_access(), AccessResult.DENIED)

    @patch('tiltpad.orientation.serial_sensor.serial.Serial')
    def test_missing_port_is_unsupported(self, mock_serial_class):
        mock_serial_class.side_effect = serial.SerialException(
            errno.ENOENT, "could not open port: No such file or directory"
        )

        sensor = SerialOrientationSensor(port="/dev/ttyACM9")

        self.assertEqual(sensor.request_access(), AccessResult.UNSUPPORTED)
        self.assertFalse(sensor.is_open())
        self.assertIsNone(sensor.read())

    @patch('tiltpad.orientation.serial_sensor.serial.Serial')
    def test_busy_port_is_unsupported(self, mock_serial_class):
        """A port held by another process is not a refusal of consent."""
        mock_serial_class.side_effect = serial.SerialException(
            errno.EBUSY, "could not open port: Device or resource busy"
        )

        sensor = SerialOrientationSensor(port="/dev/ttyACM0")

        self.assertEqual(sensor.request_access(), AccessResult.UNSUPPORTED)

    @patch('tiltpad.orientation.serial_sensor.serial.Serial')
    def test_already_open(self, mock_serial_class):
        mock_serial = MagicMock()
        mock_serial.readline.side_effect = lambda: idle_readline()
        mock_serial_class.return_value = mock_serial

        sensor = SerialOrientationSensor(port="/dev/ttyACM0")
        sensor.request_access()
        self.assertEqual(sensor.request_access(), AccessResult.GRANTED)

        mock_serial_class.assert_called_once()
        sensor.close()


class TestSerialSensorReading(unittest.TestCase):
    """Tests for the reader thread and freshest-reading semantics."""

    def make_sensor(self, mock_serial_class, lines):
        pending = list(lines)

        def readline():
            if pending:
                return pending.pop(0)
            return idle_readline()

        mock_serial = MagicMock()
        mock_serial.readline.side_effect = readline
        mock_serial_class.return_value = mock_serial

        sensor = SerialOrientationSensor(port="/dev/ttyACM0")
        sensor.request_access()
        return sensor, mock_serial

    @patch('tiltpad.orientation.serial_sensor.serial.Serial')
    def test_read_returns_fresh_reading_once(self, mock_serial_class):
        sensor, _ = self.make_sensor(mock_serial_class, [b"ORIENT 12.0,-3.5,0.25\n"])

        sample = wait_for_reading(sensor)

        self.assertEqual(sample, OrientationSample(12.0, -3.5, 0.25))
        self.assertIsNone(sensor.read())
        sensor.close()

    @patch('tiltpad.orientation.serial_sensor.serial.Serial')
    def test_keeps_only_latest(self, mock_serial_class):
        sensor, mock_serial = self.make_sensor(mock_serial_class, [
            b"ORIENT 1,1,1\n",
            b"garbage\n",
            b"ORIENT 2,,2\n",
        ])

        deadline = time.monotonic() + 1.0
        while mock_serial.readline.call_count < 4 and time.monotonic() < deadline:
            time.sleep(0.001)

        self.assertEqual(sensor.read(), OrientationSample(2.0, None, 2.0))
        sensor.close()

    @patch('tiltpad.orientation.serial_sensor.serial.Serial')
    def test_close_stops_reader(self, mock_serial_class):
        sensor, mock_serial = self.make_sensor(mock_serial_class, [])
        thread = sensor._reader_thread

        sensor.close()

        self.assertFalse(thread.is_alive())
        self.assertFalse(sensor.is_open())
        mock_serial.close.assert_called_once()

        # Safe to call again
        sensor.close()

    @patch('tiltpad.orientation.serial_sensor.serial.Serial')
    def test_read_error_closes_port(self, mock_serial_class):
        mock_serial = MagicMock()
        mock_serial.readline.side_effect = serial.SerialException("device disconnected")
        mock_serial_class.return_value = mock_serial

        sensor = SerialOrientationSensor(port="/dev/ttyACM0")
        sensor.request_access()
        sensor._reader_thread.join(timeout=1.0)

        self.assertFalse(sensor.is_open())
        self.assertIsNone(sensor._serial)
        self.assertIsNone(sensor.read())
        mock_serial.close.assert_called_once()


if __name__ == '__main__':
    unittest.main()
