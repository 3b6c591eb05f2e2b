#!/usr/bin/env python3
"""
Tilt Controller Script.

Connects to a game server and streams conditioned orientation from a serial
IMU or a replay file. Type commands while it runs:

    c  calibrate (current orientation becomes zero)
    r  send ready
    s  print connection status
    q  quit
"""

import argparse
import logging
import sys
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tiltpad import ControllerSession, SessionConfig
from tiltpad.config import DEFAULT_ENDPOINT, SAMPLE_PERIOD, SERIAL_BAUD
from tiltpad.orientation import ReplaySensor, SerialOrientationSensor, load_replay_file

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Stream device orientation to a game server.")
    parser.add_argument("--endpoint", default=DEFAULT_ENDPOINT,
                        help="Server host:port or ws:// URI (default: %(default)s)")
    parser.add_argument("--name", default=None, help="Player display name")
    parser.add_argument("--period", type=float, default=SAMPLE_PERIOD,
                        help="Sampling period in seconds (default: %(default)s)")
    sensor = parser.add_mutually_exclusive_group(required=True)
    sensor.add_argument("--serial-port", help="Serial IMU port, e.g. /dev/ttyACM0")
    sensor.add_argument("--replay", type=Path, help="File of recorded orientation frames")
    parser.add_argument("--baud", type=int, default=SERIAL_BAUD,
                        help="Serial baud rate (default: %(default)s)")
    parser.add_argument("--loop", action="store_true", help="Loop the replay file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_sensor(args):
    if args.serial_port:
        return SerialOrientationSensor(port=args.serial_port, baudrate=args.baud)
    return ReplaySensor(load_replay_file(args.replay), loop=args.loop)


def main(argv=None):
    args = parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = SessionConfig(
        endpoint=args.endpoint,
        player_name=args.name,
        sample_period=args.period,
    )

    with ControllerSession(config, build_sensor(args)) as session:
        access = session.start()
        print(f"Player: {session.identity.name} | Orientation: {access.value}")
        print("Commands: [c]alibrate, [r]eady, [s]tatus, [q]uit")

        try:
            for line in sys.stdin:
                command = line.strip().lower()
                if command == "c":
                    session.calibrate()
                elif command == "r":
                    print("Ready sent." if session.ready() else "Not connected, ready dropped.")
                elif command == "s":
                    status = session.connection_status()
                    print(f"State: {status.state.value} | "
                          f"Attempt: {status.attempt}/{status.max_attempts} | "
                          f"Latest: {session.latest_sample}")
                    if status.error:
                        print(f"Last error: {status.error}")
                elif command == "q":
                    break
        except KeyboardInterrupt:
            print("\nInterrupted by user.")

    print("Done.")


if __name__ == "__main__":
    main()
