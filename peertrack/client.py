"""Interactive client that relays typed commands to the first reachable tracker."""

from __future__ import annotations

import ipaddress
import re
import socket
import sys

from peertrack.colors import BOLD, GREEN, RED, colorize
from peertrack.sync import parse_tracker_file

_READ_SIZE = 255
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _announce(text):
    print(colorize(text, BOLD, GREEN))


def _complain(text):
    print(colorize(text, BOLD, RED), file=sys.stderr)


def parse_ip_port(text):
    """Split ``ip:port`` into ``(ip, port)``; raise ValueError if malformed."""
    host, sep, rest = text.partition(":")
    if not sep:
        raise ValueError(f"Invalid ip:port format -> {text}")
    match = _LEADING_INT.match(rest)
    if match is None:
        raise ValueError(f"Invalid port in -> {text}")
    return host, int(match.group(1))


def talk(sock, stdin, stdout):
    """Send each line of ``stdin`` and echo the reply until input ends.

    Returns the number of completed exchanges. Raises ConnectionError if the
    peer closes the connection, and OSError on other socket failures.
    """
    exchanged = 0
    for line in iter(stdin.readline, ""):
        sock.sendall(line.encode("utf-8"))
        data = sock.recv(_READ_SIZE)
        if not data:
            raise ConnectionError("tracker closed the connection")
        stdout.write(f"Server : {data.decode('utf-8', errors='replace')}")
        stdout.flush()
        exchanged += 1
    return exchanged


def main(argv=None):
    """Start the client: ``<client_ip:port> <tracker_info_file>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 2:
        _complain("Usage: client client_ip:port tracker_info.txt")
        return 1
    try:
        host, port = parse_ip_port(args[0])
    except ValueError as exc:
        _complain(str(exc))
        return 1
    _announce(f"Client running with IP {host} and port {port}")

    try:
        trackers = parse_tracker_file(args[1])
    except (OSError, ValueError) as exc:
        _complain(f"Cannot read tracker info: {exc}")
        return 1
    for tracker in trackers:
        print(f"{tracker.host} {tracker.port}")

    for tracker in trackers:
        _announce(f"Trying tracker {tracker.host}:{tracker.port}")
        try:
            ipaddress.IPv4Address(tracker.host)
        except ValueError:
            _complain("Invalid address/ Address not supported")
            continue
        try:
            sock = socket.create_connection((tracker.host, tracker.port))
        except OSError as exc:
            _complain(f"connect: {exc}")
            continue
        with sock:
            _announce(f"Connected to tracker {tracker.host}:{tracker.port}")
            try:
                talk(sock, sys.stdin, sys.stdout)
            except OSError as exc:
                _complain(f"connection lost: {exc}")
                continue
            return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())