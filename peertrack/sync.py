"""Replication of tracker state between peer trackers and health checking."""

from __future__ import annotations

import logging
import re
import socket
import threading
from dataclasses import dataclass

from peertrack.model import tokenize

logger = logging.getLogger(__name__)

SYNC_PORT_OFFSET = 1000
_READ_LIMIT = 1023
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class TrackerAddress:
    """Host and client port of one tracker."""

    host: str
    port: int

    def sync_port(self):
        """Port on which the tracker accepts sync messages."""
        return self.port + SYNC_PORT_OFFSET


def _leading_int(text):
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"invalid port: {text!r}")
    return int(match.group(1))


def parse_tracker_lines(lines):
    """Parse ``host:port`` lines; lines without a colon are skipped."""
    trackers = []
    for line in lines:
        host, sep, rest = line.partition(":")
        if sep:
            trackers.append(TrackerAddress(host, _leading_int(rest)))
    return trackers


def parse_tracker_file(path):
    """Read tracker addresses from a file of ``host:port`` lines."""
    with open(path, encoding="utf-8") as handle:
        return parse_tracker_lines(line.rstrip("\n") for line in handle)


def encode_sync_message(operation, data):
    return f"{operation}|{data}"


def decode_sync_message(message):
    """Split a sync message into ``(operation, data)``; raise ValueError if malformed."""
    operation, sep, data = message.partition("|")
    if not sep:
        raise ValueError(f"malformed sync message: {message!r}")
    return operation, data


def contains_primary(active, trackers):
    """Whether the designated primary (the first tracker) is among ``active``."""
    if not trackers:
        return False
    primary_port = trackers[0].port
    return any(tracker.port == primary_port for tracker in active)


class Synchronizer:
    """Sends, receives and applies state changes for one tracker."""

    def __init__(self, registry, trackers, index):
        self.registry = registry
        self.trackers = list(trackers)
        self.current = self.trackers[index]
        self.is_primary = index == 0
        self.active: list[TrackerAddress] = []
        self.listening = threading.Event()

    def send(self, tracker, message):
        """Deliver one message to a peer; return whether it was delivered."""
        try:
            with socket.create_connection((tracker.host, tracker.sync_port())) as conn:
                conn.sendall(message.encode("utf-8"))
        except OSError as exc:
            logger.warning("sync to %s:%d failed: %s", tracker.host, tracker.port, exc)
            return False
        return True

    def broadcast(self, operation, data):
        """Send a change to every other tracker if this one is primary.

        Returns the trackers that received it.
        """
        if not self.is_primary:
            return []
        message = encode_sync_message(operation, data)
        logger.info("[SYNC OUT] %s", message)
        return [
            tracker
            for tracker in self.trackers
            if tracker.port != self.current.port and self.send(tracker, message)
        ]

    def apply(self, operation, data):
        """Apply a replicated change to the registry; return whether it took effect."""
        tokens = tokenize(data)
        registry = self.registry
        applied = False
        with registry.lock:
            if operation == "CREATE_USER":
                if len(tokens) >= 2 and not registry.is_user(tokens[0]):
                    registry.create_user(tokens[0], tokens[1])
                    applied = True
            elif operation == "LOGIN":
                if tokens and registry.is_user(tokens[0]):
                    registry.logged_in[tokens[0]] = registry.users[tokens[0]]
                    applied = True
            elif operation in ("CREATE_GROUP", "JOIN_GROUP", "LEAVE_GROUP"):
                if len(tokens) >= 2 and registry.is_user(tokens[1]):
                    group_id, user_id = tokens[0], tokens[1]
                    if operation == "CREATE_GROUP":
                        registry.create_group(group_id, user_id)
                        applied = True
                    elif registry.is_group(group_id):
                        group = registry.groups[group_id]
                        if operation == "JOIN_GROUP":
                            group.add_request(registry.users[user_id])
                        else:
                            group.remove_member(user_id)
                        applied = True
            elif operation == "ACCEPT_REQUEST":
                if len(tokens) >= 2 and registry.is_group(tokens[0]):
                    applied = registry.groups[tokens[0]].accept_request(tokens[1])
        logger.info("[SYNC IN] %s %s", operation, data)
        return applied

    def handle_message(self, message):
        """Decode and apply one raw sync message; malformed ones are ignored."""
        try:
            operation, data = decode_sync_message(message)
        except ValueError:
            return False
        return self.apply(operation, data)

    def serve(self, stop_event=None):
        """Accept sync messages on this tracker's sync port until stopped."""
        stop_event = stop_event or threading.Event()
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
            server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server.bind(("", self.current.sync_port()))
            server.listen(5)
            server.settimeout(0.2)
            self.listening.set()
            try:
                while not stop_event.is_set():
                    try:
                        conn, _ = server.accept()
                    except socket.timeout:
                        continue
                    except OSError:
                        continue
                    with conn:
                        conn.settimeout(2.0)
                        try:
                            payload = conn.recv(_READ_LIMIT)
                        except OSError:
                            continue
                        if payload:
                            self.handle_message(payload.decode("utf-8", errors="replace"))
            finally:
                self.listening.clear()

    def probe(self, tracker, timeout):
        """Whether the tracker's sync port accepts a connection within ``timeout``."""
        try:
            with socket.create_connection((tracker.host, tracker.sync_port()), timeout=timeout):
                return True
        except OSError:
            return False

    def check_health(self):
        """Refresh the list of reachable peers and promote this tracker if needed."""
        self.active = [
            tracker
            for tracker in self.trackers
            if tracker != self.current and self.probe(tracker, 2.0)
        ]
        if not self.is_primary and (
            not self.active or not contains_primary(self.active, self.trackers)
        ):
            self.is_primary = True
            logger.warning("Promoted to Primary Tracker")
        return self.active

    def run_health_checks(self, interval=10.0, stop_event=None):
        """Run ``check_health`` every ``interval`` seconds until stopped."""
        stop_event = stop_event or threading.Event()
        while not stop_event.wait(interval):
            self.check_health()