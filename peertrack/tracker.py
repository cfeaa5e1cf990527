"""Tracker server: client command handling, operator console and entry point."""

from __future__ import annotations

import logging
import socket
import sys
import threading

from peertrack.colors import BOLD, GREEN, RED, colorize
from peertrack.model import Registry, tokenize
from peertrack.sync import Synchronizer, parse_tracker_file

logger = logging.getLogger(__name__)

_READ_SIZE = 255

INVALID_COMMAND = (
    "Invalid Command ... \nValid Commands :\n"
    "1. create_user <userid> <password>\n"
    "2. login <userid> <password>"
)


def _announce(text):
    print(colorize(text, BOLD, GREEN))


def _complain(text):
    print(colorize(text, BOLD, RED), file=sys.stderr)


class TrackerSession:
    """State of one connected client and the commands it may issue."""

    def __init__(self, registry, synchronizer):
        self.registry = registry
        self.synchronizer = synchronizer
        self.client_name = ""

    def handle(self, line):
        """Run one command line and return the replies to send, one per message."""
        tokens = tokenize(line)
        command = tokens[0] if tokens else ""
        handler = self._handlers().get(command)
        if handler is None:
            return [INVALID_COMMAND]
        with self.registry.lock:
            return handler(tokens)

    def _handlers(self):
        return {
            "create_user": self._create_user,
            "login": self._login,
            "create_group": self._create_group,
            "join_group": self._join_group,
            "leave_group": self._leave_group,
            "list_groups": self._list_groups,
            "list_requests": self._list_requests,
            "accept_request": self._accept_request,
            "whoami": self._whoami,
        }

    def _create_user(self, tokens):
        if len(tokens) != 3:
            return ["Usage : create_user <user_name> <password>"]
        _, user_id, password = tokens
        if self.registry.is_user(user_id):
            return ["UserID already exists"]
        self.registry.create_user(user_id, password)
        print("user created")
        self.synchronizer.broadcast("CREATE_USER", f"{user_id} {password}")
        return ["User created successfully"]

    def _login(self, tokens):
        if len(tokens) != 3:
            return ["Usage : login <user_name> <password>"]
        _, user_id, password = tokens
        if not self.registry.is_user(user_id):
            return ["UserID doesnt exist"]
        user = self.registry.users[user_id]
        replies = []
        if user.password != password:
            replies.append("Password is incorrect")
        self.registry.logged_in[user_id] = user
        self.client_name = user_id
        self.synchronizer.broadcast("LOGIN", f"{user_id} {password}")
        _announce(f"Login successful !{user_id}")
        replies.append("Login successful")
        return replies

    def _create_group(self, tokens):
        if len(tokens) != 2:
            _complain("Usage : create_group <group_id>")
            return []
        if not self.client_name:
            return ["No user is Logged In !"]
        group_id = tokens[1]
        self.registry.create_group(group_id, self.client_name)
        self.synchronizer.broadcast("CREATE_GROUP", f"{group_id} {self.client_name}")
        _announce(f"Group Created successfully with - groupId {group_id}")
        return ["Group Created Successfully !"]

    def _join_group(self, tokens):
        if len(tokens) != 2:
            _complain("Usage : join_group <group_id>")
            return []
        if not self.client_name:
            _complain("No user is logged-in")
            return []
        group_id = tokens[1]
        if not self.registry.is_group(group_id):
            return ["Group doesnt exist"]
        group = self.registry.groups[group_id]
        if group.has_member(self.client_name):
            return ["User already exists in the group !"]
        group.add_request(self.registry.users[self.client_name])
        self.synchronizer.broadcast("JOIN_GROUP", f"{group_id} {self.client_name}")
        _announce(f"{self.client_name} requested to join {group_id}")
        return ["Successfully Requested ! "]

    def _leave_group(self, tokens):
        if len(tokens) != 2:
            return ["Usage : leave_group <group_id>"]
        if not self.client_name:
            return ["No user is logged in !"]
        group_id = tokens[1]
        if not self.registry.is_group(group_id):
            return ["Group doesnt exist"]
        self.registry.groups[group_id].remove_member(self.client_name)
        self.synchronizer.broadcast("LEAVE_GROUP", f"{group_id} {self.client_name}")
        _announce(f"{self.client_name}successfully Removed from group{group_id}")
        return ["Successfully Removed from Group !"]

    def _list_groups(self, tokens):
        if not self.registry.groups:
            return ["No Groups Exists !"]
        return ["".join(f"{group_id}\n" for group_id in self.registry.groups)]

    def _list_requests(self, tokens):
        if not self.registry.is_group_owner(self.client_name):
            return ["This is a priviledged command & You are not a Group Owner"]
        if len(tokens) != 2:
            return ["Usage : list_requests <group_id>"]
        group_id = tokens[1]
        if not self.registry.is_group(group_id):
            return ["Group doesnt exist"]
        return self.registry.groups[group_id].pending_requests()

    def _accept_request(self, tokens):
        if len(tokens) != 3:
            return ["Usage : accept_request <groupid> <userid>"]
        _, group_id, user_id = tokens
        if not self.registry.is_group(group_id):
            return ["Group Id doesnt exist !"]
        if not self.registry.is_user(user_id):
            return ["User does not exist"]
        if not self.registry.is_group_owner(self.client_name):
            return ["This is a priviledged instruction - You are not an owner."]
        self.registry.groups[group_id].accept_request(user_id)
        self.synchronizer.broadcast("ACCEPT_REQUEST", f"{group_id} {user_id}")
        return ["Request Accepted"]

    def _whoami(self, tokens):
        if not self.client_name:
            return ["LOGIN NAME NOT REGISTERED !", ""]
        return [self.client_name]


def console_command(registry, command):
    """Run one operator console command and return its output lines."""
    tokens = tokenize(command)
    if not tokens:
        return []
    name = tokens[0]
    with registry.lock:
        if name == "list_users":
            return list(registry.users)
        if name == "user_count":
            return [str(len(registry.users))]
        if name == "list_loggedin_users":
            return list(registry.logged_in)
        if name == "loggedin_user_count":
            return [str(len(registry.logged_in))]
        if name == "list_groups":
            return list(registry.groups)
        if name == "list_group_details":
            return [f"{group_id} {group.member_count()}" for group_id, group in registry.groups.items()]
    return []


def run_console(registry, stream, out):
    """Read whitespace-separated console commands from ``stream`` until it ends."""
    print("Tracker console started. Type 'help' for commands.", file=out)
    for line in stream:
        for word in line.split():
            for output in console_command(registry, word):
                print(output, file=out)


def serve_client(conn, registry, synchronizer):
    """Answer one client's commands until it disconnects."""
    session = TrackerSession(registry, synchronizer)
    with conn:
        while True:
            try:
                data = conn.recv(_READ_SIZE)
            except OSError as exc:
                logger.error("read: %s", exc)
                return
            if not data:
                return
            for reply in session.handle(data.decode("utf-8", errors="replace")):
                try:
                    conn.sendall((reply + "\n").encode("utf-8"))
                except OSError as exc:
                    logger.error("write: %s", exc)
                    return


def main(argv=None):
    """Start a tracker: ``<tracker_info_file> <tracker_no>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 2:
        _complain("Usage: tracker <tracker_info_file> <tracker_no>")
        return 1
    info_file, number = args
    try:
        index = int(number)
        trackers = parse_tracker_file(info_file)
        trackers[index]
    except (ValueError, OSError, IndexError) as exc:
        _complain(f"Cannot start tracker: {exc}")
        return 1
    if index < 0:
        _complain("Cannot start tracker: tracker number must not be negative")
        return 1

    registry = Registry()
    synchronizer = Synchronizer(registry, trackers, index)
    threading.Thread(target=synchronizer.serve, daemon=True).start()
    threading.Thread(target=synchronizer.run_health_checks, daemon=True).start()

    port = synchronizer.current.port
    try:
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(("", port))
    except OSError as exc:
        _complain(f"bind: {exc}")
        return 1

    with server:
        server.listen(5)
        print(f"Tracker Listening on Port No : {port}")
        threading.Thread(
            target=run_console, args=(registry, sys.stdin, sys.stdout), daemon=True
        ).start()
        try:
            while True:
                print("Tracker is running, waiting for requests ... ")
                try:
                    conn, (address, _) = server.accept()
                except OSError as exc:
                    _complain(f"accept: {exc}")
                    return 1
                print(f"Accepted Client with IP : {address}")
                threading.Thread(
                    target=serve_client, args=(conn, registry, synchronizer), daemon=True
                ).start()
        except KeyboardInterrupt:
            return 0


if __name__ == "__main__":
    sys.exit(main())