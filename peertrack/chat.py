"""Minimal one-to-one line chat over TCP, as a server or a client."""

from __future__ import annotations

import socket
import sys

_READ_SIZE = 255


def is_farewell(text):
    """Whether a message ends the conversation."""
    return text.startswith("bye")


def serve(port, stdin, stdout):
    """Accept one client on ``port`` and answer each of its messages from ``stdin``.

    Stops after sending a farewell, when input ends or when the client leaves.
    Returns the number of replies sent.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        server.bind(("", port))
        server.listen(5)
        conn, _ = server.accept()
        with conn:
            replies = 0
            while True:
                data = conn.recv(_READ_SIZE)
                if not data:
                    return replies
                stdout.write(f"Client : {data.decode('utf-8', errors='replace')}")
                stdout.flush()
                reply = stdin.readline()
                if not reply:
                    return replies
                conn.sendall(reply.encode("utf-8"))
                replies += 1
                if is_farewell(reply):
                    return replies


def connect(host, port, stdin, stdout):
    """Connect to a chat server and exchange lines until either side says bye.

    Returns the number of replies received.
    """
    with socket.create_connection((host, port)) as sock:
        replies = 0
        while True:
            stdout.write("Server is Running , waiting for clients to connect !!!\n")
            stdout.flush()
            line = stdin.readline()
            if not line:
                return replies
            sock.sendall(line.encode("utf-8"))
            data = sock.recv(_READ_SIZE)
            if not data:
                return replies
            text = data.decode("utf-8", errors="replace")
            stdout.write(f"Server : {text}")
            stdout.flush()
            replies += 1
            if is_farewell(text):
                return replies


def server_main(argv=None):
    """Run the chat server: ``<port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 1:
        print("Usage: chat-server <port>", file=sys.stderr)
        return 1
    try:
        port = int(args[0])
        serve(port, sys.stdin, sys.stdout)
    except ValueError as exc:
        print(f"invalid port: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"chat server: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv=None):
    """Run the chat client: ``<host> <port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 2:
        print("Usage: chat-client <host> <port>", file=sys.stderr)
        return 1
    try:
        port = int(args[1])
        connect(args[0], port, sys.stdin, sys.stdout)
    except ValueError as exc:
        print(f"invalid port: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"chat client: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(server_main())