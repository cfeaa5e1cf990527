# peertrack

peertrack is a small tracker for peer groups. A tracker keeps a registry of
users, logins and groups in memory. Clients connect over TCP and send one
command per message. Several trackers can run side by side. The primary
tracker sends every change to the others. A secondary tracker makes itself
primary when the designated primary stops answering.

The package also has a minimal two-party chat, with one server and one client.
The two sides take turns exchanging lines until one of them sends a line that
starts with `bye`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Tracker information file

Trackers and clients share a plain text file with one `ip:port` per line.
Lines without a colon are ignored. The first tracker in the file is the
designated primary.

```
127.0.0.1:5000
127.0.0.1:5001
```

Each tracker also listens for replication messages on its port plus 1000. For
example, port 5000 listens on 6000 as well.

## Running a tracker

```
peertrack-tracker tracker_info.txt 0
```

The first argument is the tracker information file. The second is the index of
this tracker within that file. Tracker 0 starts as primary.

Every ten seconds, each tracker checks which of the other trackers accept a
connection on their replication port. A tracker that is not primary promotes
itself when none of them answer, or when the first tracker in the file is not
among those that answer. Only a primary sends changes to the other trackers.

While it runs, the tracker reads console commands from standard input. Words
on a line are separated by whitespace, and each word is taken as a command.

| command               | prints                                   |
|-----------------------|------------------------------------------|
| `list_users`          | every registered user id                 |
| `user_count`          | the number of registered users           |
| `list_loggedin_users` | every logged-in user id                  |
| `loggedin_user_count` | the number of logged-in users            |
| `list_groups`         | every group id                           |
| `list_group_details`  | every group id with its member count     |

Any other word is ignored.

## Running a client

```
peertrack-client 127.0.0.1:7000 tracker_info.txt
```

The first argument is the client's own `ip:port`. The client only prints it.
The client tries the trackers from the file in order and skips those whose
address is not an IPv4 address or that refuse the connection. If the
connection to a tracker is lost, it moves on to the next tracker.

Once connected, the client sends each line typed on standard input and prints
the tracker's reply prefixed with `Server : `. It stops when standard input
ends.

A tracker understands these commands:

```
create_user <user_id> <password>
login <user_id> <password>
create_group <group_id>
join_group <group_id>
leave_group <group_id>
list_groups
list_requests <group_id>
accept_request <group_id> <user_id>
whoami
```

A short session:

```
create_user alice password
login alice password
create_group books
list_groups
```

How the commands behave:

- Joining a group files a request. The owner then accepts it with `accept_request`.
- `list_requests` and `accept_request` may only be used by a user who owns a group.
- If a command is not recognised, the tracker replies with a short list of valid commands.
- A wrong password on `login` is reported with `Password is incorrect`. The session is still logged in afterwards.

## Chat

Start the server on a port, then connect a client to it:

```
peertrack-chat-server 9000
peertrack-chat-client localhost 9000
```

The server accepts one client. The client sends a line, and the server answers
with a line read from its own standard input. The conversation ends when a line
starting with `bye` is sent, when input ends, or when the other side leaves.

## Library use

The registry and the replication logic can be used on their own:

```python
from peertrack.model import Registry
from peertrack.sync import Synchronizer, TrackerAddress, decode_sync_message, encode_sync_message

registry = Registry()
registry.create_user("alice", "password")
registry.create_group("books", "alice")
assert registry.is_group_owner("alice")

message = encode_sync_message("CREATE_USER", "bob password")
assert decode_sync_message(message) == ("CREATE_USER", "bob password")

sync = Synchronizer(registry, [TrackerAddress("127.0.0.1", 5000)], 0)
assert sync.handle_message(message)
assert registry.is_user("bob")
```

`peertrack.tracker.TrackerSession` runs client commands without a network.
`handle(line)` returns the list of replies for one command line.
`peertrack.tracker.console_command` does the same for console commands.

## What it does not do

- The package keeps track of users and groups only. It does not share, list or transfer files.
- All state lives in memory and is lost when a tracker stops.
- Passwords are kept as plain text.
- There is no logout command.