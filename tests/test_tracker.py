import io
import socket
import threading

import pytest

from peertrack.model import Registry
from peertrack.sync import Synchronizer, TrackerAddress
from peertrack.tracker import (
    INVALID_COMMAND,
    TrackerSession,
    console_command,
    main,
    run_console,
    serve_client,
)


def make_env():
    registry = Registry()
    synchronizer = Synchronizer(registry, [TrackerAddress("127.0.0.1", 1)], 0)
    return registry, synchronizer


def new_session(registry, synchronizer):
    return TrackerSession(registry, synchronizer)


@pytest.fixture
def env():
    return make_env()


def logged_in(env, user_id):
    registry, synchronizer = env
    session = new_session(registry, synchronizer)
    if not registry.is_user(user_id):
        session.handle(f"create_user {user_id} password")
    session.handle(f"login {user_id} password")
    return session


def test_create_user(env):
    registry, synchronizer = env
    session = new_session(registry, synchronizer)
    assert session.handle("create_user alice password\n") == ["User created successfully"]
    assert registry.is_user("alice")
    assert registry.users["alice"].password == "password"


def test_create_user_duplicate(env):
    session = new_session(*env)
    session.handle("create_user alice password")
    assert session.handle("create_user alice password") == ["UserID already exists"]


def test_create_user_usage(env):
    session = new_session(*env)
    assert session.handle("create_user alice") == ["Usage : create_user <user_name> <password>"]


def test_login_unknown_user(env):
    session = new_session(*env)
    assert session.handle("login ghost password") == ["UserID doesnt exist"]
    assert session.client_name == ""


def test_login_success(env):
    registry, _ = env
    session = logged_in(env, "alice")
    assert session.client_name == "alice"
    assert registry.is_logged_in("alice")


def test_login_wrong_password_still_logs_in(env):
    registry, synchronizer = env
    session = new_session(registry, synchronizer)
    session.handle("create_user alice password")
    replies = session.handle("login alice secret")
    assert replies == ["Password is incorrect", "Login successful"]
    assert registry.is_logged_in("alice")


def test_login_usage(env):
    session = new_session(*env)
    assert session.handle("login alice") == ["Usage : login <user_name> <password>"]


def test_create_group_requires_login(env):
    session = new_session(*env)
    assert session.handle("create_group g1") == ["No user is Logged In !"]


def test_create_group_wrong_arity_sends_nothing(env):
    registry, _ = env
    session = logged_in(env, "alice")
    assert session.handle("create_group") == []
    assert not registry.groups


def test_create_group(env):
    registry, _ = env
    session = logged_in(env, "alice")
    assert session.handle("create_group g1") == ["Group Created Successfully !"]
    assert registry.is_group("g1")
    assert registry.is_group_owner("alice")
    assert registry.groups["g1"].has_member("alice")


def test_join_list_accept_flow(env):
    registry, _ = env
    owner = logged_in(env, "alice")
    owner.handle("create_group g1")
    member = logged_in(env, "bob")
    assert member.handle("join_group g1") == ["Successfully Requested ! "]
    assert owner.handle("list_requests g1") == ["bob bob"]
    assert owner.handle("accept_request g1 bob") == ["Request Accepted"]
    assert registry.groups["g1"].has_member("bob")
    assert owner.handle("list_requests g1") == []


def test_join_group_already_member(env):
    owner = logged_in(env, "alice")
    owner.handle("create_group g1")
    assert owner.handle("join_group g1") == ["User already exists in the group !"]


def test_join_group_unknown_group(env):
    session = logged_in(env, "alice")
    assert session.handle("join_group nope") == ["Group doesnt exist"]


def test_join_group_not_logged_in_sends_nothing(env):
    session = new_session(*env)
    assert session.handle("join_group g1") == []


def test_leave_group(env):
    registry, _ = env
    owner = logged_in(env, "alice")
    owner.handle("create_group g1")
    member = logged_in(env, "bob")
    member.handle("join_group g1")
    owner.handle("accept_request g1 bob")
    assert member.handle("leave_group g1") == ["Successfully Removed from Group !"]
    assert not registry.groups["g1"].has_member("bob")
    assert registry.groups["g1"].member_count() == 1


def test_leave_group_errors(env):
    session = new_session(*env)
    assert session.handle("leave_group") == ["Usage : leave_group <group_id>"]
    assert session.handle("leave_group g1") == ["No user is logged in !"]


def test_list_groups(env):
    session = new_session(*env)
    assert session.handle("list_groups") == ["No Groups Exists !"]
    owner = logged_in(env, "alice")
    owner.handle("create_group g1")
    owner.handle("create_group g2")
    assert session.handle("list_groups") == ["g1\ng2\n"]


def test_list_requests_requires_owner(env):
    session = logged_in(env, "alice")
    assert session.handle("list_requests g1") == [
        "This is a priviledged command & You are not a Group Owner"
    ]


def test_list_requests_errors_for_owner(env):
    owner = logged_in(env, "alice")
    owner.handle("create_group g1")
    assert owner.handle("list_requests") == ["Usage : list_requests <group_id>"]
    assert owner.handle("list_requests nope") == ["Group doesnt exist"]


def test_accept_request_errors(env):
    owner = logged_in(env, "alice")
    owner.handle("create_group g1")
    other = logged_in(env, "bob")
    assert owner.handle("accept_request g1") == ["Usage : accept_request <groupid> <userid>"]
    assert owner.handle("accept_request nope bob") == ["Group Id doesnt exist !"]
    assert owner.handle("accept_request g1 ghost") == ["User does not exist"]
    assert other.handle("accept_request g1 alice") == [
        "This is a priviledged instruction - You are not an owner."
    ]


def test_whoami(env):
    registry, synchronizer = env
    anonymous = new_session(registry, synchronizer)
    assert anonymous.handle("whoami") == ["LOGIN NAME NOT REGISTERED !", ""]
    session = logged_in(env, "alice")
    assert session.handle("whoami") == ["alice"]


@pytest.mark.parametrize("line", ["hello", "", "\n", "CREATE_USER a b"])
def test_invalid_command(env, line):
    session = new_session(*env)
    assert session.handle(line) == [INVALID_COMMAND]


def test_non_primary_does_not_broadcast():
    registry = Registry()
    trackers = [TrackerAddress("127.0.0.1", 1), TrackerAddress("127.0.0.1", 2)]
    synchronizer = Synchronizer(registry, trackers, 1)
    session = TrackerSession(registry, synchronizer)
    assert session.handle("create_user alice password") == ["User created successfully"]
    assert synchronizer.broadcast("CREATE_USER", "x y") == []


def test_console_commands(env):
    registry, _ = env
    owner = logged_in(env, "alice")
    owner.handle("create_group g1")
    new_session(*env).handle("create_user bob password")
    assert console_command(registry, "user_count") == ["2"]
    assert console_command(registry, "list_users") == ["alice", "bob"]
    assert console_command(registry, "list_loggedin_users") == ["alice"]
    assert console_command(registry, "loggedin_user_count") == ["1"]
    assert console_command(registry, "list_groups") == ["g1"]
    assert console_command(registry, "list_group_details") == ["g1 1"]
    assert console_command(registry, "unknown") == []
    assert console_command(registry, "") == []


def test_run_console(env):
    registry, _ = env
    new_session(*env).handle("create_user alice password")
    out = io.StringIO()
    run_console(registry, io.StringIO("user_count list_users\nbogus\n"), out)
    lines = out.getvalue().splitlines()
    assert lines[0] == "Tracker console started. Type 'help' for commands."
    assert lines[1:] == ["1", "alice"]


def _read_line(sock):
    data = b""
    while not data.endswith(b"\n"):
        chunk = sock.recv(1024)
        if not chunk:
            break
        data += chunk
    return data


def test_serve_client_over_socket(env):
    registry, synchronizer = env
    client, server = socket.socketpair()
    worker = threading.Thread(target=serve_client, args=(server, registry, synchronizer))
    worker.start()
    try:
        client.sendall(b"create_user alice password\n")
        assert _read_line(client) == b"User created successfully\n"
        client.sendall(b"login alice password\n")
        assert _read_line(client) == b"Login successful\n"
    finally:
        client.close()
    worker.join(timeout=5)
    assert not worker.is_alive()
    assert registry.is_logged_in("alice")


def test_main_usage_error():
    assert main([]) == 1


def test_main_bad_tracker_number(tmp_path):
    info = tmp_path / "tracker_info.txt"
    info.write_text("127.0.0.1:6000\n", encoding="utf-8")
    assert main([str(info), "5"]) == 1
    assert main([str(info), "zero"]) == 1


def test_main_missing_file(tmp_path):
    assert main([str(tmp_path / "missing.txt"), "0"]) == 1