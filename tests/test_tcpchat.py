import socket
import threading

import pytest

from netlab.tcpchat import (
    LIST_HEADER,
    MSG_USAGE,
    NAME_LEN,
    UNKNOWN_COMMAND,
    ChatRegistry,
    ChatServer,
    active_clients_text,
    parse_private,
    trim_newline,
)


def _name_bytes(name):
    return name.encode().ljust(NAME_LEN, b"\0")


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    left.settimeout(5)
    right.settimeout(5)
    yield left, right
    left.close()
    right.close()


@pytest.fixture
def server():
    srv = ChatServer("127.0.0.1", 0)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.close()
    thread.join(timeout=5)


def _connect(srv):
    return socket.create_connection(srv.address, timeout=5)


def test_trim_newline_cuts_at_first_newline():
    assert trim_newline("hello\nworld\n") == "hello"
    assert trim_newline("plain") == "plain"


def test_active_clients_text():
    assert active_clients_text(["alice", "bob"]) == "--- Active Clients ---\nalice\nbob\n"
    assert active_clients_text([]) == LIST_HEADER


def test_parse_private_splits_recipient_and_message():
    assert parse_private("/msg bob hi there") == ("bob", "hi there")
    assert parse_private("/msg   bob hi") == ("bob", "hi")


@pytest.mark.parametrize("line", ["/msg bob", "/msg bob ", "/msg ", "/msg    "])
def test_parse_private_incomplete(line):
    assert parse_private(line) is None


def test_parse_private_rejects_other_commands():
    with pytest.raises(ValueError):
        parse_private("/list")


def test_registry_reuses_first_free_slot(pair):
    registry = ChatRegistry()
    left, _ = pair
    registry.add(1, "a", left)
    registry.add(2, "b", left)
    registry.add(3, "c", left)
    assert registry.remove(2) is True
    registry.add(4, "d", left)
    assert registry.names() == ["a", "d", "c"]
    assert registry.remove(99) is False


def test_registry_send_to(pair):
    left, right = pair
    registry = ChatRegistry()
    registry.add(1, "bob", left)
    assert registry.send_to("bob", "hello") is True
    assert right.recv(100) == b"hello"
    assert registry.send_to("nobody", "hello") is False


def test_handle_line_list(pair):
    left, right = pair
    srv = ChatServer("127.0.0.1", 0)
    try:
        alice = srv.registry.add(1, "alice", left)
        reply = srv.handle_line(alice, "/list\n")
        assert reply == active_clients_text(["alice"])
        assert right.recv(200).decode() == reply
    finally:
        srv.close()


def test_handle_line_unknown_and_usage(pair):
    left, right = pair
    srv = ChatServer("127.0.0.1", 0)
    try:
        alice = srv.registry.add(1, "alice", left)
        assert srv.handle_line(alice, "hello") == UNKNOWN_COMMAND
        assert right.recv(200).decode() == UNKNOWN_COMMAND
        assert srv.handle_line(alice, "/msg bob") == MSG_USAGE
        assert right.recv(200).decode() == MSG_USAGE
    finally:
        srv.close()


def test_handle_line_private_message():
    alice_side, alice_peer = socket.socketpair()
    bob_side, bob_peer = socket.socketpair()
    bob_peer.settimeout(5)
    srv = ChatServer("127.0.0.1", 0)
    try:
        alice = srv.registry.add(1, "alice", alice_side)
        srv.registry.add(2, "bob", bob_side)
        assert srv.handle_line(alice, "/msg bob hi there") is None
        assert bob_peer.recv(200) == b"[Private] alice: hi there\n"
    finally:
        srv.close()
        for sock in (alice_side, alice_peer, bob_side, bob_peer):
            sock.close()


def test_server_lists_connected_client(server):
    with _connect(server) as client:
        client.sendall(_name_bytes("alice"))
        client.sendall(b"/list")
        assert client.recv(200).decode() == LIST_HEADER + "alice\n"


def test_server_relays_private_message(server):
    with _connect(server) as bob, _connect(server) as alice:
        bob.sendall(_name_bytes("bob"))
        bob.sendall(b"/list")
        assert "bob\n" in bob.recv(200).decode()
        alice.sendall(_name_bytes("alice"))
        alice.sendall(b"/msg bob hello")
        assert bob.recv(200) == b"[Private] alice: hello\n"


def test_server_drops_client_with_short_name(server):
    with _connect(server) as client:
        client.sendall(_name_bytes("a"))
        assert client.recv(200) == b""


def test_server_rejects_when_full():
    srv = ChatServer("127.0.0.1", 0, max_clients=1)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    try:
        with _connect(srv) as client:
            assert client.recv(200) == b""
    finally:
        srv.close()
        thread.join(timeout=5)