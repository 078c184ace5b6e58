"""Multi-client TCP chat server with user listing and private messages."""

from __future__ import annotations

import itertools
import select
import socket
import sys
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TextIO

MAX_CLIENTS = 100
NAME_LEN = 32
BUFFER_SZ = 2048
LENGTH = 2048
FIRST_UID = 10
LIST_HEADER = "--- Active Clients ---\n"
MSG_USAGE = "Usage: /msg <username> <message>\n"
UNKNOWN_COMMAND = "Unknown command. Use /list or /msg <username> <message>\n"
EXIT_COMMAND = "exit"
_POLL_INTERVAL = 0.2


def trim_newline(text: str) -> str:
    """Return ``text`` cut at its first newline."""
    return text.partition("\n")[0]


def active_clients_text(names: Iterable[str]) -> str:
    """Format the reply to a ``/list`` command."""
    return LIST_HEADER + "".join(f"{name}\n" for name in names)


def parse_private(line: str) -> tuple[str, str] | None:
    """Split a ``/msg <user> <message>`` line; None when the user or message is missing."""
    if not line.startswith("/msg "):
        raise ValueError(f"not a private message command: {line!r}")
    rest = line[5:].lstrip(" ")
    recipient, _, message = rest.partition(" ")
    if not recipient or not message:
        return None
    return recipient, message


@dataclass
class _Member:
    uid: int
    name: str
    sock: socket.socket


class ChatRegistry:
    """Thread-safe table of connected chat users, in a fixed number of slots."""

    def __init__(self):
        self._slots: list[_Member | None] = [None] * MAX_CLIENTS
        self._lock = threading.Lock()

    def add(self, uid: int, name: str, sock: socket.socket) -> _Member:
        """Put a user in the first free slot and return its record."""
        member = _Member(uid, name, sock)
        with self._lock:
            free = next((i for i, slot in enumerate(self._slots) if slot is None), None)
            if free is not None:
                self._slots[free] = member
        return member

    def remove(self, uid: int) -> bool:
        """Free the slot of the user with ``uid``; return whether one was found."""
        with self._lock:
            for i, slot in enumerate(self._slots):
                if slot is not None and slot.uid == uid:
                    self._slots[i] = None
                    return True
        return False

    def send_to(self, name: str, text: str) -> bool:
        """Send ``text`` to the first user called ``name``; return whether one was found."""
        with self._lock:
            target = next((m for m in self._slots if m is not None and m.name == name), None)
            if target is None:
                return False
            try:
                target.sock.sendall(text.encode())
            except OSError:
                return False
        return True

    def names(self) -> list[str]:
        """Names of the connected users, in slot order."""
        with self._lock:
            return [m.name for m in self._slots if m is not None]


class ChatServer:
    """A TCP chat server that serves each client on its own thread."""

    def __init__(self, host: str = "", port: int = 0, max_clients: int = MAX_CLIENTS):
        self.max_clients = max_clients
        self.registry = ChatRegistry()
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self._listener.bind((host, port))
            self._listener.listen(10)
        except OSError:
            self._listener.close()
            raise
        self._stop = threading.Event()
        self._uids = itertools.count(FIRST_UID)
        self._active = 0
        self._count_lock = threading.Lock()

    @property
    def address(self) -> tuple[str, int]:
        """The address the server listens on."""
        return self._listener.getsockname()

    def handle_line(self, sender: _Member, line: str) -> str | None:
        """Carry out one command from ``sender``; return the reply sent back to it, if any."""
        line = trim_newline(line)
        if line.startswith("/list"):
            reply = active_clients_text(self.registry.names())
        elif line.startswith("/msg "):
            parsed = parse_private(line)
            if parsed is None:
                reply = MSG_USAGE
            else:
                recipient, message = parsed
                self.registry.send_to(recipient, f"[Private] {sender.name}: {message}\n")
                return None
        else:
            reply = UNKNOWN_COMMAND
        sender.sock.sendall(reply.encode())
        return reply

    @staticmethod
    def _receive_name(conn: socket.socket) -> str | None:
        try:
            data = conn.recv(NAME_LEN)
        except OSError:
            return None
        raw = data.split(b"\0", 1)[0]
        if not data or not 2 <= len(raw) < NAME_LEN - 1:
            return None
        return raw.decode("utf-8", errors="replace")

    def handle_client(self, conn: socket.socket, address: tuple[str, int]) -> None:
        """Register one client by name and answer its commands until it leaves."""
        with self._count_lock:
            self._active += 1
            uid = next(self._uids)
        try:
            with conn:
                name = self._receive_name(conn)
                if name is None:
                    print("Didn't enter the name.")
                    return
                member = self.registry.add(uid, name, conn)
                print(f"{name} has joined")
                try:
                    while data := conn.recv(BUFFER_SZ - 1):
                        self.handle_line(member, data.decode("utf-8", errors="replace"))
                except OSError:
                    pass
                finally:
                    self.registry.remove(uid)
        finally:
            with self._count_lock:
                self._active -= 1

    def serve_forever(self) -> None:
        """Accept clients until the server is closed."""
        while not self._stop.is_set():
            try:
                ready, _, _ = select.select([self._listener], [], [], _POLL_INTERVAL)
                if not ready:
                    continue
                conn, address = self._listener.accept()
            except (OSError, ValueError):
                if self._stop.is_set():
                    return
                raise
            with self._count_lock:
                full = self._active + 1 >= self.max_clients
            if full:
                print(f"Max clients reached. Rejected: {address[1]}")
                conn.close()
                continue
            threading.Thread(target=self.handle_client, args=(conn, address), daemon=True).start()

    def close(self) -> None:
        """Stop accepting clients and release the listening socket."""
        self._stop.set()
        self._listener.close()

    def __enter__(self) -> ChatServer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _encode_name(name: str) -> bytes:
    return name.encode()[: NAME_LEN - 1].ljust(NAME_LEN, b"\0")


def _receive_loop(sock: socket.socket, out: TextIO) -> None:
    try:
        while data := sock.recv(LENGTH):
            print(data.decode("utf-8", errors="replace"), end="", file=out, flush=True)
    except OSError:
        return


def _send_loop(sock: socket.socket, lines: Iterable[str]) -> None:
    for line in lines:
        text = trim_newline(line)
        if text == EXIT_COMMAND:
            return
        if text:
            try:
                sock.sendall(text.encode())
            except OSError:
                return


def server_main(argv: list[str] | None = None) -> int:
    """Command entry point: run the chat server on the given port."""
    args = sys.argv[1:] if argv is None else list(argv)
    usage = "Usage: tcpchat-server <port>"
    if len(args) != 1:
        print(usage, file=sys.stderr)
        return 1
    try:
        port = int(args[0])
    except ValueError:
        print(usage, file=sys.stderr)
        return 1
    try:
        server = ChatServer("", port)
    except OSError as exc:
        print(f"ERROR: bind: {exc}", file=sys.stderr)
        return 1
    with server:
        print("=== Welcome to the Secure Chat Server ===")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


def client_main(argv: list[str] | None = None) -> int:
    """Command entry point: join a chat server and relay stdin to it."""
    args = sys.argv[1:] if argv is None else list(argv)
    usage = "Usage: tcpchat-client <ip> <port>"
    if len(args) != 2:
        print(usage, file=sys.stderr)
        return 1
    try:
        port = int(args[1])
    except ValueError:
        print(usage, file=sys.stderr)
        return 1
    try:
        sock = socket.create_connection((args[0], port))
    except OSError as exc:
        print(f"connect: {exc}", file=sys.stderr)
        return 1
    with sock:
        print("Enter your name: ", end="", flush=True)
        name = trim_newline(sys.stdin.readline())
        try:
            sock.sendall(_encode_name(name))
        except OSError as exc:
            print(f"send: {exc}", file=sys.stderr)
            return 1
        print("\n--- Welcome to the chat ---")
        print("Type /list to see active users")
        print("Type /msg <username> <message> to send private message")
        print("Type 'exit' to quit\n")
        threading.Thread(target=_receive_loop, args=(sock, sys.stdout), daemon=True).start()
        try:
            _send_loop(sock, sys.stdin)
        except KeyboardInterrupt:
            pass
        print("\nBye")
    return 0