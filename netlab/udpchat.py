"""UDP chat server with a persistent client table, and its interactive client."""

from __future__ import annotations

import ipaddress
import re
import select
import socket
import sys
import threading
from pathlib import Path

from netlab.tcpchat import active_clients_text, parse_private, trim_newline

MAX_CLIENTS = 100
NAME_LEN = 32
BUFFER_SZ = 2048
MAX_LEN = 1024
CLIENTS_FILE = "clients.txt"
EXIT_MESSAGE = "__exit__"
EXIT_COMMAND = "exit"
NAME_PROMPT = "[Server] Please send your name:\n"
UNKNOWN_COMMAND = "Unknown command. Use /list or /msg <username> <message>\n"
_POLL_INTERVAL = 0.2
_ENTRY = re.compile(r"([^:\n]+):\s*([+-]?\d+)\s*([^\n]+)")

Address = tuple[str, int]


def _key(address) -> Address:
    return str(address[0]), int(address[1])


def format_entry(address: Address, name: str) -> str:
    """Format one line of the client file: ``ip:port name``."""
    ip, port = _key(address)
    return f"{ip}:{port} {name}"


def parse_entry(line: str) -> tuple[Address, str] | None:
    """Parse one line of the client file; None if it holds no valid entry."""
    match = _ENTRY.match(trim_newline(line))
    if match is None:
        return None
    ip, port_text, name = match.groups()
    try:
        ipaddress.IPv4Address(ip)
    except ValueError:
        return None
    port = int(port_text)
    if not 0 <= port <= 0xFFFF:
        return None
    return (ip, port), name[: NAME_LEN - 1]


class ClientTable:
    """Known chat clients by address, mirrored to a text file when a path is given."""

    def __init__(self, path: str | Path | None = CLIENTS_FILE):
        self.path = Path(path) if path is not None else None
        self._slots: list[tuple[Address, str] | None] = [None] * MAX_CLIENTS
        self._lock = threading.RLock()

    def _place(self, address: Address, name: str) -> bool:
        free = next((i for i, slot in enumerate(self._slots) if slot is None), None)
        if free is None:
            return False
        self._slots[free] = (address, name)
        return True

    def load(self) -> int:
        """Add the entries stored in the file; return how many were added."""
        if self.path is None:
            return 0
        try:
            text = self.path.read_text()
        except OSError:
            return 0
        added = 0
        with self._lock:
            for line in text.splitlines():
                entry = parse_entry(line)
                if entry is not None and self._place(*entry):
                    added += 1
        return added

    def save(self) -> None:
        """Write the table to its file, if it has one."""
        if self.path is None:
            return
        with self._lock:
            lines = [format_entry(addr, name) + "\n" for addr, name in filter(None, self._slots)]
        try:
            self.path.write_text("".join(lines))
        except OSError:
            pass

    def register(self, address: Address, name: str) -> None:
        """Set the name for ``address``, adding it if it is new."""
        address = _key(address)
        name = name[: NAME_LEN - 1]
        with self._lock:
            for i, slot in enumerate(self._slots):
                if slot is not None and slot[0] == address:
                    self._slots[i] = (address, name)
                    break
            else:
                self._place(address, name)
        self.save()

    def remove(self, address: Address) -> str | None:
        """Forget ``address``; return the name it had, if it was known."""
        address = _key(address)
        removed = None
        with self._lock:
            for i, slot in enumerate(self._slots):
                if slot is not None and slot[0] == address:
                    removed = slot[1]
                    self._slots[i] = None
                    break
        self.save()
        return removed

    def by_address(self, address: Address) -> str | None:
        """Name registered for ``address``, if any."""
        address = _key(address)
        with self._lock:
            return next((n for a, n in filter(None, self._slots) if a == address), None)

    def by_name(self, name: str) -> Address | None:
        """Address of the first client called ``name``, if any."""
        with self._lock:
            return next((a for a, n in filter(None, self._slots) if n == name), None)

    def names(self) -> list[str]:
        """Names of the known clients, in slot order."""
        with self._lock:
            return [n for _, n in filter(None, self._slots)]


class UDPChatServer:
    """A datagram chat server: first datagram names a client, later ones are commands."""

    def __init__(self, host: str = "", port: int = 0, table: ClientTable | None = None):
        self.table = table if table is not None else ClientTable()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._sock.bind((host, port))
        except OSError:
            self._sock.close()
            raise
        self._stop = threading.Event()

    @property
    def address(self) -> Address:
        """The address the server is bound to."""
        return self._sock.getsockname()

    def _send(self, text: str, address: Address, sent: list[tuple[bytes, Address]]) -> None:
        payload = text.encode()[: BUFFER_SZ - 1]
        self._sock.sendto(payload, address)
        sent.append((payload, address))

    def handle_datagram(self, data: bytes, address: Address) -> list[tuple[bytes, Address]]:
        """Process one datagram; return the (payload, destination) pairs sent."""
        address = _key(address)
        sent: list[tuple[bytes, Address]] = []
        text = trim_newline(data.decode("utf-8", errors="replace"))

        if text == EXIT_MESSAGE:
            name = self.table.remove(address)
            if name is not None:
                print(f"{name} disconnected")
            return sent

        name = self.table.by_address(address)
        if name is None:
            if text:
                self.table.register(address, text)
                print(f"{text} registered (new)")
            else:
                self._send(NAME_PROMPT, address, sent)
            return sent

        if text == "/list":
            self._send(active_clients_text(self.table.names()), address, sent)
        elif text.startswith("/msg "):
            parsed = parse_private(text)
            if parsed is not None:
                recipient, message = parsed
                target = self.table.by_name(recipient)
                if target is not None:
                    self._send(f"[Private] {name}: {message}\n", target, sent)
        else:
            self._send(UNKNOWN_COMMAND, address, sent)
        return sent

    def serve_forever(self) -> None:
        """Handle datagrams until the server is closed."""
        while not self._stop.is_set():
            try:
                ready, _, _ = select.select([self._sock], [], [], _POLL_INTERVAL)
                if not ready:
                    continue
                data, address = self._sock.recvfrom(BUFFER_SZ - 1)
            except (OSError, ValueError):
                if self._stop.is_set():
                    return
                raise
            if data:
                self.handle_datagram(data, address)

    def close(self) -> None:
        """Stop serving and release the socket."""
        self._stop.set()
        self._sock.close()

    def __enter__(self) -> UDPChatServer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _receive_loop(sock: socket.socket, stop: threading.Event) -> None:
    while not stop.is_set():
        try:
            data, _ = sock.recvfrom(MAX_LEN - 1)
        except OSError:
            return
        if data:
            print(data.decode("utf-8", errors="replace"), flush=True)


def server_main(argv: list[str] | None = None) -> int:
    """Command entry point: run the UDP chat server on the given port."""
    args = sys.argv[1:] if argv is None else list(argv)
    usage = "Usage: udpchat-server <port>"
    if len(args) != 1:
        print(usage, file=sys.stderr)
        return 1
    try:
        port = int(args[0])
    except ValueError:
        print(usage, file=sys.stderr)
        return 1
    table = ClientTable(CLIENTS_FILE)
    try:
        server = UDPChatServer("", port, table)
    except OSError as exc:
        print(f"ERROR: bind: {exc}", file=sys.stderr)
        return 1
    table.load()
    with server:
        print("=== UDP Chat Server Started ===")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


def client_main(argv: list[str] | None = None) -> int:
    """Command entry point: join a UDP chat server and relay stdin to it."""
    args = sys.argv[1:] if argv is None else list(argv)
    usage = "Usage: udpchat-client <ip> <port>"
    if len(args) != 2:
        print(usage)
        return 1
    try:
        server = (args[0], int(args[1]))
    except ValueError:
        print(usage)
        return 1
    stop = threading.Event()
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            print("Enter your name: ", end="", flush=True)
            name = trim_newline(sys.stdin.readline())[: NAME_LEN - 1]
            sock.sendto(name.encode(), server)
            print("\n--- Welcome to the chat ---")
            print("Type /list to see active users")
            print("Type /msg <user> <message> to send a private message")
            print("Type 'exit' to quit\n")
            threading.Thread(target=_receive_loop, args=(sock, stop), daemon=True).start()
            try:
                for line in sys.stdin:
                    text = trim_newline(line)
                    if text == EXIT_COMMAND:
                        break
                    sock.sendto(text.encode()[: MAX_LEN - 1], server)
            except KeyboardInterrupt:
                pass
            stop.set()
            sock.sendto(EXIT_MESSAGE.encode(), server)
        except OSError as exc:
            print(f"sendto: {exc}", file=sys.stderr)
            return 1
        print("\nDisconnected from server.")
    return 0