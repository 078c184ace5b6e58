"""UDP echo server and interactive client."""

from __future__ import annotations

import argparse
import ipaddress
import select
import socket
import sys
import threading
from collections.abc import Iterable
from typing import TextIO

PORT = 8080
MAXLINE = 1024
EXIT_COMMAND = "exit"
_POLL_INTERVAL = 0.2


def echo_response(message: str) -> bytes | None:
    """Return the reply for ``message``, or None when the client says it is leaving."""
    if message == EXIT_COMMAND:
        return None
    return f"Echo: {message}".encode()[: MAXLINE - 1]


class UDPEchoServer:
    """A datagram server that echoes every message back to its sender."""

    def __init__(self, host: str = "", port: int = PORT, out: TextIO | None = None):
        self.out = out if out is not None else sys.stdout
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._sock.bind((host, port))
        except OSError:
            self._sock.close()
            raise
        self._stop = threading.Event()

    @property
    def address(self) -> tuple[str, int]:
        """The address the server is bound to."""
        return self._sock.getsockname()

    def handle(self, data: bytes, address: tuple[str, int]) -> bytes | None:
        """Log one datagram and answer it; return the reply sent, if any."""
        message = data.decode("utf-8", errors="replace")
        ip, port = address[0], address[1]
        print(f"Client ({ip}:{port}): {message}", file=self.out)
        response = echo_response(message)
        if response is None:
            print("Client disconnected.", file=self.out)
            return None
        self._sock.sendto(response, address)
        return response

    def serve_forever(self) -> None:
        """Answer datagrams until the server is closed."""
        print(f"Server is running on port {self.address[1]}...", file=self.out)
        print("Waiting for messages...", file=self.out)
        while not self._stop.is_set():
            try:
                ready, _, _ = select.select([self._sock], [], [], _POLL_INTERVAL)
                if not ready:
                    continue
                data, address = self._sock.recvfrom(MAXLINE)
            except (OSError, ValueError):
                if self._stop.is_set():
                    return
                raise
            self.handle(data, address)

    def close(self) -> None:
        """Stop serving and release the socket."""
        self._stop.set()
        self._sock.close()

    def __enter__(self) -> UDPEchoServer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def echo_client(
    sock: socket.socket,
    address: tuple[str, int],
    lines: Iterable[str],
    out: TextIO | None = None,
) -> list[str]:
    """Send each input line to the server and collect its replies until 'exit' or end of input."""
    out = out if out is not None else sys.stdout
    replies: list[str] = []
    source = iter(lines)
    while True:
        print("You: ", end="", file=out, flush=True)
        line = next(source, None)
        if line is None:
            print("\nInput error or EOF detected. Exiting.", file=out)
            break
        message = line.partition("\n")[0]
        if message == EXIT_COMMAND:
            print("Exiting...", file=out)
            break
        try:
            sock.sendto(message.encode(), address)
        except OSError as exc:
            print(f"sendto failed: {exc}", file=sys.stderr)
            continue
        try:
            data, _ = sock.recvfrom(MAXLINE)
        except OSError as exc:
            print(f"recvfrom failed: {exc}", file=sys.stderr)
            continue
        reply = data.decode("utf-8", errors="replace")
        print(f"Server: {reply}", file=out)
        replies.append(reply)
    return replies


def server_main(argv: list[str] | None = None) -> int:
    """Command entry point for the echo server."""
    parser = argparse.ArgumentParser(description="UDP echo server.")
    parser.add_argument("--host", default="", help="address to bind")
    parser.add_argument("--port", type=int, default=PORT, help="port to bind")
    args = parser.parse_args(argv)
    try:
        server = UDPEchoServer(args.host, args.port)
    except OSError as exc:
        print(f"bind failed: {exc}", file=sys.stderr)
        return 1
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


def client_main(argv: list[str] | None = None) -> int:
    """Command entry point for the interactive echo client; reads the server from stdin."""
    argparse.ArgumentParser(description="Interactive UDP echo client.").parse_args(argv)
    stdin = sys.stdin

    print("Enter server IP address: ", end="", flush=True)
    ip_line = stdin.readline()
    if not ip_line:
        print("Failed to read IP address", file=sys.stderr)
        return 1
    server_ip = ip_line.partition("\n")[0]

    print("Enter server port: ", end="", flush=True)
    try:
        server_port = int(stdin.readline().strip())
    except ValueError:
        print("Invalid port number", file=sys.stderr)
        return 1
    if not 0 <= server_port <= 0xFFFF:
        print("Invalid port number", file=sys.stderr)
        return 1

    try:
        ipaddress.IPv4Address(server_ip)
    except ValueError:
        print("Invalid address/ Address not supported", file=sys.stderr)
        return 1

    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        print(f"Connected to server {server_ip}:{server_port}. Type 'exit' to quit.")
        echo_client(sock, (server_ip, server_port), stdin, sys.stdout)
    return 0