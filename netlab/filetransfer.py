"""One-shot file transfer over TCP: a server streams a file to the first client."""

from __future__ import annotations

import argparse
import socket
import sys
from pathlib import Path

PORT = 8088
BUFFER_SIZE = 1024
DEFAULT_SEND = "send.txt"
DEFAULT_RECEIVE = "received.txt"


def send_file(sock: socket.socket, path: str | Path) -> int:
    """Stream the file at ``path`` over ``sock``; return the number of bytes sent."""
    total = 0
    with open(path, "rb") as fh:
        while chunk := fh.read(BUFFER_SIZE):
            sock.sendall(chunk)
            total += len(chunk)
    return total


def serve_file(path: str | Path = DEFAULT_SEND, host: str = "", port: int = PORT) -> int:
    """Wait for one client, send it the file, and return the number of bytes sent."""
    with socket.create_server((host, port), backlog=5) as server:
        print(f"File Server waiting on port {server.getsockname()[1]}...")
        conn, address = server.accept()
        with conn:
            print(f"Client connected: {address[0]}")
            sent = send_file(conn, path)
    print("File sent successfully.")
    return sent


def receive_file(path: str | Path = DEFAULT_RECEIVE, host: str = "127.0.0.1", port: int = PORT) -> int:
    """Connect to a file server and store everything it sends in ``path``."""
    total = 0
    with socket.create_connection((host, port)) as sock:
        print("Connected to server.")
        with open(path, "wb") as fh:
            while data := sock.recv(BUFFER_SIZE):
                fh.write(data)
                total += len(data)
    print("File received successfully.")
    return total


def server_main(argv: list[str] | None = None) -> int:
    """Command entry point for the file server."""
    parser = argparse.ArgumentParser(description="Send a file to the first client that connects.")
    parser.add_argument("--file", default=DEFAULT_SEND, help="file to send")
    parser.add_argument("--host", default="", help="address to listen on")
    parser.add_argument("--port", type=int, default=PORT, help="port to listen on")
    args = parser.parse_args(argv)
    try:
        serve_file(args.file, args.host, args.port)
    except OSError as exc:
        print(f"File transfer failed: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv: list[str] | None = None) -> int:
    """Command entry point for the file client."""
    parser = argparse.ArgumentParser(description="Receive a file from a file server.")
    parser.add_argument("--file", default=DEFAULT_RECEIVE, help="where to store the file")
    parser.add_argument("--host", default="127.0.0.1", help="server address")
    parser.add_argument("--port", type=int, default=PORT, help="server port")
    args = parser.parse_args(argv)
    try:
        receive_file(args.file, args.host, args.port)
    except OSError as exc:
        print(f"Connection failed: {exc}", file=sys.stderr)
        return 1
    return 0