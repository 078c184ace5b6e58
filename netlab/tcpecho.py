"""Interactive TCP echo: the server and client take turns typing messages."""

from __future__ import annotations

import os
import socket
import sys
import threading
from collections.abc import Iterable, Iterator
from typing import TextIO

MAX_MSG = 100
QUIT_COMMAND = "quit"


def encode_message(text: str) -> bytes:
    """Encode ``text`` as a NUL-terminated wire message."""
    return text.encode() + b"\0"


def decode_message(data: bytes) -> str:
    """Decode a wire message up to its first NUL byte."""
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _read_line(lines: Iterator[str]) -> str | None:
    line = next(lines, None)
    if line is None:
        return None
    return line.removesuffix("\n")


def _peer(sock: socket.socket) -> tuple[str, int]:
    name = sock.getpeername()
    if isinstance(name, tuple):
        return name[0], name[1]
    return str(name), 0


def client_session(sock: socket.socket, lines: Iterable[str], out: TextIO | None = None) -> list[str]:
    """Send lines one at a time, waiting for a reply after each, until 'quit' is sent."""
    out = out if out is not None else sys.stdout
    source = iter(lines)
    replies: list[str] = []
    while True:
        print("Enter string to send to server : ", end="", file=out, flush=True)
        line = _read_line(source)
        if line is None:
            break
        sock.sendall(encode_message(line))
        print(f"data sent ({line})", file=out)
        print("\nRECEIVING FROM SERVER:", end="", file=out)
        data = sock.recv(MAX_MSG)
        if not data:
            print(file=out)
            break
        reply = decode_message(data)
        print(reply, file=out)
        replies.append(reply)
        if line == QUIT_COMMAND:
            break
    return replies


def server_session(sock: socket.socket, lines: Iterable[str], out: TextIO | None = None) -> list[str]:
    """Answer each received message with the next input line, until 'quit' is sent."""
    out = out if out is not None else sys.stdout
    source = iter(lines)
    ip, port = _peer(sock)
    received: list[str] = []
    while True:
        data = sock.recv(MAX_MSG)
        if not data:
            break
        message = decode_message(data)
        received.append(message)
        print(f"received from host [IP {ip} ,TCP port {port}] : {message}", file=out)
        print(" enter text to send client", file=out)
        line = _read_line(source)
        if line is None:
            break
        print("\nSent 2 client.....", file=out)
        sock.sendall(encode_message(line))
        if line == QUIT_COMMAND:
            break
    print(f"closing connection with host [IP {ip} ,TCP port {port}]", file=out)
    return received


def _parse_endpoint(args: list[str], prog: str) -> tuple[str, int] | None:
    usage = f"usage: {prog} <server-addr> <server-port>"
    if len(args) < 2:
        print(usage)
        return None
    try:
        port = int(args[1])
    except ValueError:
        print(usage)
        return None
    return args[0], port


def _serve_connection(conn: socket.socket) -> None:
    with conn:
        server_session(conn, sys.stdin, sys.stdout)


def server_main(argv: list[str] | None = None) -> int:
    """Command entry point: accept clients and talk to each on its own thread."""
    prog = "tcpecho-server"
    args = sys.argv[1:] if argv is None else list(argv)
    endpoint = _parse_endpoint(args, prog)
    if endpoint is None:
        return 1
    host, port = endpoint
    try:
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    except OSError:
        print(f"{prog} : cannot create stream socket ")
        return 1
    print(f"{prog} : successfully created stream socket ")
    with listener:
        try:
            listener.bind((host, port))
        except OSError:
            print(f"{prog} : cannot bind port ")
            return 1
        print(f"{prog} : bound local port successfully")
        listener.listen(5)
        pid = os.getpid()
        try:
            while True:
                print(f"{prog} {pid}: waiting for client connection on port TCP {port}")
                try:
                    conn, address = listener.accept()
                except OSError:
                    print(f"{prog} : cannot accept connection ")
                    return 1
                print(
                    f"{prog} {pid}: received connection from host "
                    f"[IP {address[0]} ,TCP port {address[1]}]"
                )
                threading.Thread(target=_serve_connection, args=(conn,), daemon=True).start()
        except KeyboardInterrupt:
            return 0


def client_main(argv: list[str] | None = None) -> int:
    """Command entry point: connect to a server and exchange lines from stdin."""
    prog = "tcpecho-client"
    args = sys.argv[1:] if argv is None else list(argv)
    endpoint = _parse_endpoint(args, prog)
    if endpoint is None:
        return 1
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    except OSError:
        print(f"{prog}: cannot create stream socket")
        return 1
    print(f"{prog} : successfully created stream socket ")
    with sock:
        try:
            sock.bind(("", 0))
        except OSError:
            print(f"{prog}: cannot bind port TCP")
            return 1
        print(f"{prog}: bound local port successfully")
        try:
            sock.connect(endpoint)
        except OSError:
            print(f"{prog}: cannot connect to server")
            return 1
        print(f"{prog}: connected to server successfully")
        try:
            client_session(sock, sys.stdin, sys.stdout)
        except OSError:
            print(f"{prog}: cannot send data")
            return 1
        print(f"{prog} : closing connection with the server")
    return 0