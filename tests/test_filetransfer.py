import socket
import threading
import time

import pytest

from netlab import filetransfer


def _free_port():
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def _receive_with_retry(dest, port, attempts=100):
    for _ in range(attempts):
        try:
            return filetransfer.receive_file(dest, "127.0.0.1", port)
        except ConnectionRefusedError:
            time.sleep(0.05)
    raise AssertionError("server never came up")


def _read_all(sock):
    chunks = []
    while data := sock.recv(4096):
        chunks.append(data)
    return b"".join(chunks)


def test_send_file_streams_whole_file(tmp_path):
    payload = bytes(range(256)) * 12
    source = tmp_path / "send.txt"
    source.write_bytes(payload)
    a, b = socket.socketpair()
    with a, b:
        sent = filetransfer.send_file(a, source)
        a.shutdown(socket.SHUT_WR)
        received = _read_all(b)
    assert sent == len(payload)
    assert received == payload


def test_send_file_empty(tmp_path):
    source = tmp_path / "empty.txt"
    source.write_bytes(b"")
    a, b = socket.socketpair()
    with a, b:
        assert filetransfer.send_file(a, source) == 0


def test_send_file_missing_raises(tmp_path):
    a, b = socket.socketpair()
    with a, b:
        with pytest.raises(FileNotFoundError):
            filetransfer.send_file(a, tmp_path / "missing.txt")


def test_receive_file_writes_data(tmp_path):
    payload = b"line one\nline two\n" * 200
    dest = tmp_path / "received.txt"
    with socket.create_server(("127.0.0.1", 0)) as listener:
        port = listener.getsockname()[1]

        def serve():
            conn, _ = listener.accept()
            with conn:
                conn.sendall(payload)

        thread = threading.Thread(target=serve)
        thread.start()
        count = filetransfer.receive_file(dest, "127.0.0.1", port)
        thread.join(5)
    assert count == len(payload)
    assert dest.read_bytes() == payload


def test_receive_file_refused(tmp_path):
    with pytest.raises(OSError):
        filetransfer.receive_file(tmp_path / "out.txt", "127.0.0.1", _free_port())


def test_serve_and_receive_round_trip(tmp_path, capsys):
    payload = b"hello file transfer\n" * 100
    source = tmp_path / "send.txt"
    source.write_bytes(payload)
    dest = tmp_path / "received.txt"
    port = _free_port()
    result = {}

    def serve():
        result["sent"] = filetransfer.serve_file(source, "127.0.0.1", port)

    thread = threading.Thread(target=serve)
    thread.start()
    count = _receive_with_retry(dest, port)
    thread.join(5)
    assert result["sent"] == count == len(payload)
    assert dest.read_bytes() == payload
    out = capsys.readouterr().out
    assert "Client connected: 127.0.0.1" in out
    assert "File sent successfully." in out
    assert "File received successfully." in out


def test_serve_missing_file_sends_nothing(tmp_path):
    port = _free_port()
    errors = []

    def serve():
        try:
            filetransfer.serve_file(tmp_path / "missing.txt", "127.0.0.1", port)
        except FileNotFoundError as exc:
            errors.append(exc)

    thread = threading.Thread(target=serve)
    thread.start()
    dest = tmp_path / "received.txt"
    count = _receive_with_retry(dest, port)
    thread.join(5)
    assert count == 0
    assert len(errors) == 1


def test_server_main_missing_file_returns_error(tmp_path):
    port = _free_port()
    result = {}
    dest = tmp_path / "out.txt"

    def serve():
        result["code"] = filetransfer.server_main(
            ["--file", str(tmp_path / "missing.txt"), "--host", "127.0.0.1", "--port", str(port)]
        )

    thread = threading.Thread(target=serve)
    thread.start()
    count = _receive_with_retry(dest, port)
    thread.join(5)
    assert count == 0
    assert dest.read_bytes() == b""
    assert result["code"] == 1


def test_client_main_refused(tmp_path, capsys):
    code = filetransfer.client_main(
        ["--file", str(tmp_path / "out.txt"), "--host", "127.0.0.1", "--port", str(_free_port())]
    )
    assert code == 1
    assert "Connection failed" in capsys.readouterr().err