# netlab

A set of small networking programs over TCP and UDP sockets. Each one has a
server command and a client command:

- **File transfer** (`netlab.filetransfer`): a TCP server sends one file to
  the first client that connects.
- **UDP echo** (`netlab.udpecho`): a server answers each datagram with
  `Echo: <message>`.
- **TCP echo** (`netlab.tcpecho`): a line-by-line conversation between a
  client and a person typing at the server.
- **TCP chat** (`netlab.tcpchat`): a multi-user chat server with `/list` and
  private messages.
- **UDP chat** (`netlab.udpchat`): the same chat over datagrams. The server
  keeps its registered clients in `clients.txt` so they survive a restart.

The package uses only the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## File transfer

```
netlab-file-server [--file PATH] [--host HOST] [--port PORT]
netlab-file-client [--file PATH] [--host HOST] [--port PORT]
```

The server listens on port 8088 on all addresses, waits for one client,
sends it the file (`send.txt` by default) and exits. The client connects to
`127.0.0.1:8088` by default and writes everything it receives to
`received.txt`, or to the path given with `--file`.

From Python, `serve_file(path, host, port)` and
`receive_file(path, host, port)` do the same and return the number of bytes
transferred; `send_file(sock, path)` streams a file over an already
connected socket.

## UDP echo

```
netlab-udp-echo-server [--host HOST] [--port PORT]
netlab-udp-echo-client
```

The server listens on port 8080 and replies `Echo: <message>` to each
datagram. It prints every message with the sender's address. A datagram
that reads `exit` gets no reply; the server prints `Client disconnected.`
and goes on serving.

The client asks for the server's IP address and port on standard input,
then sends each line you type and prints the reply. Type `exit`, or end the
input, to quit.

From Python, `UDPEchoServer(host, port, out)` can be run with
`serve_forever()` and stopped with `close()`; it is also a context manager.
`echo_client(sock, address, lines, out)` drives a client from any iterable
of lines and returns the replies.

## TCP echo

```
netlab-tcp-echo-server <server-addr> <server-port>
netlab-tcp-echo-client <server-addr> <server-port>
```

The client sends a line and waits for the server's answer. The server
serves each client on its own thread: it prints each incoming line and
sends back the next line typed on its standard input. Messages travel as
NUL-terminated text of at most 100 bytes per read (`encode_message`,
`decode_message`). Each side ends its conversation after it has sent
`quit`, or when the other side closes the connection.

`client_session(sock, lines, out)` and `server_session(sock, lines, out)`
run either side of the conversation over a connected socket.

## TCP chat

```
netlab-tcp-chat-server <port>
netlab-tcp-chat-client <ip> <port>
```

The client first asks for a name; the server accepts names of 2 to 30 bytes
and drops the connection otherwise. After that, each line typed is sent to
the server as a command:

- `/list` shows the names of the connected users
- `/msg <username> <message>` sends a private message, delivered as
  `[Private] <sender>: <message>`
- `exit` leaves the chat

Any other line gets the reply
`Unknown command. Use /list or /msg <username> <message>`. A private
message to a name nobody uses is dropped without a reply.

The server rejects a new connection once 99 clients are connected.

From Python, `ChatServer(host, port, max_clients)` listens on the given
address (`address` gives the bound one), serves with `serve_forever()` and
stops with `close()`. `ChatRegistry` is the thread-safe table of connected
users.

## UDP chat

```
netlab-udp-chat-server <port>
netlab-udp-chat-client <ip> <port>
```

The commands are the same as in the TCP chat. The first non-empty datagram
from a new address registers that address under the given name; an empty
one is answered with `[Server] Please send your name:`. The server keeps
the registered clients in `clients.txt` in the current directory, one
`ip:port name` entry per line, rewrites it on every change and reloads it
on start. When a client quits, with `exit`, Ctrl-C or the end of its input,
it sends `__exit__` and the server removes it from the table.

From Python, `UDPChatServer(host, port, table)` takes a `ClientTable`;
`ClientTable(None)` keeps the table in memory only.
`handle_datagram(data, address)` returns the datagrams it sent.

## What it does not do

- Nothing is encrypted or authenticated; anyone who can reach a server can
  join under any name.
- The file server sends a single file to a single client, then exits.
- The UDP chat does not resend lost datagrams, and a registered client stays
  in `clients.txt` until it sends `__exit__`.