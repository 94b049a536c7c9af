# tinyws

tinyws is a small WebSocket (RFC 6455) server toolkit for Python. It uses only
the standard library. It contains these modules:

- `tinyws.constants` holds `MAGIC_KEY` and the enumerations `Opcode` and
  `CloseStatus`.
- `tinyws.frame` holds the `Frame` dataclass and the functions `decode_frame`
  and `encode_frame`. Malformed input raises `FrameError`, which is a subclass
  of `ValueError`.
- `tinyws.handshake` holds `generate_accept_key`. It computes the
  `Sec-WebSocket-Accept` value from a client's key.
- `tinyws.websocket` holds `Websocket.upgrade`, which performs the opening
  handshake on an already connected socket and returns a `Client`.
- `tinyws.room` holds `Room`, a broadcast group of clients. Its callbacks are
  set with `RoomOption`.
- `tinyws.chat` holds a demo chat server built from the modules above.

## Installation

```
pip install .
```

To also install the test dependencies:

```
pip install .[test]
```

## Frames

```python
from tinyws.constants import Opcode
from tinyws.frame import decode_frame, encode_frame

raw = encode_frame(b"hello", Opcode.TEXT)
frame = decode_frame(raw)
assert frame.fin and frame.opcode is Opcode.TEXT
assert frame.payload == b"hello"
```

`encode_frame` always builds a final frame without a mask, as a server sends
it. It picks the 7-bit, 16-bit or 64-bit length form to fit the payload.

`decode_frame` reads one frame from the start of the data. It unmasks the
payload of a masked frame, and it sets `payload_length` and `masking_key`. It
raises `FrameError("data is too short")` when the data ends early, and
`FrameError("RSV must be 0")` when any reserved bit is set, because extensions
are not supported. An opcode value that `Opcode` does not define is kept as a
plain `int`.

## Handshake key

```python
from tinyws.handshake import generate_accept_key

generate_accept_key("dGhlIHNhbXBsZSBub25jZQ==")
# 's3pPLMBiTxaQ9kYGzzhZRbK+xOo='
```

## Upgrading a connection

`Websocket().upgrade(headers, conn)` takes two arguments:

- `headers` is any mapping that has `.items()`. Header names are matched
  without regard to case.
- `conn` is a socket-like object with `recv`, `sendall` and `close`.

The method requires `Upgrade: websocket` and `Connection: Upgrade`, matched
exactly, and a non-empty `Sec-WebSocket-Key`. If a check fails it raises
`UpgradeError`. Otherwise it writes the `101 Switching Protocols` response and
returns a `Client`.

The `Client` has three methods:

- `read(size=8192)` calls `recv` once and decodes the bytes as a single frame.
  It raises `EOFError` when the peer has closed the connection.
- `write(data, opcode=Opcode.TEXT)` sends one frame and returns the number of
  bytes written.
- `close(reason=None, code=CloseStatus.NORMAL_CLOSURE)` sends a close frame
  carrying the code and the reason, then closes the connection.

## Rooms

A `Room` holds a set of clients. Any object with `write(data, opcode)` and
`close(reason, code)` methods can be a client. The three methods
`broadcast_enter`, `broadcast_leave` and `broadcast_message` put events on a
queue. `room.run()` handles those events in order:

- An enter event adds the client to the room.
- A leave event removes the client from the room.
- Every event is then sent as a text frame to every client in the room, and
  the matching callback is called (`on_enter`, `on_leave` or `on_message`).

`broadcast(message, opcode)` writes directly to every client. By default, an
`OSError` from a client is passed to `on_error`, which logs it, and sending
continues. With `restricted_broadcast=True` the error is raised instead.

`room.close()` does the following:

- It sends a normal-closure frame to every client.
- It empties the room.
- It stops `run`.

Closing a room twice raises `RuntimeError`. Posting an event to a closed room
also raises `RuntimeError`. `len(room)` returns the number of clients, and
`client in room` tests whether a client is in the room.

```python
import threading
from tinyws.room import Room, RoomOption

room = Room("general", RoomOption(on_message=lambda m: print(m.data)))
threading.Thread(target=room.run, daemon=True).start()
```

## Chat server

Start the demo chat server with this command:

```
tinyws-chat [--host HOST] [--port PORT] [--index PATH]
```

By default the server listens on all interfaces, port 8080. It has one room,
named `general`.

- `GET /ws` upgrades the connection to a WebSocket. The optional `username`
  query parameter sets your name. Without it you are named
  `Guest_<unix time>`. If the upgrade fails, the server answers with status
  500.
- Any other `GET` serves the file given by `--index`. The default is
  `public/index.html`, relative to the working directory. If the file cannot
  be read, the server answers with status 404.

Chat messages are JSON objects with the fields `type`, `username`, `content`
and `timestamp`. The value of `type` is one of the following (see
`MessageType`):

| `type` | Meaning |
|--------|---------|
| 0      | join    |
| 1      | leave   |
| 2      | message |

When a message arrives, the server replaces `username` and `timestamp` with its
own values and then broadcasts the message. Invalid messages are logged and
dropped. `make_server(host, port, room)` builds the same server for use in your
own code.

## Limitations

- No chat page is included. You must supply the HTML file that `--index`
  points to.
- `Client.read` decodes only what a single `recv` returns. Fragmented messages
  are not put back together. Ping frames are not answered, and close frames
  from the peer are not answered.
- There is no WebSocket client side. There is no TLS support, no compression,
  and no support for any other extension.