import email.message

import pytest

from tinyws.constants import CloseStatus, Opcode
from tinyws.frame import FrameError, decode_frame, encode_frame
from tinyws.handshake import generate_accept_key
from tinyws.websocket import Client, UpgradeError, Websocket

KEY = "dGhlIHNhbXBsZSBub25jZQ=="


class FakeConn:
    def __init__(self, incoming=()):
        self.incoming = list(incoming)
        self.sent = bytearray()
        self.closed = False
        self.requested = []

    def recv(self, size):
        self.requested.append(size)
        if not self.incoming:
            return b""
        return self.incoming.pop(0)[:size]

    def sendall(self, data):
        self.sent += data

    def close(self):
        self.closed = True


def good_headers():
    return {"Upgrade": "websocket", "Connection": "Upgrade", "Sec-WebSocket-Key": KEY}


def test_upgrade_writes_switching_protocols():
    conn = FakeConn()
    client = Websocket().upgrade(good_headers(), conn)
    assert client.conn is conn
    text = conn.sent.decode("ascii")
    assert text.startswith("HTTP/1.1 101 Switching Protocols\r\n")
    assert f"Sec-WebSocket-Accept: {generate_accept_key(KEY)}\r\n" in text
    assert text.endswith("\r\n\r\n")


def test_upgrade_header_names_are_case_insensitive():
    conn = FakeConn()
    headers = {"upgrade": "websocket", "CONNECTION": "Upgrade", "sec-websocket-key": KEY}
    Websocket().upgrade(headers, conn)
    assert b"101" in bytes(conn.sent)


def test_upgrade_accepts_email_message_headers():
    msg = email.message.Message()
    for name, value in good_headers().items():
        msg[name] = value
    conn = FakeConn()
    Websocket().upgrade(msg, conn)
    assert generate_accept_key(KEY).encode() in bytes(conn.sent)


@pytest.mark.parametrize(
    "missing, message",
    [
        ("Upgrade", "Upgrade header"),
        ("Connection", "Connection header"),
        ("Sec-WebSocket-Key", "sec-websocket-key"),
    ],
)
def test_upgrade_rejects_missing_headers(missing, message):
    headers = good_headers()
    del headers[missing]
    conn = FakeConn()
    with pytest.raises(UpgradeError, match=message):
        Websocket().upgrade(headers, conn)
    assert conn.sent == b""


def test_upgrade_values_are_exact():
    headers = good_headers()
    headers["Connection"] = "keep-alive, Upgrade"
    with pytest.raises(UpgradeError):
        Websocket().upgrade(headers, FakeConn())


def test_read_decodes_frame():
    conn = FakeConn([encode_frame(b"payload", Opcode.BINARY)])
    frame = Client(conn).read(1024)
    assert frame.opcode is Opcode.BINARY
    assert frame.payload == b"payload"
    assert conn.requested == [1024]


def test_read_on_closed_connection_raises():
    with pytest.raises(EOFError):
        Client(FakeConn()).read()


def test_read_invalid_frame_raises():
    with pytest.raises(FrameError):
        Client(FakeConn([b"\xf1\x00"])).read()


def test_write_sends_encoded_frame():
    conn = FakeConn()
    written = Client(conn).write(b"hello", Opcode.TEXT)
    assert written == len(conn.sent)
    frame = decode_frame(bytes(conn.sent))
    assert frame.opcode is Opcode.TEXT
    assert frame.payload == b"hello"


def test_close_sends_code_and_reason():
    conn = FakeConn()
    Client(conn).close(b"bye", CloseStatus.GOING_AWAY)
    frame = decode_frame(bytes(conn.sent))
    assert frame.opcode is Opcode.CLOSE
    assert int.from_bytes(frame.payload[:2], "big") == CloseStatus.GOING_AWAY
    assert frame.payload[2:] == b"bye"
    assert conn.closed is True


def test_close_defaults_to_normal_closure_without_reason():
    conn = FakeConn()
    Client(conn).close()
    frame = decode_frame(bytes(conn.sent))
    assert frame.payload_length == 2
    assert int.from_bytes(frame.payload, "big") == CloseStatus.NORMAL_CLOSURE
    assert conn.closed is True