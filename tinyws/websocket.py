"""Server-side upgrade of an HTTP connection and the resulting client."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Union

from .constants import CloseStatus, Opcode
from .frame import Frame, decode_frame, encode_frame
from .handshake import generate_accept_key


class UpgradeError(Exception):
    """Raised when a request cannot be upgraded to a WebSocket."""


class _Connection(Protocol):
    def recv(self, size: int) -> bytes: ...

    def sendall(self, data: bytes) -> Any: ...

    def close(self) -> Any: ...


def _header(headers: Any, name: str) -> str:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return ""


class Client:
    """An upgraded connection that exchanges frames."""

    def __init__(self, conn: _Connection) -> None:
        self.conn = conn

    def read(self, size: int = 8192) -> Frame:
        """Receive up to ``size`` bytes and decode them as one frame."""
        data = self.conn.recv(size)
        if not data:
            raise EOFError("connection closed")
        return decode_frame(data)

    def write(self, data: bytes, opcode: Union[Opcode, int] = Opcode.TEXT) -> int:
        """Send ``data`` in one frame and return the number of bytes sent."""
        encoded = encode_frame(data, opcode)
        self.conn.sendall(encoded)
        return len(encoded)

    def close(
        self,
        reason: Optional[bytes] = None,
        code: int = CloseStatus.NORMAL_CLOSURE,
    ) -> None:
        """Send a close frame with ``code`` and ``reason``, then close the connection."""
        payload = bytes([(code >> 8) & 0xFF, code & 0xFF]) + (reason or b"")
        self.conn.sendall(encode_frame(payload, Opcode.CLOSE))
        self.conn.close()


class Websocket:
    """Performs the opening handshake on raw connections."""

    def upgrade(self, headers: Any, conn: _Connection) -> Client:
        """Validate request ``headers``, answer the handshake on ``conn`` and wrap it."""
        if _header(headers, "Upgrade") != "websocket":
            raise UpgradeError("Upgrade header is not websocket")
        if _header(headers, "Connection") != "Upgrade":
            raise UpgradeError("Connection header is not Upgrade")

        key = _header(headers, "Sec-WebSocket-Key")
        if not key:
            raise UpgradeError("sec-websocket-key is not set")

        response = (
            "HTTP/1.1 101 Switching Protocols\r\n"
            "Upgrade: websocket\r\n"
            "Connection: Upgrade\r\n"
            f"Sec-WebSocket-Accept: {generate_accept_key(key)}\r\n\r\n"
        )
        conn.sendall(response.encode("ascii"))
        return Client(conn)