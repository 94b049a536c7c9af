"""A small chat server: one room, a static page and a WebSocket endpoint."""

from __future__ import annotations

import argparse
import json
import logging
import threading
import time
from contextlib import suppress
from dataclasses import asdict, dataclass
from enum import IntEnum
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Optional, Sequence, Union
from urllib.parse import parse_qs, urlsplit

from .constants import CloseStatus
from .frame import FrameError
from .room import Message, Room, RoomOption
from .websocket import UpgradeError, Websocket

logger = logging.getLogger(__name__)

DEFAULT_INDEX = "public/index.html"


class MessageType(IntEnum):
    """Kinds of chat message."""

    JOIN = 0
    LEAVE = 1
    MESSAGE = 2


@dataclass
class ChatMessage:
    """A chat message as exchanged in JSON with browsers."""

    type: int = 0
    username: str = ""
    content: str = ""
    timestamp: int = 0

    def to_json(self) -> bytes:
        """Return the compact JSON encoding of the message."""
        fields = asdict(self)
        fields["type"] = int(self.type)
        return json.dumps(fields, separators=(",", ":")).encode()

    @classmethod
    def from_json(cls, data: Union[bytes, str]) -> "ChatMessage":
        """Parse a message; absent fields keep their zero values.

        Raises ValueError for invalid JSON or fields of the wrong type.
        """
        parsed = json.loads(data)
        if parsed is None:
            return cls()
        if not isinstance(parsed, dict):
            raise ValueError("chat message must be a JSON object")

        expected = {"type": int, "username": str, "content": str, "timestamp": int}
        values = {}
        for name, kind in expected.items():
            if name not in parsed:
                continue
            value = parsed[name]
            if not isinstance(value, kind) or isinstance(value, bool):
                raise ValueError(f"field {name!r} must be {kind.__name__}")
            values[name] = value

        message = cls(**values)
        with suppress(ValueError):
            message.type = MessageType(message.type)
        return message


class ChatHandler(BaseHTTPRequestHandler):
    """Serves the chat page and upgrades ``/ws`` requests to WebSockets."""

    def do_GET(self) -> None:
        url = urlsplit(self.path)
        if url.path == "/ws":
            self._serve_websocket(parse_qs(url.query))
        else:
            self._serve_index()

    def _serve_index(self) -> None:
        index = Path(getattr(self.server, "index_path", DEFAULT_INDEX))
        try:
            body = index.read_bytes()
        except OSError:
            self.send_error(404, "404 page not found")
            return
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _serve_websocket(self, query: dict) -> None:
        room: Room = self.server.room
        username = (query.get("username") or [""])[0]
        if not username:
            username = f"Guest_{int(time.time())}"

        try:
            client = Websocket().upgrade(self.headers, self.connection)
        except UpgradeError as error:
            self.send_error(500, str(error))
            return
        self.close_connection = True

        try:
            joined = ChatMessage(
                MessageType.JOIN,
                username,
                f"{username} joined the chat",
                int(time.time()),
            )
            room.broadcast_enter(joined.to_json(), client)

            while True:
                try:
                    frame = client.read(8192)
                except (OSError, EOFError, FrameError) as error:
                    logger.info("Error reading from client: %s", error)
                    break

                try:
                    message = ChatMessage.from_json(frame.payload)
                except ValueError as error:
                    logger.info("Invalid message format: %s", error)
                    continue

                message.username = username
                message.timestamp = int(time.time())
                room.broadcast_message(message.to_json(), client)

            left = ChatMessage(
                MessageType.LEAVE,
                username,
                f"{username} left the chat",
                int(time.time()),
            )
            room.broadcast_leave(left.to_json(), client)
        finally:
            with suppress(OSError):
                client.close(None, CloseStatus.NORMAL_CLOSURE)


def make_server(host: str, port: int, room: Room) -> ThreadingHTTPServer:
    """Create an HTTP server whose handlers share ``room``."""
    server = ThreadingHTTPServer((host, port), ChatHandler)
    server.daemon_threads = True
    server.room = room
    server.index_path = DEFAULT_INDEX
    return server


def _log_event(label: str) -> callable:
    def handle(msg: Message) -> None:
        logger.info("%s %s", label, msg.data.decode(errors="replace"))

    return handle


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the chat server until interrupted."""
    parser = argparse.ArgumentParser(description="WebSocket chat server")
    parser.add_argument("--host", default="")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--index", default=DEFAULT_INDEX)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    room = Room(
        "general",
        RoomOption(
            on_error=lambda error: logger.error("Room error: %s", error),
            on_enter=_log_event("User entered:"),
            on_leave=_log_event("User left:"),
            on_message=_log_event("New message:"),
        ),
    )
    threading.Thread(target=room.run, daemon=True).start()

    server = make_server(args.host, args.port, room)
    server.index_path = args.index
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
        room.close()
    return 0