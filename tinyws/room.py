"""A chat room that fans messages out to every joined client."""

from __future__ import annotations

import logging
import queue
import threading
from contextlib import suppress
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Optional, Union

from .constants import CloseStatus, Opcode

logger = logging.getLogger(__name__)


def _log_error(error: BaseException) -> None:
    logger.error("%s", error)


@dataclass(frozen=True)
class Message:
    """Data posted to a room together with the client that sent it."""

    data: bytes
    client: Any


@dataclass
class RoomOption:
    """Behaviour switches and event callbacks of a room."""

    restricted_broadcast: bool = False
    on_error: Callable[[BaseException], None] = field(default=_log_error)
    on_enter: Optional[Callable[[Message], None]] = None
    on_leave: Optional[Callable[[Message], None]] = None
    on_message: Optional[Callable[[Message], None]] = None


class _Event(Enum):
    ENTER = auto()
    LEAVE = auto()
    MESSAGE = auto()


class Room:
    """A set of clients that receive everything broadcast to the room.

    Enter, leave and message events are queued by the ``broadcast_*``
    methods and handled in order by :meth:`run`.
    """

    def __init__(self, name: str, option: Optional[RoomOption] = None) -> None:
        self.name = name
        self.option = option if option is not None else RoomOption()
        self._clients: dict[Any, None] = {}
        self._lock = threading.RLock()
        self._events: queue.Queue = queue.Queue()
        self._closed = False

    def __contains__(self, client: Any) -> bool:
        with self._lock:
            return client in self._clients

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def run(self) -> None:
        """Handle queued events until the room is closed."""
        for kind, msg in iter(self._events.get, None):
            if kind is _Event.ENTER:
                self.add(msg.client)
                callback = self.option.on_enter
            elif kind is _Event.LEAVE:
                self.remove(msg.client)
                callback = self.option.on_leave
            else:
                callback = self.option.on_message

            with suppress(OSError):
                self.broadcast(msg.data, Opcode.TEXT)
            if callback is not None:
                callback(msg)

    def add(self, client: Any) -> None:
        """Put ``client`` in the room."""
        with self._lock:
            self._clients[client] = None

    def remove(self, client: Any) -> None:
        """Take ``client`` out of the room; unknown clients are ignored."""
        with self._lock:
            self._clients.pop(client, None)

    def close(self) -> None:
        """Close every client, empty the room and stop :meth:`run`."""
        with self._lock:
            if self._closed:
                raise RuntimeError("room is already closed")
            for client in self._clients:
                try:
                    client.close(None, CloseStatus.NORMAL_CLOSURE)
                except OSError as error:
                    self.option.on_error(error)
            self._clients = {}
            self._closed = True
            self._events.put(None)

    def broadcast(self, message: bytes, opcode: Union[Opcode, int]) -> None:
        """Write ``message`` to every client in the room.

        A failed write is passed to ``on_error``, or raised when the room
        uses restricted broadcast.
        """
        with self._lock:
            for client in list(self._clients):
                try:
                    client.write(message, opcode)
                except OSError as error:
                    if self.option.restricted_broadcast:
                        raise
                    self.option.on_error(error)

    def _post(self, kind: _Event, msg: bytes, client: Any) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("room is closed")
            self._events.put((kind, Message(msg, client)))

    def broadcast_enter(self, msg: bytes, client: Any) -> None:
        """Queue ``client`` joining the room with announcement ``msg``."""
        self._post(_Event.ENTER, msg, client)

    def broadcast_leave(self, msg: bytes, client: Any) -> None:
        """Queue ``client`` leaving the room with announcement ``msg``."""
        self._post(_Event.LEAVE, msg, client)

    def broadcast_message(self, msg: bytes, client: Any) -> None:
        """Queue ``msg`` from ``client`` for every member of the room."""
        self._post(_Event.MESSAGE, msg, client)