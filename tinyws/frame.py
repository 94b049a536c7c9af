"""Encoding and decoding of single WebSocket frames."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Union

from .constants import Opcode


class FrameError(ValueError):
    """Raised when bytes cannot be decoded as a frame."""


@dataclass
class Frame:
    """A decoded frame; the payload is already unmasked."""

    fin: bool = False
    rsv1: bool = False
    rsv2: bool = False
    rsv3: bool = False
    opcode: Union[Opcode, int] = Opcode.CONTINUATION
    masked: bool = False
    masking_key: bytes = b"\x00\x00\x00\x00"
    payload_length: int = 0
    payload: bytes = b""


def _as_opcode(value: int) -> Union[Opcode, int]:
    try:
        return Opcode(value)
    except ValueError:
        return value


def _require(data: bytes, end: int) -> None:
    if len(data) < end:
        raise FrameError("data is too short")


def decode_frame(data: bytes) -> Frame:
    """Decode one frame from the start of ``data``.

    Extensions are not supported, so any RSV bit set is an error.
    """
    data = bytes(data)
    _require(data, 1)

    first = data[0]
    frame = Frame(
        fin=bool(first & 0x80),
        rsv1=bool(first & 0x40),
        rsv2=bool(first & 0x20),
        rsv3=bool(first & 0x10),
        opcode=_as_opcode(first & 0x0F),
    )
    if frame.rsv1 or frame.rsv2 or frame.rsv3:
        raise FrameError("RSV must be 0")

    _require(data, 2)
    second = data[1]
    frame.masked = bool(second & 0x80)
    length = second & 0x7F
    offset = 2

    if length == 126:
        _require(data, offset + 2)
        (length,) = struct.unpack_from(">H", data, offset)
        offset += 2
    elif length == 127:
        _require(data, offset + 8)
        (length,) = struct.unpack_from(">Q", data, offset)
        offset += 8
    frame.payload_length = length

    if frame.masked:
        _require(data, offset + 4)
        frame.masking_key = data[offset:offset + 4]
        offset += 4

    _require(data, offset + length)
    payload = data[offset:offset + length]

    if frame.masked:
        key = frame.masking_key
        payload = bytes(byte ^ key[i % 4] for i, byte in enumerate(payload))

    frame.payload = payload
    return frame


def encode_frame(payload: bytes, opcode: Union[Opcode, int]) -> bytes:
    """Encode an unmasked, final server frame carrying ``payload``."""
    payload = bytes(payload)
    size = len(payload)
    header = bytearray([0x80 | int(opcode)])

    if size <= 125:
        header.append(size)
    elif size <= 0xFFFF:
        header.append(126)
        header += struct.pack(">H", size)
    else:
        header.append(127)
        header += struct.pack(">Q", size)

    return bytes(header) + payload