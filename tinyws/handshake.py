"""Computation of the Sec-WebSocket-Accept value."""

import base64
import hashlib

from .constants import MAGIC_KEY


def generate_accept_key(key: str) -> str:
    """Return the accept value for a client's Sec-WebSocket-Key."""
    digest = hashlib.sha1((key + MAGIC_KEY).encode()).digest()
    return base64.b64encode(digest).decode("ascii")