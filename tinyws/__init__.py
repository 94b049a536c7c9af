"""A small WebSocket server toolkit: frames, handshake, upgrade, rooms and a chat demo."""

__version__ = "0.1.0"
__all__ = ["constants", "frame", "handshake", "websocket", "room", "chat"]