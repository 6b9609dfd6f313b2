"""kickchat - Kick chatroom lookup and realtime chat feed."""

__version__ = "0.1.0"
