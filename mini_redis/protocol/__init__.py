"""Protocol module for mini-redis."""

from .codec import FrameCodec
from .commands import Command, Get, Ping, Set
from .frame import Frame, FrameKind

__all__ = [
    "Command",
    "Frame",
    "FrameCodec",
    "FrameKind",
    "Get",
    "Ping",
    "Set",
]
