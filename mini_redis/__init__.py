"""
mini-redis: asyncio client for a Redis-compatible key-value server

Opens a TCP connection, encodes commands as arrays of bulk strings, and
parses framed responses incrementally off the stream.

Usage:
    import asyncio
    import mini_redis

    async def main():
        async with await mini_redis.connect("127.0.0.1:6379") as conn:
            await conn.set("hello", b"world")
            print(await conn.get("hello"))

    asyncio.run(main())
"""

from .errors import (
    CommandError,
    ConnectionClosedError,
    ConnectionError,
    ConnectionResetError,
    MiniRedisError,
    ProtocolError,
)
from .network.connection import Address, Connection, ConnectionState, connect
from .protocol.codec import FrameCodec
from .protocol.frame import Frame, FrameKind

__version__ = "0.1.0"

__all__ = [
    "Address",
    "CommandError",
    "Connection",
    "ConnectionClosedError",
    "ConnectionError",
    "ConnectionResetError",
    "ConnectionState",
    "Frame",
    "FrameCodec",
    "FrameKind",
    "MiniRedisError",
    "ProtocolError",
    "connect",
]
