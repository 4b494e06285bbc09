"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests,
including a small in-process server that speaks the frame protocol.
"""

import asyncio
import socket
from contextlib import closing
from typing import AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio

from mini_redis.network.connection import Connection, connect
from mini_redis.protocol.codec import FrameCodec
from mini_redis.protocol.frame import Frame


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Codec Fixtures
# ============================================================================

@pytest.fixture
def codec() -> FrameCodec:
    """Create a FrameCodec with default limits."""
    return FrameCodec()


@pytest.fixture
def small_codec() -> FrameCodec:
    """Create a FrameCodec with tight limits for limit testing."""
    return FrameCodec(
        max_frame_size=16,
        max_line_length=32,
        max_array_length=4,
        max_nesting_depth=2,
    )


# ============================================================================
# Fake Server
# ============================================================================

class FakeServer:
    """
    In-process server for exercising the client.

    Handles SET, GET and PING against a dict, in the order requests arrive.
    Behavior can be overridden per test:

    Attributes:
        store: Values stored by SET
        requests: Every request received, as lists of bytes arguments
        error_keys: Keys for which SET/GET reply with ``-ERR wrong type``
        script: Raw replies sent instead of the normal ones, in order
        chunk_size: If set, replies are written this many bytes at a time
        drop_after: Close the client once this many requests arrived; a
            scripted reply for the last one is still sent first
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.codec = FrameCodec()
        self.store: Dict[bytes, bytes] = {}
        self.requests: List[List[bytes]] = []
        self.error_keys = set()
        self.script: List[bytes] = []
        self.chunk_size: Optional[int] = None
        self.drop_after: Optional[int] = None
        self._server: Optional[asyncio.Server] = None

    async def start(self) -> None:
        self._server = await asyncio.start_server(self.handle_client, self.host, self.port)

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        buffer = bytearray()
        try:
            while True:
                parsed = self.codec.try_parse(buffer)
                if parsed is None:
                    data = await reader.read(4096)
                    if not data:
                        break
                    buffer.extend(data)
                    continue

                frame, consumed = parsed
                del buffer[:consumed]
                args = [item.value for item in frame.value]
                self.requests.append(args)

                reply = self.script.pop(0) if self.script else None
                if self.drop_after is not None and len(self.requests) >= self.drop_after:
                    if reply:
                        await self._send(writer, reply)
                    break

                if reply is None:
                    reply = self.codec.encode(self.dispatch(args))
                await self._send(writer, reply)
        except ConnectionResetError:
            pass
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    async def _send(self, writer: asyncio.StreamWriter, reply: bytes) -> None:
        if self.chunk_size is None:
            writer.write(reply)
            await writer.drain()
            return
        for i in range(0, len(reply), self.chunk_size):
            writer.write(reply[i:i + self.chunk_size])
            await writer.drain()
            await asyncio.sleep(0)

    def dispatch(self, args: List[bytes]) -> Frame:
        name = args[0].upper()
        if name == b"PING":
            return Frame.bulk(args[1]) if len(args) > 1 else Frame.simple("PONG")
        if name == b"SET" and len(args) in (3, 5):
            if args[1] in self.error_keys:
                return Frame.error("ERR wrong type")
            self.store[args[1]] = args[2]
            return Frame.simple("OK")
        if name == b"GET" and len(args) == 2:
            if args[1] in self.error_keys:
                return Frame.error("ERR wrong type")
            return Frame.bulk(self.store.get(args[1]))
        return Frame.error(f"ERR unknown command '{args[0].decode()}'")


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest_asyncio.fixture
async def server(server_port: int) -> AsyncGenerator[FakeServer, None]:
    """Start a FakeServer on a free port and stop it after the test."""
    srv = FakeServer('127.0.0.1', server_port)
    await srv.start()

    yield srv

    await srv.stop()


@pytest_asyncio.fixture
async def connection(server: FakeServer) -> AsyncGenerator[Connection, None]:
    """Open a client Connection to the fake server."""
    conn = await connect(f"127.0.0.1:{server.port}")

    yield conn

    await conn.close()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
