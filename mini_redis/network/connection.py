"""
Async Connection Module

This module implements the client side of a mini-redis session: one TCP
stream, a read buffer, and request/response round trips on top of the
frame codec.

Key asyncio concepts used:
- asyncio.open_connection(): Open the TCP stream
- StreamReader.read(): Pull whatever bytes are available
- StreamWriter.write() / drain(): Send a full command and flush it
- StreamWriter.close() / wait_closed(): Tear the stream down
"""

import asyncio
import logging
from asyncio import StreamReader, StreamWriter
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Optional, Tuple, Union

from ..errors import (
    CommandError,
    ConnectionClosedError,
    ConnectionError,
    ConnectionResetError,
    MiniRedisError,
    ProtocolError,
)
from ..config.settings import settings
from ..protocol.codec import FrameCodec
from ..protocol.commands import Command, Duration, Get, Ping, Set, Value
from ..protocol.frame import Frame, FrameKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Address:
    """Host/port pair identifying the server endpoint."""
    host: str
    port: int

    @classmethod
    def parse(cls, address: Union[str, Tuple[str, int], "Address"]) -> "Address":
        """
        Build an Address from ``"host:port"``, a ``(host, port)`` tuple, or an Address.

        Raises:
            ConnectionError: if the address is malformed.
        """
        if isinstance(address, Address):
            return address
        if isinstance(address, tuple):
            if len(address) != 2:
                raise ConnectionError(f"invalid address {address!r}: expected (host, port)")
            host, port = address
        else:
            host, sep, port = str(address).rpartition(":")
            if not sep:
                raise ConnectionError(f"invalid address {address!r}: expected host:port")
            # IPv6 hosts must be bracketed: [::1]:6379
            if host.startswith("[") and host.endswith("]"):
                host = host[1:-1]
            elif ":" in host:
                raise ConnectionError(
                    f"invalid address {address!r}: IPv6 hosts must be written as [host]:port"
                )
        try:
            port = int(port)
        except (TypeError, ValueError):
            raise ConnectionError(f"invalid port in address {address!r}") from None
        if not host or not 0 < port < 65536:
            raise ConnectionError(f"invalid address {address!r}")
        return cls(host, port)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class ConnectionState(Enum):
    """Lifecycle of a Connection."""
    CONNECTED = "connected"
    FAULTED = "faulted"
    CLOSED = "closed"


class Connection:
    """
    A single client session with a mini-redis server.

    Each call performs one strictly synchronous request/response exchange:
    the full command is written and flushed, then exactly one response
    frame is read. A Connection is single-owner; callers that share one
    between tasks must serialize access themselves.

    Usage:
        conn = await connect("127.0.0.1:6379")
        await conn.set("hello", b"world")
        value = await conn.get("hello")
        await conn.close()

    Attributes:
        address: The server endpoint
        codec: The FrameCodec used to encode requests and parse responses
    """

    def __init__(
            self,
            reader: StreamReader,
            writer: StreamWriter,
            address: Address = None,
            codec: FrameCodec = None,
            read_size: int = None,
    ):
        """
        Wrap an already open stream.

        Args:
            reader: StreamReader for the server stream
            writer: StreamWriter for the server stream
            address: Endpoint the stream is connected to (for logging)
            codec: FrameCodec instance (creates new one if not provided)
            read_size: Bytes requested per read (default from settings)
        """
        self.address = address
        self.codec = codec if codec is not None else FrameCodec()
        self._reader = reader
        self._writer = writer
        self._read_size = read_size if read_size is not None else settings.READ_BUFFER_SIZE
        self._buffer = bytearray()
        self._state = ConnectionState.CONNECTED
        self._fault: Optional[MiniRedisError] = None
        self._stream_closed = False

    @classmethod
    async def open(
            cls,
            address: Union[str, Tuple[str, int], Address],
            codec: FrameCodec = None,
    ) -> "Connection":
        """
        Open a stream to ``address``.

        Raises:
            ConnectionError: if the address cannot be resolved or the
                transport handshake fails.
        """
        addr = Address.parse(address)
        try:
            reader, writer = await asyncio.open_connection(addr.host, addr.port)
        except OSError as exc:
            raise ConnectionError(f"cannot connect to {addr}: {exc}") from exc

        logger.debug(f"Connected to {addr}")
        return cls(reader, writer, address=addr, codec=codec)

    @property
    def state(self) -> ConnectionState:
        return self._state

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def set(self, key: str, value: Value, expire: Optional[Duration] = None) -> None:
        """
        Set ``key`` to ``value``, optionally expiring after ``expire``.

        Raises:
            CommandError: the server rejected the command
            ProtocolError: the reply was not a simple string acknowledgement
        """
        response = await self.execute(Set(key, value, expire))
        if response.kind == FrameKind.SIMPLE:
            return
        await self._reject(Set.name, response)

    async def get(self, key: str) -> Optional[bytes]:
        """
        Get the value of ``key``.

        Returns:
            The stored bytes, or None if the key does not exist.
        """
        response = await self.execute(Get(key))
        if response.kind == FrameKind.BULK:
            return response.value
        if response.kind == FrameKind.NULL:
            return None
        await self._reject(Get.name, response)

    async def ping(self, message: Optional[Value] = None) -> bytes:
        """Ping the server; returns ``b"PONG"`` or the echoed message."""
        response = await self.execute(Ping(message))
        if response.kind == FrameKind.SIMPLE:
            return response.value.encode("utf-8")
        if response.kind == FrameKind.BULK:
            return response.value
        await self._reject(Ping.name, response)

    async def execute(self, command: Command) -> Frame:
        """
        Send one command and return its raw response frame.

        Error frames are returned as-is; interpreting them is up to the
        command method.
        """
        frame = command.to_frame()
        logger.debug(f"Sending {command.name} to {self.address}")
        await self.write_frame(frame)
        return await self.read_frame()

    async def _reject(self, command_name: str, response: Frame) -> None:
        if response.kind == FrameKind.ERROR:
            raise CommandError(response.value)
        error = ProtocolError(
            f"unexpected {response.kind.name} response to {command_name}: {response}"
        )
        await self._set_fault(error)
        raise error

    # ------------------------------------------------------------------
    # Framing
    # ------------------------------------------------------------------

    async def write_frame(self, frame: Frame) -> None:
        """Encode ``frame`` and write it to the stream in full."""
        self._ensure_usable()
        data = self.codec.encode(frame)
        async with self._fault_on_error():
            self._writer.write(data)
            await self._writer.drain()

    async def read_frame(self) -> Frame:
        """
        Read exactly one frame from the stream.

        Buffered bytes are parsed first; the stream is read only when the
        buffer does not hold a complete frame yet.

        Raises:
            ProtocolError: the server sent bytes that are not a valid frame
            ConnectionResetError: the stream ended before a full frame arrived
        """
        self._ensure_usable()
        async with self._fault_on_error():
            while True:
                parsed = self.codec.try_parse(self._buffer)
                if parsed is not None:
                    frame, consumed = parsed
                    del self._buffer[:consumed]
                    logger.debug(f"Received {frame.kind.name} frame from {self.address}")
                    return frame

                chunk = await self._reader.read(self._read_size)
                if not chunk:
                    if self._buffer:
                        raise ConnectionResetError("connection reset by peer mid-frame")
                    raise ConnectionResetError("connection reset by peer")
                self._buffer.extend(chunk)

    @asynccontextmanager
    async def _fault_on_error(self) -> AsyncIterator[None]:
        """
        Move the connection to FAULTED when an exchange fails.

        OSErrors are re-raised as ConnectionResetError. Cancellation while a
        command is in flight also faults the connection, since a partial read
        cannot be resumed.
        """
        try:
            yield
        except (ProtocolError, ConnectionResetError) as exc:
            await self._set_fault(exc)
            raise
        except OSError as exc:
            error = ConnectionResetError(f"connection error: {exc}")
            await self._set_fault(error)
            raise error from exc
        except asyncio.CancelledError:
            await self._set_fault(ConnectionResetError("command cancelled while in flight"))
            raise

    def _ensure_usable(self) -> None:
        if self._state == ConnectionState.CLOSED:
            raise ConnectionClosedError("connection is closed")
        if self._state == ConnectionState.FAULTED:
            raise self._fault.with_traceback(None)

    async def _set_fault(self, error: MiniRedisError) -> None:
        if self._state != ConnectionState.CONNECTED:
            return
        logger.warning(f"Connection to {self.address} faulted: {error}")
        self._state = ConnectionState.FAULTED
        self._fault = error
        self._buffer.clear()
        await self._close_stream()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the stream. Safe to call more than once."""
        if self._state == ConnectionState.CLOSED:
            return

        self._state = ConnectionState.CLOSED
        self._buffer.clear()
        await self._close_stream()
        logger.debug(f"Closed connection to {self.address}")

    async def _close_stream(self) -> None:
        if self._stream_closed:
            return
        self._stream_closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as exc:
            logger.debug(f"Error while closing connection to {self.address}: {exc}")

    async def __aenter__(self) -> "Connection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


async def connect(
        address: Union[str, Tuple[str, int], Address],
        codec: FrameCodec = None,
) -> Connection:
    """
    Open a Connection to ``address``.

    Usage:
        conn = await connect("127.0.0.1:6379")
    """
    return await Connection.open(address, codec=codec)
