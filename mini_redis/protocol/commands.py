"""
Protocol Command Definitions

Each command is a small dataclass that knows how to turn itself into the
Array-of-Bulk-String frame the server expects:

    SET <key> <value> [PX <milliseconds>]
    GET <key>
    PING [message]
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import ClassVar, List, Optional, Union

from .frame import Frame

Value = Union[bytes, bytearray, memoryview, str]
Duration = Union[timedelta, int, float]


def to_bytes(value: Value) -> bytes:
    """Coerce a command argument to bytes (str is encoded as UTF-8)."""
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"expected bytes or str, got {type(value).__name__}")


def to_milliseconds(expire: Duration) -> int:
    """
    Convert an expiry (timedelta or seconds) to whole milliseconds.

    Raises:
        ValueError: if the expiry is not strictly positive once rounded.
    """
    if isinstance(expire, timedelta):
        seconds = expire.total_seconds()
    elif isinstance(expire, (int, float)) and not isinstance(expire, bool):
        seconds = float(expire)
    else:
        raise TypeError(f"expected timedelta or seconds, got {type(expire).__name__}")

    millis = round(seconds * 1000)
    if millis <= 0:
        raise ValueError(f"expiry must be at least 1 millisecond, got {expire!r}")
    return millis


def _command_frame(*parts: bytes) -> Frame:
    return Frame.array(Frame.bulk(part) for part in parts)


@dataclass
class Set:
    """
    Set ``key`` to hold ``value``, optionally expiring after ``expire``.

    Attributes:
        key: The key to set
        value: The value to store (str is stored as its UTF-8 bytes)
        expire: Optional time-to-live (timedelta, or seconds)
    """
    name: ClassVar[str] = "SET"

    key: str
    value: Value
    expire: Optional[Duration] = None

    def __post_init__(self):
        self.value = to_bytes(self.value)
        if self.expire is not None:
            # Validate early so nothing is written for a bad expiry
            to_milliseconds(self.expire)

    def to_frame(self) -> Frame:
        parts: List[bytes] = [b"SET", to_bytes(self.key), self.value]
        if self.expire is not None:
            parts += [b"PX", str(to_milliseconds(self.expire)).encode()]
        return _command_frame(*parts)


@dataclass
class Get:
    """Get the value of ``key``."""
    name: ClassVar[str] = "GET"

    key: str

    def to_frame(self) -> Frame:
        return _command_frame(b"GET", to_bytes(self.key))


@dataclass
class Ping:
    """Ping the server, optionally echoing ``message`` back."""
    name: ClassVar[str] = "PING"

    message: Optional[Value] = None

    def to_frame(self) -> Frame:
        if self.message is None:
            return _command_frame(b"PING")
        return _command_frame(b"PING", to_bytes(self.message))


Command = Union[Set, Get, Ping]
