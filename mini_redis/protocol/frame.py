"""
Frame Definitions

A frame is one self-delimited unit of the wire protocol. Frames form a
recursive tagged variant: an array frame holds other frames.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional


class FrameKind(Enum):
    """Enumeration of frame variants, valued by their wire prefix."""
    SIMPLE = "+"
    ERROR = "-"
    INTEGER = ":"
    BULK = "$"
    ARRAY = "*"
    NULL = "_"


@dataclass(frozen=True)
class Frame:
    """
    Represents a single protocol frame.

    Attributes:
        kind: The frame variant
        value: Payload for the variant:
            SIMPLE / ERROR -> str
            INTEGER        -> int
            BULK           -> bytes
            ARRAY          -> tuple of Frame, or None for a null array
            NULL           -> None

    A null bulk string is represented by the NULL variant, so
    ``Frame.bulk(None) == Frame.null()``.
    """
    kind: FrameKind
    value: Any = None

    @classmethod
    def simple(cls, text: str) -> "Frame":
        return cls(FrameKind.SIMPLE, text)

    @classmethod
    def error(cls, text: str) -> "Frame":
        return cls(FrameKind.ERROR, text)

    @classmethod
    def integer(cls, number: int) -> "Frame":
        return cls(FrameKind.INTEGER, int(number))

    @classmethod
    def bulk(cls, data: Optional[bytes]) -> "Frame":
        """Create a bulk string frame; ``None`` gives the null frame."""
        if data is None:
            return cls.null()
        return cls(FrameKind.BULK, bytes(data))

    @classmethod
    def array(cls, items: Optional[Iterable["Frame"]] = ()) -> "Frame":
        """Create an array frame; ``None`` gives the null array."""
        if items is None:
            return cls(FrameKind.ARRAY, None)
        return cls(FrameKind.ARRAY, tuple(items))

    @classmethod
    def null(cls) -> "Frame":
        return cls(FrameKind.NULL, None)

    @property
    def is_null(self) -> bool:
        """True for the null frame and for the null array."""
        return self.value is None and self.kind in (FrameKind.NULL, FrameKind.ARRAY)

    def __str__(self) -> str:
        if self.kind in (FrameKind.SIMPLE, FrameKind.ERROR):
            return self.value
        if self.kind == FrameKind.INTEGER:
            return str(self.value)
        if self.kind == FrameKind.BULK:
            try:
                return self.value.decode("utf-8")
            except UnicodeDecodeError:
                return repr(self.value)
        if self.kind == FrameKind.ARRAY and self.value is not None:
            return " ".join(str(item) for item in self.value)
        return "(nil)"
