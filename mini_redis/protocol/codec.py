"""
Frame Codec Module

This module converts Frame values to wire bytes and incrementally parses
bytes read off a stream back into frames.

Wire format (every line terminated by CRLF):
    +<text>            Simple string
    -<text>            Error
    :<decimal>         Integer
    $<n> <n bytes>     Bulk string ($-1 is null)
    *<n> <n frames>    Array (*-1 is the null array)

The codec does no I/O. The connection calls try_parse() with whatever
bytes it has buffered and reads more when nothing complete is there yet.
"""

from typing import Optional, Tuple, Union

from ..config.settings import settings
from ..errors import ProtocolError
from .frame import Frame, FrameKind

CRLF = b"\r\n"

Buffer = Union[bytes, bytearray]


class FrameCodec:
    """
    Encoder and pull-based parser for protocol frames.

    Limits protect against unbounded buffering; exceeding any of them is a
    fatal ProtocolError rather than a request for more bytes.

    Usage:
        codec = FrameCodec()
        data = codec.encode(Frame.simple("OK"))
        frame, consumed = codec.try_parse(b"+OK\\r\\n")
    """

    def __init__(
            self,
            max_frame_size: int = None,
            max_line_length: int = None,
            max_array_length: int = None,
            max_nesting_depth: int = None,
    ):
        """
        Initialize the codec with limits (defaults from settings).

        Args:
            max_frame_size: Largest bulk string body accepted, in bytes
            max_line_length: Longest header or simple line accepted, in bytes
            max_array_length: Largest element count accepted for an array
            max_nesting_depth: Deepest array nesting accepted
        """
        self.max_frame_size = (
            max_frame_size if max_frame_size is not None else settings.MAX_FRAME_SIZE
        )
        self.max_line_length = (
            max_line_length if max_line_length is not None else settings.MAX_LINE_LENGTH
        )
        self.max_array_length = (
            max_array_length if max_array_length is not None else settings.MAX_ARRAY_LENGTH
        )
        self.max_nesting_depth = (
            max_nesting_depth if max_nesting_depth is not None else settings.MAX_NESTING_DEPTH
        )

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def encode(self, frame: Frame) -> bytes:
        """
        Serialize a frame to its wire representation.

        Examples:
            >>> FrameCodec().encode(Frame.bulk(b"world"))
            b'$5\\r\\nworld\\r\\n'
            >>> FrameCodec().encode(Frame.null())
            b'$-1\\r\\n'
        """
        out = bytearray()
        self._encode_into(frame, out)
        return bytes(out)

    def _encode_into(self, frame: Frame, out: bytearray) -> None:
        kind = frame.kind

        if kind in (FrameKind.SIMPLE, FrameKind.ERROR):
            text = frame.value
            if "\r" in text or "\n" in text:
                raise ValueError(f"{kind.name.lower()} frame text must not contain CR or LF")
            out += kind.value.encode() + text.encode("utf-8") + CRLF
        elif kind == FrameKind.INTEGER:
            out += b":%d\r\n" % frame.value
        elif kind == FrameKind.BULK:
            out += b"$%d\r\n" % len(frame.value)
            out += frame.value
            out += CRLF
        elif kind == FrameKind.NULL:
            out += b"$-1\r\n"
        elif kind == FrameKind.ARRAY:
            if frame.value is None:
                out += b"*-1\r\n"
                return
            out += b"*%d\r\n" % len(frame.value)
            for item in frame.value:
                self._encode_into(item, out)
        else:
            raise ValueError(f"cannot encode frame kind {kind!r}")

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def try_parse(self, buffer: Union[Buffer, memoryview]) -> Optional[Tuple[Frame, int]]:
        """
        Parse exactly one frame from the front of the buffer.

        Args:
            buffer: Bytes received so far (not modified)

        Returns:
            (frame, bytes_consumed) when a complete frame is available,
            None when the buffer only holds part of a frame.

        Raises:
            ProtocolError: the bytes can never form a valid frame.
        """
        if isinstance(buffer, memoryview):
            buffer = buffer.tobytes()
        return self._parse_at(buffer, 0, 0)

    def _parse_at(self, buf: Buffer, pos: int, depth: int) -> Optional[Tuple[Frame, int]]:
        if pos >= len(buf):
            return None

        prefix = bytes(buf[pos:pos + 1])
        if prefix not in _PREFIXES:
            raise ProtocolError(f"invalid frame type byte {prefix!r}")

        line = self._read_line(buf, pos + 1)
        if line is None:
            return None
        text, pos = line

        if prefix == b"+":
            return Frame.simple(self._decode_text(text)), pos
        if prefix == b"-":
            return Frame.error(self._decode_text(text)), pos
        if prefix == b":":
            return Frame.integer(self._parse_integer(text)), pos
        if prefix == b"$":
            return self._parse_bulk(buf, text, pos)
        return self._parse_array(buf, text, pos, depth)

    def _parse_bulk(self, buf: Buffer, header: bytes, pos: int) -> Optional[Tuple[Frame, int]]:
        length = self._parse_length(header)
        if length == -1:
            return Frame.null(), pos
        if length > self.max_frame_size:
            raise ProtocolError(
                f"bulk string length {length} exceeds maximum of {self.max_frame_size}"
            )

        end = pos + length
        if len(buf) < end + 2:
            return None
        if bytes(buf[end:end + 2]) != CRLF:
            raise ProtocolError("bulk string is not terminated by CRLF")
        return Frame.bulk(bytes(buf[pos:end])), end + 2

    def _parse_array(
            self,
            buf: Buffer,
            header: bytes,
            pos: int,
            depth: int,
    ) -> Optional[Tuple[Frame, int]]:
        count = self._parse_length(header)
        if count == -1:
            return Frame.array(None), pos
        if count > self.max_array_length:
            raise ProtocolError(
                f"array length {count} exceeds maximum of {self.max_array_length}"
            )
        if depth >= self.max_nesting_depth:
            raise ProtocolError(f"array nesting exceeds maximum depth of {self.max_nesting_depth}")

        items = []
        for _ in range(count):
            parsed = self._parse_at(buf, pos, depth + 1)
            if parsed is None:
                return None
            item, pos = parsed
            items.append(item)
        return Frame.array(items), pos

    def _read_line(self, buf: Buffer, start: int) -> Optional[Tuple[bytes, int]]:
        """Return (line, position after CRLF), or None if no CRLF yet."""
        limit = start + self.max_line_length + 2
        end = buf.find(CRLF, start, limit)
        if end == -1:
            if len(buf) >= limit:
                raise ProtocolError(
                    f"line exceeds maximum length of {self.max_line_length} bytes"
                )
            return None
        return bytes(buf[start:end]), end + 2

    @staticmethod
    def _decode_text(raw: bytes) -> str:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"invalid UTF-8 in frame text: {exc}") from exc

    @staticmethod
    def _parse_integer(raw: bytes) -> int:
        digits = raw[1:] if raw.startswith(b"-") else raw
        if not digits or not digits.isdigit():
            raise ProtocolError(f"invalid integer {raw!r}")
        return int(raw)

    @staticmethod
    def _parse_length(raw: bytes) -> int:
        """Parse a length header: a non-negative decimal or the -1 sentinel."""
        if raw == b"-1":
            return -1
        if not raw or not raw.isdigit():
            raise ProtocolError(f"invalid length {raw!r}")
        return int(raw)


_PREFIXES = frozenset((b"+", b"-", b":", b"$", b"*"))

