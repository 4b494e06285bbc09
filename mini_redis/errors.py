"""
Exception hierarchy for mini-redis.

Some names deliberately match builtins (``ConnectionError``,
``ConnectionResetError``); import them from this module explicitly.
"""


class MiniRedisError(Exception):
    """Base class for every error raised by the client."""


class ConnectionError(MiniRedisError):
    """The stream to the server could not be established."""


class ProtocolError(MiniRedisError):
    """Malformed or unexpected frame. The connection cannot be reused."""


class ConnectionResetError(MiniRedisError):
    """The stream closed or failed in the middle of an exchange."""


class ConnectionClosedError(MiniRedisError):
    """The connection was used after it was closed."""


class CommandError(MiniRedisError):
    """
    The server answered a command with an Error frame.

    Attributes:
        message: Full error text sent by the server, e.g. ``"ERR wrong type"``
        kind: First word of the error text, e.g. ``"ERR"``
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.kind = message.split(" ", 1)[0] if message else ""
