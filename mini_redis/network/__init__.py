"""Network module for mini-redis."""

from .connection import Address, Connection, ConnectionState, connect

__all__ = ["Address", "Connection", "ConnectionState", "connect"]
