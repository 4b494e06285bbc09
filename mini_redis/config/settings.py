"""
mini-redis Configuration Settings

This module contains the configuration constants for the mini-redis client.
Environment variables only change the defaults picked up by the CLI and the
example script; the library itself takes explicit arguments.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Client configuration settings."""

    # Network settings
    HOST: str = os.environ.get("MINI_REDIS_HOST", "127.0.0.1")
    PORT: int = int(os.environ.get("MINI_REDIS_PORT", "6379"))

    # Connection settings
    READ_BUFFER_SIZE: int = 4096

    # Protocol limits
    MAX_FRAME_SIZE: int = 512 * 1024 * 1024  # Largest accepted bulk string
    MAX_LINE_LENGTH: int = 64 * 1024
    MAX_ARRAY_LENGTH: int = 1024 * 1024
    MAX_NESTING_DEPTH: int = 32

    # Logging settings
    DEBUG: bool = os.environ.get("MINI_REDIS_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("MINI_REDIS_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
