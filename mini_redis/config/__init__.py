"""Configuration module for mini-redis."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
