"""Core: settings, lifespan, exception handlers and rate limits."""

from fixlify.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
