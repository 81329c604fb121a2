"""ASGI middleware."""

from fixlify.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
