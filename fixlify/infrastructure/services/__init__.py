"""Infrastructure services: email layout rendering."""

from fixlify.infrastructure.services.email_layout import JinjaEmailLayout

__all__ = ["JinjaEmailLayout"]
