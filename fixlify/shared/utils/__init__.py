"""Shared utilities: datetime, generators, sanitization."""

from fixlify.shared.utils.datetime import ensure_utc, parse_datetime, utc_now
from fixlify.shared.utils.generators import generate_cuid
from fixlify.shared.utils.sanitization import MessageSanitizer, html_to_text
from fixlify.shared.utils.serialization import to_jsonable

__all__ = [
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "parse_datetime",
    "MessageSanitizer",
    "html_to_text",
    "to_jsonable",
]
