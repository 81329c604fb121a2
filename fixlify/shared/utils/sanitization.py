"""HTML sanitization helpers for outbound message bodies (nh3)."""

import html
import re
from typing import ClassVar

import nh3

_BLANK_LINES_RE = re.compile(r"\n{3,}")


class MessageSanitizer:
    """
    Clean user-authored message bodies before they are sent by email.

    Workflow authors write plain text with the occasional inline tag; the
    HTML part keeps a small allowlist of formatting tags and the text part
    strips every tag.
    """

    ALLOWED_TAGS: ClassVar[set[str]] = {"a", "b", "br", "em", "i", "p", "strong", "u"}
    ALLOWED_ATTRIBUTES: ClassVar[dict[str, set[str]]] = {"a": {"href", "title"}}

    @classmethod
    def to_html(cls, value: str) -> str:
        """Return sanitized HTML with newlines rendered as <br> tags."""
        if not value:
            return ""
        cleaned = nh3.clean(
            value,
            tags=cls.ALLOWED_TAGS,
            attributes=cls.ALLOWED_ATTRIBUTES,
        )
        return cleaned.replace("\r\n", "\n").replace("\n", "<br>\n")

    @classmethod
    def to_text(cls, value: str) -> str:
        """Strip every tag and decode entities, producing the plain-text part."""
        if not value:
            return ""
        stripped = nh3.clean(value, tags=set(), attributes={})
        text = html.unescape(stripped).replace("\r\n", "\n")
        return _BLANK_LINES_RE.sub("\n\n", text).strip()


def html_to_text(value: str) -> str:
    """Convenience wrapper for MessageSanitizer.to_text."""
    return MessageSanitizer.to_text(value)
