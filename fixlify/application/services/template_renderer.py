"""Message templates: {{ variable }} substitution over a resolved variable map."""

from __future__ import annotations

import re
from collections.abc import Mapping

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_.]+)\s*\}\}")
_BRACE_PAIR_RE = re.compile(r"([{}])(?=\1)")


class TemplateRenderer:
    """Substitutes {{ name }} placeholders with values from a variable map.

    Unknown names render as the empty string. Substitution is a single pass,
    and doubled braces inside a value are split ("{{" becomes "{ {"), so data
    such as a client named "{{job_title}}" is never expanded, not even by
    rendering the output again. Text outside placeholders is left untouched.
    """

    def render(self, template: str, variables: Mapping[str, object]) -> str:
        if not template:
            return ""

        def substitute(match: re.Match[str]) -> str:
            value = variables.get(match.group(1))
            if value is None:
                return ""
            return _BRACE_PAIR_RE.sub(r"\1 ", str(value))

        return _PLACEHOLDER_RE.sub(substitute, template)

    def placeholders(self, template: str) -> list[str]:
        """Return variable names referenced by template, in order of appearance."""
        return _PLACEHOLDER_RE.findall(template or "")
