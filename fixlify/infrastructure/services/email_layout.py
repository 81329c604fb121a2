"""Branded HTML email layout (Jinja) wrapped around a rendered step body."""

from __future__ import annotations

from typing import Any

from jinja2 import Environment, Template

_LAYOUT = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ subject }}</title>
</head>
<body style="margin:0;padding:0;background:#f4f5f7;font-family:Arial,Helvetica,sans-serif;color:#1f2937;">
<table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="background:#f4f5f7;padding:24px 0;">
<tr><td align="center">
<table role="presentation" width="600" cellpadding="0" cellspacing="0" style="background:#ffffff;border-radius:8px;">
{% if company_name %}<tr><td style="padding:20px 32px;border-bottom:1px solid #e5e7eb;font-size:20px;font-weight:bold;">{{ company_name }}</td></tr>{% endif %}
<tr><td style="padding:32px;font-size:15px;line-height:1.6;">{{ body_html | safe }}</td></tr>
<tr><td style="padding:20px 32px;border-top:1px solid #e5e7eb;font-size:12px;color:#6b7280;">
{% if company_name %}{{ company_name }}<br>{% endif %}
{% if company_phone %}{{ company_phone }}{% endif %}{% if company_phone and company_email %} &middot; {% endif %}{% if company_email %}{{ company_email }}{% endif %}
{% if company_website %}<br><a href="{{ company_website }}" style="color:#6b7280;">{{ company_website }}</a>{% endif %}
</td></tr>
</table>
</td></tr>
</table>
</body>
</html>
"""


class JinjaEmailLayout:
    """IEmailLayout: escapes company fields; body_html is already sanitized by the caller."""

    def __init__(self, layout: str | None = None) -> None:
        self._env = Environment(autoescape=True)
        self._template: Template = self._env.from_string(layout or _LAYOUT)

    def render(self, subject: str, body_html: str, company: dict[str, Any]) -> str:
        return self._template.render(
            subject=subject,
            body_html=body_html,
            company_name=company.get("company_name") or "",
            company_phone=company.get("company_phone") or "",
            company_email=company.get("company_email") or "",
            company_website=company.get("company_website") or "",
        )
