"""JinjaEmailLayout and MessageSanitizer."""

from fixlify.infrastructure.services import JinjaEmailLayout
from fixlify.shared.utils.sanitization import MessageSanitizer


def test_layout_wraps_body_and_escapes_company_fields() -> None:
    html = JinjaEmailLayout().render(
        "Your <invoice>",
        "<p>Hello <b>Ana</b></p>",
        {"company_name": "Tom & Jerry <HVAC>", "company_phone": "+1 555", "company_website": "https://x.test"},
    )

    assert "<p>Hello <b>Ana</b></p>" in html
    assert "Tom &amp; Jerry &lt;HVAC&gt;" in html
    assert "<title>Your &lt;invoice&gt;</title>" in html
    assert 'href="https://x.test"' in html


def test_layout_without_company_has_no_header() -> None:
    html = JinjaEmailLayout().render("Hi", "body", {})
    assert "font-size:20px" not in html
    assert "body" in html


def test_custom_layout_string() -> None:
    layout = JinjaEmailLayout("{{ company_name }}|{{ body_html | safe }}")
    assert layout.render("s", "<i>x</i>", {"company_name": "A&B"}) == "A&amp;B|<i>x</i>"


def test_sanitizer_drops_scripts_and_keeps_formatting() -> None:
    html = MessageSanitizer.to_html('Hi <strong>Ana</strong><script>alert(1)</script>\nBye')
    assert "<script>" not in html
    assert "<strong>Ana</strong>" in html
    assert html.endswith("<br>\nBye")


def test_sanitizer_text_part() -> None:
    assert MessageSanitizer.to_text("<p>Total &amp; tax</p>\n\n\n\nThanks") == "Total & tax\n\nThanks"
    assert MessageSanitizer.to_text("") == ""
