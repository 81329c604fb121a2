"""TemplateRenderer: {{ name }} substitution."""

from fixlify.application.services.template_renderer import TemplateRenderer


def test_known_variables_substituted_with_optional_whitespace() -> None:
    renderer = TemplateRenderer()
    out = renderer.render(
        "Hi {{client_name}}, see you {{ scheduled_date }}!",
        {"client_name": "Ana", "scheduled_date": "Mar 03, 2026"},
    )
    assert out == "Hi Ana, see you Mar 03, 2026!"


def test_unknown_variable_renders_empty() -> None:
    assert TemplateRenderer().render("Hello {{nope}}.", {}) == "Hello ."


def test_values_are_not_expanded_twice() -> None:
    renderer = TemplateRenderer()
    variables = {"a": "{{b}}", "b": "x"}
    out = renderer.render("Hi {{a}}", variables)
    assert out == "Hi { {b} }"
    assert renderer.render(out, variables) == out


def test_single_braces_in_values_are_kept() -> None:
    out = TemplateRenderer().render("{{note}}", {"note": "gate code {1234}"})
    assert out == "gate code {1234}"


def test_text_without_placeholders_unchanged() -> None:
    text = "No braces { here } at all"
    assert TemplateRenderer().render(text, {"here": "x"}) == text


def test_empty_template() -> None:
    assert TemplateRenderer().render("", {"a": "b"}) == ""


def test_placeholders_in_order() -> None:
    names = TemplateRenderer().placeholders("{{ a }} and {{b.c}} then {{a}}")
    assert names == ["a", "b.c", "a"]


def test_mapped_value_inserted_and_placeholder_gone() -> None:
    out = TemplateRenderer().render("Invoice {{ invoice_number }} is due", {"invoice_number": "INV-7"})
    assert "INV-7" in out
    assert "{{" not in out


def test_rendering_output_again_is_a_no_op() -> None:
    renderer = TemplateRenderer()
    once = renderer.render("Hi {{client_name}}{{missing}}!", {"client_name": "Ana"})
    assert once == "Hi Ana!"
    assert renderer.render(once, {"client_name": "Bo"}) == once
