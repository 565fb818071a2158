"""Tests for rendering question text."""

from exam_app.core.markdown_math_renderer import MarkdownMathRenderer


def test_markdown_and_math_source_are_kept():
    html = MarkdownMathRenderer().render_fragment("Solve **for** $x$: $2x = 10$")

    assert "<strong>for</strong>" in html
    assert "$2x = 10$" in html


def test_raw_html_is_escaped_by_default():
    html = MarkdownMathRenderer().render_fragment("<script>alert(1)</script>")

    assert "<script>" not in html


def test_blank_text_has_placeholder():
    assert "No content provided" in MarkdownMathRenderer().render_fragment("   ")
