"""Question rendering utilities for the attempt dialog."""

from __future__ import annotations

from exam_app.constants.ui_constants import QUESTION_HEADER_TEMPLATE
from exam_app.core.models import QuestionView


def render_question_header(question: QuestionView, font_size: int = 12) -> str:
    """Return rich text for a question's header and body.

    Qt labels understand the HTML produced by markdown-it; LaTeX stays as
    source text outside a web view.
    """
    header = QUESTION_HEADER_TEMPLATE.format(number=question.number)
    return (
        f"<div style='font-size: {font_size}pt;'>"
        f"<h4>{header}</h4>{question.question_html}</div>"
    )
