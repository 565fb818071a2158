"""Qt UI components for the student application."""

from .dialog_helpers import (
    confirm_incomplete_submission,
    show_error,
    show_info,
    show_result,
)
from .question_renderer import render_question_header
from .student_main_window import StudentMainWindow

__all__ = [
    "StudentMainWindow",
    "confirm_incomplete_submission",
    "render_question_header",
    "show_error",
    "show_info",
    "show_result",
]
