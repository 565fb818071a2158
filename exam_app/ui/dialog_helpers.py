"""Helper functions for common dialog patterns in the student UI."""

from __future__ import annotations

from PySide6.QtWidgets import QMessageBox, QWidget

from exam_app.constants.ui_constants import (
    GRADE_BAND_MESSAGES,
    INCOMPLETE_SUBMIT_MESSAGE,
    INCOMPLETE_SUBMIT_TITLE,
    RESULT_MESSAGE_TEMPLATE,
    RESULT_TITLE,
)
from exam_app.core.models import AttemptResult
from exam_app.core.services.result_history import grade_band


def confirm_incomplete_submission(parent: QWidget, answered: int, total: int) -> bool:
    """Ask whether to submit a test that still has unanswered questions.

    Args:
        parent: Parent widget for the dialog
        answered: Number of answered questions
        total: Number of questions in the attempt

    Returns:
        True if the student confirmed, False otherwise
    """
    reply = QMessageBox.question(
        parent,
        INCOMPLETE_SUBMIT_TITLE,
        INCOMPLETE_SUBMIT_MESSAGE.format(answered=answered, total=total),
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes


def show_result(parent: QWidget, result: AttemptResult) -> None:
    band = GRADE_BAND_MESSAGES[grade_band(result.percentage).value]
    show_info(
        parent,
        RESULT_TITLE,
        RESULT_MESSAGE_TEMPLATE.format(
            band=band,
            score=result.score,
            max_score=result.max_score,
            percentage=result.percentage,
        ),
    )


def show_error(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.critical(parent, title, message)


def show_info(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.information(parent, title, message)

