"""Dialog conducting one timed test attempt."""

from __future__ import annotations

import logging

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import (
    QButtonGroup,
    QDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QRadioButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from exam_app.constants.exam_constants import TIMER_POLL_INTERVAL_MS
from exam_app.constants.ui_constants import (
    ANSWERED_COUNT_TEMPLATE,
    ATTEMPT_WINDOW_TITLE_TEMPLATE,
    RETRY_SUBMIT_BUTTON,
    SUBMIT_BUTTON,
    SUBMIT_FAILED_TITLE,
    TIME_UP_MESSAGE,
    TIME_UP_TITLE,
    TIMER_LABEL_TEMPLATE,
)
from exam_app.core.errors import PersistFailure
from exam_app.core.exam_manager import ExamManager
from exam_app.core.models import AttemptResult, AttemptView, TimerTick
from exam_app.core.services.exam_attempt import ExamAttempt
from exam_app.styling.styles import Styles
from exam_app.ui.dialog_helpers import (
    confirm_incomplete_submission,
    show_error,
    show_info,
    show_result,
)
from exam_app.ui.question_renderer import render_question_header

logger = logging.getLogger(__name__)


class AttemptDialog(QDialog):
    """Shows the shuffled questions, drives the countdown and submits once."""

    def __init__(
        self,
        exam_manager: ExamManager,
        attempt: ExamAttempt,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.exam_manager = exam_manager
        self.attempt = attempt
        self.result: AttemptResult | None = None
        self._expired = False
        self._button_groups: list[QButtonGroup] = []

        view = attempt.renderable_view()
        self._question_count = view.question_count
        self.setWindowTitle(ATTEMPT_WINDOW_TITLE_TEMPLATE.format(title=view.title))
        self.resize(720, 640)

        self._build_ui(view)
        self._configure_countdown_timer()
        self._tick()

    def _build_ui(self, view: AttemptView) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        header_row = QHBoxLayout()
        title_label = QLabel(view.title, self)
        title_label.setStyleSheet(Styles.get_large_label_style())
        header_row.addWidget(title_label)
        header_row.addStretch()
        self.answered_label = QLabel("", self)
        header_row.addWidget(self.answered_label)
        self.timer_label = QLabel("", self)
        self.timer_label.setStyleSheet(Styles.get_timer_style(low_time=False))
        header_row.addWidget(self.timer_label)
        layout.addLayout(header_row)

        scroll_area = QScrollArea(self)
        scroll_area.setWidgetResizable(True)
        questions_widget = QWidget(scroll_area)
        questions_layout = QVBoxLayout()
        questions_widget.setLayout(questions_layout)

        for question in view.questions:
            box = QGroupBox(questions_widget)
            box_layout = QVBoxLayout()
            box.setLayout(box_layout)

            text_label = QLabel(render_question_header(question), box)
            text_label.setTextFormat(Qt.RichText)
            text_label.setWordWrap(True)
            box_layout.addWidget(text_label)

            group = QButtonGroup(box)
            for option_index, option in enumerate(question.options):
                radio = QRadioButton(option, box)
                radio.setChecked(question.selected_option_index == option_index)
                group.addButton(radio, option_index)
                box_layout.addWidget(radio)
            group.idClicked.connect(
                lambda option_index, question_id=question.question_id: self._handle_selection(
                    question_id, option_index
                )
            )
            self._button_groups.append(group)
            questions_layout.addWidget(box)

        questions_layout.addStretch()
        scroll_area.setWidget(questions_widget)
        layout.addWidget(scroll_area, stretch=1)

        button_row = QHBoxLayout()
        button_row.addStretch()
        self.submit_button = QPushButton(SUBMIT_BUTTON, self)
        self.submit_button.clicked.connect(self._handle_submit)
        button_row.addWidget(self.submit_button)
        layout.addLayout(button_row)

        self._update_answered_label(view.answered_count)

    def _configure_countdown_timer(self) -> None:
        self.countdown_timer = QTimer(self)
        self.countdown_timer.setInterval(TIMER_POLL_INTERVAL_MS)
        self.countdown_timer.timeout.connect(self._tick)
        self.countdown_timer.start()

    def _tick(self) -> None:
        try:
            tick = self.attempt.tick()
        except PersistFailure as exc:
            self._expired = True
            self.countdown_timer.stop()
            self._offer_retry(str(exc))
            return

        if tick.expired:
            self._expired = True
            self.countdown_timer.stop()
            self.timer_label.setText(TIMER_LABEL_TEMPLATE.format(minutes=0, seconds=0))
            result = self.attempt.session.result
            if result is not None:
                show_info(self, TIME_UP_TITLE, TIME_UP_MESSAGE)
                self._finish(result)
            return
        self._update_timer_label(tick)

    def _update_timer_label(self, tick: TimerTick) -> None:
        self.timer_label.setText(TIMER_LABEL_TEMPLATE.format(minutes=tick.minutes, seconds=tick.seconds))
        self.timer_label.setStyleSheet(Styles.get_timer_style(low_time=tick.low_time_warning))

    def _update_answered_label(self, answered: int) -> None:
        self.answered_label.setText(
            ANSWERED_COUNT_TEMPLATE.format(answered=answered, total=self._question_count)
        )

    def _handle_selection(self, question_id: str, option_index: int) -> None:
        try:
            accepted = self.attempt.record_selection(question_id, option_index)
        except PersistFailure as exc:
            self._expired = True
            self.countdown_timer.stop()
            self._offer_retry(str(exc))
            return
        except ValueError as exc:
            logger.warning("Selection rejected: %s", exc)
            return
        if not accepted:
            # Deadline passed between polls
            self._tick()
            return
        self._update_answered_label(self.attempt.session.answered_count())

    def _handle_submit(self) -> None:
        session = self.attempt.session
        try:
            result = self.attempt.submit(
                forced=self._expired,
                confirm=lambda: confirm_incomplete_submission(
                    self, session.answered_count(), self._question_count
                ),
            )
        except PersistFailure as exc:
            self.countdown_timer.stop()
            self._offer_retry(str(exc))
            return
        if result is None:
            # Declined: keep the attempt running
            return
        self.countdown_timer.stop()
        self._finish(result)

    def _offer_retry(self, message: str) -> None:
        show_error(self, SUBMIT_FAILED_TITLE, message)
        self.submit_button.setText(RETRY_SUBMIT_BUTTON)
        for group in self._button_groups:
            for button in group.buttons():
                button.setEnabled(False)

    def _finish(self, result: AttemptResult) -> None:
        self.result = result
        show_result(self, result)
        self.accept()

    def reject(self) -> None:
        # Closing the dialog before submission discards the attempt
        self.countdown_timer.stop()
        if self.result is None:
            self.exam_manager.cancel_attempt(self.attempt.attempt_id)
        super().reject()
