"""Qt main window listing the tests a student can take."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from exam_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION, HELP_TEXT
from exam_app.constants.ui_constants import (
    ALL_TESTS_TAKEN_MESSAGE,
    NO_TESTS_MESSAGE,
    REFRESH_BUTTON,
    START_BUTTON,
    START_FAILED_TITLE,
    STATISTICS_TEMPLATE,
    TEST_LIST_ITEM_TEMPLATE,
    WINDOW_TITLE,
)
from exam_app.core.errors import ExamError
from exam_app.core.exam_manager import ExamManager
from exam_app.styling.styles import Styles
from exam_app.ui.components.attempt_dialog import AttemptDialog
from exam_app.ui.dialog_helpers import show_error, show_info


class StudentMainWindow(QMainWindow):
    """Lists available tests and statistics, and launches attempts."""

    def __init__(self, exam_manager: ExamManager, student_id: str, api_url: str | None = None) -> None:
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.exam_manager = exam_manager
        self.student_id = student_id
        self.api_url = api_url

        self._build_ui()
        self.setStyleSheet(Styles.get_main_window_style())
        self.refresh()

    def _build_ui(self) -> None:
        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout()
        central_widget.setLayout(layout)

        self.statistics_label = QLabel("", self)
        self.statistics_label.setStyleSheet(Styles.get_large_label_style())
        layout.addWidget(self.statistics_label)

        if self.api_url:
            api_label = QLabel(f"API available at: {self.api_url}", self)
            api_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
            layout.addWidget(api_label)

        self.test_list = QListWidget(self)
        self.test_list.itemDoubleClicked.connect(lambda _item: self._handle_start())
        layout.addWidget(self.test_list, stretch=1)

        button_row = QHBoxLayout()
        self.start_button = QPushButton(START_BUTTON, self)
        self.start_button.clicked.connect(self._handle_start)
        button_row.addWidget(self.start_button)

        refresh_button = QPushButton(REFRESH_BUTTON, self)
        refresh_button.clicked.connect(self.refresh)
        button_row.addWidget(refresh_button)

        button_row.addStretch()

        about_button = QPushButton(f"About {APP_NAME}", self)
        about_button.clicked.connect(
            lambda: show_info(self, f"{APP_NAME} {APP_VERSION}", f"{APP_ABOUT_TEXT}\n\n{APP_LICENSE}")
        )
        button_row.addWidget(about_button)

        help_button = QPushButton("Help", self)
        help_button.clicked.connect(lambda: show_info(self, "Help", HELP_TEXT))
        button_row.addWidget(help_button)

        layout.addLayout(button_row)

    def refresh(self) -> None:
        try:
            tests = self.exam_manager.list_available_tests(self.student_id)
            stats = self.exam_manager.student_statistics(self.student_id)
        except ExamError as exc:
            show_error(self, START_FAILED_TITLE, str(exc))
            return

        self.statistics_label.setText(
            STATISTICS_TEMPLATE.format(
                available=stats.available_tests,
                completed=stats.completed_tests,
                average=stats.average_percentage,
            )
        )

        self.test_list.clear()
        for test in tests:
            item = QListWidgetItem(
                TEST_LIST_ITEM_TEMPLATE.format(
                    title=test.title,
                    question_count=test.question_count,
                    duration=test.duration_minutes,
                )
            )
            item.setData(Qt.UserRole, test.test_id)
            item.setToolTip(test.description)
            self.test_list.addItem(item)

        if not tests:
            message = ALL_TESTS_TAKEN_MESSAGE if stats.completed_tests else NO_TESTS_MESSAGE
            placeholder = QListWidgetItem(message)
            placeholder.setFlags(Qt.NoItemFlags)
            self.test_list.addItem(placeholder)
        self.start_button.setEnabled(bool(tests))

    def _handle_start(self) -> None:
        item = self.test_list.currentItem()
        if item is None:
            return
        test_id = item.data(Qt.UserRole)
        if not test_id:
            return
        try:
            attempt = self.exam_manager.start_attempt(test_id, self.student_id)
        except ExamError as exc:
            show_error(self, START_FAILED_TITLE, str(exc))
            return

        dialog = AttemptDialog(self.exam_manager, attempt, parent=self)
        dialog.exec()
        self.refresh()
