"""Application entry point for ExamQt."""

from __future__ import annotations

import logging
import socket
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_app.constants.storage_constants import (
    DATA_DIR,
    RESULTS_FILE_NAME,
    STUDENTS_FILE_NAME,
    TEST_FILE_GLOB,
)
from exam_app.core.exam_importer import (
    ExamImportError,
    load_students_from_file,
    load_tests_from_directory,
)
from exam_app.core.exam_manager import ExamManager
from exam_app.core.services.document_store import InMemoryDocumentStore
from exam_app.server.api_server import start_api_server
from exam_app.ui.student_main_window import StudentMainWindow
from exam_app.utils.logging_config import configure_logging


def _determine_api_url(port: int) -> str:
    """Best-effort determination of the local IP for the API URL."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def build_store(data_dir: Path, logger: logging.Logger) -> InMemoryDocumentStore:
    """Seed the store from test files and the student roster in ``data_dir``."""
    store = InMemoryDocumentStore(results_path=data_dir / RESULTS_FILE_NAME)
    if not data_dir.is_dir():
        logger.warning("Data directory %s does not exist; starting empty", data_dir)
        return store

    roster = data_dir / STUDENTS_FILE_NAME
    if roster.exists():
        for student in load_students_from_file(roster):
            store.add_student(student)

    for imported in load_tests_from_directory(data_dir, TEST_FILE_GLOB):
        store.add_test(imported.test, imported.questions)
        logger.info(
            "Loaded test '%s' (%d questions) from %s",
            imported.test.title,
            len(imported.questions),
            imported.source_path,
        )
    return store


def main() -> None:
    """Initialize logging, start the API server, and launch the Qt UI."""
    logger = configure_logging()
    logger.info("Starting ExamQt...")

    if len(sys.argv) < 2:
        logger.error("Usage: app_main.py <student-id>")
        sys.exit(2)
    student_id = sys.argv[1]

    try:
        store = build_store(DATA_DIR, logger)
    except (ExamImportError, ValueError) as exc:
        logger.error("Could not load exam data from %s: %s", DATA_DIR, exc)
        sys.exit(1)

    exam_manager = ExamManager(store)
    start_api_server(exam_manager=exam_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)
    api_url = _determine_api_url(DEFAULT_PORT)
    logger.info("API available at %s", api_url)

    app = QApplication(sys.argv)
    window = StudentMainWindow(exam_manager=exam_manager, student_id=student_id, api_url=api_url)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
