"""Filesystem locations used to seed tests and archive results."""

import os
from pathlib import Path

DATA_DIR: Path = Path(os.getenv("EXAM_APP_DATA_DIR", "./exam_data"))
TEST_FILE_GLOB: str = "*.txt"
RESULTS_FILE_NAME: str = "results.jsonl"
STUDENTS_FILE_NAME: str = "students.json"
