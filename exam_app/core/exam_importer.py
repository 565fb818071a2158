"""Utilities for importing tests from a human-friendly text file.

File format: a header block followed by question blocks, separated by blank
lines or '---':

    TITLE: Algebra basics
    DESCRIPTION: Warm-up questions (optional)
    DURATION: 20            minutes
    GROUPS: group-a, group-b
    ACTIVE: yes             (optional, default yes)
    ---
    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First option text
    B: Second option text
    ...                     up to F
    CORRECT: A-F
    POINTS: 10              (optional, default 1)

Question ids are derived from the test id and the block position, which is
also the question's canonical ordering key.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path

from exam_app.constants.exam_constants import (
    DEFAULT_QUESTION_POINTS,
    MAX_OPTION_COUNT,
    MIN_OPTION_COUNT,
)
from exam_app.core.models import ExamQuestion, ExamTest, Student


class ExamImportError(Exception):
    """Raised when a test definition cannot be parsed."""


@dataclass(slots=True)
class ImportedTest:
    """Container for an imported test and its canonical questions."""

    source_path: Path | None
    test: ExamTest
    questions: list[ExamQuestion]


_OPTION_ORDER = ["A", "B", "C", "D", "E", "F"][:MAX_OPTION_COUNT]
_HEADER_KEYS = ("TITLE", "DESCRIPTION", "DURATION", "GROUPS", "ACTIVE")
_TRUE_VALUES = {"yes", "true", "1", "on"}
_FALSE_VALUES = {"no", "false", "0", "off"}


def load_test_from_file(file_path: Path, test_id: str | None = None) -> ImportedTest:
    text = file_path.read_text(encoding="utf-8")
    imported = parse_test_text(text, test_id or file_path.stem)
    imported.source_path = file_path
    return imported


def load_tests_from_directory(directory: Path, pattern: str = "*.txt") -> list[ImportedTest]:
    return [load_test_from_file(path) for path in sorted(directory.glob(pattern))]


def parse_test_text(text: str, test_id: str) -> ImportedTest:
    blocks = _split_blocks(text)
    if not blocks or not _is_header_block(blocks[0]):
        raise ExamImportError("Test file must start with a header block (TITLE:, DURATION:, ...).")

    test = _parse_header(blocks[0], test_id)
    questions = [
        _parse_question_block(block, question_id=f"{test_id}-q{position}", order=position)
        for position, block in enumerate(blocks[1:], start=1)
    ]
    return ImportedTest(source_path=None, test=test, questions=questions)


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            # Blank line after content closes the block
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return [block for block in blocks if block]


def _is_header_block(block: str) -> bool:
    first_line = block.splitlines()[0].strip().upper()
    return any(first_line.startswith(f"{key}:") for key in _HEADER_KEYS)


def _parse_header(block: str, test_id: str) -> ExamTest:
    values: dict[str, str] = {}
    for raw_line in block.splitlines():
        line = raw_line.strip()
        key, separator, value = line.partition(":")
        key = key.strip().upper()
        if not separator or key not in _HEADER_KEYS:
            raise ExamImportError(f"Unknown header line: '{line}'.")
        values[key] = value.strip()

    title = values.get("TITLE", "")
    if not title:
        raise ExamImportError("TITLE is required.")

    raw_duration = values.get("DURATION", "")
    try:
        duration = int(raw_duration)
    except ValueError as exc:
        raise ExamImportError("DURATION must be an integer number of minutes.") from exc
    if duration <= 0:
        raise ExamImportError("DURATION must be a positive integer.")

    groups = [group.strip() for group in values.get("GROUPS", "").split(",") if group.strip()]

    raw_active = values.get("ACTIVE", "yes").lower()
    if raw_active in _TRUE_VALUES:
        is_active = True
    elif raw_active in _FALSE_VALUES:
        is_active = False
    else:
        raise ExamImportError("ACTIVE must be yes or no.")

    return ExamTest(
        id=test_id,
        title=title,
        duration_minutes=duration,
        description=values.get("DESCRIPTION", ""),
        group_ids=groups,
        is_active=is_active,
    )


def _parse_question_block(block: str, question_id: str, order: int) -> ExamQuestion:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    points = DEFAULT_QUESTION_POINTS
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("POINTS:"):
            raw_value = line.split(":", 1)[1].strip()
            try:
                points = int(raw_value)
            except ValueError as exc:
                raise ExamImportError("POINTS must be an integer.") from exc
            if points < 1:
                raise ExamImportError("POINTS must be at least 1.")
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_ORDER and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in _OPTION_ORDER:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise ExamImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise ExamImportError("Question text missing (Q: ...)")

    letters = _OPTION_ORDER[: len(options)]
    if sorted(options) != letters:
        raise ExamImportError("Options must be consecutive letters starting at A.")
    if len(letters) < MIN_OPTION_COUNT:
        raise ExamImportError(f"Each question needs at least {MIN_OPTION_COUNT} options.")

    option_list = [options[letter].strip() for letter in letters]
    if any(not option for option in option_list):
        raise ExamImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise ExamImportError("CORRECT is required for every question.")
    if correct_letter not in letters:
        raise ExamImportError(f"CORRECT must be one of {', '.join(letters)}.")

    return ExamQuestion(
        id=question_id,
        question_text=question_text,
        options=option_list,
        correct_option_index=letters.index(correct_letter),
        points=points,
        order=order,
    )


def load_students_from_file(file_path: Path) -> list[Student]:
    """Read the student roster: a JSON list of {"id", "fullName", "groupId"} objects."""
    try:
        entries = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ExamImportError(f"Student roster {file_path} is not valid JSON.") from exc
    if not isinstance(entries, list):
        raise ExamImportError("Student roster must be a JSON list.")
    students: list[Student] = []
    for entry in entries:
        try:
            students.append(
                Student(id=str(entry["id"]), full_name=entry["fullName"], group_id=str(entry["groupId"]))
            )
        except (KeyError, TypeError) as exc:
            raise ExamImportError(f"Invalid student entry: {entry!r}") from exc
    return students
