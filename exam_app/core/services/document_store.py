"""Document store holding tests, questions, students and results.

The exam core only needs a handful of read operations and a single
``create_result`` write, described by :class:`ExamDocumentStore`. The
in-memory implementation keeps everything in dictionaries and can archive
results to a JSON-lines file so they survive restarts.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
import json
from pathlib import Path
from threading import Lock
from typing import Protocol
from uuid import uuid4

from exam_app.constants.exam_constants import (
    DEFAULT_QUESTION_POINTS,
    MAX_OPTION_COUNT,
    MIN_OPTION_COUNT,
)
from exam_app.core.models import AttemptResult, ExamQuestion, ExamTest, QuestionOutcome, Student


class StoreError(Exception):
    """Raised when the underlying store cannot complete a read or write."""


class ExamDocumentStore(Protocol):
    def get_test(self, test_id: str) -> ExamTest | None: ...

    def get_questions(self, test_id: str) -> list[ExamQuestion]: ...

    def get_student(self, student_id: str) -> Student | None: ...

    def list_tests_for_group(self, group_id: str) -> list[ExamTest]: ...

    def has_result(self, test_id: str, student_id: str) -> bool: ...

    def create_result(self, result: AttemptResult) -> str: ...

    def get_result(self, result_id: str) -> AttemptResult | None: ...

    def list_results_for_student(self, student_id: str) -> list[AttemptResult]: ...

    def list_results_for_test(self, test_id: str) -> list[AttemptResult]: ...


class InMemoryDocumentStore:
    """Dictionary-backed store with optional JSON-lines result archive."""

    def __init__(self, results_path: Path | None = None) -> None:
        self._lock = Lock()
        self._tests: dict[str, ExamTest] = {}
        self._questions: dict[str, list[ExamQuestion]] = {}
        self._students: dict[str, Student] = {}
        self._results: dict[str, AttemptResult] = {}
        self._results_path = results_path
        if results_path is not None and results_path.exists():
            self._load_results(results_path)

    # --- Seeding ---

    def add_test(self, test: ExamTest, questions: list[ExamQuestion]) -> None:
        if not test.title.strip():
            raise ValueError("Test title must not be empty.")
        if test.duration_minutes <= 0:
            raise ValueError("Test duration must be a positive number of minutes.")
        prepared = [self._prepare_question(question) for question in questions]
        with self._lock:
            self._tests[test.id] = test
            self._questions[test.id] = prepared

    def add_student(self, student: Student) -> None:
        with self._lock:
            self._students[student.id] = student

    # --- Reads ---

    def get_test(self, test_id: str) -> ExamTest | None:
        with self._lock:
            return self._tests.get(test_id)

    def get_questions(self, test_id: str) -> list[ExamQuestion]:
        with self._lock:
            questions = list(self._questions.get(test_id, []))
        return sorted(questions, key=lambda q: q.order)

    def get_student(self, student_id: str) -> Student | None:
        with self._lock:
            return self._students.get(student_id)

    def list_tests_for_group(self, group_id: str) -> list[ExamTest]:
        with self._lock:
            return [test for test in self._tests.values() if group_id in test.group_ids]

    def has_result(self, test_id: str, student_id: str) -> bool:
        with self._lock:
            return any(
                r.test_id == test_id and r.student_id == student_id for r in self._results.values()
            )

    def get_result(self, result_id: str) -> AttemptResult | None:
        with self._lock:
            return self._results.get(result_id)

    def list_results_for_student(self, student_id: str) -> list[AttemptResult]:
        with self._lock:
            return [r for r in self._results.values() if r.student_id == student_id]

    def list_results_for_test(self, test_id: str) -> list[AttemptResult]:
        with self._lock:
            return [r for r in self._results.values() if r.test_id == test_id]

    # --- Writes ---

    def create_result(self, result: AttemptResult) -> str:
        result_id = uuid4().hex
        stored = replace(result, id=result_id)
        with self._lock:
            if self._results_path is not None:
                self._append_result(self._results_path, stored)
            self._results[result_id] = stored
        return result_id

    # --- Helpers ---

    def _append_result(self, path: Path, result: AttemptResult) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(result_to_document(result), ensure_ascii=False) + "\n")
        except OSError as exc:
            raise StoreError(f"Could not write result to {path}") from exc

    def _load_results(self, path: Path) -> None:
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise StoreError(f"Could not read results from {path}") from exc
        for line in lines:
            if not line.strip():
                continue
            result = result_from_document(json.loads(line))
            self._results[result.id] = result

    @staticmethod
    def _prepare_question(question: ExamQuestion) -> ExamQuestion:
        """Validate and normalize a question before storage."""
        cleaned_text = question.question_text.strip()
        if not cleaned_text:
            raise ValueError("Question text must not be empty.")

        options = [option.strip() for option in question.options]
        if not MIN_OPTION_COUNT <= len(options) <= MAX_OPTION_COUNT:
            raise ValueError(
                f"Each question must have between {MIN_OPTION_COUNT} and {MAX_OPTION_COUNT} options."
            )
        if any(not option for option in options):
            raise ValueError("Option text cannot be empty.")
        if not 0 <= question.correct_option_index < len(options):
            raise ValueError("Correct option index is out of range.")

        points = question.points if question.points is not None else DEFAULT_QUESTION_POINTS
        if points < 1:
            raise ValueError("Question points must be at least 1.")

        return replace(question, question_text=cleaned_text, options=options, points=points)


def result_to_document(result: AttemptResult) -> dict[str, object]:
    """Serialize a result using the camelCase field names of the results archive."""
    return {
        "id": result.id,
        "testId": result.test_id,
        "studentId": result.student_id,
        "groupId": result.group_id,
        "score": result.score,
        "maxScore": result.max_score,
        "percentage": result.percentage,
        "answers": [
            {
                "questionId": outcome.question_id,
                "selectedAnswerIndex": outcome.selected_option_index,
                "isCorrect": outcome.is_correct,
                "points": outcome.points,
                "maxPoints": outcome.max_points,
                "selectedCanonicalIndex": outcome.selected_canonical_index,
            }
            for outcome in result.answers
        ],
        "timeSpentMinutes": result.time_spent_minutes,
        "submittedAt": result.submitted_at.isoformat(),
    }


def result_from_document(document: dict[str, object]) -> AttemptResult:
    return AttemptResult(
        id=document["id"],
        test_id=document["testId"],
        student_id=document["studentId"],
        group_id=document["groupId"],
        score=document["score"],
        max_score=document["maxScore"],
        percentage=document["percentage"],
        answers=[
            QuestionOutcome(
                question_id=answer["questionId"],
                selected_option_index=answer["selectedAnswerIndex"],
                is_correct=answer["isCorrect"],
                points=answer["points"],
                max_points=answer["maxPoints"],
                selected_canonical_index=answer["selectedCanonicalIndex"],
            )
            for answer in document["answers"]
        ],
        time_spent_minutes=document["timeSpentMinutes"],
        submitted_at=datetime.fromisoformat(document["submittedAt"]),
    )
