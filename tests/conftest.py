"""Shared fixtures for the exam test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import random

import pytest

from exam_app.core.exam_manager import ExamManager
from exam_app.core.models import ExamQuestion, ExamTest, Student
from exam_app.core.services.document_store import InMemoryDocumentStore
from exam_app.core.services.exam_attempt import ExamAttempt
from exam_app.core.services.question_randomizer import QuestionRandomizer


class FakeClock:
    """Controllable replacement for ``utc_now``."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def student() -> Student:
    return Student(id="student-1", full_name="Ada Lovelace", group_id="group-a")


@pytest.fixture
def algebra_test() -> ExamTest:
    return ExamTest(id="alg", title="Algebra", duration_minutes=10, group_ids=["group-a"])


@pytest.fixture
def algebra_questions() -> list[ExamQuestion]:
    return [
        ExamQuestion(id="alg-q1", question_text="2 + 2?", options=["3", "4", "5"], correct_option_index=1, points=10, order=1),
        ExamQuestion(id="alg-q2", question_text="2x = 10?", options=["5", "2"], correct_option_index=0, points=20, order=2),
    ]


@pytest.fixture
def triple_questions() -> list[ExamQuestion]:
    return [
        ExamQuestion(id=f"tri-q{n}", question_text=f"Question {n}", options=["a", "b", "c", "d"], correct_option_index=n % 4, order=n)
        for n in range(1, 4)
    ]


@pytest.fixture
def store(student, algebra_test, algebra_questions, triple_questions) -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    store.add_student(student)
    store.add_student(Student(id="student-2", full_name="Alan Turing", group_id="group-b"))
    store.add_test(algebra_test, algebra_questions)
    store.add_test(ExamTest(id="tri", title="Triple", duration_minutes=5, group_ids=["group-a"]), triple_questions)
    store.add_test(ExamTest(id="empty", title="Empty", duration_minutes=5, group_ids=["group-a"]), [])
    store.add_test(
        ExamTest(id="draft", title="Draft", duration_minutes=5, group_ids=["group-a"], is_active=False),
        triple_questions,
    )
    return store


@pytest.fixture
def randomizer() -> QuestionRandomizer:
    return QuestionRandomizer(random.Random(1234))


@pytest.fixture
def manager(store, randomizer, clock) -> ExamManager:
    return ExamManager(store, randomizer=randomizer, clock=clock)


@pytest.fixture
def attempt(algebra_test, algebra_questions, student, store, randomizer, clock) -> ExamAttempt:
    return ExamAttempt.start(algebra_test, algebra_questions, student, store, randomizer=randomizer, clock=clock)


@pytest.fixture
def answer():
    """Return a helper selecting the correct (or a wrong) option for a question."""

    def _answer(attempt: ExamAttempt, question_id: str, correct: bool = True) -> int:
        question = next(q for q in attempt.session.questions if q.question_id == question_id)
        index = question.correct_option_index
        if not correct:
            index = (index + 1) % len(question.options)
        attempt.record_selection(question_id, index)
        return index

    return _answer
