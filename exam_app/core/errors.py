"""Exceptions raised by the exam core."""

from __future__ import annotations


class ExamError(Exception):
    """Base class for exam errors surfaced to the user."""


class NoQuestionsError(ExamError):
    """Raised when a test has no questions and an attempt cannot start."""


class TestNotFoundError(ExamError):
    """Raised when a test (or the student) no longer exists in the store."""

    __test__ = False  # keep pytest from collecting this class


class TestUnavailableError(ExamError):
    """Raised when a test is inactive, not assigned to the student, or already taken."""

    __test__ = False


class FetchFailure(ExamError):
    """Raised when test or question data cannot be read; the caller may retry."""


class PersistFailure(ExamError):
    """Raised when a result cannot be written; the attempt keeps its state for retry."""


class StaleSessionError(ExamError):
    """Raised when an attempt id does not refer to a live attempt."""


class ConfirmationRequiredError(ExamError):
    """Raised when an incomplete attempt is submitted manually without confirmation."""

    def __init__(self, answered: int, total: int) -> None:
        super().__init__(f"Only {answered} of {total} questions answered; confirmation required.")
        self.answered = answered
        self.total = total
