"""Domain models for the exam application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from exam_app.constants.exam_constants import DEFAULT_QUESTION_POINTS


@dataclass(slots=True)
class ExamQuestion:
    """Canonical multiple-choice question as authored by the teacher."""

    id: str
    question_text: str
    options: list[str]
    correct_option_index: int
    points: int = DEFAULT_QUESTION_POINTS
    order: int = 0  # Canonical display order outside of an attempt


@dataclass(slots=True)
class ExamTest:
    """Test configuration; questions are fetched separately by test id."""

    id: str
    title: str
    duration_minutes: int
    description: str = ""
    group_ids: list[str] = field(default_factory=list)
    is_active: bool = True


@dataclass(slots=True)
class Student:
    """Identity of the student taking a test."""

    id: str
    full_name: str
    group_id: str


@dataclass(slots=True)
class RandomizedQuestion:
    """Per-attempt presentation of a canonical question."""

    question_id: str
    question_text: str
    options: list[str]
    correct_option_index: int
    points: int
    option_order: list[int]  # option_order[shuffled index] == canonical index

    def canonical_option_index(self, shuffled_index: int) -> int:
        return self.option_order[shuffled_index]


@dataclass(slots=True)
class QuestionOutcome:
    """Scored outcome of a single question within a result."""

    question_id: str
    selected_option_index: int
    is_correct: bool
    points: int
    max_points: int
    selected_canonical_index: int


@dataclass(slots=True)
class AttemptResult:
    """Persisted, scored outcome of one attempt."""

    test_id: str
    student_id: str
    group_id: str
    score: int
    max_score: int
    percentage: int
    answers: list[QuestionOutcome]
    time_spent_minutes: int
    submitted_at: datetime
    id: str | None = None


class AttemptState(Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in (AttemptState.SUBMITTED, AttemptState.ABANDONED)


class TimerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class TimerTick:
    """Snapshot of the countdown for display."""

    state: TimerState
    remaining_seconds: int
    low_time_warning: bool

    @property
    def expired(self) -> bool:
        return self.state is TimerState.EXPIRED

    @property
    def minutes(self) -> int:
        return self.remaining_seconds // 60

    @property
    def seconds(self) -> int:
        return self.remaining_seconds % 60


@dataclass(slots=True)
class QuestionView:
    """Presentation data for one question of an attempt."""

    number: int
    question_id: str
    question_html: str
    question_text: str
    options: list[str]
    selected_option_index: int | None


@dataclass(slots=True)
class AttemptView:
    """Presentation data for a whole attempt, consumed by Qt and the API."""

    attempt_id: str
    test_id: str
    title: str
    state: AttemptState
    questions: list[QuestionView]
    answered_count: int
    remaining_seconds: int
    low_time_warning: bool
    result: AttemptResult | None = None

    @property
    def question_count(self) -> int:
        return len(self.questions)


@dataclass(slots=True)
class AvailableTest:
    """A test the student may start."""

    test_id: str
    title: str
    description: str
    question_count: int
    duration_minutes: int


@dataclass(slots=True)
class StudentStatistics:
    available_tests: int
    completed_tests: int
    average_percentage: int


@dataclass(slots=True)
class ReviewedQuestion:
    """Canonical question paired with the student's outcome for detailed review."""

    question_id: str
    question_text: str
    options: list[str]
    correct_option_index: int
    selected_option_index: int | None
    is_correct: bool


@dataclass(slots=True)
class DetailedResult:
    result: AttemptResult
    test_title: str
    questions: list[ReviewedQuestion]
