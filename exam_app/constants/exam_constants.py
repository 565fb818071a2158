"""Exam-related constants shared across UI, API and core layers."""

TIMER_POLL_INTERVAL_MS: int = 1000
LOW_TIME_THRESHOLD_SECONDS: int = 5 * 60

UNANSWERED_SELECTION: int = -1
DEFAULT_QUESTION_POINTS: int = 1
MIN_OPTION_COUNT: int = 2
MAX_OPTION_COUNT: int = 6

GRADE_EXCELLENT_PERCENTAGE: int = 90
GRADE_GOOD_PERCENTAGE: int = 70
GRADE_SATISFACTORY_PERCENTAGE: int = 50
