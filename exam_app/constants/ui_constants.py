"""Qt UI constants used across widgets."""

WINDOW_TITLE: str = "ExamQt Student"
ATTEMPT_WINDOW_TITLE_TEMPLATE: str = "{title}"

START_BUTTON: str = "Start Test"
REFRESH_BUTTON: str = "Refresh"
SUBMIT_BUTTON: str = "Submit Test"
RETRY_SUBMIT_BUTTON: str = "Retry Submission"

NO_TESTS_MESSAGE: str = "No tests available."
ALL_TESTS_TAKEN_MESSAGE: str = "All available tests have been completed!"
TEST_LIST_ITEM_TEMPLATE: str = "{title}  ({question_count} questions, {duration} min)"
STATISTICS_TEMPLATE: str = (
    "Available: {available}   Completed: {completed}   Average score: {average}%"
)

QUESTION_HEADER_TEMPLATE: str = "Question {number}"
TIMER_LABEL_TEMPLATE: str = "{minutes}:{seconds:02d}"
ANSWERED_COUNT_TEMPLATE: str = "Answered {answered} of {total}"

INCOMPLETE_SUBMIT_TITLE: str = "Unanswered Questions"
INCOMPLETE_SUBMIT_MESSAGE: str = (
    "You have answered {answered} of {total} questions. Submit the test anyway?"
)
TIME_UP_TITLE: str = "Time Is Up"
TIME_UP_MESSAGE: str = "Time is up! The test has been submitted automatically."
RESULT_TITLE: str = "Test Result"
RESULT_MESSAGE_TEMPLATE: str = "{band}\n\n{score}/{max_score}\n{percentage}%"
SUBMIT_FAILED_TITLE: str = "Submission Failed"
START_FAILED_TITLE: str = "Cannot Start Test"

GRADE_BAND_MESSAGES: dict[str, str] = {
    "excellent": "Excellent!",
    "good": "Good job!",
    "satisfactory": "Satisfactory",
    "needs_work": "Keep studying the material",
}
