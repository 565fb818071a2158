"""Static metadata describing ExamQt."""

APP_NAME = "ExamQt"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "ExamQt runs timed multiple-choice tests for students. Questions and options are shuffled "
    "for every attempt, the countdown submits automatically when time runs out, and every attempt "
    "produces exactly one scored result."
)

HELP_TEXT = (
    "Pick a test from the list and press Start. Answer the questions in any order; you can change "
    "an answer until you submit. When the timer reaches zero the test is submitted automatically.\n\n"
    "Test files are plain text:\n\n"
    "TITLE: Algebra basics\nDURATION: 20\nGROUPS: group-a\n---\n"
    "Q: What is $2 + 2$?\nA: 3\nB: 4\nC: 5\nCORRECT: B\nPOINTS: 10"
)
