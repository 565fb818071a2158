"""Service producing the per-attempt shuffled presentation of a test."""

from __future__ import annotations

import random
from typing import Sequence

from exam_app.core.errors import NoQuestionsError
from exam_app.core.models import ExamQuestion, RandomizedQuestion


class QuestionRandomizer:
    """Shuffles option order per question and then the question order itself."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._shuffle_rng = rng or random.Random()

    def randomize(self, questions: Sequence[ExamQuestion]) -> list[RandomizedQuestion]:
        if not questions:
            raise NoQuestionsError("Test does not contain any questions.")

        randomized = [self._shuffle_options(question) for question in questions]
        self._shuffle_rng.shuffle(randomized)
        return randomized

    def _shuffle_options(self, question: ExamQuestion) -> RandomizedQuestion:
        # Shuffle (text, canonical index, is_correct) together so duplicate
        # option texts cannot confuse the correct-answer mapping.
        combined = [
            (option, index, index == question.correct_option_index)
            for index, option in enumerate(question.options)
        ]
        self._shuffle_rng.shuffle(combined)

        shuffled_correct_index = next(
            position for position, item in enumerate(combined) if item[2]
        )
        return RandomizedQuestion(
            question_id=question.id,
            question_text=question.question_text,
            options=[item[0] for item in combined],
            correct_option_index=shuffled_correct_index,
            points=question.points,
            option_order=[item[1] for item in combined],
        )
