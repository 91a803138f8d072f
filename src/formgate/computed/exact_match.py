"""Exact string/number match scoring."""

from typing import Any

from formgate.computed.results import ComputedOutcome, is_number, to_number


class ExactMatchProcessor:
    """Numbers compare numerically; everything else as trimmed, case-insensitive text"""

    def evaluate(self, field_value: Any, rule: dict) -> ComputedOutcome:
        correct_answer = rule.get("correctAnswer")
        points = rule.get("points", 1)
        penalty = rule.get("penalty", 0)

        if is_number(correct_answer):
            user_number = to_number(field_value)
            is_correct = user_number is not None and user_number == correct_answer
        else:
            user_text = "" if field_value is None else str(field_value)
            correct_text = "" if correct_answer is None else str(correct_answer)
            is_correct = user_text.strip().lower() == correct_text.strip().lower()

        if is_correct:
            earned = points
        else:
            earned = -penalty if penalty > 0 else 0

        return ComputedOutcome(
            correct=is_correct,
            points=points,
            penalty=penalty,
            earned_points=earned,
            message=None if is_correct else rule.get("message") or f"Incorrect. Correct answer: {correct_answer}",
            user_answer=field_value,
            correct_answer=correct_answer,
        )
