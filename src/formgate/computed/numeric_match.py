"""Numeric match scoring with tolerance."""

from typing import Any

from formgate.computed.results import ComputedOutcome, to_number


class NumericMatchProcessor:

    def evaluate(self, field_value: Any, rule: dict) -> ComputedOutcome:
        correct_answer = rule.get("correctAnswer")
        points = rule.get("points", 1)
        penalty = rule.get("penalty", 0)
        tolerance = rule.get("tolerance", 0)

        user_number = to_number(field_value)
        correct_number = to_number(correct_answer)

        # Non-numeric input scores zero; penalty only applies to wrong numbers
        if user_number is None or correct_number is None:
            return ComputedOutcome(
                correct=False,
                points=points,
                penalty=penalty,
                earned_points=0,
                message="Invalid number",
                user_answer=field_value,
                correct_answer=correct_answer,
            )

        is_correct = abs(user_number - correct_number) <= tolerance
        if is_correct:
            earned = points
        else:
            earned = -penalty if penalty > 0 else 0

        message = None
        if not is_correct:
            shown = f"{correct_number:g}"
            if tolerance > 0:
                message = rule.get("message") or f"Incorrect. Correct answer: {shown} (±{tolerance} tolerance)"
            else:
                message = rule.get("message") or f"Incorrect. Correct answer: {shown}"

        return ComputedOutcome(
            correct=is_correct,
            points=points,
            penalty=penalty,
            earned_points=earned,
            message=message,
            user_answer=field_value,
            correct_answer=correct_answer,
        )
