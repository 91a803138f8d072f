"""Array match scoring for multi-select answers (tagbox, checkbox groups)."""

import json
from typing import Any

from formgate.computed.results import ComputedOutcome, round_half_up


def _sort_key(item: Any) -> str:
    return json.dumps(item, sort_keys=True, default=str)


def _join(items: list) -> str:
    return ", ".join(str(i) for i in items)


class ArrayMatchProcessor:
    """Order-insensitive comparison with optional partial credit"""

    def evaluate(self, field_value: Any, rule: dict) -> ComputedOutcome:
        correct_answer = rule.get("correctAnswer")
        points = rule.get("points", 1)
        penalty = rule.get("penalty", 0)
        partial_credit = rule.get("partialCredit", False)

        if not isinstance(correct_answer, list):
            return ComputedOutcome(
                correct=False,
                points=points,
                penalty=penalty,
                earned_points=0,
                message="Invalid configuration: correctAnswer must be a list",
                user_answer=field_value,
                correct_answer=correct_answer,
            )

        user_items = field_value if isinstance(field_value, list) else [field_value]
        sorted_user = [_sort_key(i) for i in sorted(user_items, key=_sort_key)]
        sorted_correct = [_sort_key(i) for i in sorted(correct_answer, key=_sort_key)]
        is_exact = sorted_user == sorted_correct

        message = None
        if is_exact:
            earned = points
        elif partial_credit and sorted_correct:
            correct_count = sum(1 for item in sorted_user if item in sorted_correct)
            incorrect_count = len(sorted_user) - correct_count
            total = len(sorted_correct)
            earned = max(0, points * correct_count / total - penalty * incorrect_count / total)
            message = f"Partially correct ({correct_count}/{total}). Correct answer: {_join(correct_answer)}"
        else:
            earned = -penalty if penalty > 0 else 0
            message = rule.get("message") or f"Incorrect. Correct answer: {_join(correct_answer)}"

        return ComputedOutcome(
            correct=is_exact,
            points=points,
            penalty=penalty,
            earned_points=round_half_up(earned, 2),
            message=message,
            user_answer=field_value,
            correct_answer=correct_answer,
        )
