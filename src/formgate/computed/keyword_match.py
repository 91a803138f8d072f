"""Keyword-based scoring for free-text answers."""

from typing import Any

from formgate.computed.results import ComputedOutcome, round_half_up

BASE_CREDIT = 0.6
FULL_CREDIT_RATIO = 0.5


class KeywordMatchProcessor:
    """All required keywords must appear; optional keywords add partial credit.

    With partial credit on, an answer containing only the required keywords
    earns 60% of the points, rising linearly to full points once half of the
    optional keywords are present.
    """

    def evaluate(self, field_value: Any, rule: dict) -> ComputedOutcome:
        points = rule.get("points", 1)
        penalty = rule.get("penalty", 0)
        partial_credit = rule.get("partialCredit", True)
        keywords = rule.get("keywords") or {"required": [], "optional": []}
        min_length = rule.get("minLength", 0)

        user_text = ("" if field_value is None else str(field_value)).lower()
        required = keywords.get("required") or []
        optional = keywords.get("optional") or []
        failed_points = -penalty if penalty > 0 else 0

        def outcome(correct: bool, earned: float, message: str | None) -> ComputedOutcome:
            return ComputedOutcome(
                correct=correct,
                points=points,
                penalty=penalty,
                earned_points=earned,
                message=message,
                user_answer=field_value,
                correct_answer=keywords,
            )

        if len(user_text) < min_length:
            return outcome(False, failed_points, rule.get("message")
                           or f"Answer is too short. At least {min_length} characters are required.")

        missing = [k for k in required if k.lower() not in user_text]
        if missing:
            return outcome(False, failed_points, rule.get("message")
                           or f"Missing keywords: {', '.join(missing)}")

        earned = points
        message = None
        if partial_credit and optional:
            found = sum(1 for k in optional if k.lower() in user_text)
            ratio = found / len(optional)
            if ratio >= FULL_CREDIT_RATIO:
                earned = points
            elif ratio > 0:
                earned = points * (BASE_CREDIT + 0.4 * ratio)
            else:
                earned = points * BASE_CREDIT
                message = f"Acceptable answer. Consider expanding on: {', '.join(optional[:3])}"

        return outcome(True, round_half_up(earned, 2), message)
