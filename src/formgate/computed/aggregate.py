"""Form-level aggregation of field scores."""

import logging

from formgate.computed.results import AggregateOutcome, CategoryScore, ComputedOutcome, round_half_up
from formgate.core.conditions import ConditionalEvaluator, MappingValueSource

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Other"


class AggregateProcessor:
    """Sums field scores and picks the first matching evaluation tier"""

    def __init__(self, conditional_evaluator: ConditionalEvaluator | None = None):
        self.conditional_evaluator = conditional_evaluator or ConditionalEvaluator()

    def aggregate(self, field_results: dict[str, ComputedOutcome], rule: dict) -> AggregateOutcome:
        input_fields = rule.get("inputFields") or []
        if not input_fields:
            logger.warning("Aggregate rule %r has no inputFields", rule.get("name"))
            return AggregateOutcome(
                total_points=0,
                max_points=0,
                percentage=0,
                evaluation="N/A",
                message="No fields to aggregate",
            )

        category_map = rule.get("categoryMapping") or {}
        breakdown: list[ComputedOutcome] = []
        categories: dict[str, CategoryScore] = {}
        total_points = 0.0
        max_points = 0.0

        for name in input_fields:
            result = field_results.get(name)
            if result is None:
                continue
            breakdown.append(result)
            total_points += result.earned_points
            max_points += result.points

            category = categories.setdefault(category_map.get(name, DEFAULT_CATEGORY), CategoryScore())
            category.score += result.earned_points
            category.max += result.points

        percentage = total_points / max_points * 100 if max_points > 0 else 0

        for category in categories.values():
            category.percentage = round_half_up(category.score / category.max * 100, 1) if category.max > 0 else 0
            category.score = round_half_up(category.score, 2)

        evaluation = None
        message = None
        source = MappingValueSource({
            "percentage": percentage,
            "totalPoints": total_points,
            "maxPoints": max_points,
        })
        for tier in rule.get("evaluationRules") or []:
            if self.conditional_evaluator.evaluate(tier.get("condition"), source):
                evaluation = tier.get("result")
                message = tier.get("message")
                break

        return AggregateOutcome(
            total_points=round_half_up(total_points, 2),
            max_points=max_points,
            percentage=round_half_up(percentage, 1),
            evaluation=evaluation,
            message=message,
            breakdown=breakdown,
            categories=categories,
        )
