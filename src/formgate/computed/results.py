"""Result types shared by the computed (scoring) processors."""

import math
from dataclasses import dataclass, field as dataclass_field
from typing import Any


def round_half_up(value: float, digits: int = 2) -> float:
    """Round half away from zero for positives, like Math.round on scaled values"""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def to_number(value: Any) -> float | None:
    """Numeric reading of an answer; None when it is not a number"""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class ComputedOutcome:
    """Score of a single field answer"""
    correct: bool
    points: float
    penalty: float
    earned_points: float
    message: str | None
    user_answer: Any
    correct_answer: Any
    field_name: str | None = None

    def to_dict(self) -> dict:
        return {
            "field_name": self.field_name,
            "correct": self.correct,
            "points": self.points,
            "penalty": self.penalty,
            "earned_points": self.earned_points,
            "message": self.message,
            "user_answer": self.user_answer,
            "correct_answer": self.correct_answer,
        }


@dataclass
class CategoryScore:
    score: float = 0
    max: float = 0
    percentage: float = 0

    def to_dict(self) -> dict:
        return {"score": self.score, "max": self.max, "percentage": self.percentage}


@dataclass
class AggregateOutcome:
    """Form-level rollup over field scores"""
    total_points: float
    max_points: float
    percentage: float
    evaluation: str | None = None
    message: str | None = None
    breakdown: list[ComputedOutcome] = dataclass_field(default_factory=list)
    categories: dict[str, CategoryScore] = dataclass_field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_points": self.total_points,
            "max_points": self.max_points,
            "percentage": self.percentage,
            "evaluation": self.evaluation,
            "message": self.message,
            "breakdown": [b.to_dict() for b in self.breakdown],
            "categories": {k: v.to_dict() for k, v in self.categories.items()},
        }
