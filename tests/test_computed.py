"""
Computed Scoring Test Suite

Tests for the computed processors:
- ExactMatchProcessor / ArrayMatchProcessor / NumericMatchProcessor
- KeywordMatchProcessor (required/optional keywords, partial credit)
- AggregateProcessor (totals, categories, evaluation tiers)
"""

import pytest

from formgate.computed import (
    AggregateProcessor,
    ArrayMatchProcessor,
    ComputedOutcome,
    ExactMatchProcessor,
    KeywordMatchProcessor,
    NumericMatchProcessor,
)
from formgate.computed.results import round_half_up, to_number


class TestResultHelpers:

    def test_round_half_up(self):
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(66.66666, 1) == 66.7
        assert round_half_up(2.5, 0) == 3

    def test_to_number(self):
        assert to_number("10") == 10.0
        assert to_number(" 3.5 ") == 3.5
        assert to_number("") is None
        assert to_number("abc") is None
        assert to_number(None) is None
        assert to_number(float("nan")) is None


class TestExactMatch:

    @pytest.fixture
    def processor(self):
        return ExactMatchProcessor()

    def test_numeric_answer_coerces_input(self, processor):
        """'10' matches correctAnswer 10"""
        result = processor.evaluate("10", {"correctAnswer": 10, "points": 2})
        assert result.correct is True
        assert result.earned_points == result.points == 2

    def test_text_is_trimmed_and_case_insensitive(self, processor):
        result = processor.evaluate("  Budapest ", {"correctAnswer": "budapest"})
        assert result.correct is True
        assert result.earned_points == 1

    def test_incorrect_with_penalty(self, processor):
        result = processor.evaluate("Vienna", {"correctAnswer": "Budapest", "points": 2, "penalty": 1})
        assert result.correct is False
        assert result.earned_points == -1
        assert result.message == "Incorrect. Correct answer: Budapest"

    def test_incorrect_without_penalty(self, processor):
        result = processor.evaluate("x", {"correctAnswer": "y", "message": "Nope"})
        assert result.earned_points == 0
        assert result.message == "Nope"

    def test_non_numeric_input_for_numeric_answer(self, processor):
        result = processor.evaluate("ten", {"correctAnswer": 10})
        assert result.correct is False


class TestArrayMatch:

    @pytest.fixture
    def processor(self):
        return ArrayMatchProcessor()

    def test_order_insensitive_exact(self, processor):
        result = processor.evaluate(["c", "a", "b"], {"correctAnswer": ["a", "b", "c"], "points": 3})
        assert result.correct is True
        assert result.earned_points == 3

    def test_partial_credit(self, processor):
        """Two of three correct items earn 2 of 3 points"""
        rule = {"correctAnswer": ["a", "b", "c"], "points": 3, "penalty": 0, "partialCredit": True}
        result = processor.evaluate(["a", "b"], rule)
        assert result.correct is False
        assert result.earned_points == 2
        assert result.message.startswith("Partially correct (2/3)")

    def test_partial_credit_penalises_wrong_items(self, processor):
        rule = {"correctAnswer": ["a", "b"], "points": 2, "penalty": 2, "partialCredit": True}
        result = processor.evaluate(["a", "x"], rule)
        assert result.earned_points == 0

        rule = {"correctAnswer": ["a", "b", "c"], "points": 3, "penalty": 1, "partialCredit": True}
        result = processor.evaluate(["a", "b", "x"], rule)
        assert result.earned_points == 1.67

    def test_scalar_answer_is_wrapped(self, processor):
        result = processor.evaluate("a", {"correctAnswer": ["a"]})
        assert result.correct is True

    def test_no_partial_credit(self, processor):
        result = processor.evaluate(["a"], {"correctAnswer": ["a", "b"], "penalty": 1})
        assert result.earned_points == -1

    def test_invalid_correct_answer(self, processor):
        result = processor.evaluate(["a"], {"correctAnswer": "a"})
        assert result.correct is False
        assert result.earned_points == 0
        assert "Invalid configuration" in result.message


class TestNumericMatch:

    @pytest.fixture
    def processor(self):
        return NumericMatchProcessor()

    def test_within_tolerance(self, processor):
        result = processor.evaluate("3.15", {"correctAnswer": 3.14159, "tolerance": 0.01, "points": 2})
        assert result.correct is True
        assert result.earned_points == 2

    def test_outside_tolerance_message(self, processor):
        result = processor.evaluate(3.5, {"correctAnswer": 3, "tolerance": 0.1, "penalty": 1})
        assert result.correct is False
        assert result.earned_points == -1
        assert "±0.1" in result.message

    def test_exact_without_tolerance(self, processor):
        assert processor.evaluate(42, {"correctAnswer": 42}).correct is True
        assert processor.evaluate(42.5, {"correctAnswer": 42}).correct is False

    def test_non_numeric_input_ignores_penalty(self, processor):
        """Invalid numbers earn 0 even when a penalty is configured"""
        result = processor.evaluate("abc", {"correctAnswer": 5, "penalty": 2})
        assert result.correct is False
        assert result.earned_points == 0
        assert result.message == "Invalid number"


class TestKeywordMatch:

    @pytest.fixture
    def processor(self):
        return KeywordMatchProcessor()

    @pytest.fixture
    def rule(self):
        return {
            "points": 10,
            "keywords": {
                "required": ["photosynthesis"],
                "optional": ["chlorophyll", "sunlight", "oxygen", "glucose"],
            },
        }

    def test_missing_required_keyword(self, processor, rule):
        result = processor.evaluate("Plants need chlorophyll", {**rule, "penalty": 2})
        assert result.correct is False
        assert result.earned_points == -2
        assert "photosynthesis" in result.message

    def test_full_credit_at_half_optional(self, processor, rule):
        result = processor.evaluate("Photosynthesis uses SUNLIGHT and chlorophyll", rule)
        assert result.correct is True
        assert result.earned_points == 10

    def test_blended_credit(self, processor, rule):
        """One of four optional keywords: 10 * (0.6 + 0.4 * 0.25)"""
        result = processor.evaluate("photosynthesis produces oxygen", rule)
        assert result.correct is True
        assert result.earned_points == 7

    def test_base_credit_with_suggestion(self, processor, rule):
        result = processor.evaluate("photosynthesis", rule)
        assert result.correct is True
        assert result.earned_points == 6
        assert "chlorophyll, sunlight, oxygen" in result.message
        assert "glucose" not in result.message

    def test_partial_credit_disabled(self, processor, rule):
        result = processor.evaluate("photosynthesis", {**rule, "partialCredit": False})
        assert result.earned_points == 10

    def test_min_length_gate(self, processor, rule):
        result = processor.evaluate("photosynthesis", {**rule, "minLength": 50})
        assert result.correct is False
        assert result.earned_points == 0


def outcome(earned, points):
    return ComputedOutcome(
        correct=earned == points, points=points, penalty=0, earned_points=earned,
        message=None, user_answer=None, correct_answer=None,
    )


class TestAggregate:

    @pytest.fixture
    def processor(self):
        return AggregateProcessor()

    def test_totals_and_percentage(self, processor):
        results = {"a": outcome(2, 2), "b": outcome(0, 3)}
        agg = processor.aggregate(results, {"name": "score", "inputFields": ["a", "b"]})
        assert agg.total_points == 2
        assert agg.max_points == 5
        assert agg.percentage == 40
        assert len(agg.breakdown) == 2

    def test_missing_inputs_are_skipped(self, processor):
        agg = processor.aggregate({"a": outcome(1, 1)}, {"inputFields": ["a", "ghost"]})
        assert agg.max_points == 1
        assert agg.percentage == 100

    def test_categories(self, processor):
        results = {"a": outcome(1, 1), "b": outcome(0, 2), "c": outcome(1, 3)}
        rule = {
            "inputFields": ["a", "b", "c"],
            "categoryMapping": {"a": "Math", "b": "Math"},
        }
        agg = processor.aggregate(results, rule)
        assert agg.categories["Math"].score == 1
        assert agg.categories["Math"].max == 3
        assert agg.categories["Math"].percentage == 33.3
        assert agg.categories["Other"].max == 3

    def test_first_matching_tier_wins(self, processor):
        results = {"a": outcome(4, 5)}
        rule = {
            "inputFields": ["a"],
            "evaluationRules": [
                {"condition": {"field": "percentage", "operator": ">=", "value": 90},
                 "result": "excellent", "message": "Great"},
                {"condition": {"percentage": [">=", 70]}, "result": "good", "message": "Good job"},
                {"condition": {"percentage": [">=", 0]}, "result": "fail"},
            ],
        }
        agg = processor.aggregate(results, rule)
        assert agg.evaluation == "good"
        assert agg.message == "Good job"

    def test_zero_max_points(self, processor):
        agg = processor.aggregate({"a": outcome(0, 0)}, {"inputFields": ["a"]})
        assert agg.percentage == 0

    def test_no_input_fields(self, processor):
        agg = processor.aggregate({"a": outcome(1, 1)}, {"name": "empty"})
        assert agg.evaluation == "N/A"
        assert agg.total_points == 0
        assert agg.breakdown == []
        assert agg.message == "No fields to aggregate"

    def test_to_dict(self, processor):
        agg = processor.aggregate({"a": outcome(1, 2)}, {"inputFields": ["a"]})
        data = agg.to_dict()
        assert data["percentage"] == 50
        assert data["categories"]["Other"] == {"score": 1, "max": 2, "percentage": 50}
