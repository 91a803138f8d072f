"""
Validation Result Test Suite

Tests for errors.py:
- ValidationResult.add_error() / set_field_valid() / set_field_skipped()
- ValidationResult.merge() - validity, errors, field results, computed, stats
- to_dict() / from_dict()
"""

from formgate.computed import ComputedOutcome
from formgate.core.errors import FieldError, FormConfigError, ValidationResult, ValidationStats


class TestAccumulation:

    def test_new_result_is_valid(self):
        result = ValidationResult()
        assert result.valid is True
        assert result.errors == []

    def test_add_error_invalidates_field_and_result(self):
        result = ValidationResult()
        error = result.add_error("email", "Invalid email format", "email", {"pattern": "x"})
        assert isinstance(error, FieldError)
        assert result.valid is False
        assert result.is_field_valid("email") is False
        assert result.get_field_errors("email") == [error]

    def test_set_field_valid_and_skipped(self):
        result = ValidationResult()
        result.set_field_valid("name")
        result.set_field_skipped("vat", "Field is not visible")
        assert result.is_field_valid("name")
        assert result.is_field_skipped("vat")
        assert result.field_results["vat"].skip_reason == "Field is not visible"
        assert result.valid is True

    def test_unknown_field_defaults(self):
        result = ValidationResult()
        assert result.is_field_valid("nothing") is True
        assert result.is_field_skipped("nothing") is False

    def test_add_errors(self):
        result = ValidationResult()
        result.add_errors([FieldError("a", "m1", "required"), FieldError("b", "m2", "email")])
        assert [e.field for e in result.errors] == ["a", "b"]
        assert not result.is_field_valid("b")


class TestMerge:

    def test_invalid_child_invalidates_parent(self):
        parent = ValidationResult()
        child = ValidationResult()
        child.add_error("x", "bad", "required")
        parent.merge(child)
        assert parent.valid is False
        assert len(parent.errors) == 1

    def test_shared_field_keys_combine(self):
        left = ValidationResult()
        left.set_field_valid("a")
        right = ValidationResult()
        right.add_error("a", "bad", "pattern")
        left.merge(right)
        assert left.is_field_valid("a") is False
        assert len(left.field_results["a"].errors) == 1

    def test_computed_later_wins(self):
        left = ValidationResult()
        left.add_computed_result("score", 1)
        right = ValidationResult()
        right.add_computed_result("score", 2)
        left.merge(right)
        assert left.get_computed_result("score") == 2

    def test_stats_are_summed(self):
        left = ValidationResult(stats=ValidationStats(total_rules=2, passed_rules=2))
        right = ValidationResult(stats=ValidationStats(total_rules=3, failed_rules=1, skipped_rules=2))
        left.merge(right)
        assert left.stats.total_rules == 5
        assert left.stats.failed_rules == 1
        assert left.stats.skipped_rules == 2

    def test_merge_order_independent_validity(self):
        a = ValidationResult()
        a.add_error("x", "bad", "required")
        b = ValidationResult()
        b.set_field_valid("y")

        ab = ValidationResult()
        ab.merge(a)
        ab.merge(b)
        ba = ValidationResult()
        ba.merge(b)
        ba.merge(a)
        assert ab.valid == ba.valid is False
        assert set(ab.field_results) == set(ba.field_results)


class TestSerialization:

    def test_to_dict_converts_computed_outcomes(self):
        result = ValidationResult()
        result.add_computed_result("q1", ComputedOutcome(
            correct=True, points=1, penalty=0, earned_points=1,
            message=None, user_answer="a", correct_answer="a", field_name="q1",
        ))
        data = result.to_dict()
        assert data["computed_results"]["q1"]["earned_points"] == 1
        assert data["computed_results"]["q1"]["field_name"] == "q1"

    def test_round_trip(self):
        result = ValidationResult(stats=ValidationStats(total_rules=1, failed_rules=1))
        result.add_error("email", "Invalid", "email", path=["email"])
        result.set_field_skipped("vat", "Field is disabled")

        restored = ValidationResult.from_dict(result.to_dict())
        assert restored.valid is False
        assert restored.errors[0].path == ["email"]
        assert restored.is_field_skipped("vat")
        assert restored.stats.failed_rules == 1


class TestFormConfigError:

    def test_carries_errors(self):
        exc = FormConfigError("Invalid form", [{"path": "items", "message": "bad"}])
        assert isinstance(exc, ValueError)
        assert exc.errors[0]["path"] == "items"
