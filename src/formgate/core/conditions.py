"""Conditional expression evaluation.

Expressions gate field visibility, enablement, required-ness and rule
applicability. Supported shapes:

- leaf:       {"field": "age", "operator": ">=", "value": 18}
- shorthand:  {"country": "HU"}, {"role": ["admin", "editor"]}, {"age": [">=", 18]}
- logical:    {"and": [...]}, {"or": [...]}, {"not": expr}
- list:       [expr, expr]  (implicit and)

Anything else evaluates to True so malformed conditions never block a form.
"""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)

OPERATORS = ("==", "!=", ">", "<", ">=", "<=", "in", "notIn", "contains", "startswith", "endswith")


class ValueSource(Protocol):
    def get_value(self, field_path: str) -> Any: ...


class MappingValueSource:
    """Resolves names from a flat mapping (used for aggregate tiers)"""

    def __init__(self, values: dict[str, Any]):
        self.values = values

    def get_value(self, field_path: str) -> Any:
        return self.values.get(field_path)


def _truthy(value: Any) -> bool:
    """Presence test for combinator keys; empty lists and dicts still count as present"""
    if isinstance(value, (list, dict)):
        return True
    return bool(value)


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return None
    return None


def loose_equals(left: Any, right: Any) -> bool:
    """Type-coercing equality: "10" == 10, True == 1, None only equals None"""
    if left is None or right is None:
        return left is None and right is None
    if type(left) is type(right):
        return left == right
    scalar = (str, int, float, bool)
    if isinstance(left, scalar) and isinstance(right, scalar):
        if isinstance(left, str) and isinstance(right, str):
            return left == right
        left_num, right_num = _as_number(left), _as_number(right)
        if left_num is None or right_num is None:
            return False
        return left_num == right_num
    return left == right


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without coercion; booleans never equal numbers"""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _contains(container: list, value: Any) -> bool:
    return any(strict_equals(item, value) for item in container)


def _ordered(left: Any, right: Any, operator: str) -> bool:
    # A numeric side pulls the other side to a number ("25" >= 18)
    if isinstance(left, (int, float)) or isinstance(right, (int, float)):
        left, right = _as_number(left), _as_number(right)
        if left is None or right is None:
            return False
    try:
        if operator == ">":
            return left > right
        if operator == "<":
            return left < right
        if operator == ">=":
            return left >= right
        return left <= right
    except TypeError:
        return False


def compare_values(field_value: Any, compare_value: Any, operator: str) -> bool:
    """Apply a comparison operator; unknown operators evaluate to False"""
    if operator == "==":
        return loose_equals(field_value, compare_value)
    if operator == "!=":
        return not loose_equals(field_value, compare_value)
    if operator in (">", "<", ">=", "<="):
        return _ordered(field_value, compare_value, operator)
    if operator == "in":
        return isinstance(compare_value, list) and _contains(compare_value, field_value)
    if operator == "notIn":
        if isinstance(compare_value, list):
            return not _contains(compare_value, field_value)
        return True
    if operator == "contains":
        if isinstance(field_value, str) and isinstance(compare_value, str):
            return compare_value in field_value
        if isinstance(field_value, list):
            return _contains(field_value, compare_value)
        return False
    if operator == "startswith":
        return isinstance(field_value, str) and isinstance(compare_value, str) \
            and field_value.startswith(compare_value)
    if operator == "endswith":
        return isinstance(field_value, str) and isinstance(compare_value, str) \
            and field_value.endswith(compare_value)

    logger.warning("Unknown comparison operator: %s", operator)
    return False


class ConditionalEvaluator:
    """Evaluates conditional expressions against a value source"""

    def evaluate(self, expression: Any, context: ValueSource) -> bool:
        if isinstance(expression, list):
            return all(self.evaluate(expr, context) for expr in expression)

        if not isinstance(expression, dict):
            return True

        if _truthy(expression.get("and")):
            clauses = expression["and"]
            clauses = clauses if isinstance(clauses, list) else [clauses]
            return all(self.evaluate(expr, context) for expr in clauses)

        if _truthy(expression.get("or")):
            clauses = expression["or"]
            clauses = clauses if isinstance(clauses, list) else [clauses]
            return any(self.evaluate(expr, context) for expr in clauses)

        if _truthy(expression.get("not")):
            return not self.evaluate(expression["not"], context)

        if "field" in expression and "operator" in expression and "value" in expression:
            field_value = context.get_value(expression["field"])
            return compare_values(field_value, expression["value"], expression["operator"])

        keys = list(expression.keys())
        if len(keys) == 1 and keys[0] not in ("and", "or", "not"):
            field_name = keys[0]
            expected = expression[field_name]
            actual = context.get_value(field_name)

            if isinstance(expected, list):
                if len(expected) == 2 and expected[0] in OPERATORS:
                    return compare_values(actual, expected[1], expected[0])
                return _contains(expected, actual)
            return loose_equals(actual, expected)

        return True


class ValidationConditionEvaluator:
    """Decides whether a rule applies, based on its ``when`` clause"""

    def __init__(self, conditional_evaluator: ConditionalEvaluator | None = None):
        self.conditional_evaluator = conditional_evaluator or ConditionalEvaluator()

    def should_apply_rule(self, rule: dict, context: ValueSource) -> bool:
        when = rule.get("when")
        if not when:
            return True
        try:
            return self.conditional_evaluator.evaluate(when, context)
        except Exception:
            logger.exception("Error evaluating condition for rule %r; applying rule", rule.get("type"))
            return True

    def filter_applicable_rules(self, rules: list[dict], context: ValueSource) -> list[dict]:
        return [rule for rule in rules if self.should_apply_rule(rule, context)]
