"""Core validation components."""

from formgate.core.errors import FieldError, FieldResult, FormConfigError, ValidationResult, ValidationStats
from formgate.core.context import ValidationContext
from formgate.core.conditions import ConditionalEvaluator, ValidationConditionEvaluator, compare_values
from formgate.core.registry import CallbackRegistry, get_global_registry, reset_global_registry
from formgate.core.backend import RuleOutcome, SchemaBackend, ValidationBackend
from formgate.core.validator import Validator

__all__ = [
    "Validator",
    "ValidationResult",
    "ValidationStats",
    "FieldError",
    "FieldResult",
    "FormConfigError",
    "ValidationContext",
    "ConditionalEvaluator",
    "ValidationConditionEvaluator",
    "compare_values",
    "CallbackRegistry",
    "get_global_registry",
    "reset_global_registry",
    "RuleOutcome",
    "SchemaBackend",
    "ValidationBackend",
]
