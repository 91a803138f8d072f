"""Form configuration processor.

Walks the field tree, resolves visibility/disabled/required state, dispatches
each validation rule or rule group to the validation backend or to a computed
processor, and merges everything into a ValidationResult.
"""

import logging
from dataclasses import replace
from typing import Any

from formgate.computed import (
    AggregateProcessor,
    ArrayMatchProcessor,
    ComputedOutcome,
    ExactMatchProcessor,
    KeywordMatchProcessor,
    NumericMatchProcessor,
)
from formgate.core.backend import RuleOutcome, SchemaBackend, ValidationBackend
from formgate.core.conditions import ConditionalEvaluator, ValidationConditionEvaluator
from formgate.core.context import ValidationContext
from formgate.core.errors import ValidationResult, ValidationStats
from formgate.core.registry import CallbackRegistry
from formgate.fields import (
    ComputedSubtype,
    GroupOperator,
    RuleKind,
    build_path,
    default_for_type,
    flatten_rules,
    get_field_name,
    get_group_message,
    get_group_operator,
    get_group_rules,
    get_nested_items,
    has_rule_kind,
    is_container_field,
    is_data_field,
    is_validation_rule,
    is_validation_rule_group,
    next_parent_path,
)

logger = logging.getLogger(__name__)

SKIP_NOT_VISIBLE = "Field is not visible"
SKIP_DISABLED = "Field is disabled"

# Rule parameters copied onto a FieldError
ERROR_PARAM_KEYS = ("min", "max", "pattern", "comparisonTarget", "comparisonType", "targetFields")

ComputedResults = dict[str, ComputedOutcome]


def _error_params(rule: dict) -> dict[str, Any]:
    params = {key: rule[key] for key in ERROR_PARAM_KEYS if rule.get(key) is not None}
    if isinstance(rule.get("crossFieldValidator"), str):
        params["crossFieldValidator"] = rule["crossFieldValidator"]
    return params


class ConfigProcessor:
    """Evaluates a form configuration against the data bound in a context"""

    def __init__(self, registry: CallbackRegistry, backend: ValidationBackend | None = None):
        self.conditional_evaluator = ConditionalEvaluator()
        self.condition_gate = ValidationConditionEvaluator(self.conditional_evaluator)
        self.backend = backend or SchemaBackend(registry)

        self.processors = {
            ComputedSubtype.EXACT_MATCH.value: ExactMatchProcessor(),
            ComputedSubtype.ARRAY_MATCH.value: ArrayMatchProcessor(),
            ComputedSubtype.NUMERIC_MATCH.value: NumericMatchProcessor(),
            ComputedSubtype.KEYWORD_MATCH.value: KeywordMatchProcessor(),
        }
        self.aggregate_processor = AggregateProcessor(self.conditional_evaluator)

    async def process(self, context: ValidationContext) -> ValidationResult:
        """Validate every field of ``context.config`` in document order"""
        result = ValidationResult(stats=ValidationStats())
        computed: ComputedResults = {}

        for item in context.config.get("items") or []:
            result.merge(await self._process_item(item, context, "", computed))

        computed_rules = context.config.get("computedRules") or []
        if computed_rules:
            for name, aggregate in self._process_form_computed_rules(computed_rules, context, computed).items():
                result.add_computed_result(name, aggregate)

        for field_path, outcome in computed.items():
            result.add_computed_result(field_path, outcome)

        logger.debug(
            "Processed form %r: valid=%s errors=%d",
            context.config.get("formId"), result.valid, len(result.errors),
        )
        return result

    # ------------------------------------------------------------------
    # Tree walk
    # ------------------------------------------------------------------

    async def _process_item(self, item: dict, context: ValidationContext, parent_path: str,
                            computed: ComputedResults) -> ValidationResult:
        result = ValidationResult(stats=ValidationStats())

        if is_container_field(item):
            next_path = next_parent_path(item, parent_path)
            for nested in get_nested_items(item) or []:
                result.merge(await self._process_item(nested, context, next_path, computed))
            return result

        if not is_data_field(item) or not get_field_name(item):
            return result

        field_path = build_path(item, parent_path)
        rules = item.get("validationRules") or []

        is_visible = self._evaluate_slot(item, "visibleIf", context, default=True)
        if item.get("visibleIf") is not None and not is_visible:
            is_disabled = True
        else:
            is_disabled = self._evaluate_slot(item, "disabledIf", context, default=False)
        # Readonly fields are still validated
        self._evaluate_slot(item, "readonlyIf", context, default=False)
        is_required = self._evaluate_required(item, rules, context)

        if not is_visible or is_disabled:
            result.set_field_skipped(field_path, SKIP_NOT_VISIBLE if not is_visible else SKIP_DISABLED)
            skipped = len(flatten_rules(rules))
            result.stats.total_rules += skipped
            result.stats.skipped_rules += skipped
            return result

        if not rules:
            return result

        if context.has_field(field_path):
            value = context.get_value(field_path)
        else:
            value = default_for_type(item.get("type"))

        field_context = context.create_child(field_path.split("."))
        has_errors = await self._validate_rules(
            rules, field_path, value, is_required, field_context, result, computed
        )
        if not has_errors:
            result.set_field_valid(field_path)
        return result

    def _evaluate_slot(self, item: dict, slot: str, context: ValidationContext, default: bool) -> bool:
        expression = item.get(slot)
        if expression is None:
            return default
        return self._evaluate_condition(item, slot, expression, context, default)

    def _evaluate_required(self, item: dict, rules: list[dict], context: ValidationContext) -> bool:
        declared = has_rule_kind(rules, RuleKind.REQUIRED)
        if item.get("requiredIf") is not None:
            return self._evaluate_condition(item, "requiredIf", item["requiredIf"], context, declared)
        return declared

    def _evaluate_condition(self, item: dict, slot: str, expression: Any,
                            context: ValidationContext, fallback: bool) -> bool:
        """A failing condition behaves as if the slot were absent"""
        try:
            return self.conditional_evaluator.evaluate(expression, context)
        except Exception:
            logger.exception("Error evaluating %s for field %r", slot, get_field_name(item))
            return fallback

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    async def validate_rule_or_group(
        self,
        rule_or_group: dict,
        field_path: str,
        value: Any,
        context: ValidationContext,
        is_required: bool = True,
        result: ValidationResult | None = None,
    ) -> ValidationResult:
        """Validate a single rule or rule group against one value"""
        result = result if result is not None else ValidationResult(stats=ValidationStats())
        if result.stats is None:
            result.stats = ValidationStats()
        computed: ComputedResults = {}

        has_errors = await self._validate_rules(
            [rule_or_group], field_path, value, is_required, context, result, computed
        )
        if not has_errors:
            result.set_field_valid(field_path)
        for name, outcome in computed.items():
            result.add_computed_result(name, outcome)
        return result

    async def _validate_rules(
        self,
        rules: list[dict],
        field_path: str,
        value: Any,
        is_required: bool,
        context: ValidationContext,
        result: ValidationResult,
        computed: ComputedResults,
    ) -> bool:
        """Evaluate every rule and group; True when anything failed"""
        stats = result.stats
        has_errors = False

        for rule_or_group in rules:
            if is_validation_rule(rule_or_group):
                rule = rule_or_group
                stats.total_rules += 1

                if not self.condition_gate.should_apply_rule(rule, context):
                    stats.skipped_rules += 1
                    continue

                if rule["type"] == RuleKind.COMPUTED.value:
                    stats.computed_rules += 1
                    self._process_computed_rule(rule, field_path, value, computed)
                    continue

                if rule["type"] == RuleKind.REQUIRED.value and not rule.get("when") and not is_required:
                    stats.skipped_rules += 1
                    continue

                outcome = await self._run_backend(value, rule, context)
                if outcome.valid:
                    stats.passed_rules += 1
                    continue

                has_errors = True
                stats.failed_rules += 1
                result.add_error(
                    field_path,
                    outcome.error or rule.get("message") or "Validation failed",
                    rule["type"],
                    _error_params(rule),
                    path=list(context.path) or None,
                )

            elif is_validation_rule_group(rule_or_group):
                stats.total_rules += 1
                message = await self._evaluate_group(
                    rule_or_group, field_path, value, is_required, context, computed
                )
                if message is None:
                    stats.passed_rules += 1
                    continue

                has_errors = True
                stats.failed_rules += 1
                result.add_error(
                    field_path,
                    message,
                    "group",
                    {"operator": get_group_operator(rule_or_group).value},
                    path=list(context.path) or None,
                )

        return has_errors

    async def _run_backend(self, value: Any, rule: dict, context: ValidationContext) -> RuleOutcome:
        try:
            return await self.backend.validate(value, rule, context)
        except Exception as exc:
            logger.warning("Validation backend raised for rule %r: %s", rule.get("type"), exc)
            return RuleOutcome(False, str(exc) or rule.get("message") or "Validation failed")

    async def _evaluate_group(
        self,
        group: dict,
        field_path: str,
        value: Any,
        is_required: bool,
        context: ValidationContext,
        computed: ComputedResults,
    ) -> str | None:
        """Failure message of a group, or None when it passes.

        ``stopOnFirstError`` stops at the first failing child. A failing rule
        child still goes through the operator check; a failing nested group
        fails the parent outright.
        """
        rules = get_group_rules(group)
        operator = get_group_operator(group)
        group_message = get_group_message(group)
        stop_on_first = bool(group.get("stopOnFirstError"))
        errors: list[str] = []

        for child in rules:
            if is_validation_rule(child):
                if not self.condition_gate.should_apply_rule(child, context):
                    continue
                if child["type"] == RuleKind.COMPUTED.value:
                    self._process_computed_rule(child, field_path, value, computed)
                    continue
                if child["type"] == RuleKind.REQUIRED.value and not child.get("when") and not is_required:
                    continue

                outcome = await self._run_backend(value, child, context)
                if not outcome.valid:
                    errors.append(outcome.error or child.get("message") or "Validation failed")
                    if stop_on_first:
                        break

            elif is_validation_rule_group(child):
                nested_error = await self._evaluate_group(
                    child, field_path, value, is_required, context, computed
                )
                if nested_error is not None:
                    errors.append(get_group_message(child) or "Nested group validation failed")
                    if stop_on_first:
                        return group_message or ", ".join(errors)

        if operator == GroupOperator.AND:
            has_error = len(errors) > 0
        elif operator == GroupOperator.OR:
            has_error = len(errors) == len(rules)
        else:
            has_error = len(errors) == 0

        if not has_error:
            return None
        return group_message or ", ".join(errors) or "Validation group failed"

    # ------------------------------------------------------------------
    # Computed rules
    # ------------------------------------------------------------------

    def _score(self, value: Any, rule: dict, field_name: str) -> ComputedOutcome | None:
        subtype = rule.get("subtype")
        if subtype == ComputedSubtype.CUSTOM.value:
            logger.warning("Custom computed evaluator not implemented for field %r", field_name)
            return None
        processor = self.processors.get(subtype, self.processors[ComputedSubtype.EXACT_MATCH.value])
        return replace(processor.evaluate(value, rule), field_name=field_name)

    def _process_computed_rule(self, rule: dict, field_path: str, value: Any, computed: ComputedResults) -> None:
        outcome = self._score(value, rule, field_path)
        if outcome is not None and rule.get("storeResult") is not False:
            computed[field_path] = outcome

    def _process_form_computed_rules(self, computed_rules: list[dict], context: ValidationContext,
                                     computed: ComputedResults) -> dict[str, Any]:
        """Field rules first feed ``computed``; aggregate rules read it"""
        aggregates: dict[str, Any] = {}

        for rule in computed_rules:
            try:
                if rule.get("type") == "field":
                    field_name = rule.get("fieldName")
                    if not field_name:
                        logger.warning("Field computed rule %r missing fieldName", rule.get("id") or rule.get("name"))
                        continue
                    self._process_computed_rule(rule, field_name, context.get_value(field_name), computed)
                elif rule.get("type") == "aggregate":
                    aggregates[rule.get("name")] = self.aggregate_processor.aggregate(computed, rule)
            except Exception:
                logger.exception("Error processing computed rule %r", rule.get("name"))

        return aggregates
