"""Named validation callbacks.

Rules reference callbacks by name (``"validationCallback": "isPositive"``,
``"crossFieldValidator": "passwordMatch"``). The registry resolves those names
and comes pre-populated with general-purpose predicates.

Single-value callbacks receive ``(value, context)``; cross-field callbacks
receive ``(values_by_field, context)`` where ``values_by_field`` also carries
the validated field's own value under ``_currentValue``. Callbacks may be
plain functions or coroutine functions.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Literal

from formgate.core.conditions import strict_equals

logger = logging.getLogger(__name__)

CallbackType = Literal["custom", "crossField", "computed"]
ValidationCallback = Callable[..., Any]

CURRENT_VALUE_KEY = "_currentValue"


@dataclass
class RegistryEntry:
    callback: ValidationCallback
    type: CallbackType = "custom"
    description: str | None = None
    predefined: bool = False


class CallbackRegistry:
    """Resolves callback names to validation functions"""

    def __init__(self, with_predefined: bool = True):
        self._callbacks: dict[str, RegistryEntry] = {}
        if with_predefined:
            self.register_predefined()

    def register(
        self,
        name: str,
        callback: ValidationCallback,
        type: CallbackType = "custom",
        description: str | None = None,
        overwrite: bool = False,
    ) -> bool:
        """Register a callback; predefined entries are protected unless overwrite is set"""
        existing = self._callbacks.get(name)
        if existing and existing.predefined and not overwrite:
            logger.warning("Cannot override predefined validator %r; pass overwrite=True to force", name)
            return False

        self._callbacks[name] = RegistryEntry(callback=callback, type=type, description=description)
        return True

    def get(self, name: str) -> ValidationCallback | None:
        entry = self._callbacks.get(name)
        return entry.callback if entry else None

    resolve = get

    def has(self, name: str) -> bool:
        return name in self._callbacks

    def unregister(self, name: str) -> bool:
        entry = self._callbacks.get(name)
        if entry is None:
            return False
        if entry.predefined:
            logger.warning("Cannot unregister predefined validator %r", name)
            return False
        del self._callbacks[name]
        return True

    def list_all(self) -> list[dict]:
        return [
            {
                "name": name,
                "type": entry.type,
                "description": entry.description,
                "predefined": entry.predefined,
            }
            for name, entry in self._callbacks.items()
        ]

    def names(self) -> list[str]:
        return list(self._callbacks)

    def clear_custom(self) -> None:
        """Remove every non-predefined callback"""
        for name in [n for n, e in self._callbacks.items() if not e.predefined]:
            del self._callbacks[name]

    def register_predefined(self) -> None:
        for name, (callback, callback_type, description) in PREDEFINED_VALIDATORS.items():
            self._callbacks[name] = RegistryEntry(
                callback=callback,
                type=callback_type,
                description=description,
                predefined=True,
            )


# =========================================================================
# Predefined validators
# =========================================================================

def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def _target_values(values: dict[str, Any]) -> list[Any]:
    return [v for k, v in values.items() if k != CURRENT_VALUE_KEY]


def _first_target(values: dict[str, Any]) -> Any:
    return next((v for v in _target_values(values) if v is not None), None)


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip()) if value.strip() else 0.0
        except ValueError:
            return None
    if value is None:
        return 0.0
    return None


def _number_or_zero(value: Any) -> float:
    return _number(value) or 0.0


def _to_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
        except ValueError:
            return None
    return None


def _all_equal(values: dict[str, Any], context: Any = None) -> bool:
    field_values = list(values.values())
    if len(field_values) < 2:
        return False
    first, *rest = field_values
    return all(strict_equals(v, first) for v in rest)


def _dates_ascending(values: dict[str, Any], context: Any = None) -> bool:
    dates = [_to_datetime(v) for v in values.values()]
    if len(dates) < 2 or any(d is None for d in dates):
        return False
    return all(prev <= cur for prev, cur in zip(dates, dates[1:]))


def _numbers_ascending(values: dict[str, Any], context: Any = None) -> bool:
    numbers = [_number(v) for v in values.values()]
    if len(numbers) < 2 or any(n is None for n in numbers):
        return False
    return all(prev <= cur for prev, cur in zip(numbers, numbers[1:]))


def _not_empty(value: Any, context: Any = None) -> bool:
    return not _is_empty(value)


def _is_positive(value: Any, context: Any = None) -> bool:
    number = _number(value)
    return value is not None and number is not None and number > 0


def _is_non_negative(value: Any, context: Any = None) -> bool:
    number = _number(value)
    return value is not None and number is not None and number >= 0


def _target_not_empty(values: dict[str, Any], context: Any = None) -> bool:
    return not _is_empty(_first_target(values))


def _target_is_true(values: dict[str, Any], context: Any = None) -> bool:
    return _first_target(values) is True


def _target_is_false(values: dict[str, Any], context: Any = None) -> bool:
    return _first_target(values) is False


def _params(context: Any) -> dict:
    return getattr(context, "params", None) or {}


def _equals(values: dict[str, Any], context: Any = None) -> bool:
    return _first_target(values) == _params(context).get("value")


def _value_in(values: dict[str, Any], context: Any = None) -> bool:
    return _first_target(values) in (_params(context).get("values") or [])


def _value_not_in(values: dict[str, Any], context: Any = None) -> bool:
    return _first_target(values) not in (_params(context).get("values") or [])


def _array_contains_any(values: dict[str, Any], context: Any = None) -> bool:
    items = _first_target(values)
    if not isinstance(items, list):
        return False
    return any(v in items for v in _params(context).get("values") or [])


def _sum_equals(values: dict[str, Any], context: Any = None) -> bool:
    total = sum(_number_or_zero(v) for v in _target_values(values))
    return _number(values.get(CURRENT_VALUE_KEY)) == total


def _percentage_sum(values: dict[str, Any], context: Any = None) -> bool:
    return sum(_number_or_zero(v) for v in _target_values(values)) == 100


def _date_in_range(values: dict[str, Any], context: Any = None) -> bool:
    targets = _target_values(values)
    if len(targets) < 2:
        return True
    start, end = _to_datetime(targets[0]), _to_datetime(targets[1])
    current = _to_datetime(values.get(CURRENT_VALUE_KEY))
    if start is None or end is None or current is None:
        return True
    return start <= current <= end


def _at_least_one(values: dict[str, Any], context: Any = None) -> bool:
    return any(not _is_empty(v) for v in _target_values(values))


def _product_equals(values: dict[str, Any], context: Any = None) -> bool:
    targets = _target_values(values)
    if not targets:
        return True
    product = 1.0
    for v in targets:
        product *= _number_or_zero(v)
    return _number_or_zero(values.get(CURRENT_VALUE_KEY)) == product


PREDEFINED_VALIDATORS: dict[str, tuple[ValidationCallback, CallbackType, str]] = {
    "passwordMatch": (_all_equal, "crossField",
                      "All specified fields have the same value (password confirmation)"),
    "emailMatch": (_all_equal, "crossField", "All specified email fields have the same value"),
    "dateRangeValid": (_dates_ascending, "crossField", "Dates are in ascending order"),
    "numericRangeValid": (_numbers_ascending, "crossField", "Numbers are in ascending order"),
    "notEmpty": (_not_empty, "custom", "Value is not empty (strings, lists, mappings)"),
    "isPositive": (_is_positive, "custom", "Value is a positive number"),
    "isNonNegative": (_is_non_negative, "custom", "Value is a number >= 0"),
    "isNotEmpty": (_target_not_empty, "crossField", "Target field is not empty"),
    "isTrue": (_target_is_true, "crossField", "Target field is true"),
    "isFalse": (_target_is_false, "crossField", "Target field is false"),
    "equals": (_equals, "crossField", "Target field equals params.value"),
    "valueIn": (_value_in, "crossField", "Target field is one of params.values"),
    "valueNotIn": (_value_not_in, "crossField", "Target field is none of params.values"),
    "arrayContainsAny": (_array_contains_any, "crossField",
                         "Target list contains any of params.values"),
    "validateSumEquals": (_sum_equals, "crossField",
                          "Current value equals the sum of the target fields"),
    "validatePercentageSum": (_percentage_sum, "crossField", "Target fields sum to exactly 100"),
    "validateDateInRange": (_date_in_range, "crossField",
                            "Current date lies between the two target dates"),
    "atLeastOneRequired": (_at_least_one, "crossField", "At least one target field is not empty"),
    "validateProductEquals": (_product_equals, "crossField",
                              "Current value equals the product of the target fields"),
}


_global_registry: CallbackRegistry | None = None


def get_global_registry() -> CallbackRegistry:
    """Lazily created process-wide default registry"""
    global _global_registry
    if _global_registry is None:
        _global_registry = CallbackRegistry()
    return _global_registry


def reset_global_registry() -> None:
    global _global_registry
    _global_registry = None
