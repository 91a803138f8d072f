"""Schema validation backend.

Static rule kinds (required, email, numeric, stringLength, arrayLength, range,
pattern) are compiled to JSON Schema fragments and checked with jsonschema;
compiled validators are cached per schema. Context-dependent kinds (compare,
custom, crossField, async, temporal, plugin) are evaluated directly.
"""

import asyncio
import inspect
import json
import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

import httpx
from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from formgate.core.conditions import compare_values
from formgate.core.context import ValidationContext
from formgate.core.registry import CURRENT_VALUE_KEY, CallbackRegistry
from formgate.fields import RuleKind

logger = logging.getLogger(__name__)

EMAIL_PATTERN = r"^[^ @]+@[^ @]+\.[^ @]+$"
DEFAULT_ASYNC_TIMEOUT_MS = 5000


@dataclass(frozen=True)
class RuleOutcome:
    valid: bool
    error: str | None = None


PASS = RuleOutcome(valid=True)


class ValidationBackend(Protocol):
    async def validate(self, value: Any, rule: dict, context: ValidationContext) -> RuleOutcome: ...


def _coerce_number(value: Any) -> Any:
    """Numeric strings become numbers; everything else is left alone"""
    if isinstance(value, str) and value.strip():
        try:
            return float(value)
        except ValueError:
            return value
    return value


def _bounds(rule: dict, low: str, high: str) -> dict:
    schema = {}
    if rule.get("min") is not None:
        schema[low] = rule["min"]
    if rule.get("max") is not None:
        schema[high] = rule["max"]
    return schema


def static_schema(rule: dict) -> dict | None:
    """JSON Schema fragment for a static rule kind, or None"""
    kind = rule.get("type")
    if kind == RuleKind.REQUIRED.value:
        return {"not": {"anyOf": [{"type": "null"}, {"type": "string", "pattern": r"^\s*$"}]}}
    if kind == RuleKind.EMAIL.value:
        return {"anyOf": [
            {"type": "null"},
            {"const": ""},
            {"type": "string", "pattern": EMAIL_PATTERN},
        ]}
    if kind == RuleKind.NUMERIC.value:
        return {"type": "number"}
    if kind == RuleKind.STRING_LENGTH.value:
        return {"type": "string", **_bounds(rule, "minLength", "maxLength")}
    if kind == RuleKind.ARRAY_LENGTH.value:
        return {"type": "array", **_bounds(rule, "minItems", "maxItems")}
    if kind == RuleKind.RANGE.value:
        return {"type": "number", **_bounds(rule, "minimum", "maximum")}
    if kind == RuleKind.PATTERN.value:
        if not rule.get("pattern"):
            return None
        return {"type": "string", "pattern": rule["pattern"]}
    return None


def _static_message(rule: dict, keyword: str) -> str:
    if rule.get("message"):
        return rule["message"]

    kind = rule.get("type")
    low, high = rule.get("min"), rule.get("max")
    if kind == RuleKind.REQUIRED.value:
        return "This field is required"
    if kind == RuleKind.EMAIL.value:
        return "Invalid email format"
    if kind in (RuleKind.NUMERIC.value, RuleKind.RANGE.value) and keyword == "type":
        return "Value must be a number"
    if kind == RuleKind.ARRAY_LENGTH.value and keyword == "type":
        return "Value must be a list"
    if keyword == "type":
        return "Value must be a string"

    messages = {
        "minLength": f"String length must be at least {low}",
        "maxLength": f"String length must be at most {high}",
        "minItems": f"Array must have at least {low} items",
        "maxItems": f"Array must have at most {high} items",
        "minimum": f"Value must be at least {low}",
        "maximum": f"Value must be at most {high}",
        "pattern": "Value does not match the required pattern",
    }
    return messages.get(keyword, "Validation failed")


def _parse_moment(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _in_time_range(now: datetime, time_range: str) -> bool:
    start_text, _, end_text = time_range.partition("-")
    start = datetime.strptime(start_text.strip(), "%H:%M").time()
    end = datetime.strptime(end_text.strip(), "%H:%M").time()
    current = now.time().replace(second=0, microsecond=0)
    if start <= end:
        return start <= current <= end
    return current >= start or current <= end


class SchemaBackend:
    """Default validation backend: jsonschema for static kinds, callbacks for the rest"""

    MAX_CACHE_SIZE = 500

    def __init__(self, registry: CallbackRegistry, http_client: httpx.AsyncClient | None = None):
        self.registry = registry
        self.http_client = http_client
        self._schema_cache: OrderedDict[str, Draft202012Validator] = OrderedDict()
        self._handlers = {
            RuleKind.COMPARE: self._validate_compare,
            RuleKind.CUSTOM: self._validate_custom,
            RuleKind.ASYNC: self._validate_async,
            RuleKind.CROSS_FIELD: self._validate_cross_field,
            RuleKind.TEMPORAL: self._validate_temporal,
            RuleKind.PLUGIN: self._validate_plugin,
        }

    # ------------------------------------------------------------------
    # Schema cache
    # ------------------------------------------------------------------

    def get_schema_validator(self, schema: dict) -> Draft202012Validator:
        key = json.dumps(schema, sort_keys=True)
        cached = self._schema_cache.get(key)
        if cached is not None:
            return cached

        validator = Draft202012Validator(schema)
        if len(self._schema_cache) >= self.MAX_CACHE_SIZE:
            self._schema_cache.popitem(last=False)
        self._schema_cache[key] = validator
        return validator

    def clear_schema_cache(self) -> None:
        self._schema_cache.clear()

    @property
    def schema_cache_size(self) -> int:
        return len(self._schema_cache)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def validate(self, value: Any, rule: dict, context: ValidationContext) -> RuleOutcome:
        try:
            kind = RuleKind(rule.get("type"))
        except ValueError:
            return PASS

        handler = self._handlers.get(kind)
        if handler is not None:
            return await handler(value, rule, context)

        schema = static_schema(rule)
        if schema is None:
            return PASS

        if kind in (RuleKind.NUMERIC, RuleKind.RANGE):
            value = _coerce_number(value)

        error = best_match(self.get_schema_validator(schema).iter_errors(value))
        if error is None:
            return PASS
        return RuleOutcome(valid=False, error=_static_message(rule, error.validator))

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def resolve_callback(self, reference: Any):
        """Callable for a name or callable reference; None when unresolvable"""
        if callable(reference):
            return reference
        callback = self.registry.get(reference)
        if callback is None:
            logger.warning(
                "Validator %r not found in registry. Available validators: %s",
                reference, ", ".join(self.registry.names()),
            )
        return callback

    async def _call(self, callback, *args) -> bool:
        result = callback(*args)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)

    async def _run_callback(self, reference: Any, args: tuple, rule: dict, fallback: str) -> RuleOutcome:
        callback = self.resolve_callback(reference)
        if callback is None:
            return RuleOutcome(False, rule.get("message") or f"Validator '{reference}' is not registered")
        try:
            if await self._call(callback, *args):
                return PASS
        except Exception as exc:
            return RuleOutcome(False, str(exc) or rule.get("message") or fallback)
        return RuleOutcome(False, rule.get("message") or fallback)

    # ------------------------------------------------------------------
    # Context-dependent kinds
    # ------------------------------------------------------------------

    async def _validate_compare(self, value: Any, rule: dict, context: ValidationContext) -> RuleOutcome:
        target_name = rule.get("comparisonTarget")
        if not target_name:
            return PASS
        target = context.get_value(target_name)
        operator = rule.get("comparisonType") or "=="
        if compare_values(value, target, operator):
            return PASS
        return RuleOutcome(False, rule.get("message") or f"Value must be {operator} {target}")

    async def _validate_custom(self, value: Any, rule: dict, context: ValidationContext) -> RuleOutcome:
        reference = rule.get("validationCallback")
        if not reference:
            return PASS
        return await self._run_callback(reference, (value, context), rule, "Custom validation failed")

    async def _validate_cross_field(self, value: Any, rule: dict, context: ValidationContext) -> RuleOutcome:
        targets = rule.get("targetFields")
        reference = rule.get("crossFieldValidator")
        if not targets or not reference:
            return PASS

        params = None
        if isinstance(reference, dict):
            if "name" not in reference:
                return PASS
            params = reference.get("params")
            reference = reference["name"]

        values = {CURRENT_VALUE_KEY: value}
        for target in targets:
            values[target] = context.get_value(target)

        return await self._run_callback(
            reference, (values, context.with_params(params)), rule, "Cross-field validation failed"
        )

    async def _validate_plugin(self, value: Any, rule: dict, context: ValidationContext) -> RuleOutcome:
        name = rule.get("pluginName")
        if not name:
            return PASS
        plugin_context = context.with_params(rule.get("pluginConfig"))
        return await self._run_callback(name, (value, plugin_context), rule, "Plugin validation failed")

    async def _validate_temporal(self, value: Any, rule: dict, context: ValidationContext) -> RuleOutcome:
        now = _parse_moment(context.timestamp)
        valid_from = _parse_moment(rule.get("validFrom"))
        valid_until = _parse_moment(rule.get("validUntil"))
        grace = timedelta(milliseconds=rule.get("gracePeriod") or 0)

        if valid_from and now < valid_from - grace:
            return RuleOutcome(False, rule.get("message") or f"This field is not valid until {valid_from.isoformat()}")
        if valid_until and now > valid_until:
            return RuleOutcome(False, rule.get("message") or f"This field expired on {valid_until.isoformat()}")

        schedule = rule.get("schedule") or {}
        if schedule.get("cron"):
            logger.warning("Cron schedules are not supported; ignoring %r", schedule["cron"])

        days = schedule.get("daysOfWeek")
        if days is not None and (now.weekday() + 1) % 7 not in days:
            return RuleOutcome(False, rule.get("message") or "This field is not available today")

        ranges = schedule.get("timeRanges")
        if ranges and not any(_in_time_range(now, r) for r in ranges):
            return RuleOutcome(False, rule.get("message") or "This field is not available at this time")

        return PASS

    async def _validate_async(self, value: Any, rule: dict, context: ValidationContext) -> RuleOutcome:
        endpoint = rule.get("apiEndpoint")
        if not endpoint:
            return PASS

        method = (rule.get("apiMethod") or "POST").upper()
        timeout_ms = rule.get("apiTimeout") or context.settings.async_timeout_ms or DEFAULT_ASYNC_TIMEOUT_MS
        payload = {"value": value, **(rule.get("apiPayload") or {})}

        cache_key = None
        if context.cache is not None:
            cache_key = "async:" + json.dumps([endpoint, method, payload], sort_keys=True, default=str)
            if cache_key in context.cache:
                return context.cache[cache_key]

        outcome = await self._call_endpoint(endpoint, method, payload, timeout_ms, rule)
        if cache_key is not None:
            context.cache[cache_key] = outcome
        return outcome

    async def _call_endpoint(self, endpoint: str, method: str, payload: dict,
                             timeout_ms: int, rule: dict) -> RuleOutcome:
        failure = rule.get("message") or "External validation failed"
        timed_out = rule.get("message") or "External validation timed out"
        body = payload if method == "POST" else None
        timeout = timeout_ms / 1000

        async def send(client: httpx.AsyncClient) -> httpx.Response:
            return await asyncio.wait_for(
                client.request(method, endpoint, json=body, timeout=timeout),
                timeout=timeout,
            )

        try:
            if self.http_client is not None:
                response = await send(self.http_client)
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await send(client)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return RuleOutcome(False, timed_out)
        except httpx.HTTPError:
            return RuleOutcome(False, rule.get("message") or "External validation error")

        if response.status_code < 200 or response.status_code >= 300:
            return RuleOutcome(False, failure)

        try:
            data = response.json()
        except ValueError:
            return RuleOutcome(False, failure)

        if not isinstance(data, dict) or not data.get("valid"):
            server_message = data.get("message") if isinstance(data, dict) else None
            return RuleOutcome(False, server_message or failure)
        return PASS
