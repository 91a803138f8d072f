"""Validator settings.

Settings can be built in code, from a dict, or loaded from a JSON/YAML file
whose keys are merged over DEFAULT_SETTINGS.
"""

import json
from dataclasses import dataclass, field as dataclass_field, replace
from pathlib import Path
from typing import Any, Callable, Literal

import yaml

ExecutionMode = Literal["sequential", "parallel", "adaptive"]

DEFAULT_SETTINGS = {
    "mode": "sequential",
    "locale": "en",
    "adapter": "jsonschema",
    "devtools": False,
    "async_timeout_ms": 5000,
    "tenant_context": None,
    "cache": {
        "enabled": False,
        "ttl": None,
        "max_size": None,
        "debounce_ms": None,
    },
}

# camelCase spellings accepted in settings files
_ALIASES = {
    "asyncTimeoutMs": "async_timeout_ms",
    "tenantContext": "tenant_context",
    "customValidators": "custom_validators",
    "maxSize": "max_size",
    "debounceMs": "debounce_ms",
}


def _normalize_keys(raw: dict) -> dict:
    return {_ALIASES.get(k, k): v for k, v in raw.items()}


@dataclass
class CacheConfig:
    enabled: bool = False
    ttl: int | None = None  # milliseconds
    max_size: int | None = None
    debounce_ms: int | None = None

    @classmethod
    def from_dict(cls, raw: dict | None) -> "CacheConfig":
        raw = _normalize_keys(raw or {})
        return cls(
            enabled=bool(raw.get("enabled", False)),
            ttl=raw.get("ttl"),
            max_size=raw.get("max_size"),
            debounce_ms=raw.get("debounce_ms"),
        )


@dataclass
class ValidatorConfig:
    """Engine-level settings for a Validator"""
    mode: ExecutionMode = "sequential"
    locale: str = "en"
    cache: CacheConfig = dataclass_field(default_factory=CacheConfig)
    devtools: bool = False
    tenant_context: dict[str, Any] | None = None
    adapter: str = "jsonschema"
    custom_validators: dict[str, Callable[..., Any]] = dataclass_field(default_factory=dict)
    async_timeout_ms: int = 5000

    def __post_init__(self):
        if self.mode not in ("sequential", "parallel", "adaptive"):
            raise ValueError(f"Unknown execution mode: {self.mode}")

    @classmethod
    def from_dict(cls, raw: dict) -> "ValidatorConfig":
        """Build settings from a dict; unknown keys are ignored"""
        merged = {**DEFAULT_SETTINGS, **_normalize_keys(raw)}
        cache = {**DEFAULT_SETTINGS["cache"], **_normalize_keys(merged.get("cache") or {})}
        return cls(
            mode=merged["mode"],
            locale=merged["locale"],
            cache=CacheConfig.from_dict(cache),
            devtools=bool(merged["devtools"]),
            tenant_context=merged.get("tenant_context"),
            adapter=merged["adapter"],
            custom_validators=dict(merged.get("custom_validators") or {}),
            async_timeout_ms=int(merged["async_timeout_ms"]),
        )

    def copy(self) -> "ValidatorConfig":
        return replace(
            self,
            cache=replace(self.cache),
            custom_validators=dict(self.custom_validators),
        )


def read_structured_file(path: Path) -> Any:
    """Read a JSON or YAML document"""
    with open(path) as f:
        if path.suffix in (".yaml", ".yml"):
            return yaml.safe_load(f)
        return json.load(f)


def load_settings(path: Path | str | None = None) -> ValidatorConfig:
    """Load settings from file, returning defaults if it does not exist"""
    if path is None:
        return ValidatorConfig()
    path = Path(path)
    if not path.exists():
        return ValidatorConfig()

    raw = read_structured_file(path) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")
    return ValidatorConfig.from_dict(raw)
