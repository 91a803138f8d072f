"""Error types and validation result for the formgate engine."""

from dataclasses import dataclass, field as dataclass_field
from typing import Any


@dataclass
class FieldError:
    """Structured, per-field validation error"""

    field: str  # Field path: "address.zip"
    message: str
    rule: str  # Rule kind that failed: "required", "group", "system_error"
    params: dict[str, Any] | None = None
    path: list[str] | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "field": self.field,
            "message": self.message,
            "rule": self.rule,
            "params": self.params,
            "path": self.path,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FieldError":
        return cls(
            field=data.get("field", ""),
            message=data.get("message", ""),
            rule=data.get("rule", ""),
            params=data.get("params"),
            path=data.get("path"),
        )


@dataclass
class FieldResult:
    """Outcome of validating one field"""
    valid: bool = True
    errors: list[FieldError] = dataclass_field(default_factory=list)
    skipped: bool = False
    skip_reason: str | None = None

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "skipped": self.skipped,
            "skip_reason": self.skip_reason,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FieldResult":
        return cls(
            valid=data.get("valid", True),
            errors=[FieldError.from_dict(e) for e in data.get("errors", [])],
            skipped=data.get("skipped", False),
            skip_reason=data.get("skip_reason"),
        )


@dataclass
class ValidationStats:
    """Rule counters for a validation pass"""
    total_rules: int = 0
    passed_rules: int = 0
    failed_rules: int = 0
    skipped_rules: int = 0
    computed_rules: int = 0

    def add(self, other: "ValidationStats") -> None:
        self.total_rules += other.total_rules
        self.passed_rules += other.passed_rules
        self.failed_rules += other.failed_rules
        self.skipped_rules += other.skipped_rules
        self.computed_rules += other.computed_rules

    def to_dict(self) -> dict:
        return {
            "total_rules": self.total_rules,
            "passed_rules": self.passed_rules,
            "failed_rules": self.failed_rules,
            "skipped_rules": self.skipped_rules,
            "computed_rules": self.computed_rules,
        }


@dataclass
class ValidationResult:
    """Mergeable accumulator of per-field outcomes, errors and computed results."""
    valid: bool = True
    errors: list[FieldError] = dataclass_field(default_factory=list)
    field_results: dict[str, FieldResult] = dataclass_field(default_factory=dict)
    computed_results: dict[str, Any] = dataclass_field(default_factory=dict)
    metadata: dict[str, Any] | None = None
    stats: ValidationStats | None = None
    dependency_graph: dict | None = None

    def add_error(
        self,
        field: str,
        message: str,
        rule: str,
        params: dict[str, Any] | None = None,
        path: list[str] | None = None,
    ) -> FieldError:
        """Record a failure and invalidate the field and the result"""
        error = FieldError(field=field, message=message, rule=rule, params=params, path=path)
        self.valid = False
        self.errors.append(error)

        field_result = self.field_results.setdefault(field, FieldResult(valid=False))
        field_result.valid = False
        field_result.errors.append(error)
        return error

    def add_errors(self, errors: list[FieldError]) -> None:
        for error in errors:
            self.add_error(error.field, error.message, error.rule, error.params, error.path)

    def set_field_valid(self, field: str) -> None:
        field_result = self.field_results.get(field)
        if field_result is None:
            self.field_results[field] = FieldResult(valid=True)
        else:
            field_result.valid = True
            field_result.skipped = False

    def set_field_skipped(self, field: str, reason: str) -> None:
        self.field_results[field] = FieldResult(valid=True, skipped=True, skip_reason=reason)

    def add_computed_result(self, name: str, result: Any) -> None:
        self.computed_results[name] = result

    def merge(self, other: "ValidationResult") -> None:
        """Fold another result into this one (later computed results win)"""
        if not other.valid:
            self.valid = False

        self.errors.extend(other.errors)

        for field, other_result in other.field_results.items():
            existing = self.field_results.get(field)
            if existing is None:
                self.field_results[field] = FieldResult(
                    valid=other_result.valid,
                    errors=list(other_result.errors),
                    skipped=other_result.skipped,
                    skip_reason=other_result.skip_reason,
                )
                continue
            if not other_result.valid:
                existing.valid = False
            existing.errors.extend(other_result.errors)

        self.computed_results.update(other.computed_results)

        if other.stats is not None:
            if self.stats is None:
                self.stats = ValidationStats()
            self.stats.add(other.stats)

    def get_field_errors(self, field: str) -> list[FieldError]:
        return [e for e in self.errors if e.field == field]

    def get_computed_result(self, name: str) -> Any:
        return self.computed_results.get(name)

    def is_field_valid(self, field: str) -> bool:
        field_result = self.field_results.get(field)
        return field_result.valid if field_result else True

    def is_field_skipped(self, field: str) -> bool:
        field_result = self.field_results.get(field)
        return field_result.skipped if field_result else False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "field_results": {k: v.to_dict() for k, v in self.field_results.items()},
            "computed_results": {
                k: v.to_dict() if hasattr(v, "to_dict") else v
                for k, v in self.computed_results.items()
            },
            "metadata": self.metadata,
            "stats": self.stats.to_dict() if self.stats else None,
            "dependency_graph": self.dependency_graph,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ValidationResult":
        stats = data.get("stats")
        return cls(
            valid=data.get("valid", True),
            errors=[FieldError.from_dict(e) for e in data.get("errors", [])],
            field_results={
                k: FieldResult.from_dict(v) for k, v in (data.get("field_results") or {}).items()
            },
            computed_results=dict(data.get("computed_results") or {}),
            metadata=data.get("metadata"),
            stats=ValidationStats(**stats) if stats else None,
            dependency_graph=data.get("dependency_graph"),
        )


class FormConfigError(ValueError):
    """Raised when a form configuration file is structurally invalid"""

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []
