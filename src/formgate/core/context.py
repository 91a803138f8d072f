"""Validation context: data binding for a single validation pass."""

from datetime import datetime, timezone
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from formgate.config.settings import ValidatorConfig
    from formgate.graph.graph import DependencyGraph

_MISSING = object()


def _step(container: Any, part: str) -> Any:
    """One dotted-path step into a dict or list, or _MISSING"""
    if isinstance(container, dict):
        return container.get(part, _MISSING)
    if isinstance(container, list) and part.isdigit():
        index = int(part)
        return container[index] if index < len(container) else _MISSING
    return _MISSING


class ValidationContext:
    """Binds the data root, form configuration and settings for one pass.

    Child contexts share the data root, cache and dependency graph by
    reference and only carry their own path.
    """

    def __init__(
        self,
        data: dict[str, Any],
        config: dict | None = None,
        settings: "ValidatorConfig | None" = None,
        *,
        path: list[str] | None = None,
        cache: dict | None = None,
        dependency_graph: "DependencyGraph | None" = None,
        external_context: dict[str, Any] | None = None,
        timestamp: datetime | None = None,
        params: dict[str, Any] | None = None,
    ):
        if settings is None:
            from formgate.config.settings import ValidatorConfig
            settings = ValidatorConfig()

        self.data = data
        self.config = config or {}
        self.settings = settings
        self.path = list(path or [])
        self.cache = cache
        self.dependency_graph = dependency_graph
        self.external_context = external_context
        self.timestamp = timestamp or datetime.now(timezone.utc)
        self.params = params

    def get_value(self, field_path: str, default: Any = None) -> Any:
        """Resolve a dotted path against the data root"""
        value: Any = self.data
        for part in field_path.split("."):
            value = _step(value, part)
            if value is _MISSING:
                return default
        return value

    def has_field(self, field_path: str) -> bool:
        value: Any = self.data
        for part in field_path.split("."):
            value = _step(value, part)
            if value is _MISSING:
                return False
        return True

    def set_value(self, field_path: str, new_value: Any) -> None:
        """Write a value at a dotted path, creating intermediate dicts"""
        parts = [p for p in field_path.split(".") if p]
        if not parts:
            return
        target = self.data
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = new_value

    def path_string(self) -> str:
        return ".".join(self.path)

    def create_child(self, new_path: list[str], new_data: dict[str, Any] | None = None) -> "ValidationContext":
        """Context for a nested field, sharing cache and graph"""
        return self.clone(path=new_path, data=new_data)

    def with_params(self, params: dict[str, Any] | None) -> "ValidationContext":
        """Same context carrying parameters for a parameterised callback"""
        return self.clone(params=params)

    def clone(self, **updates: Any) -> "ValidationContext":
        return ValidationContext(
            updates.get("data") if updates.get("data") is not None else self.data,
            self.config,
            self.settings,
            path=updates.get("path") if updates.get("path") is not None else self.path,
            cache=updates.get("cache", self.cache),
            dependency_graph=self.dependency_graph,
            external_context=updates.get("external_context", self.external_context),
            timestamp=self.timestamp,
            params=updates.get("params", self.params),
        )
