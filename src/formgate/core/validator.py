"""Validator: entry point for validating data against a form configuration."""

import asyncio
import logging
import time
from typing import Any

from formgate.config.settings import ValidatorConfig
from formgate.core.backend import ValidationBackend
from formgate.core.context import ValidationContext
from formgate.core.errors import ValidationResult
from formgate.core.registry import CallbackRegistry, get_global_registry
from formgate.graph.graph import DependencyGraphBuilder, export_graph
from formgate.processor import ConfigProcessor

logger = logging.getLogger(__name__)

GLOBAL_FIELD = "_global"
SYSTEM_ERROR = "system_error"


class Validator:
    """Validates data against form configurations.

    Usage:
        validator = Validator(ValidatorConfig(devtools=True))
        result = await validator.validate(data, form_config)
        if not result.valid:
            for error in result.errors:
                print(error.field, error.message)
    """

    def __init__(
        self,
        config: ValidatorConfig | None = None,
        registry: CallbackRegistry | None = None,
        backend: ValidationBackend | None = None,
    ):
        self.config = config or ValidatorConfig()
        self.registry = registry or get_global_registry()

        for name, callback in self.config.custom_validators.items():
            self.registry.register(
                name, callback, type="custom",
                description=f"Custom validator: {name}", overwrite=True,
            )

        self.processor = ConfigProcessor(self.registry, backend)
        self.graph_builder = DependencyGraphBuilder()

    async def validate(
        self,
        data: dict[str, Any],
        form_config: dict[str, Any],
        external_context: dict[str, Any] | None = None,
    ) -> ValidationResult:
        """Validate ``data``; never raises, unexpected faults become a ``_global`` error"""
        start = time.perf_counter()
        result = ValidationResult()

        try:
            graph = self.graph_builder.build(form_config)
            context = ValidationContext(
                data,
                form_config,
                self.config,
                cache={} if self.config.cache.enabled else None,
                dependency_graph=graph,
                external_context=external_context,
            )

            result.merge(await self.processor.process(context))

            result.metadata = {
                "timestamp": context.timestamp.isoformat(),
                "duration_ms": round((time.perf_counter() - start) * 1000, 3),
                "execution_mode": "parallel" if self.config.mode == "parallel" else "sequential",
                "tenant_context": self.config.tenant_context,
            }
            if self.config.devtools:
                result.dependency_graph = export_graph(graph)
        except Exception as exc:
            form_id = form_config.get("formId") if isinstance(form_config, dict) else None
            logger.exception("Unexpected error while validating form %r", form_id)
            result.add_error(GLOBAL_FIELD, str(exc) or "Unknown validation error", SYSTEM_ERROR)

        return result

    async def validate_field(
        self,
        field_name: str,
        data: dict[str, Any],
        form_config: dict[str, Any],
        external_context: dict[str, Any] | None = None,
    ) -> ValidationResult:
        """Run a full pass and keep only ``field_name``'s errors"""
        full = await self.validate(data, form_config, external_context)

        result = ValidationResult()
        field_result = full.field_results.get(field_name)
        if field_result is not None and not field_result.valid:
            result.add_errors(field_result.errors)
        return result

    def validate_sync(
        self,
        data: dict[str, Any],
        form_config: dict[str, Any],
        external_context: dict[str, Any] | None = None,
    ) -> ValidationResult:
        return asyncio.run(self.validate(data, form_config, external_context))

    def get_config(self) -> ValidatorConfig:
        return self.config.copy()
