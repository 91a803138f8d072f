"""Shared fixtures for the formgate test suite."""

from datetime import datetime, timezone

import pytest

from formgate.config.settings import ValidatorConfig
from formgate.core.context import ValidationContext
from formgate.core.registry import CallbackRegistry, reset_global_registry


@pytest.fixture(autouse=True)
def fresh_global_registry():
    """Custom validators registered by one test must not leak into the next"""
    reset_global_registry()
    yield
    reset_global_registry()


@pytest.fixture
def registry():
    return CallbackRegistry()


@pytest.fixture
def make_context():
    """Build a ValidationContext over plain data"""

    def _make(data: dict | None = None, config: dict | None = None, **kwargs) -> ValidationContext:
        kwargs.setdefault("settings", ValidatorConfig())
        return ValidationContext(data or {}, config or {}, **kwargs)

    return _make


@pytest.fixture
def fixed_now():
    """Wednesday 2024-05-15 10:30 UTC"""
    return datetime(2024, 5, 15, 10, 30, tzinfo=timezone.utc)
