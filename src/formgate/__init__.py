"""formgate - Declarative form validation and scoring engine."""

__version__ = "0.3.0"

from formgate.core.validator import Validator
from formgate.core.errors import FieldError, FormConfigError, ValidationResult
from formgate.core.registry import CallbackRegistry, get_global_registry, reset_global_registry
from formgate.config.settings import CacheConfig, ValidatorConfig, load_settings
from formgate.config.loader import load_form_config
from formgate.graph.graph import DependencyGraph, DependencyGraphBuilder

__all__ = [
    "Validator",
    "ValidationResult",
    "FieldError",
    "FormConfigError",
    "CallbackRegistry",
    "get_global_registry",
    "reset_global_registry",
    "ValidatorConfig",
    "CacheConfig",
    "load_settings",
    "load_form_config",
    "DependencyGraph",
    "DependencyGraphBuilder",
]
