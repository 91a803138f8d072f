"""Settings and form configuration loading."""

from formgate.config.settings import DEFAULT_SETTINGS, CacheConfig, ValidatorConfig, load_settings
from formgate.config.loader import check_form_config, load_data, load_form_config

__all__ = [
    "DEFAULT_SETTINGS",
    "CacheConfig",
    "ValidatorConfig",
    "load_settings",
    "check_form_config",
    "load_data",
    "load_form_config",
]
