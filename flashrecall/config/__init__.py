"""Configuration package."""

from flashrecall.config.settings import (
    Settings,
    get_settings,
    load_weight_values,
    load_yaml_config,
    settings,
    yaml_config,
)

__all__ = [
    "Settings",
    "get_settings",
    "load_weight_values",
    "load_yaml_config",
    "settings",
    "yaml_config",
]
