"""Vigie configuration."""

from vigie.config.settings import (
    ResilienceConfig,
    RetryConfig,
    VigieConfig,
    get_settings,
    load_config,
    reset_settings,
)

__all__ = [
    "ResilienceConfig",
    "RetryConfig",
    "VigieConfig",
    "get_settings",
    "load_config",
    "reset_settings",
]
