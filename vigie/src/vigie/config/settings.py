"""
Vigie configuration with hybrid YAML + ENV support.

Priority: Environment variables > environment YAML > default YAML > defaults
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, computed_field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.resilience import RetryConfig as SharedRetryConfig


class RetryConfig(BaseSettings):
    """Retry configuration for transient RPC failures."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    initial_delay: float = Field(default=0.5, ge=0.0, le=10.0)
    max_delay: float = Field(default=5.0, ge=0.0, le=300.0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0, le=10.0)
    jitter: bool = Field(default=True)

    def to_retry_config(self, retry_on: tuple = (Exception,)) -> SharedRetryConfig:
        """Build the shared Retry configuration."""
        return SharedRetryConfig(
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            backoff_multiplier=self.backoff_multiplier,
            jitter=self.jitter,
            retry_on=retry_on,
        )


class ResilienceConfig(BaseSettings):
    """Resilience patterns configuration for block sources."""

    rpc_query: RetryConfig = Field(default_factory=RetryConfig)
    rpc_timeout: float = Field(default=10.0, gt=0.0, le=120.0)
    subscribe_timeout: float = Field(default=10.0, gt=0.0, le=120.0)


class VigieConfig(BaseSettings):
    """
    Vigie configuration schema.

    Watch parameters mirror the JSON-RPC client settings:
    - transaction_confirmation_blocks: confirmation threshold
    - transaction_polling_interval: default poll interval (seconds)
    - transaction_receipt_polling_interval: optional poll override
    """

    model_config = SettingsConfigDict(
        env_prefix="VIGIE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Confirmation watching
    transaction_confirmation_blocks: int = Field(default=24, ge=1)
    transaction_polling_interval: float = Field(default=1.0, gt=0.0)
    transaction_receipt_polling_interval: Optional[float] = Field(
        default=None, gt=0.0
    )
    resume_confirmations_on_fallback: bool = Field(
        default=False,
        description=(
            "Resume the polling counter from the last subscription "
            "confirmation instead of restarting at 1"
        ),
    )

    # Block source endpoints
    rpc_url: Optional[str] = Field(default=None)
    ws_url: Optional[str] = Field(default=None)

    # Logging
    log_level: str = Field(default="info")
    log_dir: Optional[str] = Field(default=None)
    verbose: int = Field(default=1, ge=0, le=3)

    # Resilience configuration
    resilience: ResilienceConfig = Field(default_factory=ResilienceConfig)

    @computed_field
    @property
    def polling_interval(self) -> float:
        """Effective polling interval (receipt override wins)."""
        if self.transaction_receipt_polling_interval is not None:
            return self.transaction_receipt_polling_interval
        return self.transaction_polling_interval

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["debug", "info", "warning", "error", "critical"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid log_level. Must be one of: {allowed}")
        return v_lower

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate HTTP RPC URL scheme."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("rpc_url must start with http:// or https://")
        return v

    @field_validator("ws_url")
    @classmethod
    def validate_ws_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate WebSocket RPC URL scheme."""
        if v and not v.startswith(("ws://", "wss://")):
            raise ValueError("ws_url must start with ws:// or wss://")
        return v

    @field_validator("log_dir")
    @classmethod
    def expand_log_dir(cls, v: Optional[str]) -> Optional[str]:
        """Expand home directory in log path."""
        if v:
            return os.path.expanduser(v)
        return v

    @model_validator(mode="after")
    def validate_retry_delays(self) -> "VigieConfig":
        """Ensure retry delay bounds are consistent."""
        retry = self.resilience.rpc_query
        if retry.initial_delay > retry.max_delay:
            raise ValueError("resilience.rpc_query.initial_delay exceeds max_delay")
        return self


def _config_dir() -> Path:
    """Component config directory (vigie/config)."""
    current_file = Path(__file__).resolve()
    return current_file.parent.parent.parent.parent / "config"


def _read_yaml(path: Path) -> dict:
    """Read YAML mapping, returning {} for missing or empty files."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        loaded = yaml.safe_load(f)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return loaded


def _merge(base: dict, override: dict) -> dict:
    """Deep-merge override into base (nested sections merge key by key)."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_file: Optional[str] = None) -> VigieConfig:
    """
    Load configuration from YAML files.

    Priority: Environment variables > environment-specific YAML > default YAML

    Args:
        config_file: Optional YAML filename (relative to vigie/config) or path

    Returns:
        VigieConfig instance
    """
    env = os.getenv("ENV", "production")

    config_map = {
        "production": "production.yaml",
        "development": "development.yaml",
        "test": "test.yaml",
    }

    config_dir = _config_dir()
    merged_config = _read_yaml(config_dir / "default.yaml")

    if config_file is None:
        config_file = os.getenv("VIGIE_CONFIG")
        if not config_file:
            config_file = config_map.get(env, "production.yaml")

    env_config_path = Path(config_file)
    if not env_config_path.is_absolute():
        env_config_path = config_dir / config_file

    merged_config = _merge(merged_config, _read_yaml(env_config_path))

    # Environment variables must win over YAML, so YAML keys that are also
    # set in the environment are dropped before init kwargs shadow them.
    for key in list(merged_config):
        if f"VIGIE_{key.upper()}" in os.environ:
            merged_config.pop(key)

    return VigieConfig(**merged_config)


# Global settings instance
_settings: Optional[VigieConfig] = None


def get_settings() -> VigieConfig:
    """
    Get singleton settings instance.

    Returns:
        VigieConfig instance
    """
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (tests, config reload)."""
    global _settings
    _settings = None
