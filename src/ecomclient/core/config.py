"""ecom-client Configuration System.

Layered YAML configuration with Pydantic validation.
Supports a system config file, runtime overrides and env var settings.

Config Layer Priority (highest to lowest):
1. Runtime overrides (in-memory)
2. System config (~/.ecom-client/config.yaml)
3. Environment variables (ECOM_ prefix, ``__`` between nested keys)
4. Defaults (defined in Pydantic models)

Usage:
    from ecomclient.core.config import get_settings

    settings = get_settings()
    print(settings.api.base_url)  # "https://dummyjson.com" (default)
"""

from __future__ import annotations

import threading
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, PositiveFloat, PositiveInt, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ecomclient.client.models import (
    DEFAULT_RETRYABLE_STATUS_CODES,
    RetryPolicy,
    status_codes,
)
from ecomclient.core.exceptions import ConfigurationError

DEFAULT_CONFIG_DIR = Path.home() / ".ecom-client"


# =============================================================================
# Sub-configuration Models (nested sections)
# =============================================================================


class ApiConfig(BaseModel):
    """Backend service endpoints.

    The auth and payment services fall back to ``base_url`` when unset.
    """

    base_url: str = "https://dummyjson.com"
    auth_url: Optional[str] = None
    payment_url: Optional[str] = None
    timeout: PositiveFloat = 10.0  # seconds

    @field_validator("base_url", "auth_url", "payment_url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Require an absolute http(s) URL."""
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid URL: {v}. Must start with http:// or https://")
        return v.rstrip("/")

    @property
    def resolved_auth_url(self) -> str:
        return self.auth_url or self.base_url

    @property
    def resolved_payment_url(self) -> str:
        return self.payment_url or self.base_url


class RetryConfig(BaseModel):
    """Retry policy settings.

    ``enabled`` controls whether clients built from settings retry every call.
    When False (the default), retries stay opt-in per call.
    """

    enabled: bool = False
    max_retries: int = Field(default=3, ge=0)
    base_delay_ms: PositiveInt = 1000
    max_delay_ms: PositiveInt = 30000
    retryable_status_codes: List[int] = Field(
        default_factory=lambda: sorted(DEFAULT_RETRYABLE_STATUS_CODES)
    )
    retry_on_transport_error: bool = True

    @field_validator("retryable_status_codes")
    @classmethod
    def validate_status_codes(cls, v: List[int]) -> List[int]:
        """Validate every code is an HTTP status."""
        return sorted(status_codes(v))

    @model_validator(mode="after")
    def validate_delays(self) -> RetryConfig:
        """Cap must not be below the base delay."""
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")
        return self

    def to_policy(self) -> RetryPolicy:
        """Build the immutable RetryPolicy these settings describe."""
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay_ms=self.base_delay_ms,
            max_delay_ms=self.max_delay_ms,
            retryable_status_codes=frozenset(self.retryable_status_codes),
            retry_on_transport_error=self.retry_on_transport_error,
        )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate renderer name."""
        valid_formats = {"json", "console"}
        if v.lower() not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v.lower()


# =============================================================================
# Main Configuration Model
# =============================================================================


class Settings(BaseSettings):
    """Main settings class with layered configuration support.

    Loads configuration from:
    1. Environment variables (ECOM_ prefix)
    2. System config file (~/.ecom-client/config.yaml)
    3. Defaults defined in Pydantic models
    """

    model_config = SettingsConfigDict(
        env_prefix="ECOM_",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    api: ApiConfig = Field(default_factory=ApiConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging_config: LoggingConfig = Field(
        default_factory=LoggingConfig, alias="logging"
    )

    @property
    def logging(self) -> LoggingConfig:
        """Alias for logging_config to match YAML key and common usage."""
        return self.logging_config

    @property
    def retry_policy(self) -> Optional[RetryPolicy]:
        """Client-wide policy, or None when retries are opt-in per call."""
        return self.retry.to_policy() if self.retry.enabled else None


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content as dictionary.

    Raises:
        ConfigurationError: If file cannot be read or parsed.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            config_path=str(path),
            message=f"Configuration file not found: {path}",
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(
            config_path=str(path),
            message=f"Invalid YAML in {path}: {e}",
        )

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(
            config_path=str(path),
            expected_type="mapping",
            message=f"Top level of {path} must be a mapping",
        )
    return content


def load_system_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load system configuration from YAML file.

    Args:
        path: Optional path to config file. Defaults to ~/.ecom-client/config.yaml.

    Returns:
        System configuration dictionary (empty if the default file is absent).

    Raises:
        ConfigurationError: If file cannot be loaded.
    """
    if path is None:
        path = DEFAULT_CONFIG_DIR / "config.yaml"
        if not path.exists():
            return {}

    return load_yaml_file(Path(path).expanduser())


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge multiple configuration dictionaries.

    Later configs override earlier ones.

    Args:
        *configs: Configuration dictionaries to merge.

    Returns:
        Merged configuration dictionary.
    """
    result: Dict[str, Any] = {}

    for config in configs:
        for key, value in config.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = merge_configs(result[key], value)
            else:
                result[key] = value

    return result


def create_settings(
    system_config_path: Optional[Path] = None,
    runtime_overrides: Optional[Dict[str, Any]] = None,
) -> Settings:
    """Create a Settings instance with layered configuration.

    Args:
        system_config_path: Optional path to system config file.
        runtime_overrides: Optional runtime overrides dictionary.

    Returns:
        Configured Settings instance.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    if system_config_path:
        config_base = Path(system_config_path).expanduser().parent
    else:
        config_base = DEFAULT_CONFIG_DIR

    # Load .env file for tokens and per-machine URLs
    env_path = config_base / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    merged = load_system_config(system_config_path)
    if runtime_overrides:
        merged = merge_configs(merged, runtime_overrides)

    try:
        return Settings(**merged)
    except Exception as e:
        raise ConfigurationError(
            config_path=str(system_config_path or DEFAULT_CONFIG_DIR / "config.yaml"),
            message=f"Configuration validation failed: {e}",
        ) from e


# =============================================================================
# Singleton Settings Access
# =============================================================================


class _SettingsHolder:
    """Thread-safe singleton holder for Settings instance."""

    _instance: Optional[Settings] = None
    _lock: threading.Lock = threading.Lock()

    @classmethod
    def get(cls, force_reload: bool = False, **kwargs: Any) -> Settings:
        """Get or create the Settings singleton.

        Args:
            force_reload: If True, recreate settings even if already loaded.
            **kwargs: Arguments passed to create_settings().

        Returns:
            Settings instance.
        """
        if cls._instance is None or force_reload:
            with cls._lock:
                # Double-check locking
                if cls._instance is None or force_reload:  # pragma: no cover
                    cls._instance = create_settings(**kwargs)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (for testing)."""
        with cls._lock:
            cls._instance = None


def get_settings(
    force_reload: bool = False,
    system_config_path: Optional[Path] = None,
    runtime_overrides: Optional[Dict[str, Any]] = None,
) -> Settings:
    """Get the global Settings singleton.

    Settings are loaded once and are read-only afterwards; clients built from
    them copy what they need at construction.

    Args:
        force_reload: If True, reload settings from files.
        system_config_path: Optional path to system config file.
        runtime_overrides: Optional runtime overrides.

    Returns:
        Settings instance.

    Examples:
        >>> settings = get_settings()
        >>> settings = get_settings(force_reload=True, runtime_overrides={"retry": {"enabled": True}})
    """
    if not force_reload and _SettingsHolder._instance is not None:
        if system_config_path is not None or runtime_overrides is not None:
            warnings.warn(
                "Arguments provided to get_settings() are ignored because "
                "singleton is already initialized. Use force_reload=True "
                "to apply new configuration.",
                RuntimeWarning,
                stacklevel=2,
            )

    return _SettingsHolder.get(
        force_reload=force_reload,
        system_config_path=system_config_path,
        runtime_overrides=runtime_overrides,
    )


def reset_settings() -> None:
    """Reset the settings singleton (for testing)."""
    _SettingsHolder.reset()
