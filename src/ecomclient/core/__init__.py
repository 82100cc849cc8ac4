"""Core module for ecom-client.

Exports the core components: exceptions and configuration.
"""

from ecomclient.core.exceptions import (
    EcomClientError,
    ConfigurationError,
    ApiRequestError,
    RequestCancelledError,
    InvalidStateTransition,
)
from ecomclient.core.config import (
    get_settings,
    reset_settings,
    create_settings,
    Settings,
    ApiConfig,
    RetryConfig,
    LoggingConfig,
)
from ecomclient.core.logs import configure_logging

__all__ = [
    # Exceptions
    "EcomClientError",
    "ConfigurationError",
    "ApiRequestError",
    "RequestCancelledError",
    "InvalidStateTransition",
    # Configuration
    "get_settings",
    "reset_settings",
    "create_settings",
    "Settings",
    "ApiConfig",
    "RetryConfig",
    "LoggingConfig",
    # Logging
    "configure_logging",
]
