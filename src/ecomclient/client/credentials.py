"""Credential source implementations."""

from __future__ import annotations

import os
import threading
from typing import Optional

import structlog

log = structlog.get_logger()


class InMemoryCredentialStore:
    """Holds the session token in memory.

    Thread-safe so a login flow on another thread can swap the token while
    requests are running.
    """

    def __init__(self, token: Optional[str] = None) -> None:
        self._lock = threading.Lock()
        self._token = token or None

    def get_token(self) -> Optional[str]:
        with self._lock:
            return self._token

    def set_token(self, token: str) -> None:
        if not token:
            raise ValueError("token cannot be empty")
        with self._lock:
            self._token = token
        log.debug("credential_token_set")

    def clear(self) -> None:
        with self._lock:
            self._token = None
        log.debug("credential_token_cleared")


class EnvCredentialSource:
    """Reads the token from an environment variable on every call."""

    DEFAULT_VARIABLE = "ECOM_AUTH_TOKEN"

    def __init__(self, variable: str = DEFAULT_VARIABLE) -> None:
        self._variable = variable

    @property
    def variable(self) -> str:
        return self._variable

    def get_token(self) -> Optional[str]:
        return os.environ.get(self._variable) or None
