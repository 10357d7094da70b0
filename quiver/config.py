"""
Configuration
=============

Helpers for configuring a Quiver `Client` from code or from the environment.

Basic authentication follows RFC 2617:

    Authorization: Basic base64("<username>:<password>")

The credentials are encoded, not encrypted; only send them over TLS.

This module provides:

- ClientConfig: typed configuration for a client
- ClientConfig.from_env(): convenience loader for server-side usage
- basic_auth(): build the credential part of a Basic Authorization header
"""

from __future__ import annotations

import base64
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from quiver.errors import MissingBaseURLError

# Environment variable names.
ENV_BASE_URL = "QUIVER_BASE_URL"
ENV_TIMEOUT = "QUIVER_TIMEOUT"
ENV_USERNAME = "QUIVER_USERNAME"
ENV_PASSWORD = "QUIVER_PASSWORD"

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class ClientConfig:
    """
    Shared defaults for a client.

    Attributes:
        base_url:
            Root URL that request paths are resolved against. Keep the
            trailing slash if paths should extend it ("https://h/api/").
        timeout:
            Timeout in seconds handed to the httpx executor.
        headers:
            Default headers sent with every request.
        username / password:
            Optional Basic authentication credentials.
    """

    base_url: str
    timeout: Optional[float] = DEFAULT_TIMEOUT
    headers: Mapping[str, str] = field(default_factory=dict)
    username: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_env(cls, headers: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """
        Load configuration from environment variables.

        Required:
            - QUIVER_BASE_URL

        Optional:
            - QUIVER_TIMEOUT (seconds, float)
            - QUIVER_USERNAME / QUIVER_PASSWORD

        Raises:
            MissingBaseURLError: if QUIVER_BASE_URL is not set.
            ValueError: if QUIVER_TIMEOUT is not a number.
        """
        base_url = os.getenv(ENV_BASE_URL)
        if not base_url:
            raise MissingBaseURLError(
                f"Missing base URL: set {ENV_BASE_URL} in your environment."
            )

        raw_timeout = os.getenv(ENV_TIMEOUT)
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT

        return cls(
            base_url=base_url,
            timeout=timeout,
            headers=dict(headers or {}),
            username=os.getenv(ENV_USERNAME) or None,
            password=os.getenv(ENV_PASSWORD) or None,
        )

    @property
    def has_basic_auth(self) -> bool:
        return self.username is not None


def basic_auth(username: str, password: str) -> str:
    """Return base64("username:password") for a Basic Authorization header."""
    auth = f"{username}:{password}"
    return base64.b64encode(auth.encode("utf-8")).decode("ascii")


__all__ = [
    "ClientConfig",
    "basic_auth",
    "ENV_BASE_URL",
    "ENV_TIMEOUT",
    "ENV_USERNAME",
    "ENV_PASSWORD",
]
