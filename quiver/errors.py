"""
Errors
======

Every failure Quiver reports is a subclass of `QuiverError`:

- InvalidURLError: the resolved request URL cannot be parsed at send time
- QueryEncodingError / BodyEncodingError: a query structure or body payload
  cannot be encoded; the request is never dispatched
- RequestBuildError: httpx refused to construct the wire request
- TransportError: the executor failed; `response` may be None
- DecodeError: the round trip succeeded but the body could not be decoded;
  `response` is always set so status and headers stay inspectable
"""

from __future__ import annotations

from typing import Optional

import httpx


class QuiverError(Exception):
    """Base class for all Quiver errors."""


class InvalidURLError(QuiverError):
    """Raised when the request URL cannot be parsed."""


class EncodingError(QuiverError):
    """Raised when a query structure or request body cannot be encoded."""


class QueryEncodingError(EncodingError):
    """Raised when a value cannot be converted into query parameters."""


class BodyEncodingError(EncodingError):
    """Raised when a body provider cannot produce its payload."""


class RequestBuildError(QuiverError):
    """Raised when the wire request cannot be constructed."""


class TransportError(QuiverError):
    """Raised when the executor fails to perform the round trip."""

    def __init__(self, message: str, response: Optional[httpx.Response] = None) -> None:
        super().__init__(message)
        self.response = response


class DecodeError(QuiverError):
    """Raised when a response body cannot be decoded into its target."""

    def __init__(self, message: str, response: Optional[httpx.Response] = None) -> None:
        super().__init__(message)
        self.response = response


class MissingBaseURLError(QuiverError):
    """Raised when no base URL can be found for configuration."""


__all__ = [
    "QuiverError",
    "InvalidURLError",
    "EncodingError",
    "QueryEncodingError",
    "BodyEncodingError",
    "RequestBuildError",
    "TransportError",
    "DecodeError",
    "MissingBaseURLError",
]
