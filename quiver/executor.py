"""
Executors for Quiver.

This module exposes the minimal typed interface `Executor` that a `Client`
dispatches requests through, and a concrete httpx-based implementation
`HttpxExecutor`.

Notes:
- `httpx.Client` already satisfies `Executor`, so any configured client
  (custom transport, event hooks, proxies) can be injected directly.
- `HttpxExecutor` owns its `httpx.Client` and should be closed when done.
- `default_executor()` returns a process-wide executor shared by every
  `Client` that was not given one.
"""

from __future__ import annotations

import threading
from typing import Any, Optional, Protocol, runtime_checkable

import httpx


@runtime_checkable
class Executor(Protocol):
    """
    Anything that can perform a single HTTP round trip.

    Implementations receive a fully built `httpx.Request` and return the
    `httpx.Response`, raising on transport failure.
    """

    def send(self, request: httpx.Request) -> httpx.Response: ...


class HttpxExecutor:
    """
    Synchronous `httpx.Client`-backed Executor.

    Example:
        with HttpxExecutor(timeout=5.0) as executor:
            client = Client("https://api.example.com/", executor=executor)
            client.get("status").decode_success(status)
    """

    def __init__(self, timeout: Optional[float] = 10.0, **client_kwargs: Any) -> None:
        self._client = httpx.Client(timeout=timeout, **client_kwargs)

    def send(self, request: httpx.Request) -> httpx.Response:
        return self._client.send(request)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpxExecutor":
        return self

    def __exit__(self, exc_type: Optional[type], exc: Optional[BaseException], tb: Optional[Any]) -> None:
        self.close()


_default: Optional[HttpxExecutor] = None
_default_lock = threading.Lock()


def default_executor() -> HttpxExecutor:
    """Return the shared executor used when none is configured."""
    global _default
    with _default_lock:
        if _default is None:
            _default = HttpxExecutor()
        return _default


__all__ = ["Executor", "HttpxExecutor", "default_executor"]
