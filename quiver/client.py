"""
Client
======

`Client` holds the defaults shared by every request it creates: the base
URL, the executor, default headers, and default query parameters and
structures.

    client = (
        Client("https://api.github.com/")
        .set_header("Accept", "application/vnd.github+json")
        .add_query_param("per_page", "50")
    )
    issues: list = []
    client.get("repos/octo/hello/issues").decode_success(issues)

Configuration methods return the client itself for chaining. Configure the
client before sharing it between threads; its defaults are not guarded.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from quiver.config import ClientConfig, basic_auth
from quiver.executor import Executor, HttpxExecutor, default_executor
from quiver.request import Request, add_header


class Client:
    def __init__(self, base_url: str = "", executor: Optional[Executor] = None) -> None:
        self._base_url = base_url
        self._executor: Executor = executor if executor is not None else default_executor()
        self._owned: Optional[HttpxExecutor] = None
        self._headers = httpx.Headers()
        self._query_params: Dict[str, str] = {}
        self._query_structs: List[Any] = []

    @classmethod
    def from_config(cls, config: ClientConfig) -> "Client":
        """
        Build a client from `config` with its own httpx executor.

        Close the client (or use it as a context manager) to release the
        executor's connections.
        """
        executor = HttpxExecutor(timeout=config.timeout)
        client = cls(config.base_url, executor=executor)
        client._owned = executor
        for key, value in config.headers.items():
            client.add_header(key, value)
        if config.has_basic_auth:
            client.set_basic_auth(config.username or "", config.password or "")
        return client

    # Read-only state -----------------------------------------------------------

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def executor(self) -> Executor:
        return self._executor

    @property
    def headers(self) -> httpx.Headers:
        return self._headers.copy()

    @property
    def query_params(self) -> Dict[str, str]:
        return dict(self._query_params)

    @property
    def query_structs(self) -> List[Any]:
        return list(self._query_structs)

    # Executor ------------------------------------------------------------------

    def set_executor(self, executor: Optional[Executor]) -> "Client":
        """Use `executor` for requests. None restores the shared default."""
        self._executor = executor if executor is not None else default_executor()
        return self

    def set_http_client(self, http_client: Optional[httpx.Client]) -> "Client":
        """Use a configured `httpx.Client` for requests. None restores the default."""
        return self.set_executor(http_client)

    # Headers -------------------------------------------------------------------

    def add_header(self, key: str, value: str) -> "Client":
        """Append `value` to the default values of `key`."""
        self._headers = add_header(self._headers, key, value)
        return self

    def set_header(self, key: str, value: str) -> "Client":
        """Replace all default values of `key` with `value`."""
        self._headers[key] = value
        return self

    def set_basic_auth(self, username: str, password: str) -> "Client":
        """
        Send HTTP Basic credentials with every request.

        The credentials are base64 encoded, not encrypted.
        """
        return self.set_header("Authorization", "Basic " + basic_auth(username, password))

    # Query ---------------------------------------------------------------------

    def add_query_struct(self, value: Any) -> "Client":
        """Encode `value` into the query of every request. None is ignored."""
        if value is not None:
            self._query_structs.append(value)
        return self

    def add_query_param(self, key: str, value: str) -> "Client":
        """Add a default query parameter. Empty keys or values are ignored."""
        if key and value:
            self._query_params[key] = value
        return self

    # Requests ------------------------------------------------------------------

    def new_request(self) -> Request:
        return Request(self)

    def head(self, path: str) -> Request:
        return self.new_request().head(path)

    def get(self, path: str) -> Request:
        return self.new_request().get(path)

    def post(self, path: str) -> Request:
        return self.new_request().post(path)

    def put(self, path: str) -> Request:
        return self.new_request().put(path)

    def patch(self, path: str) -> Request:
        return self.new_request().patch(path)

    def delete(self, path: str) -> Request:
        return self.new_request().delete(path)

    def options(self, path: str) -> Request:
        return self.new_request().options(path)

    def trace(self, path: str) -> Request:
        return self.new_request().trace(path)

    def connect(self, path: str) -> Request:
        return self.new_request().connect(path)

    # Lifecycle -----------------------------------------------------------------

    def close(self) -> None:
        """Close the executor if this client created it."""
        if self._owned is not None:
            self._owned.close()
            self._owned = None

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type: Optional[type], exc: Optional[BaseException], tb: Optional[Any]) -> None:
        self.close()


__all__ = ["Client"]
