"""
Request Builder
===============

A `Request` collects everything needed for one HTTP call and inherits the
defaults of the `Client` that created it.

    resp = (
        client.new_request()
        .post("issues")
        .set_header("X-Trace", "abc")
        .add_query_param("draft", "true")
        .body_json({"title": "Broken build"})
        .decode(issue, api_error)
    )

Merge rules at send time
------------------------
- Query: the query already on the resolved URL, then every query structure
  (client defaults first, then this request's), then the client query map,
  then this request's query map. The result is sorted by key.
- Headers: client defaults first, then this request's headers. Values are
  appended, never replaced, across the two scopes.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, BinaryIO, Dict, List, Optional, Union

import httpx

from quiver import query
from quiver.body import (
    CONTENT_TYPE,
    BodyProvider,
    FormBodyProvider,
    JSONBodyProvider,
    RawBody,
    RawBodyProvider,
)
from quiver.config import basic_auth
from quiver.decoder import JSONDecoder, ResponseDecoder
from quiver.errors import InvalidURLError, RequestBuildError, TransportError

if TYPE_CHECKING:
    from quiver.client import Client

logger = logging.getLogger(__name__)

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


# ───────────────────────────────────────────────────────────────
# Header helpers
# ───────────────────────────────────────────────────────────────

def add_header(headers: httpx.Headers, key: str, value: str) -> httpx.Headers:
    """Return a copy of `headers` with `value` appended under `key`."""
    return httpx.Headers([*headers.raw, (key, value)])


def merge_headers(*scopes: httpx.Headers) -> httpx.Headers:
    """Concatenate header multimaps, earlier scopes first."""
    items: List[Any] = []
    for scope in scopes:
        items.extend(scope.raw)
    return httpx.Headers(items)


# ───────────────────────────────────────────────────────────────
# Request
# ───────────────────────────────────────────────────────────────

class Request:
    """
    One-shot request builder. Create it with `Client.new_request()`.

    Every setter returns the builder so calls can be chained.
    """

    def __init__(self, client: "Client") -> None:
        self._client = client
        self._method = "GET"
        self._url = client.base_url
        self._headers = httpx.Headers()
        self._query_params: Dict[str, str] = {}
        self._query_structs: List[Any] = []
        self._body_provider: Optional[BodyProvider] = None
        self._decoder: ResponseDecoder = JSONDecoder()

    # Read-only state -----------------------------------------------------------

    @property
    def method(self) -> str:
        return self._method

    @property
    def url(self) -> str:
        """The absolute URL the request resolves to, before query merging."""
        return self._url

    @property
    def headers(self) -> httpx.Headers:
        """Request-scoped headers (client defaults are merged at send time)."""
        return self._headers.copy()

    @property
    def query_params(self) -> Dict[str, str]:
        return dict(self._query_params)

    # Method + path -------------------------------------------------------------

    def head(self, path: str) -> "Request":
        """Set the method to HEAD and resolve `path`."""
        self._method = "HEAD"
        return self.path(path)

    def get(self, path: str) -> "Request":
        """Set the method to GET and resolve `path`."""
        self._method = "GET"
        return self.path(path)

    def post(self, path: str) -> "Request":
        """Set the method to POST and resolve `path`."""
        self._method = "POST"
        return self.path(path)

    def put(self, path: str) -> "Request":
        """Set the method to PUT and resolve `path`."""
        self._method = "PUT"
        return self.path(path)

    def patch(self, path: str) -> "Request":
        """Set the method to PATCH and resolve `path`."""
        self._method = "PATCH"
        return self.path(path)

    def delete(self, path: str) -> "Request":
        """Set the method to DELETE and resolve `path`."""
        self._method = "DELETE"
        return self.path(path)

    def options(self, path: str) -> "Request":
        """Set the method to OPTIONS and resolve `path`."""
        self._method = "OPTIONS"
        return self.path(path)

    def trace(self, path: str) -> "Request":
        """Set the method to TRACE and resolve `path`."""
        self._method = "TRACE"
        return self.path(path)

    def connect(self, path: str) -> "Request":
        """Set the method to CONNECT and resolve `path`."""
        self._method = "CONNECT"
        return self.path(path)

    def path(self, path: str) -> "Request":
        """
        Resolve `path` against the client's base URL (RFC 3986 reference
        resolution).

        If either the base URL or `path` cannot be parsed, the previously
        resolved URL is kept. The failure surfaces later from `send()` only
        if the kept URL itself is invalid.
        """
        try:
            base = _parse_url(self._client.base_url)
            ref = _parse_url(path)
        except httpx.InvalidURL as exc:
            logger.debug("path %r not resolved, keeping %s: %s", path, self._url, exc)
            return self
        self._url = str(base.join(ref))
        return self

    # Headers -------------------------------------------------------------------

    def add_header(self, key: str, value: str) -> "Request":
        """Append `value` to the values of `key`."""
        self._headers = add_header(self._headers, key, value)
        return self

    def set_header(self, key: str, value: str) -> "Request":
        """Replace all values of `key` with `value`."""
        self._headers[key] = value
        return self

    def set_basic_auth(self, username: str, password: str) -> "Request":
        """Set the Authorization header for HTTP Basic authentication."""
        return self.set_header("Authorization", "Basic " + basic_auth(username, password))

    # Query ---------------------------------------------------------------------

    def add_query_struct(self, value: Any) -> "Request":
        """
        Queue `value` for query encoding at send time.

        `value` is a dataclass with `url`-annotated fields, a mapping, or an
        object implementing `query_values()`. None is ignored.
        """
        if value is not None:
            self._query_structs.append(value)
        return self

    def add_query_param(self, key: str, value: str) -> "Request":
        """Set a single query parameter. Empty keys or values are ignored."""
        if key and value:
            self._query_params[key] = value
        return self

    # Body ----------------------------------------------------------------------

    def body(self, body: Optional[RawBody]) -> "Request":
        """Send `body` verbatim. None is ignored."""
        if body is None:
            return self
        return self.body_provider(RawBodyProvider(body))

    def body_provider(self, provider: Optional[BodyProvider]) -> "Request":
        """
        Install `provider` as the body source, replacing any earlier one.

        A non-empty content type from the provider replaces the request's
        Content-Type header.
        """
        if provider is None:
            return self
        self._body_provider = provider

        ct = provider.content_type()
        if ct:
            self.set_header(CONTENT_TYPE, ct)
        return self

    def body_json(self, payload: Any) -> "Request":
        """JSON-encode `payload` as the body. None is ignored."""
        if payload is None:
            return self
        return self.body_provider(JSONBodyProvider(payload))

    def body_form(self, payload: Any) -> "Request":
        """Form-encode `payload` (see `quiver.query`) as the body. None is ignored."""
        if payload is None:
            return self
        return self.body_provider(FormBodyProvider(payload))

    # Decoding ------------------------------------------------------------------

    def response_decoder(self, decoder: Optional[ResponseDecoder]) -> "Request":
        """Replace the response decoder. None restores the JSON decoder."""
        self._decoder = decoder if decoder is not None else JSONDecoder()
        return self

    # Dispatch ------------------------------------------------------------------

    def send(self) -> httpx.Request:
        """
        Build the wire request.

        Raises:
            InvalidURLError: the resolved URL cannot be parsed.
            QueryEncodingError: a query structure cannot be encoded.
            BodyEncodingError: the body provider failed.
            RequestBuildError: httpx rejected the method, URL or headers.
        """
        try:
            url = _parse_url(self._url)
        except httpx.InvalidURL as exc:
            raise InvalidURLError(f"invalid request url {self._url!r}: {exc}") from exc

        merged = query.parse(url.query.decode("ascii"))
        for struct in [*self._client.query_structs, *self._query_structs]:
            query.merge(merged, query.values(struct))
        for scope in (self._client.query_params, self._query_params):
            for key, value in scope.items():
                merged.setdefault(key, []).append(value)

        encoded = query.encode(merged)
        if encoded:
            url = url.copy_with(query=encoded.encode("ascii"))

        content: Optional[bytes] = None
        if self._body_provider is not None:
            content = _read_body(self._body_provider.body())

        try:
            headers = merge_headers(self._client.headers, self._headers)
            req = httpx.Request(self._method, url, headers=headers, content=content)
        except (httpx.InvalidURL, ValueError) as exc:
            raise RequestBuildError(f"cannot build {self._method} {url}: {exc}") from exc

        logger.debug("built %s %s", req.method, req.url)
        return req

    def decode_success(self, success: Any) -> httpx.Response:
        """Shorthand for `decode(success, None)`."""
        return self.decode(success, None)

    def decode(self, success: Any = None, failure: Any = None) -> httpx.Response:
        """
        Build, send, and decode in one call.

        2XX bodies are decoded into `success`, all others into `failure`.
        Either target may be None.
        """
        req = self.send()
        return self.do(req, success, failure)

    def do(self, request: httpx.Request, success: Any = None, failure: Any = None) -> httpx.Response:
        """
        Send `request` through the client's executor and decode the body.

        Decoding is skipped for 204 responses, a declared Content-Length of 0,
        and empty bodies. Empty bodies are skipped even without a declared
        length, so an empty chunked body is not a decode error. The response
        body is always read to completion and the response closed before this
        returns.

        Raises:
            TransportError: the executor failed; `response` is None.
            DecodeError: the body did not decode; `response` is set.
        """
        try:
            response = self._client.executor.send(request)
        except (httpx.HTTPError, OSError) as exc:
            raise TransportError(f"{request.method} {request.url}: {exc}") from exc

        logger.debug("%s %s -> %s", request.method, request.url, response.status_code)
        try:
            self._decode_response(response, success, failure)
        finally:
            _release(response)
        return response

    def _decode_response(self, response: httpx.Response, success: Any, failure: Any) -> None:
        try:
            content = response.read()
        except httpx.HTTPError as exc:
            raise TransportError(f"reading response body: {exc}", response=response) from exc

        if (
            response.status_code == httpx.codes.NO_CONTENT
            or response.headers.get("Content-Length") == "0"
            or not content
        ):
            logger.debug("empty response body, decoding skipped")
            return

        target = success if response.is_success else failure
        if target is None:
            return
        self._decoder.decode(response, target)


# ───────────────────────────────────────────────────────────────
# Internals
# ───────────────────────────────────────────────────────────────

def _parse_url(raw: str) -> httpx.URL:
    """Parse `raw`, also rejecting malformed percent-escapes that httpx lets through."""
    bad = _BAD_ESCAPE.search(raw)
    if bad is not None:
        raise httpx.InvalidURL(f"invalid URL escape {raw[bad.start():bad.start() + 3]!r}")
    return httpx.URL(raw)


def _read_body(stream: Union[bytes, BinaryIO]) -> bytes:
    if isinstance(stream, (bytes, bytearray)):
        return bytes(stream)
    data = stream.read()
    if isinstance(data, str):
        return data.encode("utf-8")
    return data


def _release(response: httpx.Response) -> None:
    try:
        if not response.is_stream_consumed:
            response.read()
    finally:
        response.close()


__all__ = [
    "Request",
    "add_header",
    "merge_headers",
]
