"""
Body Providers
==============

A body provider hands a request its payload as a byte stream together with
the Content-Type that describes it.

- RawBodyProvider: caller-supplied bytes / str / binary stream, no content type
- JSONBodyProvider: compact JSON, `application/json`
- FormBodyProvider: URL-encoded key/value pairs built with `quiver.query`,
  `application/x-www-form-urlencoded`
"""

from __future__ import annotations

import io
import json
from dataclasses import asdict, is_dataclass
from typing import Any, BinaryIO, Union

from quiver import query
from quiver.errors import BodyEncodingError, QueryEncodingError

CONTENT_TYPE = "Content-Type"
JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

RawBody = Union[bytes, bytearray, str, BinaryIO]


class BodyProvider:
    """
    Minimal interface for request body sources.

    Implementations return the Content-Type of the payload (or "" when the
    caller manages it) and a readable binary stream.
    """

    def content_type(self) -> str:
        raise NotImplementedError("BodyProvider.content_type must be implemented")

    def body(self) -> BinaryIO:
        raise NotImplementedError("BodyProvider.body must be implemented")


class RawBodyProvider(BodyProvider):
    """Passes the wrapped value through as the body."""

    def __init__(self, body: RawBody) -> None:
        self._body = body

    def content_type(self) -> str:
        return ""

    def body(self) -> BinaryIO:
        if isinstance(self._body, str):
            return io.BytesIO(self._body.encode("utf-8"))
        if isinstance(self._body, (bytes, bytearray)):
            return io.BytesIO(bytes(self._body))
        return self._body


class JSONBodyProvider(BodyProvider):
    """Encodes the wrapped payload as one line of JSON."""

    def __init__(self, payload: Any) -> None:
        self._payload = payload

    def content_type(self) -> str:
        return JSON_CONTENT_TYPE

    def body(self) -> BinaryIO:
        try:
            text = json.dumps(
                self._payload,
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
                default=_json_default,
            )
        except (TypeError, ValueError) as exc:
            raise BodyEncodingError(f"json body: {exc}") from exc
        return io.BytesIO((text + "\n").encode("utf-8"))


class FormBodyProvider(BodyProvider):
    """Encodes the wrapped payload as `a=1&b=2` form data."""

    def __init__(self, payload: Any) -> None:
        self._payload = payload

    def content_type(self) -> str:
        return FORM_CONTENT_TYPE

    def body(self) -> BinaryIO:
        try:
            vals = query.values(self._payload)
        except QueryEncodingError as exc:
            raise BodyEncodingError(f"form body: {exc}") from exc
        return io.BytesIO(query.encode(vals).encode("ascii"))


def _json_default(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


__all__ = [
    "CONTENT_TYPE",
    "JSON_CONTENT_TYPE",
    "FORM_CONTENT_TYPE",
    "BodyProvider",
    "RawBodyProvider",
    "JSONBodyProvider",
    "FormBodyProvider",
]
