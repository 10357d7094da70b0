import io
from dataclasses import dataclass, field
from typing import List

import pytest

from quiver.body import (
    FORM_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    FormBodyProvider,
    JSONBodyProvider,
    RawBodyProvider,
)
from quiver.errors import BodyEncodingError


@dataclass
class Signup:
    name: str = field(default="", metadata={"url": "name"})
    tags: List[str] = field(default_factory=list, metadata={"url": "tags"})


@dataclass
class Point:
    x: int
    y: int


class TestRawBodyProvider:
    def test_no_content_type(self):
        assert RawBodyProvider(b"data").content_type() == ""

    def test_bytes_and_str(self):
        assert RawBodyProvider(b"data").body().read() == b"data"
        assert RawBodyProvider("héllo").body().read() == "héllo".encode("utf-8")

    def test_stream_passes_through(self):
        stream = io.BytesIO(b"stream")
        assert RawBodyProvider(stream).body() is stream


class TestJSONBodyProvider:
    def test_one_line_json(self):
        provider = JSONBodyProvider({"Foo": "bar"})
        assert provider.content_type() == JSON_CONTENT_TYPE
        assert provider.body().read() == b'{"Foo":"bar"}\n'

    def test_dataclass_payload(self):
        assert JSONBodyProvider(Point(1, 2)).body().read() == b'{"x":1,"y":2}\n'

    def test_to_dict_payload(self):
        class Token:
            def to_dict(self):
                return {"token": "t"}

        assert JSONBodyProvider([Token()]).body().read() == b'[{"token":"t"}]\n'

    def test_unsupported_value(self):
        with pytest.raises(BodyEncodingError):
            JSONBodyProvider({"when": object()}).body()

    def test_nan_is_rejected(self):
        with pytest.raises(BodyEncodingError):
            JSONBodyProvider({"x": float("nan")}).body()


class TestFormBodyProvider:
    def test_form_encoding(self):
        provider = FormBodyProvider(Signup(name="Ada Lovelace", tags=["b", "a"]))
        assert provider.content_type() == FORM_CONTENT_TYPE
        assert provider.body().read() == b"name=Ada+Lovelace&tags=b&tags=a"

    def test_mapping_sorted(self):
        assert FormBodyProvider({"z": "1", "a": "2"}).body().read() == b"a=2&z=1"

    def test_encoding_error(self):
        with pytest.raises(BodyEncodingError):
            FormBodyProvider(42).body()
