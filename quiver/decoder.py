"""
Response Decoding
=================

Decoders read a response body into a caller-supplied target in place.

Supported targets for `JSONDecoder`:

- dict (any MutableMapping)   <- JSON object, merged with `update`
- list                        <- JSON array, contents replaced
- dataclass instance          <- JSON object, field by field; the JSON key is
                                 `field(metadata={"json": "key"})` or the field
                                 name; absent keys leave the field untouched
                                 and each value is checked against the field's
                                 type hint (int, float, str, bool, List, Dict,
                                 Optional, nested dataclasses)
- any object with `load_json(data)`, which receives the decoded value
"""

from __future__ import annotations

import types
from dataclasses import FrozenInstanceError, fields, is_dataclass
from typing import Any, Dict, List, MutableMapping, Union, get_args, get_origin, get_type_hints

import httpx

from quiver.errors import DecodeError

TAG = "json"

_UnionType = getattr(types, "UnionType", None)


class ResponseDecoder:
    """Minimal interface for decoding a response body into a target."""

    def decode(self, response: httpx.Response, target: Any) -> None:
        raise NotImplementedError("ResponseDecoder.decode must be implemented")


class JSONDecoder(ResponseDecoder):
    """Decodes JSON response bodies."""

    def decode(self, response: httpx.Response, target: Any) -> None:
        try:
            data = response.json()
        except ValueError as exc:
            raise DecodeError(f"json decode: {exc}", response=response) from exc

        try:
            populate(target, data)
        except DecodeError as exc:
            exc.response = response
            raise


def populate(target: Any, data: Any) -> None:
    """
    Copy decoded JSON `data` into `target`.

    Raises:
        DecodeError: if `data` does not fit the shape of `target`, or the
            target type is not supported.
    """
    hook = getattr(target, "load_json", None)
    if callable(hook):
        hook(data)
        return

    if isinstance(target, MutableMapping):
        _expect(data, dict, target)
        target.update(data)
        return

    if isinstance(target, list):
        _expect(data, list, target)
        target[:] = data
        return

    if is_dataclass(target) and not isinstance(target, type):
        _expect(data, dict, target)
        _populate_dataclass(target, data)
        return

    raise DecodeError(f"json decode: unsupported target type {type(target).__name__}")


def _populate_dataclass(target: Any, data: dict) -> None:
    hints = _type_hints(type(target))
    for f in fields(target):
        key = f.metadata.get(TAG, f.name)
        if key == "-" or key not in data:
            continue

        value = data[key]
        current = getattr(target, f.name)
        if is_dataclass(current) and not isinstance(current, type):
            if value is None:
                continue
            _expect(value, dict, current)
            _populate_dataclass(current, value)
            continue

        hint = hints.get(f.name, Any)
        if value is None and not _accepts_none(hint):
            # null leaves a non-optional field as it was
            continue
        value = _convert(value, hint, f"{type(target).__name__}.{f.name}")

        try:
            setattr(target, f.name, value)
        except FrozenInstanceError as exc:
            raise DecodeError(
                f"json decode: cannot decode into frozen {type(target).__name__}"
            ) from exc


def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return get_type_hints(cls)
    except (NameError, TypeError):
        # unresolvable forward references: fields are assigned unchecked
        return {}


def _is_union(origin: Any) -> bool:
    return origin is Union or (_UnionType is not None and origin is _UnionType)


def _accepts_none(hint: Any) -> bool:
    if hint is Any or hint is type(None):
        return True
    if _is_union(get_origin(hint)):
        return type(None) in get_args(hint)
    return False


def _convert(value: Any, hint: Any, where: str) -> Any:
    """Check decoded `value` against `hint`, returning the value to assign."""
    if hint is Any:
        return value

    origin = get_origin(hint)
    if _is_union(origin):
        if value is None and type(None) in get_args(hint):
            return None
        for arg in get_args(hint):
            if arg is type(None):
                continue
            try:
                return _convert(value, arg, where)
            except DecodeError:
                continue
        raise _mismatch(value, hint, where)

    if origin in (list, List):
        if not isinstance(value, list):
            raise _mismatch(value, hint, where)
        (item,) = get_args(hint) or (Any,)
        return [_convert(v, item, f"{where}[{i}]") for i, v in enumerate(value)]

    if origin in (dict, Dict):
        if not isinstance(value, dict):
            raise _mismatch(value, hint, where)
        _, item = get_args(hint) or (Any, Any)
        return {k: _convert(v, item, f"{where}[{k!r}]") for k, v in value.items()}

    if origin is not None:
        # other generics (Tuple, Mapping, ...) are not checked
        return value

    if hint is bool:
        if not isinstance(value, bool):
            raise _mismatch(value, hint, where)
        return value
    if hint is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise _mismatch(value, hint, where)
        return value
    if hint is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _mismatch(value, hint, where)
        return float(value)
    if hint is list or hint is dict or hint is str:
        if not isinstance(value, hint):
            raise _mismatch(value, hint, where)
        return value

    if isinstance(hint, type) and is_dataclass(hint):
        if not isinstance(value, dict):
            raise _mismatch(value, hint, where)
        try:
            obj = hint()
        except TypeError as exc:
            raise DecodeError(
                f"json decode: cannot create {hint.__name__} for {where}: {exc}"
            ) from exc
        _populate_dataclass(obj, value)
        return obj

    if isinstance(hint, type) and not isinstance(value, hint):
        raise _mismatch(value, hint, where)
    return value


def _mismatch(value: Any, hint: Any, where: str) -> DecodeError:
    name = getattr(hint, "__name__", None) or str(hint)
    return DecodeError(
        f"json decode: cannot unmarshal {type(value).__name__} into {where} of type {name}"
    )


def _expect(data: Any, kind: type, target: Any) -> None:
    if not isinstance(data, kind):
        raise DecodeError(
            f"json decode: cannot unmarshal {type(data).__name__} into {type(target).__name__}"
        )


__all__ = [
    "ResponseDecoder",
    "JSONDecoder",
    "populate",
]
