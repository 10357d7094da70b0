"""
Query Encoding
==============

Turns annotated structures into URL query parameters.

A dataclass field opts into query encoding by carrying a `url` entry in its
field metadata. The entry holds the external key name, optionally followed
by comma-separated options:

    @dataclass
    class ListIssues:
        state: str = field(default="open", metadata={"url": "state"})
        labels: List[str] = field(default_factory=list, metadata={"url": "labels,comma,omitempty"})
        page: int = field(default=0, metadata={"url": "page,omitempty"})
        internal: str = ""                      # no metadata -> never encoded

Options:
    omitempty   skip the field when its value is None, "", 0, False or empty
    comma       join a sequence into a single comma-separated value
    space       join a sequence into a single space-separated value
    int         render booleans as 1 / 0 instead of true / false
    brackets    repeat a sequence under "name[]"
    numbered    spread a sequence over "name0", "name1", ...
    unix        render datetimes as Unix seconds (unixmilli, unixnano for
                milliseconds and nanoseconds); naive values are taken as UTC

Mappings are accepted as-is, and any object may take full control of its
encoding by implementing `query_values()` returning a mapping.
"""

from __future__ import annotations

import datetime as _dt
import decimal
import enum
from dataclasses import fields, is_dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Tuple
from urllib.parse import parse_qsl, urlencode

from quiver.errors import QueryEncodingError

Values = Dict[str, List[str]]

TAG = "url"

_UNIX_OPTS = frozenset({"unix", "unixmilli", "unixnano"})


# ───────────────────────────────────────────────────────────────
# Public helpers
# ───────────────────────────────────────────────────────────────

def values(obj: Any) -> Values:
    """
    Encode `obj` into a key -> [values] mapping.

    Raises:
        QueryEncodingError: if `obj`, or one of its annotated fields, has a
            type that cannot be rendered as a query value.
    """
    if obj is None:
        return {}

    hook = getattr(obj, "query_values", None)
    if callable(hook):
        return _from_mapping(hook())

    if isinstance(obj, Mapping):
        return _from_mapping(obj)

    if is_dataclass(obj) and not isinstance(obj, type):
        out: Values = {}
        _reflect(out, obj, scope="")
        return out

    raise QueryEncodingError(
        f"query: expected a dataclass instance or mapping, got {type(obj).__name__}"
    )


def encode(vals: Mapping[str, Iterable[str]]) -> str:
    """
    Format `vals` as a URL-encoded string ("a=1&b=2") sorted by key.

    Values sharing a key keep their order.
    """
    pairs: List[Tuple[str, str]] = []
    for key in sorted(vals):
        for value in vals[key]:
            pairs.append((key, value))
    return urlencode(pairs)


def parse(query: str) -> Values:
    """Parse a raw query string into a key -> [values] mapping."""
    out: Values = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        out.setdefault(key, []).append(value)
    return out


def merge(target: Values, extra: Mapping[str, Iterable[str]]) -> Values:
    """Append every value from `extra` into `target` and return `target`."""
    for key, vals in extra.items():
        target.setdefault(key, []).extend(vals)
    return target


# ───────────────────────────────────────────────────────────────
# Internals
# ───────────────────────────────────────────────────────────────

def _parse_tag(tag: str) -> Tuple[str, FrozenSet[str]]:
    name, _, rest = tag.partition(",")
    opts = frozenset(o.strip() for o in rest.split(",") if o.strip())
    return name.strip(), opts


def _from_mapping(mapping: Mapping[Any, Any]) -> Values:
    if not isinstance(mapping, Mapping):
        raise QueryEncodingError(
            f"query: query_values() must return a mapping, got {type(mapping).__name__}"
        )
    out: Values = {}
    for key, value in mapping.items():
        name = str(key)
        if isinstance(value, (list, tuple)):
            out.setdefault(name, []).extend(_scalar(v, frozenset(), name) for v in value)
        else:
            out.setdefault(name, []).append(_scalar(value, frozenset(), name))
    return out


def _reflect(out: Values, obj: Any, scope: str) -> None:
    for f in fields(obj):
        tag = f.metadata.get(TAG)
        if tag is None:
            continue

        name, opts = _parse_tag(tag)
        if name == "-":
            continue
        if not name:
            name = f.name
        if scope:
            name = f"{scope}[{name}]"

        value = getattr(obj, f.name)
        if "omitempty" in opts and _is_empty(value):
            continue

        if is_dataclass(value) and not isinstance(value, type):
            _reflect(out, value, scope=name)
            continue

        if isinstance(value, (list, tuple)):
            items = [_scalar(v, opts, name) for v in value]
            if "comma" in opts:
                out.setdefault(name, []).append(",".join(items))
            elif "space" in opts:
                out.setdefault(name, []).append(" ".join(items))
            elif "brackets" in opts:
                out.setdefault(f"{name}[]", []).extend(items)
            elif "numbered" in opts:
                for i, item in enumerate(items):
                    out.setdefault(f"{name}{i}", []).append(item)
            else:
                out.setdefault(name, []).extend(items)
            continue

        out.setdefault(name, []).append(_scalar(value, opts, name))


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, bool, int, float)):
        return not value
    return False


def _scalar(value: Any, opts: FrozenSet[str], key: str) -> str:
    if value is None:
        return ""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        if "int" in opts:
            return "1" if value else "0"
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        return _scalar(value.value, opts, key)
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, decimal.Decimal)):
        return str(value)
    if isinstance(value, (_dt.datetime, _dt.date)):
        if opts & _UNIX_OPTS:
            return _unix(value, opts)
        return value.isoformat()
    raise QueryEncodingError(
        f"query: unsupported type {type(value).__name__} for key {key!r}"
    )


_EPOCH = _dt.datetime(1970, 1, 1, tzinfo=_dt.timezone.utc)


def _unix(value: _dt.date, opts: FrozenSet[str]) -> str:
    if isinstance(value, _dt.datetime):
        moment = value
    else:
        moment = _dt.datetime(value.year, value.month, value.day)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=_dt.timezone.utc)

    delta = moment - _EPOCH
    nanos = (delta.days * 86400 + delta.seconds) * 10**9 + delta.microseconds * 1000
    if "unixnano" in opts:
        return str(nanos)
    if "unixmilli" in opts:
        return str(nanos // 10**6)
    return str(nanos // 10**9)


__all__ = [
    "Values",
    "values",
    "encode",
    "parse",
    "merge",
]
