"""Sprig-style helper functions available to message templates.

Functions take their arguments in Sprig order, with the value being
operated on last, so that ``trimAll("@company.com", .BuildAuthorEmail)``
reads the same as the Go template it replaces. When used as a filter the
piped value is moved to that last position:

    {{ .BuildAuthorEmail | trimAll("@company.com") | lower }}
"""

from __future__ import annotations

import base64
import hashlib
import json
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def lower(s: Any) -> str:
    return _text(s).lower()


def upper(s: Any) -> str:
    return _text(s).upper()


def title(s: Any) -> str:
    return _text(s).title()


def trim(s: Any) -> str:
    return _text(s).strip()


def trim_all(cutset: str, s: Any) -> str:
    """Strip any of the characters in ``cutset`` from both ends."""
    return _text(s).strip(cutset)


def trim_prefix(prefix: str, s: Any) -> str:
    return _text(s).removeprefix(prefix)


def trim_suffix(suffix: str, s: Any) -> str:
    return _text(s).removesuffix(suffix)


def replace(old: str, new: str, s: Any) -> str:
    return _text(s).replace(old, new)


def contains(substr: str, s: Any) -> bool:
    return substr in _text(s)


def has_prefix(prefix: str, s: Any) -> bool:
    return _text(s).startswith(prefix)


def has_suffix(suffix: str, s: Any) -> bool:
    return _text(s).endswith(suffix)


def empty(value: Any) -> bool:
    """Sprig emptiness: zero values, empty strings and empty collections."""
    return not value


def default(fallback: Any, value: Any = None) -> Any:
    """Return ``value`` unless it is empty, in which case ``fallback``."""
    return fallback if empty(value) else value


def coalesce(*values: Any) -> Any:
    """Return the first non-empty argument."""
    for value in values:
        if not empty(value):
            return value
    return None


def quote(*values: Any) -> str:
    return " ".join(json.dumps(_text(v)) for v in values if v is not None)


def squote(*values: Any) -> str:
    return " ".join(f"'{_text(v)}'" for v in values if v is not None)


def substr(start: int, end: int, s: Any) -> str:
    text = _text(s)
    if start < 0:
        return text[:end]
    if end < 0 or end > len(text):
        return text[start:]
    return text[start:end]


def trunc(length: int, s: Any) -> str:
    """Truncate to ``length`` characters; negative keeps the tail."""
    text = _text(s)
    if length < 0:
        return text[length:] if -length < len(text) else text
    return text[:length]


def abbrev(width: int, s: Any) -> str:
    """Truncate with an ellipsis so the result is at most ``width`` long."""
    text = _text(s)
    if width < 4 or len(text) <= width:
        return text
    return text[: width - 3] + "..."


def repeat(count: int, s: Any) -> str:
    return _text(s) * count


def nospace(s: Any) -> str:
    return "".join(_text(s).split())


def initials(s: Any) -> str:
    return "".join(word[0] for word in _text(s).split())


def split_list(sep: str, s: Any) -> list[str]:
    return _text(s).split(sep)


def split(sep: str, s: Any) -> dict[str, str]:
    """Split into a dict keyed ``_0``, ``_1``... like Sprig's ``split``."""
    return {f"_{i}": part for i, part in enumerate(_text(s).split(sep))}


def join(sep: str, items: Iterable[Any]) -> str:
    if isinstance(items, str):
        return items
    return sep.join(_text(item) for item in items)


def make_list(*items: Any) -> list[Any]:
    return list(items)


def make_dict(*pairs: Any) -> dict[str, Any]:
    """Build a dict from alternating key/value arguments."""
    if len(pairs) % 2:
        pairs = (*pairs, "")
    return {_text(pairs[i]): pairs[i + 1] for i in range(0, len(pairs), 2)}


def first(items: Any) -> Any:
    return items[0] if items else None


def last(items: Any) -> Any:
    return items[-1] if items else None


def to_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def b64enc(s: Any) -> str:
    return base64.b64encode(_text(s).encode("utf-8")).decode("ascii")


def b64dec(s: Any) -> str:
    return base64.b64decode(_text(s)).decode("utf-8")


def sha256sum(s: Any) -> str:
    return hashlib.sha256(_text(s).encode("utf-8")).hexdigest()


def to_int(value: Any) -> int:
    """Convert to int; unparseable text becomes 0 as in Sprig."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def atoi(s: Any) -> int:
    return to_int(_text(s).strip())


def to_string(value: Any) -> str:
    return _text(value)


def now() -> datetime:
    return datetime.now(UTC)


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromtimestamp(int(value), UTC)


def date(fmt: str, value: Any) -> str:
    """Format a datetime or unix timestamp with a strftime pattern."""
    return _as_datetime(value).strftime(fmt)


def unix_epoch(value: Any) -> int:
    return int(_as_datetime(value).timestamp())


FUNCTIONS: dict[str, Callable[..., Any]] = {
    "lower": lower,
    "upper": upper,
    "title": title,
    "trim": trim,
    "trimAll": trim_all,
    "trimPrefix": trim_prefix,
    "trimSuffix": trim_suffix,
    "replace": replace,
    "contains": contains,
    "hasPrefix": has_prefix,
    "hasSuffix": has_suffix,
    "empty": empty,
    "default": default,
    "coalesce": coalesce,
    "quote": quote,
    "squote": squote,
    "substr": substr,
    "trunc": trunc,
    "abbrev": abbrev,
    "repeat": repeat,
    "nospace": nospace,
    "initials": initials,
    "split": split,
    "splitList": split_list,
    "join": join,
    "list": make_list,
    "dict": make_dict,
    "first": first,
    "last": last,
    "toJson": to_json,
    "b64enc": b64enc,
    "b64dec": b64dec,
    "sha256sum": sha256sum,
    "int": to_int,
    "atoi": atoi,
    "toString": to_string,
    "now": now,
    "date": date,
    "unixEpoch": unix_epoch,
}


def as_filter(func: Callable[..., Any]) -> Callable[..., Any]:
    """Adapt a Sprig-ordered function so the piped value goes last."""

    def _filter(value: Any, *args: Any) -> Any:
        return func(*args, value)

    _filter.__name__ = func.__name__
    _filter.__doc__ = func.__doc__
    return _filter


FILTERS: dict[str, Callable[..., Any]] = {
    name: as_filter(func) for name, func in FUNCTIONS.items() if name != "now"
}
