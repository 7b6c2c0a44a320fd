"""Named value filters referenced by parameters.

A filter is a pure function ``value -> value``. Parameters refer to filters
by name, or by a call spec ``{"method": name, "args": [...]}`` where the
``@value`` placeholder marks the position of the filtered value.
"""

import base64
import json
from collections.abc import Callable, Mapping
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

FilterFunc = Callable[..., Any]

VALUE_PLACEHOLDER = "@value"


def _trim(value: str) -> str:
    return value.strip()


def _boolean(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off", ""):
            return False
        raise ValueError(f"Not a boolean: {value!r}")
    return bool(value)


def _base64_encode(value: str | bytes) -> str:
    if isinstance(value, str):
        value = value.encode("utf-8")
    return base64.b64encode(value).decode("ascii")


def _csv(value: list) -> str:
    if isinstance(value, str):
        return value
    return ",".join(str(v) for v in value)


def _iso8601(value: date | datetime | str) -> str:
    if isinstance(value, str):
        return value
    return value.isoformat()


DEFAULT_FILTERS: Mapping[str, FilterFunc] = MappingProxyType(
    {
        "uppercase": str.upper,
        "lowercase": str.lower,
        "trim": _trim,
        "string": str,
        "integer": int,
        "float": float,
        "boolean": _boolean,
        "json_encode": json.dumps,
        "base64_encode": _base64_encode,
        "csv": _csv,
        "iso8601": _iso8601,
    }
)


def with_filters(**extra: FilterFunc) -> Mapping[str, FilterFunc]:
    """Return a registry made of the defaults plus ``extra`` (which win)."""
    return MappingProxyType({**DEFAULT_FILTERS, **extra})


def bind_filter(
    method: str, args: list | None, registry: Mapping[str, FilterFunc]
) -> Callable[[Any], Any]:
    """Resolve a filter name (and optional call args) to a one-argument function.

    Raises KeyError for names missing from the registry.
    """
    func = registry[method]
    if not args:
        return func

    def call(value: Any) -> Any:
        resolved = [value if arg == VALUE_PLACEHOLDER else arg for arg in args]
        return func(*resolved)

    return call
