"""Shared behaviour for locations that write parameter values into a request.

A location is visited once per supplied parameter that targets it, then
finalized once through ``after``. Locations keep no per-call state on
themselves; anything accumulated across visits lives on the request.
"""

from collections.abc import Iterator, Mapping
from typing import Any

import requests

from service_codec.command import Command, is_reserved
from service_codec.description.base import Operation, Parameter


def scalar_to_str(value: Any) -> str:
    """Render a scalar the way it should appear in text on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


CONTENT_TYPE = "Content-Type"


def set_content_type(request: requests.Request, value: str, replace: bool = True) -> requests.Request:
    """Set the content type, matching any existing header name case-insensitively.

    With ``replace=False`` a content type the caller already set is kept.
    """
    existing = [name for name in request.headers if name.lower() == CONTENT_TYPE.lower()]
    if existing and not replace:
        return request
    for name in existing:
        del request.headers[name]
    request.headers[CONTENT_TYPE] = value
    return request


def flatten(prefix: str, value: Any) -> Iterator[tuple[str, Any]]:
    """Flatten nested objects into bracketed keys: ``{"a": {"b": 1}}`` -> ``a[b]=1``.

    Lists of scalars stay under one key so they encode as repeated pairs.
    """
    if isinstance(value, Mapping):
        for key, item in value.items():
            yield from flatten(f"{prefix}[{key}]", item)
    elif isinstance(value, (list, tuple)) and any(isinstance(v, (Mapping, list, tuple)) for v in value):
        for index, item in enumerate(value):
            yield from flatten(f"{prefix}[{index}]", item)
    elif isinstance(value, (list, tuple)):
        yield prefix, [scalar_to_str(v) for v in value]
    else:
        yield prefix, scalar_to_str(value)


class AbstractLocation:
    """Base request location; subclasses override ``visit`` and maybe ``after``."""

    def __init__(self, location_name: str):
        self.location_name = location_name

    def visit(self, command: Command, request: requests.Request, param: Parameter) -> requests.Request:
        return request

    def after(self, command: Command, request: requests.Request, operation: Operation) -> requests.Request:
        """Place additional parameters, if the operation routes them here."""
        for key, value in self._additional_values(command, operation):
            request = self._place(request, key, value)
        return request

    def _place(self, request: requests.Request, key: str, value: Any) -> requests.Request:
        """Write an already-prepared value under a wire key."""
        return request

    def _value(self, command: Command, param: Parameter) -> Any:
        if param.static or not command.has_param(param.name):
            return param.default
        return command[param.name]

    def _prepare_value(self, value: Any, param: Parameter) -> Any:
        """Walk ``value`` alongside the parameter tree, then filter it."""
        if param.type == "object" and isinstance(value, Mapping):
            prepared = {}
            for key, item in value.items():
                child = param.get_property(key)
                if child is not None:
                    prepared[child.wire_name] = self._prepare_value(item, child)
                elif isinstance(param.additional_properties, Parameter):
                    prepared[key] = self._prepare_value(item, param.additional_properties)
                elif param.additional_properties is not False:
                    prepared[key] = item
            value = prepared
        elif param.type == "array" and param.items is not None and isinstance(value, (list, tuple)):
            value = [self._prepare_value(item, param.items) for item in value]
        return param.filter(value)

    def _additional_values(self, command: Command, operation: Operation) -> Iterator[tuple[str, Any]]:
        additional = operation.additional_parameters
        if additional is None or additional.location != self.location_name:
            return
        for key, value in command.items():
            if operation.has_param(key) or is_reserved(key):
                continue
            yield key, self._prepare_value(value, additional)
