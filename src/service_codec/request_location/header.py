"""Request header location."""

from collections.abc import Mapping
from typing import Any

import requests

from service_codec.command import Command
from service_codec.description.base import Parameter
from service_codec.request_location.base import AbstractLocation, scalar_to_str

HEADER_DELIMITER = ", "


class HeaderLocation(AbstractLocation):
    """Sets one header per parameter.

    List values are comma-joined. Object values become one header per key,
    named by the wire name followed by the key.
    """

    def __init__(self, location_name: str = "header"):
        super().__init__(location_name)

    def visit(self, command: Command, request: requests.Request, param: Parameter) -> requests.Request:
        value = self._prepare_value(self._value(command, param), param)
        return self._place(request, param.wire_name, value)

    def _place(self, request: requests.Request, key: str, value: Any) -> requests.Request:
        if isinstance(value, Mapping):
            for name, item in value.items():
                self._place(request, f"{key}{name}", item)
            return request
        if isinstance(value, (list, tuple)):
            value = HEADER_DELIMITER.join(scalar_to_str(v) for v in value)
        request.headers[key] = scalar_to_str(value)
        return request
