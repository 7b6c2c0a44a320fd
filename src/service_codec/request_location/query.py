"""Query string location."""

from typing import Any

import requests

from service_codec.command import Command
from service_codec.description.base import Parameter
from service_codec.request_location.base import AbstractLocation, flatten


class QueryLocation(AbstractLocation):
    """Adds ``name=value`` pairs to the request's query parameters."""

    def __init__(self, location_name: str = "query"):
        super().__init__(location_name)

    def visit(self, command: Command, request: requests.Request, param: Parameter) -> requests.Request:
        value = self._prepare_value(self._value(command, param), param)
        return self._place(request, param.wire_name, value)

    def _place(self, request: requests.Request, key: str, value: Any) -> requests.Request:
        for name, flat in flatten(key, value):
            request.params[name] = flat
        return request
