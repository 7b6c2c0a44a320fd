"""Response header location."""

import requests

from service_codec.command import Command
from service_codec.description.base import Parameter
from service_codec.response_location.base import AbstractLocation, ResultAccumulator


class HeaderLocation(AbstractLocation):
    """Reads one header per parameter.

    Array parameters split the header on commas. Object parameters collect
    every header whose name starts with the wire name, keyed by the rest of
    the header name.
    """

    def __init__(self, location_name: str = "header"):
        super().__init__(location_name)

    def visit(
        self, command: Command, response: requests.Response, param: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        wire = param.wire_name

        if param.type == "object":
            prefix = wire.lower()
            value = {
                name[len(prefix):]: header
                for name, header in response.headers.items()
                if name.lower().startswith(prefix)
            }
            result[param.name] = param.filter(value)
            return result

        if wire not in response.headers:
            return result
        raw = response.headers[wire]
        if param.type == "array":
            items = param.items
            value = [items.coerce(part.strip()) if items else part.strip() for part in raw.split(",")]
        else:
            value = param.coerce(raw)
        result[param.name] = param.filter(value)
        return result
