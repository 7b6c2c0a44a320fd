"""Raw response body location."""

import requests

from service_codec.command import Command
from service_codec.description.base import Parameter
from service_codec.response_location.base import AbstractLocation, ResultAccumulator


class BodyLocation(AbstractLocation):
    """Stores the response body (text, or bytes for ``format: binary``)."""

    def __init__(self, location_name: str = "body"):
        super().__init__(location_name)

    def visit(
        self, command: Command, response: requests.Response, param: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        body = response.content if param.format == "binary" else response.text
        result[param.name] = param.filter(body)
        return result
