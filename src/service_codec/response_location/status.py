"""Status line locations."""

import requests

from service_codec.command import Command
from service_codec.description.base import Parameter
from service_codec.response_location.base import AbstractLocation, ResultAccumulator


class StatusCodeLocation(AbstractLocation):
    def __init__(self, location_name: str = "statusCode"):
        super().__init__(location_name)

    def visit(
        self, command: Command, response: requests.Response, param: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        result[param.name] = param.filter(response.status_code)
        return result


class ReasonPhraseLocation(AbstractLocation):
    def __init__(self, location_name: str = "reasonPhrase"):
        super().__init__(location_name)

    def visit(
        self, command: Command, response: requests.Response, param: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        result[param.name] = param.filter(response.reason)
        return result
